"""Command line replay of a model output through the streaming parser.

Usage:
    xml-tool-stream output.txt --tool get_weather
    cat output.txt | xml-tool-stream --tool get_weather --tool search --chunk-size 7
"""

import argparse
import json
import logging
import sys
from collections.abc import Iterator

from xml_tool_stream.parsers import ParserOptions, XmlToolStreamParser


def iter_fragments(text: str, chunk_size: int) -> Iterator[str]:
    """Split text into fragments of ``chunk_size`` characters."""
    for i in range(0, len(text), chunk_size):
        yield text[i:i + chunk_size]


def build_arg_parser() -> argparse.ArgumentParser:
    arg_parser = argparse.ArgumentParser(
        prog="xml-tool-stream",
        description="Replay model output through the tool tag parser and print events as JSON lines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    arg_parser.add_argument(
        "file",
        nargs="?",
        type=argparse.FileType("r", encoding="utf-8"),
        default=sys.stdin,
        help="File with model output (default: stdin)"
    )
    arg_parser.add_argument(
        "--tool", "-t",
        action="append",
        required=True,
        dest="tools",
        help="Tool name to recognize (repeatable)"
    )
    arg_parser.add_argument(
        "--chunk-size", "-c",
        type=int,
        default=1,
        help="Characters per fragment (default: 1)"
    )
    arg_parser.add_argument(
        "--raw-on-failure",
        action="store_true",
        help="Re-emit the markup of calls whose body fails to parse as text"
    )
    arg_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging"
    )
    return arg_parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.chunk_size < 1:
        print("error: --chunk-size must be at least 1", file=sys.stderr)
        return 2

    parser = XmlToolStreamParser(
        args.tools,
        ParserOptions(emit_raw_on_failure=args.raw_on_failure),
    )

    text = args.file.read()
    for fragment in iter_fragments(text, args.chunk_size):
        for event in parser.feed(fragment):
            print(json.dumps(event.to_wire()))
    for event in parser.finish():
        print(json.dumps(event.to_wire()))

    return 0


if __name__ == "__main__":
    sys.exit(main())
