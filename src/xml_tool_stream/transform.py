"""Wrap an upstream model stream with the tool tag parser.

Text deltas are replaced by parser events; a finish part flushes the parser
before it is forwarded; every other part passes through in position.
"""

import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from typing import Any

from xml_tool_stream.models import FinishPart, TextDeltaPart, ToolDefinition, stream_part_adapter
from xml_tool_stream.parsers import ParserOptions, XmlToolStreamParser

logger = logging.getLogger(__name__)

ToolSpec = ToolDefinition | str | dict[str, Any]


def _coerce_part(part: Any) -> Any:
    """Validate dict parts carrying a known ``type`` into models."""
    if isinstance(part, dict) and part.get("type") in ("text-delta", "finish"):
        return stream_part_adapter.validate_python(part)
    return part


class _StreamTransformer:
    """Shared per-part logic of the sync and async transforms."""

    def __init__(self, tools: Iterable[ToolSpec], options: ParserOptions | None):
        self.parser = XmlToolStreamParser(tools, options)
        self.finished = False

    def handle(self, part: Any) -> list[Any]:
        part = _coerce_part(part)
        if isinstance(part, TextDeltaPart):
            self.finished = False
            return self.parser.feed(part.delta, text_id=part.id)
        if isinstance(part, FinishPart):
            events = self.flush()
            return [*events, part]
        return [part]

    def flush(self) -> list[Any]:
        if self.finished:
            return []
        self.finished = True
        return self.parser.finish()


def transform_stream(
    parts: Iterable[Any],
    tools: Iterable[ToolSpec],
    options: ParserOptions | None = None,
) -> Iterator[Any]:
    """Yield parser events for a synchronous stream of parts.

    Args:
        parts: Upstream parts: TextDeltaPart, FinishPart, dicts of either
            shape, or anything else to pass through.
        tools: Tools to recognize.
        options: Parser options.

    Yields:
        StreamEvents interleaved with passed-through parts.

    If the upstream raises, pending state is flushed and its events are
    yielded before the exception propagates.
    """
    transformer = _StreamTransformer(tools, options)
    try:
        for part in parts:
            yield from transformer.handle(part)
    except Exception:
        logger.debug("Upstream stream failed; flushing parser state", exc_info=True)
        yield from transformer.flush()
        raise
    yield from transformer.flush()


async def atransform_stream(
    parts: AsyncIterable[Any],
    tools: Iterable[ToolSpec],
    options: ParserOptions | None = None,
) -> AsyncIterator[Any]:
    """Async counterpart of :func:`transform_stream`."""
    transformer = _StreamTransformer(tools, options)
    try:
        async for part in parts:
            for item in transformer.handle(part):
                yield item
    except Exception:
        logger.debug("Upstream stream failed; flushing parser state", exc_info=True)
        for item in transformer.flush():
            yield item
        raise
    for item in transformer.flush():
        yield item
