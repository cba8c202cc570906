"""Streaming parser turning model output fragments into tool call events."""

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from xml_tool_stream.models import StreamEvent, ToolDefinition, normalize_tools
from xml_tool_stream.parsers.argument_extractor import ArgumentExtractor
from xml_tool_stream.parsers.base import BaseStreamParser
from xml_tool_stream.parsers.call_accumulator import (
    CallAccumulator,
    PendingCall,
    Resolution,
    ResolutionOutcome,
)
from xml_tool_stream.parsers.event_emitter import EventEmitter
from xml_tool_stream.parsers.tag_scanner import ScanAction, ScanActionKind, TagScanner

logger = logging.getLogger(__name__)

ErrorReporter = Callable[[str, dict[str, Any]], None]


def default_id_factory() -> str:
    """Mint an OpenAI-style tool call id."""
    return f"call_{uuid.uuid4().hex[:24]}"


def log_parse_error(message: str, context: dict[str, Any]) -> None:
    """Default error reporter: log the failure with its raw body."""
    logger.warning(
        "%s (toolCallId=%s, rawBody=%r)",
        message,
        context.get("toolCallId"),
        context.get("rawBody"),
    )


@dataclass
class ParserOptions:
    """Configuration for a parse session.

    Attributes:
        id_factory: Called once per opened tag to mint the tool call id.
        on_error: Called once per tool call whose body fails to parse, with a
            message and a context dict (toolCallId, toolName, rawBody, error).
            Defaults to logging a warning. Exceptions it raises are logged
            and parsing continues.
        text_id: Text channel id stamped on text events until a fragment
            supplies another one.
        emit_raw_on_failure: Re-emit the markup of a failed call as text
            after its tool-input-end instead of dropping it.
    """
    id_factory: Callable[[], str] = default_id_factory
    on_error: ErrorReporter | None = None
    text_id: str = "txt-0"
    emit_raw_on_failure: bool = False


class XmlToolStreamParser(BaseStreamParser):
    """Parse session for one model output stream.

    Plain text is forwarded as soon as it cannot be part of a tool tag. A
    ``<tool>...</tool>`` span for a configured tool produces
    tool-input-start when the opening tag is seen, then tool-input-end and
    tool-call when it closes. Every opened tag is resolved exactly once:

    - complete: end, then tool-call
    - failed (body not parseable): end, error reported, no tool-call
    - incomplete (stream ended first): end, then the markup as text

    Example:
        parser = XmlToolStreamParser(["get_weather"])
        parser.feed("prefix <get_weather>")
        parser.feed("<location>NY</location></get_weather>")
        parser.finish()

    Attributes:
        tools: Configured tool definitions keyed by name.
        options: Session options.
    """

    def __init__(
        self,
        tools: "Iterable[ToolDefinition | str | dict[str, Any]]",
        options: ParserOptions | None = None,
    ):
        self.options = options or ParserOptions()
        self.tools = normalize_tools(list(tools))
        self._scanner = TagScanner(self.tools)
        self._accumulator = CallAccumulator(self.options.id_factory)
        self._extractor = ArgumentExtractor()
        self._emitter = EventEmitter(self.options.text_id)
        self._errors: list[str] = []
        # (stream offset, new text id) while held-back text of the old channel is pending
        self._channel_switch: tuple[int, str] | None = None

    @property
    def name(self) -> str:
        """Return the parser identifier."""
        return "xml-tool-stream-parser"

    @property
    def has_pending_call(self) -> bool:
        return self._accumulator.pending is not None

    @property
    def pending_call(self) -> PendingCall | None:
        return self._accumulator.pending

    def feed(self, fragment: str, text_id: str | None = None) -> list[StreamEvent]:
        """Consume one fragment and return the events it resolves.

        Text held back from earlier fragments keeps the channel id it
        arrived with; ``text_id`` applies to this fragment's text.
        """
        if text_id is not None and text_id != self._emitter.text_id:
            boundary = self._scanner.position + len(self._scanner.pending)
            self._channel_switch = (boundary, text_id)
        for action in self._scanner.feed(fragment):
            self._apply(action)
        if self._channel_switch is not None:
            self._switch_channel()
        return self._emitter.drain()

    def finish(self) -> list[StreamEvent]:
        """Flush held-back text and resolve an open call as incomplete.

        The session is ready for a new stream afterwards.
        """
        for action in self._scanner.flush():
            self._apply(action)

        resolution = self._accumulator.abandon()
        if resolution is not None:
            self._resolve(resolution)

        events = self._emitter.drain()
        self._emitter.reset()
        return events

    def reset(self):
        """Reset the parser state."""
        self._scanner.reset()
        self._accumulator.reset()
        self._emitter = EventEmitter(self.options.text_id)
        self._errors = []
        self._channel_switch = None

    def drain_errors(self) -> list[str]:
        errors, self._errors = self._errors, []
        return errors

    def _switch_channel(self):
        self._emitter.text_id = self._channel_switch[1]
        self._channel_switch = None

    def _text(self, action: ScanAction):
        if self._channel_switch is None:
            self._emitter.text(action.text)
            return

        held = self._channel_switch[0] - action.offset
        if held > 0:
            self._emitter.text(action.text[:held])
        if len(action.text) > held:
            self._switch_channel()
            self._emitter.text(action.text[max(held, 0):])

    def _apply(self, action: ScanAction):
        if (
            self._channel_switch is not None
            and action.kind != ScanActionKind.TEXT
            and action.offset >= self._channel_switch[0]
        ):
            self._switch_channel()

        if action.kind == ScanActionKind.TEXT:
            self._text(action)
        elif action.kind == ScanActionKind.BODY:
            self._accumulator.append(action.text)
        elif action.kind == ScanActionKind.OPEN_TAG:
            call = self._accumulator.open(action.tool_name, action.offset)
            logger.debug("Opened <%s> as %s at offset %d", call.tool_name, call.id, call.opened_at)
            self._emitter.tool_input_start(call.id, call.tool_name)
        elif action.kind == ScanActionKind.CLOSE_TAG:
            self._resolve(self._accumulator.close(self._extractor))
        else:
            raise RuntimeError(f"Unhandled scan action: {action.kind}")

    def _resolve(self, resolution: Resolution):
        logger.debug(
            "Resolved <%s> %s as %s",
            resolution.tool_name,
            resolution.call_id,
            resolution.outcome.name,
        )

        if resolution.outcome == ResolutionOutcome.COMPLETE:
            self._emitter.tool_input_end(resolution.call_id)
            self._emitter.tool_call(resolution.tool_call)

        elif resolution.outcome == ResolutionOutcome.FAILED:
            self._emitter.tool_input_end(resolution.call_id, terminal=True)
            self._report_failure(resolution)
            if self.options.emit_raw_on_failure:
                self._emitter.text(resolution.raw_text)

        elif resolution.outcome == ResolutionOutcome.INCOMPLETE:
            self._emitter.tool_input_end(resolution.call_id, terminal=True)
            self._emitter.text(resolution.raw_text)

        else:
            raise RuntimeError(f"Unhandled resolution outcome: {resolution.outcome}")

    def _report_failure(self, resolution: Resolution):
        message = resolution.extraction.error or f"Could not parse body of <{resolution.tool_name}>"
        self._errors.append(message)
        reporter = self.options.on_error or log_parse_error
        # A failing reporter must not abort the rest of the fragment
        try:
            reporter(message, {
                "toolCallId": resolution.call_id,
                "toolName": resolution.tool_name,
                "rawBody": resolution.extraction.raw_body,
                "error": resolution.extraction.error,
            })
        except Exception:
            logger.exception("Error reporter failed for %s", resolution.call_id)
