"""Abstract base class for streaming parser implementations."""

import time
from abc import ABC, abstractmethod

from xml_tool_stream.models import ParseResult, StreamEvent, ToolCall, ToolCallEvent


class BaseStreamParser(ABC):
    """Abstract base class that all streaming parsers must inherit from.

    A streaming parser consumes text fragments one at a time and returns the
    events each fragment resolves. ``parse`` runs a whole text through the
    same path in one go.

    Example:
        class MyParser(BaseStreamParser):
            @property
            def name(self) -> str:
                return "my-parser"

            def feed(self, fragment: str, text_id: str | None = None) -> list[StreamEvent]:
                ...

            def finish(self) -> list[StreamEvent]:
                ...

            def reset(self):
                ...
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this parser.

        Used in benchmarks and logging.
        """
        pass

    @abstractmethod
    def feed(self, fragment: str, text_id: str | None = None) -> list[StreamEvent]:
        """Consume the next fragment.

        Args:
            fragment: Next piece of model output, possibly empty.
            text_id: Text channel id for text events, if it changed.

        Returns:
            Events resolved by this fragment, in order.
        """
        pass

    @abstractmethod
    def finish(self) -> list[StreamEvent]:
        """Signal end of stream and return the remaining events."""
        pass

    @abstractmethod
    def reset(self):
        """Discard all stream state without emitting anything."""
        pass

    def drain_errors(self) -> list[str]:
        """Return and clear failure messages recorded since the last call."""
        return []

    def parse(self, text: str) -> ParseResult:
        """Parse a complete text and collect its events and tool calls.

        Args:
            text: Raw LLM output text to parse

        Returns:
            ParseResult containing the events, resolved tool calls and timing
        """
        start_time = time.perf_counter()

        try:
            events = self.feed(text) + self.finish()
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            self.reset()
            return ParseResult(
                raw_input=text,
                parse_time_ms=elapsed_ms,
                success=False,
                error=str(e),
                parser_name=self.name,
            )

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        errors = self.drain_errors()

        return ParseResult(
            tool_calls=[
                ToolCall(id=e.tool_call_id, name=e.tool_name, arguments=e.input)
                for e in events
                if isinstance(e, ToolCallEvent)
            ],
            events=events,
            raw_input=text,
            parse_time_ms=elapsed_ms,
            success=not errors,
            error="; ".join(errors) if errors else None,
            parser_name=self.name,
        )

    def parse_multiple(self, texts: list[str]) -> list[ParseResult]:
        """Parse multiple texts in batch."""
        return [self.parse(text) for text in texts]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
