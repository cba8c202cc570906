"""Ownership and resolution of the currently open tool call."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto

from xml_tool_stream.models import ExtractionResult, ToolCall
from xml_tool_stream.parsers.argument_extractor import ArgumentExtractor


class ResolutionOutcome(Enum):
    """Terminal outcomes of a pending call."""
    COMPLETE = auto()    # Closed and the body parsed
    FAILED = auto()      # Closed but the body did not parse
    INCOMPLETE = auto()  # Stream ended before the close tag


@dataclass
class PendingCall:
    """A tool tag that has been opened but not yet resolved."""
    id: str
    tool_name: str
    opened_at: int = 0
    raw_body: list[str] = field(default_factory=list)

    @property
    def body(self) -> str:
        return "".join(self.raw_body)

    @property
    def raw_markup(self) -> str:
        """The tag as received so far, opening marker included."""
        return f"<{self.tool_name}>{self.body}"


@dataclass(frozen=True)
class Resolution:
    """How a pending call ended.

    ``tool_call`` is set for COMPLETE, ``extraction`` for COMPLETE and FAILED,
    and ``raw_text`` holds the verbatim markup for FAILED and INCOMPLETE.
    """
    outcome: ResolutionOutcome
    call_id: str
    tool_name: str
    tool_call: ToolCall | None = None
    extraction: ExtractionResult | None = None
    raw_text: str = ""


class CallAccumulator:
    """Holds at most one open call and resolves it exactly once.

    Args:
        id_factory: Called once per opened tag to mint the call id.
    """

    def __init__(self, id_factory: Callable[[], str]):
        self._id_factory = id_factory
        self._pending: PendingCall | None = None

    @property
    def pending(self) -> PendingCall | None:
        return self._pending

    def open(self, tool_name: str, opened_at: int = 0) -> PendingCall:
        """Start a new call; the id is minted here."""
        if self._pending is not None:
            raise RuntimeError(
                f"Cannot open <{tool_name}> while <{self._pending.tool_name}> "
                f"({self._pending.id}) is still open"
            )
        self._pending = PendingCall(id=self._id_factory(), tool_name=tool_name, opened_at=opened_at)
        return self._pending

    def append(self, chunk: str):
        if self._pending is None:
            raise RuntimeError("No open tool call to append body text to")
        self._pending.raw_body.append(chunk)

    def close(self, extractor: ArgumentExtractor) -> Resolution:
        """Resolve the open call after its close tag was seen."""
        call = self._take()
        extraction = extractor.extract(call.tool_name, call.body)

        if not extraction.success:
            return Resolution(
                outcome=ResolutionOutcome.FAILED,
                call_id=call.id,
                tool_name=call.tool_name,
                extraction=extraction,
                raw_text=f"{call.raw_markup}</{call.tool_name}>",
            )

        return Resolution(
            outcome=ResolutionOutcome.COMPLETE,
            call_id=call.id,
            tool_name=call.tool_name,
            tool_call=ToolCall(id=call.id, name=call.tool_name, arguments=extraction.arguments),
            extraction=extraction,
        )

    def abandon(self) -> Resolution | None:
        """Resolve the open call as INCOMPLETE at end of stream, if any."""
        if self._pending is None:
            return None
        call = self._take()
        return Resolution(
            outcome=ResolutionOutcome.INCOMPLETE,
            call_id=call.id,
            tool_name=call.tool_name,
            raw_text=call.raw_markup,
        )

    def reset(self):
        self._pending = None

    def _take(self) -> PendingCall:
        if self._pending is None:
            raise RuntimeError("No open tool call to resolve")
        call, self._pending = self._pending, None
        return call
