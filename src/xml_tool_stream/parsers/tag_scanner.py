"""Incremental tag scanner for tool markup split across fragments."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum, auto


class ScannerState(Enum):
    """Scanner states."""
    SCANNING = auto()      # Plain text, looking for an opening tag
    IN_TOOL_BODY = auto()  # Inside an open tool tag, looking for its close


class ScanActionKind(Enum):
    """Kinds of action the scanner hands to the session."""
    TEXT = auto()
    OPEN_TAG = auto()
    BODY = auto()
    CLOSE_TAG = auto()


@dataclass(frozen=True)
class ScanAction:
    """A single scanner output.

    ``text`` is set for TEXT and BODY, ``tool_name`` for OPEN_TAG and
    CLOSE_TAG. ``offset`` is the stream offset of the first character the
    action covers.
    """
    kind: ScanActionKind
    text: str = ""
    tool_name: str | None = None
    offset: int = 0


@dataclass
class ScannerContext:
    """Maintains scanner state across fragments."""
    state: ScannerState = ScannerState.SCANNING
    open_tool: str | None = None
    position: int = 0
    pending: str = ""
    actions: list[ScanAction] = field(default_factory=list)


class TagScanner:
    """Detects ``<tool>`` / ``</tool>`` boundaries in a fragment stream.

    Only exact ``<name>`` markers for configured names open a tag; any other
    bracketed text is forwarded as plain text. Inside an open tag the scanner
    looks for nothing but the matching close marker, so everything in between
    is body.

    A trailing partial marker is held back until the next fragment decides
    it, so the held-back text never exceeds the longest marker.

    Example:
        scanner = TagScanner(["get_weather"])
        scanner.feed("hi <get_")        # [TEXT("hi ")]
        scanner.feed("weather>NY</get_weather>")
        # [OPEN_TAG(get_weather), BODY("NY"), CLOSE_TAG(get_weather)]
    """

    def __init__(self, tool_names: Iterable[str]):
        names = list(tool_names)
        self._open_markers = {f"<{name}>": name for name in names}
        self._close_markers = {name: f"</{name}>" for name in names}
        self._max_marker_len = max((len(m) for m in self._open_markers), default=0)
        self._ctx = ScannerContext()

    @property
    def state(self) -> ScannerState:
        return self._ctx.state

    @property
    def open_tool(self) -> str | None:
        return self._ctx.open_tool

    @property
    def position(self) -> int:
        """Number of characters consumed so far, held-back text excluded."""
        return self._ctx.position

    @property
    def pending(self) -> str:
        """Text held back because it may be the start of a marker."""
        return self._ctx.pending

    def feed(self, fragment: str) -> list[ScanAction]:
        """Consume one fragment and return the actions it resolves.

        Args:
            fragment: Next piece of model output, possibly empty.

        Returns:
            Actions in stream order.
        """
        ctx = self._ctx
        buffer = ctx.pending + fragment
        ctx.pending = ""

        while buffer:
            if ctx.state == ScannerState.SCANNING:
                buffer = self._state_scanning(buffer, ctx)
            else:
                buffer = self._state_in_tool_body(buffer, ctx)
            if ctx.pending:
                break

        return self._take_actions(ctx)

    def flush(self) -> list[ScanAction]:
        """Release held-back text at end of stream and reset.

        Held-back text becomes TEXT when scanning and BODY inside an open tag;
        the caller decides how to resolve a tag that is still open.
        """
        ctx = self._ctx
        if ctx.pending:
            kind = ScanActionKind.BODY if ctx.state == ScannerState.IN_TOOL_BODY else ScanActionKind.TEXT
            self._emit(ctx, kind, text=ctx.pending)
            ctx.pending = ""
        actions = self._take_actions(ctx)
        self.reset()
        return actions

    def reset(self):
        """Reset the scanner state."""
        self._ctx = ScannerContext()

    def _state_scanning(self, buffer: str, ctx: ScannerContext) -> str:
        """Forward text up to the next '<' and try to match an opening tag."""
        lt = buffer.find("<")
        if lt == -1:
            self._emit(ctx, ScanActionKind.TEXT, text=buffer)
            return ""
        if lt > 0:
            self._emit(ctx, ScanActionKind.TEXT, text=buffer[:lt])
            buffer = buffer[lt:]

        # A marker's '>' can only fall inside the first max_marker_len chars
        gt = buffer.find(">", 0, self._max_marker_len)
        if gt != -1:
            name = self._open_markers.get(buffer[:gt + 1])
            if name is not None:
                self._emit(ctx, ScanActionKind.OPEN_TAG, tool_name=name, consumed=gt + 1)
                ctx.state = ScannerState.IN_TOOL_BODY
                ctx.open_tool = name
                return buffer[gt + 1:]
        elif len(buffer) < self._max_marker_len and self._is_open_marker_prefix(buffer):
            ctx.pending = buffer
            return ""

        # Not one of ours; the '<' is plain text and scanning resumes after it
        self._emit(ctx, ScanActionKind.TEXT, text="<")
        return buffer[1:]

    def _state_in_tool_body(self, buffer: str, ctx: ScannerContext) -> str:
        """Forward body text until the close marker of the open tool."""
        close = self._close_markers[ctx.open_tool]
        end = buffer.find(close)
        if end != -1:
            if end > 0:
                self._emit(ctx, ScanActionKind.BODY, text=buffer[:end])
            self._emit(ctx, ScanActionKind.CLOSE_TAG, tool_name=ctx.open_tool, consumed=len(close))
            ctx.state = ScannerState.SCANNING
            ctx.open_tool = None
            return buffer[end + len(close):]

        keep = self._partial_suffix_length(buffer, close)
        if len(buffer) > keep:
            self._emit(ctx, ScanActionKind.BODY, text=buffer[:len(buffer) - keep])
        if keep:
            ctx.pending = buffer[len(buffer) - keep:]
        return ""

    def _is_open_marker_prefix(self, buffer: str) -> bool:
        """Check if buffer (starting with '<', no '>') may still become a marker."""
        return any(marker.startswith(buffer) for marker in self._open_markers)

    @staticmethod
    def _partial_suffix_length(buffer: str, marker: str) -> int:
        """Length of the longest buffer suffix that is a strict prefix of marker."""
        for size in range(min(len(buffer), len(marker) - 1), 0, -1):
            if marker.startswith(buffer[-size:]):
                return size
        return 0

    @staticmethod
    def _emit(
        ctx: ScannerContext,
        kind: ScanActionKind,
        text: str = "",
        tool_name: str | None = None,
        consumed: int | None = None,
    ):
        ctx.actions.append(ScanAction(kind=kind, text=text, tool_name=tool_name, offset=ctx.position))
        ctx.position += len(text) if consumed is None else consumed

    @staticmethod
    def _take_actions(ctx: ScannerContext) -> list[ScanAction]:
        actions = ctx.actions
        ctx.actions = []
        return actions
