"""Ordered emission of text and tool lifecycle events."""

from enum import Enum, auto

from xml_tool_stream.models import (
    StreamEvent,
    TextEvent,
    ToolCall,
    ToolCallEvent,
    ToolInputEndEvent,
    ToolInputStartEvent,
)


class _CallStage(Enum):
    STARTED = auto()
    ENDED = auto()
    CALLED = auto()


class EventEmitter:
    """Collects events in resolution order until drained.

    Adjacent text deltas are merged into one TextEvent and empty text is
    dropped. For every call id the order start, end, tool-call is enforced;
    a violation is a bug in the caller and raises RuntimeError.

    Args:
        text_id: Id of the text channel stamped on TextEvents.
    """

    def __init__(self, text_id: str = "txt-0"):
        self._text_id = text_id
        self._events: list[StreamEvent] = []
        self._text: list[str] = []
        self._stages: dict[str, _CallStage] = {}

    @property
    def text_id(self) -> str:
        return self._text_id

    @text_id.setter
    def text_id(self, value: str):
        # Text collected so far keeps the channel it was produced on
        if value != self._text_id:
            self._flush_text()
            self._text_id = value

    def text(self, delta: str):
        if delta:
            self._text.append(delta)

    def tool_input_start(self, call_id: str, tool_name: str):
        if call_id in self._stages:
            raise RuntimeError(f"tool-input-start already emitted for {call_id}")
        self._stages[call_id] = _CallStage.STARTED
        self._push(ToolInputStartEvent(id=call_id, tool_name=tool_name))

    def tool_input_end(self, call_id: str, terminal: bool = False):
        """Emit the end event; ``terminal`` means no tool-call will follow."""
        self._advance(call_id, _CallStage.STARTED, _CallStage.ENDED, "tool-input-end")
        self._push(ToolInputEndEvent(id=call_id))
        if terminal:
            del self._stages[call_id]

    def tool_call(self, call: ToolCall):
        self._advance(call.id, _CallStage.ENDED, _CallStage.CALLED, "tool-call")
        self._push(ToolCallEvent(tool_call_id=call.id, tool_name=call.name, input=call.arguments))
        del self._stages[call.id]

    def drain(self) -> list[StreamEvent]:
        """Return the events collected so far and start a new batch."""
        self._flush_text()
        events, self._events = self._events, []
        return events

    def reset(self):
        self._events = []
        self._text = []
        self._stages = {}

    def _advance(self, call_id: str, expected: _CallStage, stage: _CallStage, kind: str):
        current = self._stages.get(call_id)
        if current is not expected:
            raise RuntimeError(
                f"{kind} for {call_id} out of order "
                f"(current stage: {current.name if current else 'none'})"
            )
        self._stages[call_id] = stage

    def _push(self, event: StreamEvent):
        self._flush_text()
        self._events.append(event)

    def _flush_text(self):
        if self._text:
            self._events.append(TextEvent(id=self._text_id, delta="".join(self._text)))
            self._text = []
