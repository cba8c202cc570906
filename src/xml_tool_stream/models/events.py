"""Event and stream-part models.

Outward events form a tagged union discriminated on ``type``. Field names are
snake_case in Python and serialize with the camelCase wire names
(``toolName``, ``toolCallId``) when dumped with ``by_alias=True``.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump using the wire field names."""
        return self.model_dump(by_alias=True)


class TextEvent(_Event):
    """Pass-through text, forwarded in original stream position."""

    type: Literal["text"] = "text"
    id: str
    delta: str


class ToolInputStartEvent(_Event):
    """An opening tool tag was detected."""

    type: Literal["tool-input-start"] = "tool-input-start"
    id: str
    tool_name: str = Field(alias="toolName")


class ToolInputEndEvent(_Event):
    """The tool tag was resolved (closed, failed or flushed)."""

    type: Literal["tool-input-end"] = "tool-input-end"
    id: str


class ToolCallEvent(_Event):
    """A tool call whose body parsed into arguments."""

    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    input: dict[str, Any] = Field(default_factory=dict)


StreamEvent = Annotated[
    Union[TextEvent, ToolInputStartEvent, ToolInputEndEvent, ToolCallEvent],
    Field(discriminator="type"),
]

stream_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


class TextDeltaPart(BaseModel):
    """A text fragment from the upstream model stream."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text-delta"] = "text-delta"
    id: str = "txt-0"
    delta: str = ""


class FinishPart(BaseModel):
    """End-of-stream marker from the upstream model stream."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["finish"] = "finish"
    finish_reason: str | None = Field(default=None, alias="finishReason")
    usage: dict[str, Any] = Field(default_factory=dict)


StreamPart = Annotated[
    Union[TextDeltaPart, FinishPart],
    Field(discriminator="type"),
]

stream_part_adapter: TypeAdapter[StreamPart] = TypeAdapter(StreamPart)
