"""Data models for tool definitions, tool calls, events and stream parts.

This module provides Pydantic-validated models for:
- ToolDefinition: A tool recognized by its tag name
- ToolCall: A resolved tool call
- ExtractionResult: Outcome of parsing a tag body into arguments
- ParseResult: Complete whole-text parsing result
- Events: TextEvent, ToolInputStartEvent, ToolInputEndEvent, ToolCallEvent
- Stream parts: TextDeltaPart, FinishPart
"""

from .events import (
    FinishPart,
    StreamEvent,
    StreamPart,
    TextDeltaPart,
    TextEvent,
    ToolCallEvent,
    ToolInputEndEvent,
    ToolInputStartEvent,
    stream_event_adapter,
    stream_part_adapter,
)
from .tool_call import ExtractionResult, ParseResult, ToolCall, ToolDefinition, normalize_tools

__all__ = [
    "ToolCall",
    "ParseResult",
    "ToolDefinition",
    "ExtractionResult",
    "normalize_tools",
    "StreamEvent",
    "TextEvent",
    "ToolInputStartEvent",
    "ToolInputEndEvent",
    "ToolCallEvent",
    "stream_event_adapter",
    "StreamPart",
    "TextDeltaPart",
    "FinishPart",
    "stream_part_adapter",
]
