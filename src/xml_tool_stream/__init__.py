"""Streaming parser for XML-style tool calls embedded in LLM output."""

from xml_tool_stream.formatting import build_system_prompt, format_tool_call
from xml_tool_stream.models import (
    FinishPart,
    ParseResult,
    StreamEvent,
    TextDeltaPart,
    TextEvent,
    ToolCall,
    ToolCallEvent,
    ToolDefinition,
    ToolInputEndEvent,
    ToolInputStartEvent,
)
from xml_tool_stream.parsers import ParserOptions, XmlToolStreamParser
from xml_tool_stream.transform import atransform_stream, transform_stream

__version__ = "0.1.0"

__all__ = [
    "XmlToolStreamParser",
    "ParserOptions",
    "transform_stream",
    "atransform_stream",
    "format_tool_call",
    "build_system_prompt",
    "ToolDefinition",
    "ToolCall",
    "ParseResult",
    "StreamEvent",
    "TextEvent",
    "ToolInputStartEvent",
    "ToolInputEndEvent",
    "ToolCallEvent",
    "TextDeltaPart",
    "FinishPart",
]
