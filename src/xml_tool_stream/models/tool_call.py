"""Data models for tool definitions, resolved tool calls and parse results.

This module provides Pydantic models for the values that flow through the
streaming parser:
- ToolDefinition: a tool the parser recognizes by tag name
- ToolCall: a resolved tool call (terminal, immutable)
- ExtractionResult: outcome of turning a raw tag body into arguments
- ParseResult: result of parsing a complete text in one go

Tool names double as XML tag names, so they are restricted to characters that
can appear in a tag name.
"""

import json
import re
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from xml_tool_stream.models.events import StreamEvent, TextEvent

TAG_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_.-]*$")


def validate_tag_name(v: str, kind: str = "tool name") -> str:
    """Validate that a name can be used as an XML tag name."""
    v = v.strip()
    if not v:
        raise ValueError(f"{kind.capitalize()} cannot be empty")
    if not TAG_NAME_PATTERN.match(v):
        raise ValueError(
            f"Invalid {kind} '{v}': must start with a letter or underscore "
            "and contain only letters, digits, '_', '-' or '.'"
        )
    return v


class ToolDefinition(BaseModel):
    """Definition of a tool the parser should recognize.

    Only ``name`` takes part in parsing. ``description`` and ``parameters``
    are carried along for prompt building and for round-tripping the OpenAI
    tools format.
    """

    name: str = Field(..., min_length=1, max_length=256)
    description: str = Field(default="")
    parameters: dict[str, Any] = Field(default_factory=lambda: {
        "type": "object",
        "properties": {},
        "required": [],
    })

    model_config = ConfigDict(frozen=True)

    @field_validator("name")
    @classmethod
    def validate_tool_name(cls, v: str) -> str:
        """Validate tool name is usable as a tag name."""
        return validate_tag_name(v)

    @property
    def open_tag(self) -> str:
        return f"<{self.name}>"

    @property
    def close_tag(self) -> str:
        return f"</{self.name}>"

    def to_openai_format(self) -> dict[str, Any]:
        """Convert to OpenAI tools format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            }
        }

    @classmethod
    def from_openai_format(cls, data: dict[str, Any]) -> "ToolDefinition":
        """Create from OpenAI tools format.

        Accepts both the wrapped ``{"type": "function", "function": {...}}``
        shape and a bare function dict. ``inputSchema`` is accepted as an
        alias of ``parameters``.
        """
        func = data.get("function", data)
        parameters = func.get("parameters", func.get("inputSchema")) or {}
        return cls(
            name=func.get("name", ""),
            description=func.get("description", "") or "",
            parameters=parameters,
        )


def normalize_tools(
    tools: "list[ToolDefinition | str | dict[str, Any]]",
) -> dict[str, ToolDefinition]:
    """Build a name -> ToolDefinition map from mixed tool specs.

    Args:
        tools: ToolDefinition instances, bare tool names, or dicts in OpenAI
            tools format.

    Returns:
        Dictionary of tool definitions keyed by name, in input order.

    Raises:
        ValueError: If a name is invalid or appears more than once.
    """
    by_name: dict[str, ToolDefinition] = {}
    for tool in tools:
        if isinstance(tool, ToolDefinition):
            definition = tool
        elif isinstance(tool, str):
            definition = ToolDefinition(name=tool)
        elif isinstance(tool, dict):
            definition = ToolDefinition.from_openai_format(tool)
        else:
            raise ValueError(
                f"Tools must be ToolDefinition, str or dict, got {type(tool).__name__}"
            )

        if definition.name in by_name:
            raise ValueError(f"Duplicate tool name: {definition.name}")
        by_name[definition.name] = definition

    return by_name


class ToolCall(BaseModel):
    """A resolved tool call extracted from the model output.

    Attributes:
        id: Identifier minted when the opening tag was detected.
        name: Name of the tool that was called.
        arguments: Arguments parsed from the tag body.

    Example:
        >>> call = ToolCall(id="call_1", name="get_weather", arguments={"location": "NY"})
        >>> call.to_openai_format()
        {'id': 'call_1', 'type': 'function', 'function': {'name': 'get_weather', 'arguments': '{"location": "NY"}'}}
    """

    id: str | None = Field(
        default=None,
        description="Identifier of this tool call (e.g., call_abc123)",
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=256,
        description="Name of the tool to call",
    )
    arguments: dict[str, Any] = Field(
        default_factory=dict,
        description="Arguments to pass to the tool",
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("name")
    @classmethod
    def validate_function_name(cls, v: str) -> str:
        return validate_tag_name(v)

    @field_validator("arguments", mode="before")
    @classmethod
    def parse_arguments(cls, v: Any) -> dict[str, Any]:
        """Parse arguments from string JSON if needed.

        This handles arguments arriving as a JSON string (as in OpenAI API
        responses) and converts them to a dict.
        """
        if v is None:
            return {}

        if isinstance(v, str):
            v = v.strip()
            if not v:
                return {}
            try:
                parsed = json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in arguments: {e}")
            if not isinstance(parsed, dict):
                raise ValueError(f"Arguments must be a JSON object, got {type(parsed).__name__}")
            return parsed

        if isinstance(v, dict):
            return v

        raise ValueError(f"Arguments must be a dict or JSON string, got {type(v).__name__}")

    @model_validator(mode="after")
    def validate_arguments_types(self) -> Self:
        """Validate that argument values are JSON-serializable types."""
        def check_serializable(obj: Any, path: str = "arguments") -> None:
            if obj is None or isinstance(obj, (bool, int, float, str)):
                return
            if isinstance(obj, dict):
                for k, v in obj.items():
                    if not isinstance(k, str):
                        raise ValueError(f"Argument keys must be strings at {path}")
                    check_serializable(v, f"{path}.{k}")
            elif isinstance(obj, list):
                for i, item in enumerate(obj):
                    check_serializable(item, f"{path}[{i}]")
            else:
                raise ValueError(
                    f"Non-JSON-serializable type {type(obj).__name__} at {path}"
                )

        check_serializable(self.arguments)
        return self

    def to_openai_format(self) -> dict[str, Any]:
        """Convert to OpenAI Chat Completions API tool_calls format."""
        return {
            "id": self.id,
            "type": "function",
            "function": {
                "name": self.name,
                "arguments": json.dumps(self.arguments),
            }
        }

    @classmethod
    def from_openai_format(cls, data: dict[str, Any]) -> "ToolCall":
        """Create a ToolCall from OpenAI API format."""
        function_data = data.get("function", data)
        return cls(
            id=data.get("id"),
            name=function_data.get("name", ""),
            arguments=function_data.get("arguments", {}),
        )


class ExtractionResult(BaseModel):
    """Outcome of extracting arguments from a raw tag body.

    Extraction never raises; a malformed body is reported here with
    ``success=False`` and a human-readable ``error``.
    """

    success: bool = Field(default=True)
    arguments: dict[str, Any] = Field(default_factory=dict)
    error: str | None = Field(default=None)
    raw_body: str = Field(default="")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def ok(cls, arguments: dict[str, Any], raw_body: str) -> "ExtractionResult":
        return cls(success=True, arguments=arguments, raw_body=raw_body)

    @classmethod
    def failed(cls, error: str, raw_body: str) -> "ExtractionResult":
        return cls(success=False, error=error, raw_body=raw_body)


class ParseResult(BaseModel):
    """Result of parsing a complete text with a streaming parser.

    Attributes:
        tool_calls: Tool calls that resolved successfully.
        events: The full event sequence produced for the text.
        raw_input: Original input text that was parsed.
        parse_time_ms: Time taken to parse in milliseconds.
        success: False when any tool call body failed to parse.
        error: Failure messages joined with "; " when success is False.
        parser_name: Name of the parser that produced this result.
    """

    tool_calls: list[ToolCall] = Field(default_factory=list)
    events: list[StreamEvent] = Field(default_factory=list)
    raw_input: str = Field(...)
    parse_time_ms: float = Field(default=0.0, ge=0.0)
    success: bool = Field(default=True)
    error: str | None = Field(default=None)
    parser_name: str | None = Field(default=None)

    @property
    def num_calls(self) -> int:
        """Return the number of tool calls extracted."""
        return len(self.tool_calls)

    @property
    def has_calls(self) -> bool:
        """Return whether any tool calls were found."""
        return len(self.tool_calls) > 0

    @property
    def text(self) -> str:
        """Pass-through text with tool markup removed."""
        return "".join(e.delta for e in self.events if isinstance(e, TextEvent))

    def to_openai_format(self) -> list[dict[str, Any]]:
        """Convert all tool calls to OpenAI API format."""
        return [call.to_openai_format() for call in self.tool_calls]

    def get_call_names(self) -> list[str]:
        """Get list of all tool names called."""
        return [call.name for call in self.tool_calls]
