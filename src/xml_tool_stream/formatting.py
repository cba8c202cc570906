"""Render tools and tool calls in the tag convention the parser reads."""

import json
from typing import Any
from xml.sax.saxutils import escape

from xml_tool_stream.models import ToolCall, ToolDefinition, normalize_tools

SYSTEM_PROMPT_TEMPLATE = """You have access to the following tools:

{tool_list}

To call a tool, write an element named after the tool with one child element
per argument, for example:

<{example_name}>
<argument_name>value</argument_name>
</{example_name}>

Use only the tool names listed above. Do not nest tool calls."""


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return escape(value)
    return escape(json.dumps(value))


def format_tool_call(call: ToolCall) -> str:
    """Render a tool call as markup the parser resolves back to ``call``.

    List arguments become repeated elements; other non-string values are
    written as JSON text.

    Example:
        >>> format_tool_call(ToolCall(name="get_weather", arguments={"location": "NY"}))
        '<get_weather><location>NY</location></get_weather>'
    """
    parts = [f"<{call.name}>"]
    for key, value in call.arguments.items():
        values = value if isinstance(value, list) else [value]
        for item in values:
            parts.append(f"<{key}>{_format_value(item)}</{key}>")
    parts.append(f"</{call.name}>")
    return "".join(parts)


def build_system_prompt(tools: "list[ToolDefinition | str | dict[str, Any]]") -> str:
    """Build instructions describing the tools and the tag convention."""
    definitions = list(normalize_tools(tools).values())
    if not definitions:
        raise ValueError("At least one tool is required to build a system prompt")

    entries = []
    for tool in definitions:
        entry = f"- {tool.name}"
        if tool.description:
            entry += f": {tool.description}"
        properties = tool.parameters.get("properties")
        if properties:
            entry += f"\n  parameters: {json.dumps(properties)}"
        entries.append(entry)

    return SYSTEM_PROMPT_TEMPLATE.format(
        tool_list="\n".join(entries),
        example_name=definitions[0].name,
    )
