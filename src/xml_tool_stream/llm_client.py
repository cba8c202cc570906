"""Stream tool call events from an OpenAI-compatible chat completions server.

The model is told about the tools through a system prompt and answers with
tag markup in plain text; the response stream is run through the parser.
Works with vLLM, OpenAI, Together AI, Groq, Fireworks, and other
OpenAI-compatible APIs.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from openai import OpenAI

from xml_tool_stream.formatting import build_system_prompt
from xml_tool_stream.models import FinishPart, TextDeltaPart, ToolDefinition
from xml_tool_stream.parsers import ParserOptions
from xml_tool_stream.transform import transform_stream

logger = logging.getLogger(__name__)


@dataclass
class LLMConfig:
    """Configuration for LLM server connection.

    Works with vLLM, OpenAI, Together AI, Groq, Fireworks, etc.
    """
    base_url: str = "http://localhost:8000/v1"
    api_key: str = "EMPTY"
    model: str | None = None

    @classmethod
    def vllm_local(cls) -> "LLMConfig":
        """Config for local vLLM server."""
        return cls(base_url="http://localhost:8000/v1", api_key="EMPTY")

    @classmethod
    def openai(cls, api_key: str, model: str = "gpt-4o-mini") -> "LLMConfig":
        """Config for OpenAI API."""
        return cls(
            base_url="https://api.openai.com/v1",
            api_key=api_key,
            model=model
        )

    @classmethod
    def together(cls, api_key: str, model: str = "meta-llama/Llama-3.2-3B-Instruct-Turbo") -> "LLMConfig":
        """Config for Together AI."""
        return cls(
            base_url="https://api.together.xyz/v1",
            api_key=api_key,
            model=model
        )

    @classmethod
    def groq(cls, api_key: str, model: str = "llama-3.1-8b-instant") -> "LLMConfig":
        """Config for Groq."""
        return cls(
            base_url="https://api.groq.com/openai/v1",
            api_key=api_key,
            model=model
        )

    @classmethod
    def fireworks(cls, api_key: str, model: str = "accounts/fireworks/models/llama-v3p1-8b-instruct") -> "LLMConfig":
        """Config for Fireworks AI."""
        return cls(
            base_url="https://api.fireworks.ai/inference/v1",
            api_key=api_key,
            model=model
        )


class LLMClient:
    """Client streaming tag-markup tool calls from an LLM server.

    Args:
        config: Server connection settings.
        client: Pre-built OpenAI client; built from ``config`` when omitted.
    """

    def __init__(self, config: LLMConfig | None = None, client: Any = None):
        self.config = config or LLMConfig.vllm_local()
        self.client = client or OpenAI(
            api_key=self.config.api_key,
            base_url=self.config.base_url,
        )
        self._model = self.config.model

    @property
    def model(self) -> str:
        """Get the model name, auto-detecting if needed."""
        if self._model is None:
            models = self.client.models.list()
            self._model = models.data[0].id
        return self._model

    def stream_parts(
        self,
        messages: list[dict[str, str]],
        max_tokens: int = 1024,
        text_id: str = "txt-0",
    ) -> Iterator[TextDeltaPart | FinishPart]:
        """Stream raw text deltas and the finish part (no tool parsing).

        Args:
            messages: Conversation history.
            max_tokens: Maximum tokens to generate.
            text_id: Channel id stamped on the text parts.

        Yields:
            TextDeltaPart per content delta, then one FinishPart.
        """
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            stream=True,
        )

        finish_reason = None
        usage: dict[str, Any] = {}
        for chunk in response:
            if getattr(chunk, "usage", None):
                usage = chunk.usage.model_dump()
            if not chunk.choices:
                continue
            choice = chunk.choices[0]
            if choice.delta and choice.delta.content:
                yield TextDeltaPart(id=text_id, delta=choice.delta.content)
            if choice.finish_reason:
                finish_reason = choice.finish_reason

        logger.debug("Stream finished (reason=%s)", finish_reason)
        yield FinishPart(finish_reason=finish_reason, usage=usage)

    def stream_events(
        self,
        messages: list[dict[str, str]],
        tools: "list[ToolDefinition | str | dict[str, Any]]",
        options: ParserOptions | None = None,
        max_tokens: int = 1024,
    ) -> Iterator[Any]:
        """Stream parser events for a chat with tools described in-prompt.

        Args:
            messages: Conversation history, without the tools system prompt.
            tools: Tools the model may call.
            options: Parser options.
            max_tokens: Maximum tokens to generate.

        Yields:
            Text and tool lifecycle events, then the FinishPart.
        """
        system = {"role": "system", "content": build_system_prompt(tools)}
        parts = self.stream_parts([system, *messages], max_tokens=max_tokens)
        yield from transform_stream(parts, tools, options)


# Default tools for examples and tests
DEFAULT_WEATHER_TOOL = ToolDefinition(
    name="get_weather",
    description="Get the current weather in a given location",
    parameters={
        "type": "object",
        "properties": {
            "location": {
                "type": "string",
                "description": "The city name, e.g. 'San Francisco'",
            },
            "unit": {
                "type": "string",
                "description": "Temperature unit",
                "enum": ["celsius", "fahrenheit"],
            },
        },
        "required": ["location"],
    },
)

DEFAULT_SEARCH_TOOL = ToolDefinition(
    name="search",
    description="Search for information on the web",
    parameters={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The search query",
            },
        },
        "required": ["query"],
    },
)


def get_default_tools() -> list[ToolDefinition]:
    """Get default tools for examples and tests."""
    return [DEFAULT_WEATHER_TOOL, DEFAULT_SEARCH_TOOL]
