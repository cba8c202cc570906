"""Tests for the stream transform over upstream model parts."""

import asyncio

import pytest

from xml_tool_stream import atransform_stream, transform_stream
from xml_tool_stream.models import (
    FinishPart,
    TextDeltaPart,
    TextEvent,
    ToolCallEvent,
    ToolInputEndEvent,
    ToolInputStartEvent,
)
from xml_tool_stream.parsers import ParserOptions

TOOLS = [
    {
        "type": "function",
        "name": "get_weather",
        "description": "",
        "inputSchema": {"type": "object"},
    }
]


def options():
    return ParserOptions(id_factory=lambda: "mock-id")


def deltas(*texts, channel="1"):
    return [TextDeltaPart(id=channel, delta=t) for t in texts]


class TestTransformStream:
    """Tests for the synchronous transform."""

    def test_tool_input_events(self):
        """Test a tool call in a model stream."""
        parts = deltas("prefix ", "<get_weather>", "<location>NY</location>", "</get_weather>", " suffix")
        parts.append(FinishPart(finish_reason="stop"))

        out = list(transform_stream(parts, TOOLS, options()))

        assert [type(p) for p in out] == [
            TextEvent,
            ToolInputStartEvent,
            ToolInputEndEvent,
            ToolCallEvent,
            TextEvent,
            FinishPart,
        ]
        assert out[0].id == "1"
        assert out[1].id == out[2].id == out[3].tool_call_id == "mock-id"
        assert out[3].input == {"location": "NY"}

    def test_finish_flushes_before_forwarding(self):
        """Test an open call is resolved before the finish part."""
        parts = deltas("<get_weather>", "<location>NY</location>") + [FinishPart(finish_reason="stop")]

        out = list(transform_stream(parts, TOOLS, options()))

        assert [type(p) for p in out] == [ToolInputStartEvent, ToolInputEndEvent, TextEvent, FinishPart]
        assert out[2].delta == "<get_weather><location>NY</location>"

    def test_dict_parts(self):
        """Test plain dict parts are accepted."""
        parts = [
            {"type": "text-delta", "id": "1", "delta": "<get_weather></get_weather>"},
            {"type": "finish", "finishReason": "stop", "usage": {"totalTokens": 0}},
        ]

        out = list(transform_stream(parts, TOOLS, options()))

        assert isinstance(out[2], ToolCallEvent)
        assert isinstance(out[-1], FinishPart)
        assert out[-1].usage == {"totalTokens": 0}

    def test_other_parts_pass_through_in_position(self):
        """Test unrelated parts keep their place in the stream."""
        metadata = {"type": "response-metadata", "modelId": "m"}
        parts = [metadata, *deltas("hi "), "opaque", *deltas("there")]

        out = list(transform_stream(parts, TOOLS, options()))

        assert out[0] is metadata
        assert out[1] == TextEvent(id="1", delta="hi ")
        assert out[2] == "opaque"
        assert out[3] == TextEvent(id="1", delta="there")

    def test_flush_without_finish_part(self):
        """Test the session is flushed when the source just ends."""
        out = list(transform_stream(deltas("tail <get_wea"), TOOLS, options()))

        assert "".join(p.delta for p in out) == "tail <get_wea"

    def test_upstream_error_flushes_then_raises(self):
        """Test pending calls resolve before an upstream error propagates."""
        def source():
            yield TextDeltaPart(id="1", delta="<get_weather>")
            yield TextDeltaPart(id="1", delta="<location>NY")
            raise ConnectionError("stream dropped")

        out = []
        with pytest.raises(ConnectionError):
            for part in transform_stream(source(), TOOLS, options()):
                out.append(part)

        assert [type(p) for p in out] == [ToolInputStartEvent, ToolInputEndEvent, TextEvent]
        assert out[2].delta == "<get_weather><location>NY"

    def test_raising_reporter_keeps_trailing_text(self):
        """Test text after a failed call survives a failing error reporter."""
        def explode(message, context):
            raise RuntimeError("reporter down")

        parts = deltas("<get_weather>oops</get_weather> keep me") + [FinishPart()]
        opts = ParserOptions(id_factory=lambda: "mock-id", on_error=explode)

        out = list(transform_stream(parts, TOOLS, opts))

        assert [type(p) for p in out] == [ToolInputStartEvent, ToolInputEndEvent, TextEvent, FinishPart]
        assert out[2].delta == " keep me"

    def test_multiple_channels(self):
        """Test text events follow the channel id of their fragment."""
        parts = deltas("a", channel="1") + deltas("b", channel="2")

        out = list(transform_stream(parts, TOOLS, options()))

        assert [(e.id, e.delta) for e in out] == [("1", "a"), ("2", "b")]

    def test_text_after_finish(self):
        """Test a second stream segment after a finish part is flushed too."""
        parts = deltas("<get_weather></get_weather>") + [FinishPart()] + deltas("<get_weather>")

        out = list(transform_stream(parts, TOOLS, options()))

        assert isinstance(out[-1], TextEvent)
        assert out[-1].delta == "<get_weather>"


class TestAsyncTransformStream:
    """Tests for the asynchronous transform."""

    def test_tool_input_events(self):
        async def source():
            for part in deltas("prefix <get_", "weather><location>NY</location></get_weather>"):
                yield part
            yield FinishPart(finish_reason="stop")

        async def collect():
            return [p async for p in atransform_stream(source(), TOOLS, options())]

        out = asyncio.run(collect())

        assert [type(p) for p in out] == [
            TextEvent,
            ToolInputStartEvent,
            ToolInputEndEvent,
            ToolCallEvent,
            FinishPart,
        ]

    def test_upstream_error_flushes_then_raises(self):
        async def source():
            yield TextDeltaPart(id="1", delta="<get_weather>partial")
            raise ConnectionError("stream dropped")

        async def collect(out):
            async for part in atransform_stream(source(), TOOLS, options()):
                out.append(part)

        out = []
        with pytest.raises(ConnectionError):
            asyncio.run(collect(out))

        assert [type(p) for p in out] == [ToolInputStartEvent, ToolInputEndEvent, TextEvent]
        assert out[2].delta == "<get_weather>partial"
