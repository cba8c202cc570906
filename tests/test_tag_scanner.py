"""Tests for TagScanner."""

import pytest

from xml_tool_stream.parsers import ScanActionKind, ScannerState, TagScanner


@pytest.fixture
def scanner():
    """Create scanner instance."""
    return TagScanner(["get_weather", "search"])


def texts(actions, kind):
    return "".join(a.text for a in actions if a.kind == kind)


def kinds(actions):
    return [a.kind for a in actions]


class TestScannerBasics:
    """Basic functionality tests."""

    def test_plain_text_forwarded(self, scanner):
        """Test text without markup is forwarded immediately."""
        actions = scanner.feed("Hello, world")

        assert kinds(actions) == [ScanActionKind.TEXT]
        assert actions[0].text == "Hello, world"
        assert scanner.pending == ""

    def test_empty_fragment(self, scanner):
        """Test an empty fragment produces nothing."""
        assert scanner.feed("") == []
        assert scanner.state == ScannerState.SCANNING

    def test_complete_tag_in_one_fragment(self, scanner):
        """Test open, body and close in a single fragment."""
        actions = scanner.feed("<get_weather><location>NY</location></get_weather>")

        assert kinds(actions) == [
            ScanActionKind.OPEN_TAG,
            ScanActionKind.BODY,
            ScanActionKind.CLOSE_TAG,
        ]
        assert actions[0].tool_name == "get_weather"
        assert actions[1].text == "<location>NY</location>"
        assert actions[2].tool_name == "get_weather"
        assert scanner.state == ScannerState.SCANNING

    def test_offsets_and_position(self, scanner):
        """Test actions carry stream offsets."""
        scanner.feed("hi <get_")
        actions = scanner.feed("weather>NY</get_weather>")

        assert [a.offset for a in actions] == [3, 16, 18]
        assert scanner.position == len("hi <get_weather>NY</get_weather>")

    def test_state_while_open(self, scanner):
        """Test scanner reports the open tool."""
        scanner.feed("<search>")
        assert scanner.state == ScannerState.IN_TOOL_BODY
        assert scanner.open_tool == "search"


class TestSplitMarkers:
    """Markers split across fragment boundaries."""

    def test_partial_open_marker_held_back(self, scanner):
        """Test a trailing partial opening marker is not emitted as text."""
        actions = scanner.feed("hi <get_")

        assert kinds(actions) == [ScanActionKind.TEXT]
        assert actions[0].text == "hi "
        assert scanner.pending == "<get_"

    def test_lone_angle_bracket_held_back(self, scanner):
        """Test a single '<' waits for the next fragment."""
        assert scanner.feed("<") == []
        assert scanner.pending == "<"

        actions = scanner.feed("search>")
        assert kinds(actions) == [ScanActionKind.OPEN_TAG]

    def test_partial_open_marker_turns_out_to_be_text(self, scanner):
        """Test a held-back prefix is released as text when it diverges."""
        scanner.feed("<get")
        actions = scanner.feed("ter> done")

        assert kinds(actions) == [ScanActionKind.TEXT, ScanActionKind.TEXT]
        assert texts(actions, ScanActionKind.TEXT) == "<getter> done"

    def test_partial_close_marker_held_back(self, scanner):
        """Test a trailing partial close marker is not emitted as body."""
        scanner.feed("<get_weather>")
        actions = scanner.feed("x</get_we")

        assert kinds(actions) == [ScanActionKind.BODY]
        assert actions[0].text == "x"
        assert scanner.pending == "</get_we"

        actions = scanner.feed("ather>")
        assert kinds(actions) == [ScanActionKind.CLOSE_TAG]

    def test_partial_close_marker_turns_out_to_be_body(self, scanner):
        """Test a held-back close prefix is released as body when it diverges."""
        scanner.feed("<get_weather>")
        scanner.feed("a</get")
        actions = scanner.feed("_x>")

        assert kinds(actions) == [ScanActionKind.BODY]
        assert actions[0].text == "</get_x>"
        assert scanner.state == ScannerState.IN_TOOL_BODY

    def test_character_by_character(self, scanner):
        """Test one character per fragment."""
        text = "a <search><query>q</query></search> b"
        actions = []
        for char in text:
            actions.extend(scanner.feed(char))
        actions.extend(scanner.flush())

        structural = [a for a in actions if a.kind in (ScanActionKind.OPEN_TAG, ScanActionKind.CLOSE_TAG)]
        assert [a.kind for a in structural] == [ScanActionKind.OPEN_TAG, ScanActionKind.CLOSE_TAG]
        assert texts(actions, ScanActionKind.TEXT) == "a  b"
        assert texts(actions, ScanActionKind.BODY) == "<query>q</query>"

    def test_pending_bounded_by_marker_length(self, scanner):
        """Test held-back text never exceeds the longest marker."""
        text = "x" * 50 + "<get_weather>" + "<a>" * 200 + "</get_weather>"
        longest = len("</get_weather>")
        for i in range(0, len(text), 7):
            scanner.feed(text[i:i + 7])
            assert len(scanner.pending) < longest


class TestMatchingPolicy:
    """Which bracketed runs count as tool tags."""

    @pytest.mark.parametrize("text", [
        "<b>bold</b>",
        "<unknown>x</unknown>",
        "< get_weather>",
        "<get_weather attr=\"1\">",
        "<GET_WEATHER>",
        "</get_weather>",
        "a < b and c > d",
        "<get_weather/>",
    ])
    def test_non_matching_brackets_are_text(self, scanner, text):
        """Test anything but an exact configured marker is plain text."""
        actions = scanner.feed(text) + scanner.flush()

        assert all(a.kind == ScanActionKind.TEXT for a in actions)
        assert texts(actions, ScanActionKind.TEXT) == text

    def test_double_angle_bracket(self, scanner):
        """Test '<<tool>' emits one '<' as text then opens the tag."""
        actions = scanner.feed("<<search>")

        assert kinds(actions) == [ScanActionKind.TEXT, ScanActionKind.OPEN_TAG]
        assert actions[0].text == "<"

    def test_other_tool_tags_inside_body_are_body(self, scanner):
        """Test no tag matching happens inside an open tag."""
        actions = scanner.feed("<get_weather><search>x</search></get_weather>")

        assert kinds(actions) == [
            ScanActionKind.OPEN_TAG,
            ScanActionKind.BODY,
            ScanActionKind.CLOSE_TAG,
        ]
        assert actions[1].text == "<search>x</search>"

    def test_tool_names_sharing_a_prefix(self):
        """Test names where one is a prefix of the other."""
        scanner = TagScanner(["get", "get_weather"])

        actions = scanner.feed("<get>1</get><get_")
        assert [a.tool_name for a in actions if a.kind == ScanActionKind.OPEN_TAG] == ["get"]
        assert scanner.pending == "<get_"

        actions = scanner.feed("weather>2</get_weather>")
        assert [a.tool_name for a in actions if a.kind == ScanActionKind.OPEN_TAG] == ["get_weather"]

    def test_no_configured_tools(self):
        """Test a scanner without tools forwards everything as text."""
        scanner = TagScanner([])
        actions = scanner.feed("<get_weather>x</get_weather>") + scanner.flush()

        assert texts(actions, ScanActionKind.TEXT) == "<get_weather>x</get_weather>"


class TestFlush:
    """End-of-stream behavior."""

    def test_flush_partial_marker_as_text(self, scanner):
        """Test a held-back open prefix is released as text."""
        scanner.feed("tail <get_wea")
        actions = scanner.flush()

        assert kinds(actions) == [ScanActionKind.TEXT]
        assert actions[0].text == "<get_wea"

    def test_flush_partial_close_as_body(self, scanner):
        """Test a held-back close prefix is released as body."""
        scanner.feed("<search>q</sea")
        actions = scanner.flush()

        assert kinds(actions) == [ScanActionKind.BODY]
        assert actions[0].text == "</sea"

    def test_flush_resets(self, scanner):
        """Test the scanner starts over after flush."""
        scanner.feed("<search>q")
        scanner.flush()

        assert scanner.state == ScannerState.SCANNING
        assert scanner.open_tool is None
        assert scanner.position == 0
        assert scanner.flush() == []
