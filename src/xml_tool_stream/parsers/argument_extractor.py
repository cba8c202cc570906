"""Extract tool arguments from the raw body of a tool tag."""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Any

from xml_tool_stream.models import ExtractionResult

logger = logging.getLogger(__name__)


class ArgumentExtractor:
    """Turns a tool tag body into a flat ``{key: text}`` mapping.

    Each child element ``<key>value</key>`` of the body becomes one argument.
    Values are the element's text content, stripped. A key given more than
    once yields a list of its values in order. Elements nested inside an
    argument contribute their text only.

    Bodies that are not well-formed markup, or that have text outside the
    argument elements, produce a failed ExtractionResult. Nothing is raised.

    Example:
        >>> ArgumentExtractor().extract("get_weather", "<location>NY</location>").arguments
        {'location': 'NY'}
    """

    # '&' that does not start a predefined XML entity or a character
    # reference; HTML names like &nbsp; are kept as literal text
    BARE_AMPERSAND = re.compile(r"&(?!(?:amp|lt|gt|quot|apos|#[0-9]+|#x[0-9A-Fa-f]+);)")

    # '<' that cannot start a tag, comment or declaration (e.g. "a < b")
    BARE_LESS_THAN = re.compile(r"<(?![A-Za-z_/!?])")

    def extract(self, tool_name: str, raw_body: str) -> ExtractionResult:
        """Parse a raw body into arguments.

        Args:
            tool_name: Name of the tool the body belongs to. Used as the
                wrapping element, which the body cannot contain since the
                scanner stops at its close marker.
            raw_body: Text between the opening and closing tool tags.

        Returns:
            ExtractionResult with arguments, or with the failure reason.
        """
        if not raw_body.strip():
            return ExtractionResult.ok({}, raw_body)

        document = f"<{tool_name}>{self._escape_bare_markup(raw_body)}</{tool_name}>"
        try:
            root = ET.fromstring(document)
        except ET.ParseError as e:
            logger.debug("Body of <%s> is not well-formed: %s", tool_name, e)
            return ExtractionResult.failed(f"Malformed body for tool '{tool_name}': {e}", raw_body)

        stray = self._stray_text(root)
        if stray:
            return ExtractionResult.failed(
                f"Malformed body for tool '{tool_name}': unexpected text outside "
                f"argument elements: {stray[:40]!r}",
                raw_body,
            )

        return ExtractionResult.ok(self._collect_arguments(root), raw_body)

    def _escape_bare_markup(self, text: str) -> str:
        text = self.BARE_AMPERSAND.sub("&amp;", text)
        return self.BARE_LESS_THAN.sub("&lt;", text)

    @staticmethod
    def _stray_text(root: ET.Element) -> str:
        """Return the first non-whitespace text directly under root, if any."""
        if root.text and root.text.strip():
            return root.text.strip()
        for child in root:
            if child.tail and child.tail.strip():
                return child.tail.strip()
        return ""

    @staticmethod
    def _collect_arguments(root: ET.Element) -> dict[str, Any]:
        arguments: dict[str, Any] = {}
        for child in root:
            value = "".join(child.itertext()).strip()
            if child.tag not in arguments:
                arguments[child.tag] = value
            elif isinstance(arguments[child.tag], list):
                arguments[child.tag].append(value)
            else:
                arguments[child.tag] = [arguments[child.tag], value]
        return arguments
