"""Document parsers that fill a Manual's topic index, and the parser table.

Two source formats are understood:

* HTML-ish documents, scanned for ``<a href="LINK">TOPIC</a>`` anchors.
* Tab-delimited indexes, one ``TOPIC<TAB>LINK`` entry per line.  This is
  also the format :func:`format_index` exports, so an exported manual
  parses back to the same topic/link set.
"""

import os
import re
from dataclasses import dataclass
from typing import Callable, Optional

from topic_help.core.errors import ParserSelectionError
from topic_help.core.links import resolve_link
from topic_help.core.manual import Manual


Parser = Callable[..., None]

_ANCHOR_OPEN_RE = re.compile(r'<a\s+href\s*=\s*"([^"]*)"[^>]*>', re.IGNORECASE)
_ANCHOR_CLOSE_RE = re.compile(r"</a\s*>", re.IGNORECASE)
# Anything after a second tab on a line is ignored.
_DELIMITED_LINE_RE = re.compile(r"^([^\t\n]+)\t([^\t\r\n]*)[^\r\n]*\r?$", re.MULTILINE)
_HREF_NOISE_RE = re.compile(r"[\r\n\t]+")

# Applied in order, each as a replace-all over the previous result.
_TOPIC_CLEANUP: list[tuple[re.Pattern, str]] = [
    (re.compile(r"[\r\n]+"), ""),
    (re.compile(r"<[^>]*>"), ""),
    (re.compile(r"^\s+"), ""),
    (re.compile(r"\s+$"), ""),
    (re.compile(r"[ \t]+"), " "),
    (re.compile(r"&amp;"), "&"),
    (re.compile(r"&gt;"), ">"),
    (re.compile(r"&lt;"), "<"),
    (re.compile(r"&quot;"), '"'),
]


def clean_topic(raw: str) -> str:
    """Strip markup and whitespace noise from anchor text."""
    text = raw
    for pattern, replacement in _TOPIC_CLEANUP:
        text = pattern.sub(replacement, text)
    return text


def parse_anchors(manual: Manual, content: str, prefix: str = "",
                  expand: bool = False) -> None:
    """Add every ``<a href="LINK">TOPIC</a>`` in *content* to *manual*.

    An anchor with no closing tag ends the scan; entries found before it
    are kept.
    """
    pos = 0
    while True:
        opening = _ANCHOR_OPEN_RE.search(content, pos)
        if opening is None:
            break
        closing = _ANCHOR_CLOSE_RE.search(content, opening.end())
        if closing is None:
            break
        pos = closing.end()

        topic = clean_topic(content[opening.end():closing.start()])
        if not topic:
            continue
        # Wrapped or tabbed hrefs would break the exported index format
        href = _HREF_NOISE_RE.sub("", opening.group(1))
        link = resolve_link(href, prefix, manual.document_name, expand)
        manual.add_topic(topic, link)


def parse_delimited(manual: Manual, content: str, prefix: str = "",
                    expand: bool = False) -> None:
    """Add every ``TOPIC<TAB>LINK`` line of *content* to *manual*, verbatim.

    Lines without a tab are ignored; on a line with more than one tab the
    link is the field after the first tab and the rest is dropped.
    *prefix* and *expand* are accepted
    for signature compatibility with the other parsers; delimited links
    are stored exactly as written.
    """
    for m in _DELIMITED_LINE_RE.finditer(content):
        manual.add_topic(m.group(1), m.group(2))


def format_index(manual: Manual) -> str:
    """Serialise *manual* as a tab-delimited index sorted by topic."""
    lines = []
    for topic in sorted(manual.topic_index):
        for link in manual.topic_index[topic]:
            lines.append(f"{topic}\t{link}\n")
    return "".join(lines)


PARSERS: dict[str, Parser] = {
    "anchor": parse_anchors,
    "delimited": parse_delimited,
}
"""Parsers addressable by name from configuration files."""


@dataclass
class ParserRule:
    """A filename pattern and the parser used for matching sources."""
    parser: Parser
    pattern: str

    def matches(self, filename: str) -> bool:
        return re.search(self.pattern, filename, re.IGNORECASE) is not None


class ParserTable:
    """Ordered (parser, filename pattern) rules; the first match wins."""

    def __init__(self, rules: Optional[list[tuple[Parser, str]]] = None):
        if rules is None:
            rules = default_parser_rules()
        self.rules = [ParserRule(parser, pattern) for parser, pattern in rules]

    @classmethod
    def from_names(cls, specs: list[tuple[str, str]]) -> "ParserTable":
        """Build a table from ``(parser_name, pattern)`` pairs.

        Raises:
            KeyError: If a parser name is not in :data:`PARSERS`.
        """
        return cls([(PARSERS[name], pattern) for name, pattern in specs])

    def select(self, path: str) -> Parser:
        """Return the parser for *path*, matching on its base filename.

        Raises:
            ParserSelectionError: If no rule matches.
        """
        filename = os.path.basename(path)
        for rule in self.rules:
            if rule.matches(filename):
                return rule.parser
        raise ParserSelectionError(filename)


def default_parser_rules() -> list[tuple[Parser, str]]:
    return [
        (parse_anchors, r"\.html?$"),
        (parse_delimited, r".*"),
    ]
