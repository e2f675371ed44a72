"""Manual entity: a named topic index built from one source document."""

import os
from dataclasses import dataclass, field
from typing import NamedTuple, Optional


WILDCARD = "*"
"""Mode marker meaning a manual applies in every context."""


class TopicHit(NamedTuple):
    """One search result: a topic, the manual it came from, and its link."""
    topic: str
    manual: str
    link: str


@dataclass
class Manual:
    """A named topic -> links index over a single source document.

    ``topic_index`` maps each topic to its links in insertion order; a
    link is never stored twice for the same topic.  ``modes`` lists the
    contexts the manual applies to, or holds :data:`WILDCARD`.
    """
    name: str
    source_path: str = ""
    last_modified: float = 0.0
    topic_index: dict[str, list[str]] = field(default_factory=dict)
    modes: list[str] = field(default_factory=list)

    @property
    def document_name(self) -> str:
        """Base filename of the source document ('' when there is none)."""
        return os.path.basename(self.source_path) if self.source_path else ""

    @property
    def topic_count(self) -> int:
        return len(self.topic_index)

    def add_topic(self, topic: str, link: str) -> bool:
        """Add *link* under *topic*. Returns False if it was already present."""
        links = self.topic_index.setdefault(topic, [])
        if link in links:
            return False
        links.append(link)
        return True

    def links_for(self, topic: str) -> list[str]:
        return list(self.topic_index.get(topic, ()))

    def add_modes(self, modes: Optional[list[str]]) -> None:
        """Associate the manual with *modes*; no modes means every context."""
        if not modes:
            if WILDCARD not in self.modes:
                self.modes.append(WILDCARD)
            return
        for mode in modes:
            if mode not in self.modes:
                self.modes.append(mode)

    def applies_to(self, context: str) -> bool:
        """True if the manual is associated with *context* or with every context."""
        return WILDCARD in self.modes or context in self.modes

    def iter_hits(self):
        """Yield a :class:`TopicHit` for every topic/link pair, in index order."""
        for topic, links in self.topic_index.items():
            for link in links:
                yield TopicHit(topic, self.name, link)
