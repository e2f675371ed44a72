"""Interactive prefix completion over the topics available in one context.

A :class:`CompletionSession` is driven by the UI layer: each keystroke that
asks for completion calls :meth:`CompletionSession.complete` with the text
typed so far.  Asking again with unchanged text does not recompute the
matches; it pages through them instead, so a long candidate list can be
scrolled by repeating the completion key.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from topic_help.core.errors import IncompleteCompletionError, SessionClosedError
from topic_help.core.manual import Manual, TopicHit
from topic_help.core.search import all_topics, common_prefix, topics_with_prefix


class CompletionState(Enum):
    IDLE = "idle"
    TYPING = "typing"
    UNIQUE = "unique"
    AMBIGUOUS = "ambiguous"
    NO_MATCH = "no_match"


@dataclass
class CompletionResult:
    """What one completion request produced.

    ``extension`` is set when the matches share a common prefix longer than
    the typed text; ``page`` is the slice of ``matches`` to display.
    """
    state: CompletionState
    matches: list[TopicHit] = field(default_factory=list)
    extension: Optional[str] = None
    selected: Optional[TopicHit] = None
    page: list[TopicHit] = field(default_factory=list)
    page_start: int = 0
    repeat: bool = False

    @property
    def topics(self) -> list[str]:
        """Distinct matched topics, in match order."""
        return list(dict.fromkeys(h.topic for h in self.matches))


class CompletionSession:
    """Stateful narrowing of a context's topics by typed prefix."""

    def __init__(self, context: str, manuals_provider: Callable[[], list[Manual]],
                 page_size: int = 10):
        self.context = context
        self.page_size = max(1, page_size)
        self._manuals_provider = manuals_provider
        self.cached_all_topics: Optional[list[TopicHit]] = None
        self.last_prefix: Optional[str] = None
        self.last_matches: list[TopicHit] = []
        self.selected: Optional[TopicHit] = None
        self.state = CompletionState.IDLE
        self.text = ""
        self.page_start = 0
        self.closed = False
        self._last_extension: Optional[str] = None

    def _check_open(self):
        if self.closed:
            raise SessionClosedError(f"Completion session for '{self.context}' is closed.")

    def _topics(self) -> list[TopicHit]:
        # Built once per session; later registry changes are not seen.
        if self.cached_all_topics is None:
            self.cached_all_topics = all_topics(self._manuals_provider())
        return self.cached_all_topics

    def _page(self) -> list[TopicHit]:
        return self.last_matches[self.page_start:self.page_start + self.page_size]

    def type(self, text: str) -> None:
        """Record edited text without asking for completion."""
        self._check_open()
        self.text = text
        self.state = CompletionState.TYPING

    def complete(self, prefix: str) -> CompletionResult:
        """Complete *prefix*, or page through the previous matches if unchanged."""
        self._check_open()

        if prefix == self.last_prefix:
            if self.last_matches:
                self.page_start += self.page_size
                if self.page_start >= len(self.last_matches):
                    self.page_start = 0
            return CompletionResult(
                state=self.state,
                matches=self.last_matches,
                extension=self._last_extension,
                selected=self.selected,
                page=self._page(),
                page_start=self.page_start,
                repeat=True,
            )

        matches = topics_with_prefix(self._topics(), prefix)
        extension: Optional[str] = None
        self.selected = None

        if len(matches) > 1:
            lcp = common_prefix([h.topic for h in matches])
            if len(lcp) > len(prefix):
                extension = lcp
            target = extension if extension is not None else prefix
            self.selected = next((h for h in matches if h.topic == target), None)
            self.state = CompletionState.AMBIGUOUS
        elif len(matches) == 1:
            self.selected = matches[0]
            self.state = CompletionState.UNIQUE
        else:
            self.state = CompletionState.NO_MATCH

        self.last_prefix = prefix
        self.last_matches = matches
        self.page_start = 0
        self._last_extension = extension
        if self.state is CompletionState.UNIQUE:
            self.text = self.selected.topic
        else:
            self.text = extension if extension is not None else prefix

        return CompletionResult(
            state=self.state,
            matches=matches,
            extension=extension,
            selected=self.selected,
            page=self._page(),
            page_start=0,
        )

    def accept(self) -> Optional[TopicHit]:
        """End the session with the selected topic.

        Empty text accepts whatever is selected (possibly nothing).

        Raises:
            IncompleteCompletionError: If the text does not name the
                selected topic; the session stays open.
        """
        self._check_open()
        if self.text == "" or (self.selected is not None and self.text == self.selected.topic):
            self.closed = True
            self.state = CompletionState.IDLE
            return self.selected
        self.state = CompletionState.TYPING
        raise IncompleteCompletionError(f"[Not complete] {self.text}")

    def cancel(self) -> None:
        """End the session without a result."""
        self.closed = True
        self.selected = None
        self.state = CompletionState.IDLE
