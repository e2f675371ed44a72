"""Facade used by the UI layer: lookups, completion sessions, and export.

Every method here reports problems through :attr:`TopicHelp.last_message`
(and the optional ``status_callback``) and returns a safe default, so a
failure in the index never propagates into the host application.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from topic_help.core.completion import CompletionResult, CompletionSession
from topic_help.core.config import HelpConfig, load_config
from topic_help.core.errors import HelpError, ManualNotFoundError
from topic_help.core.manual import TopicHit
from topic_help.core.parsers import ParserTable, format_index
from topic_help.core.registry import LoadReport, ManualRegistry
from topic_help.core.search import search_for_context
from topic_help.core.watcher import SourceWatcher
from topic_help.utils.filesystem import write_text_file

logger = logging.getLogger(__name__)

_WORD_CHARS = r"[\w.:+\-]"


def word_at(text: str, position: int) -> str:
    """Return the word of *text* touching *position* ('' if there is none).

    Word characters are letters, digits, ``_ . : + -`` so qualified names
    such as ``os.path`` or ``std::vector`` are looked up whole.  Trailing
    dots (sentence punctuation) are dropped.
    """
    position = max(0, min(position, len(text)))
    start = position
    while start > 0 and re.match(_WORD_CHARS, text[start - 1]):
        start -= 1
    end = position
    while end < len(text) and re.match(_WORD_CHARS, text[end]):
        end += 1
    return text[start:end].rstrip(".")


@dataclass
class LookupResult:
    hits: list[TopicHit] = field(default_factory=list)
    message: str = ""

    @property
    def found(self) -> bool:
        return bool(self.hits)


@dataclass
class ManualSummary:
    name: str
    source_path: str
    topic_count: int
    modes: list[str]


class TopicHelp:
    """Context-sensitive topic lookup over a :class:`ManualRegistry`."""

    def __init__(self, registry: Optional[ManualRegistry] = None,
                 config: Optional[HelpConfig] = None,
                 status_callback: Optional[Callable[[str], None]] = None):
        self.registry = registry if registry is not None else ManualRegistry()
        self.config = config if config is not None else HelpConfig()
        self.status_callback = status_callback
        self.last_message = ""

    def _set_status(self, message: str):
        self.last_message = message
        if self.status_callback:
            self.status_callback(message)

    # -- Loading --

    def load(self, config: Optional[HelpConfig] = None) -> LoadReport:
        """Rebuild every manual from *config* (or the current configuration)."""
        if config is not None:
            self.config = config
        try:
            parsers = ParserTable.from_names(self.config.parsers)
        except KeyError as e:
            self._set_status(f"Unknown parser in configuration: {e}")
            return LoadReport()
        report = self.registry.initialize(self.config.sources, parsers, self.config.expand_urls)
        message = report.summary()
        for path, reason in report.failures.items():
            message += f"\n  {path}: {reason}"
        self._set_status(message)
        return report

    def load_file(self, path: Optional[str] = None) -> LoadReport:
        """Read the configuration file at *path* and rebuild from it."""
        try:
            config = load_config(path)
        except HelpError as e:
            self._set_status(str(e))
            return LoadReport()
        return self.load(config)

    def reload(self) -> LoadReport:
        report = self.registry.reload()
        self._set_status(report.summary())
        return report

    def refresh(self) -> Optional[LoadReport]:
        """Reload only if a source file changed since it was parsed."""
        report = self.registry.refresh()
        if report is not None:
            logger.info("Help sources changed on disk; reloaded")
            self._set_status(report.summary())
        return report

    def watch(self, config_path: Optional[str] = None,
              on_reload: Optional[Callable[[Optional[LoadReport]], None]] = None,
              debounce_seconds: float = 0.5) -> SourceWatcher:
        """Start a watcher that rebuilds when sources (or *config_path*) change."""
        extra = [config_path] if config_path else []
        reload_callback = (lambda: self.load_file(config_path)) if config_path else self.reload

        def after_reload(report):
            # The configuration may name different sources now
            if config_path:
                watcher.refresh()
            if on_reload:
                on_reload(report)

        watcher = SourceWatcher(
            self.registry,
            extra_files=extra,
            reload_callback=reload_callback,
            on_reload=after_reload,
            debounce_seconds=debounce_seconds,
        )
        watcher.start()
        return watcher

    # -- Lookup --

    def lookup(self, context: str, query: str) -> LookupResult:
        """Exact lookup of *query* in the manuals that apply to *context*."""
        topic = query.strip()
        if not topic:
            self._set_status("No topic given.")
            return LookupResult(message=self.last_message)
        self.refresh()
        hits = search_for_context(self.registry, context, topic)
        if not hits:
            logger.debug("No help on %r in context %r", topic, context)
            self._set_status(f"No help on {topic}")
        elif len(hits) > 1:
            self._set_status(f"{len(hits)} entries for {topic}")
        else:
            self._set_status(f"{topic}: {hits[0].link}")
        return LookupResult(hits=hits, message=self.last_message)

    def lookup_at(self, context: str, text: str, position: int) -> LookupResult:
        """Look up the word around *position* in *text*."""
        return self.lookup(context, word_at(text, position))

    # -- Completion --

    def begin_completion_session(self, context: str) -> CompletionSession:
        self.refresh()
        return CompletionSession(
            context,
            lambda: self.registry.manuals_for_context(context),
            page_size=self.config.page_size,
        )

    def session_type(self, session: CompletionSession, text: str) -> Optional[CompletionResult]:
        """Request completion of *text*; repeating the same text scrolls."""
        try:
            result = session.complete(text)
        except HelpError as e:
            self._set_status(str(e))
            return None
        if not result.matches:
            self._set_status("[No match]")
        elif result.repeat:
            last = result.page_start + len(result.page)
            self._set_status(f"Showing {result.page_start + 1}-{last} of {len(result.matches)}")
        elif result.selected is not None and len(result.topics) == 1:
            self._set_status("[Sole completion]")
        elif result.selected is not None:
            self._set_status("[Complete, but not unique]")
        else:
            self._set_status(f"{len(result.topics)} possible completions")
        return result

    def session_accept(self, session: CompletionSession) -> Optional[TopicHit]:
        try:
            hit = session.accept()
        except HelpError as e:
            self._set_status(str(e))
            return None
        self._set_status(f"{hit.topic}: {hit.link}" if hit else "")
        return hit

    def session_cancel(self, session: CompletionSession) -> None:
        session.cancel()
        self._set_status("Quit")

    # -- Manuals --

    def _require_manual(self, name: str):
        manual = self.registry.get_manual(name)
        if manual is None:
            raise ManualNotFoundError(name)
        return manual

    def export_manual(self, name: str) -> Optional[str]:
        """The manual's index as tab-delimited text, or None if unknown."""
        try:
            manual = self._require_manual(name)
        except ManualNotFoundError as e:
            self._set_status(str(e))
            return None
        return format_index(manual)

    def export_manual_to_file(self, name: str, path: str) -> bool:
        text = self.export_manual(name)
        if text is None:
            return False
        try:
            written = write_text_file(path, text)
        except OSError as e:
            self._set_status(f"Cannot write {path}: {e}")
            return False
        self._set_status(f"Exported {name} to {written}")
        return True

    def delete_manual(self, name: str) -> bool:
        if not self.registry.delete_manual(name):
            self._set_status(str(ManualNotFoundError(name)))
            return False
        return True

    def list_manuals_for_context(self, context: Optional[str] = None) -> list[ManualSummary]:
        """Summaries of the manuals for *context*, or of all manuals."""
        if context is None:
            manuals = self.registry.list_manuals()
        else:
            manuals = self.registry.manuals_for_context(context)
        return [
            ManualSummary(m.name, m.source_path, m.topic_count, list(m.modes))
            for m in manuals
        ]
