"""Manual registry: owns every Manual, keyed by unique name."""

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from topic_help.core.config import SourceGroup
from topic_help.core.errors import HelpError
from topic_help.core.manual import Manual
from topic_help.core.parsers import ParserTable
from topic_help.utils.filesystem import (
    default_url_prefix,
    get_mtime,
    normalize_path,
    read_text_file,
)

logger = logging.getLogger(__name__)


@dataclass
class LoadReport:
    """Outcome of a bulk load: manuals built and per-file failures."""
    loaded: list[str] = field(default_factory=list)          # manual names
    failures: dict[str, str] = field(default_factory=dict)   # path -> message

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        text = f"Loaded {len(self.loaded)} manual(s)"
        if self.failures:
            text += f", {len(self.failures)} failed"
        return text + "."


class ManualRegistry:
    """Collection of manuals keyed by name.

    All reads and writes go through a re-entrant lock so a background
    reload (see :mod:`topic_help.core.watcher`) never exposes a half-built
    registry.
    """

    def __init__(self):
        self._manuals: dict[str, Manual] = {}
        self._lock = threading.RLock()
        self._entries: list[SourceGroup] = []
        self._parsers: Optional[ParserTable] = None
        self._expand_urls = False

    # -- CRUD --

    def create_manual(self, name: str, source_path: str = "",
                      last_modified: float = 0.0) -> Manual:
        """Create an empty manual, replacing any existing manual of that name."""
        manual = Manual(name=name, source_path=source_path, last_modified=last_modified)
        with self._lock:
            self._manuals[name] = manual
        return manual

    def get_manual(self, name: str) -> Optional[Manual]:
        with self._lock:
            return self._manuals.get(name)

    def list_manuals(self) -> list[Manual]:
        with self._lock:
            return list(self._manuals.values())

    def delete_manual(self, name: str) -> bool:
        """Delete a manual. Returns True if it existed."""
        with self._lock:
            if name in self._manuals:
                del self._manuals[name]
                return True
            return False

    def associate_with_modes(self, manual: Manual, modes: Optional[Iterable[str]]) -> None:
        """Add *modes* to the manual; no modes means every context."""
        with self._lock:
            manual.add_modes(list(modes) if modes else None)

    # -- Queries --

    def find_manual_by_source(self, path: str) -> Optional[Manual]:
        """Find the manual built from the source file at *path*, if any."""
        path = normalize_path(path)
        with self._lock:
            for manual in self._manuals.values():
                if manual.source_path and normalize_path(manual.source_path) == path:
                    return manual
        return None

    def manuals_for_context(self, context: str) -> list[Manual]:
        """Manuals associated with *context* or with every context."""
        with self._lock:
            return [m for m in self._manuals.values() if m.applies_to(context)]

    def unique_name(self, path: str) -> str:
        """Base filename of *path*, suffixed ``(2)``, ``(3)``... until unused."""
        base = os.path.basename(path) or path
        with self._lock:
            if base not in self._manuals:
                return base
            n = 2
            while f"{base}({n})" in self._manuals:
                n += 1
            return f"{base}({n})"

    def stale_manuals(self) -> list[Manual]:
        """Manuals whose source file changed since it was parsed."""
        return [m for m in self.list_manuals()
                if m.source_path and get_mtime(m.source_path) != m.last_modified]

    # -- Bulk load --

    def load_source(self, path: str, prefix: Optional[str], parsers: ParserTable,
                    expand_urls: bool = False) -> Manual:
        """Read and parse one source file into a newly registered manual.

        The manual is only registered once parsing succeeds.

        Raises:
            OSError: If the file cannot be read.
            ParserSelectionError: If no parser matches the filename.
        """
        path = normalize_path(path)
        parser = parsers.select(path)
        content = read_text_file(path)
        if prefix is None:
            prefix = default_url_prefix(path)

        manual = Manual(name=self.unique_name(path), source_path=path,
                        last_modified=get_mtime(path))
        logger.debug("Parsing %s with %s", path, parser.__name__)
        parser(manual, content, prefix, expand_urls)
        with self._lock:
            self._manuals[manual.name] = manual
        return manual

    def initialize(self, entries: Sequence[SourceGroup],
                   parsers: Optional[ParserTable] = None,
                   expand_urls: bool = False) -> LoadReport:
        """Discard all manuals and rebuild from *entries*.

        A source that cannot be read or parsed is recorded in the report
        and skipped; the remaining sources still load.
        """
        if parsers is None:
            parsers = ParserTable()
        report = LoadReport()

        with self._lock:
            self._entries = list(entries)
            self._parsers = parsers
            self._expand_urls = expand_urls
            self._manuals.clear()

            for entry in entries:
                for path, prefix in entry.files:
                    existing = self.find_manual_by_source(path)
                    if existing is not None:
                        self.associate_with_modes(existing, entry.modes)
                        continue
                    try:
                        manual = self.load_source(path, prefix, parsers, expand_urls)
                    except (OSError, HelpError) as e:
                        report.failures[path] = str(e)
                        logger.warning("Skipping help source %s: %s", path, e)
                        continue
                    except Exception as e:
                        report.failures[path] = f"parse error: {e}"
                        logger.exception("Parser failed on %s", path)
                        continue
                    self.associate_with_modes(manual, entry.modes)
                    report.loaded.append(manual.name)
                    logger.info("Loaded manual %s (%d topics)", manual.name, manual.topic_count)

        return report

    def reload(self) -> LoadReport:
        """Rebuild every manual from the most recent :meth:`initialize` call."""
        with self._lock:
            logger.info("Reloading %d help source group(s)", len(self._entries))
            return self.initialize(self._entries, self._parsers, self._expand_urls)

    def refresh(self) -> Optional[LoadReport]:
        """Reload if any manual's source changed on disk; None if all are fresh."""
        if not self.stale_manuals():
            return None
        return self.reload()

    @property
    def source_paths(self) -> list[str]:
        """Source files named by the current configuration."""
        with self._lock:
            return [normalize_path(path) for entry in self._entries for path, _ in entry.files]
