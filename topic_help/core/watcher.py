"""Filesystem watcher that rebuilds the manual registry when sources change."""

import logging
import os
import threading
import time
from typing import Callable, Optional

from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

from topic_help.core.registry import LoadReport, ManualRegistry
from topic_help.utils.filesystem import normalize_path

logger = logging.getLogger(__name__)


class _DebouncedReloadHandler(FileSystemEventHandler):
    """Coalesces change events on watched files into a single reload."""

    def __init__(self, watched_files: set[str],
                 reload: Callable[[], Optional[LoadReport]],
                 on_reload: Optional[Callable[[Optional[LoadReport]], None]] = None,
                 debounce_seconds: float = 0.5):
        super().__init__()
        self.watched_files = watched_files
        self.reload = reload
        self.on_reload = on_reload
        self.debounce_seconds = debounce_seconds
        self._deadline: Optional[float] = None
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None

    def _touches_watched(self, event) -> bool:
        if event.is_directory:
            return False
        paths = [event.src_path, getattr(event, "dest_path", "")]
        return any(p and normalize_path(os.fsdecode(p)) in self.watched_files for p in paths)

    def on_any_event(self, event):
        if event.event_type not in ("created", "modified", "moved", "deleted"):
            return
        if not self._touches_watched(event):
            return

        # Each new event pushes the reload further out
        with self._lock:
            self._deadline = time.time() + self.debounce_seconds
            if self._timer is None or not self._timer.is_alive():
                self._timer = threading.Timer(self.debounce_seconds, self._flush)
                self._timer.daemon = True
                self._timer.start()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._deadline is not None

    def _flush(self):
        """Reload once the debounce period has elapsed without new events."""
        now = time.time()
        with self._lock:
            if self._deadline is None:
                self._timer = None
                return
            if now < self._deadline:
                delay = self._deadline - now
                self._timer = threading.Timer(max(delay, 0.05), self._flush)
                self._timer.daemon = True
                self._timer.start()
                return
            self._deadline = None
            self._timer = None

        # Reload outside the lock
        try:
            report = self.reload()
            if self.on_reload:
                self.on_reload(report)
        except Exception:
            logger.exception("Help source reload failed")


class SourceWatcher:
    """Watches configured help sources and rebuilds the registry on change.

    ``reload_callback`` defaults to :meth:`ManualRegistry.reload`; callers
    that also want configuration file edits picked up pass their own
    (see :meth:`topic_help.api.TopicHelp.watch`).
    """

    def __init__(self, registry: ManualRegistry,
                 extra_files: Optional[list[str]] = None,
                 reload_callback: Optional[Callable[[], Optional[LoadReport]]] = None,
                 on_reload: Optional[Callable[[Optional[LoadReport]], None]] = None,
                 debounce_seconds: float = 0.5):
        self.registry = registry
        self.extra_files = list(extra_files or [])
        self.reload_callback = reload_callback or registry.reload
        self.on_reload = on_reload
        self.debounce_seconds = debounce_seconds
        self._observer: Optional[Observer] = None
        self._handler: Optional[_DebouncedReloadHandler] = None
        self._watched_dirs: set[str] = set()

    def watched_files(self) -> set[str]:
        files = set(self.registry.source_paths)
        files.update(normalize_path(f) for f in self.extra_files)
        return files

    def start(self):
        """Start watching the directories of all configured sources."""
        self.stop()
        files = self.watched_files()
        self._handler = _DebouncedReloadHandler(
            files,
            self.reload_callback,
            on_reload=self.on_reload,
            debounce_seconds=self.debounce_seconds,
        )
        self._observer = Observer()
        self._watched_dirs.clear()

        for path in sorted(files):
            folder = os.path.dirname(path)
            if os.path.isdir(folder) and folder not in self._watched_dirs:
                self._observer.schedule(self._handler, folder, recursive=False)
                self._watched_dirs.add(folder)

        self._observer.daemon = True
        self._observer.start()
        logger.debug("Watching %d help source folder(s)", len(self._watched_dirs))

    def stop(self):
        """Stop watching."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=2)
            self._observer = None
        self._watched_dirs.clear()

    def refresh(self):
        """Restart the watcher to pick up configuration changes."""
        self.start()

    @property
    def watched_dirs(self) -> set[str]:
        return set(self._watched_dirs)

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()
