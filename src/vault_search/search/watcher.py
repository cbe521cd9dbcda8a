import asyncio
import os
from collections.abc import Callable
from pathlib import Path

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)

if os.environ.get("VAULT_SEARCH_POLLING", "").lower() in ("1", "true"):
    from watchdog.observers.polling import PollingObserver as Observer
else:
    from watchdog.observers import Observer

from vault_search.logger import logging

logger = logging.getLogger(__name__)


class DirectoryWatcher:
    """
    Watches a vault directory and calls ``on_change`` whenever its tree changes.

    Observer callbacks run on watchdog's thread. When a loop is given, ``on_change`` is
    handed to it with ``call_soon_threadsafe`` so it runs alongside the searches.
    """

    directory: Path
    on_change: Callable[[], None]
    loop: asyncio.AbstractEventLoop | None

    def __init__(
        self,
        directory: Path,
        on_change: Callable[[], None],
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self.directory = Path(directory)
        self.on_change = on_change
        self.loop = loop
        self.observer = Observer()

    def notify(self):
        if self.loop is not None:
            self.loop.call_soon_threadsafe(self.on_change)
        else:
            self.on_change()

    def start(self) -> None:
        event_handler = _FSEventHandler(self, self.directory)
        self.observer.schedule(
            event_handler,
            str(self.directory),
            recursive=True,
            event_filter=[
                FileCreatedEvent,
                FileModifiedEvent,
                FileDeletedEvent,
                FileMovedEvent,
                DirCreatedEvent,
                DirDeletedEvent,
                DirMovedEvent,
            ],
        )
        logger.info("Starting directory watcher for %s", self.directory)
        self.observer.start()

    def stop(self) -> None:
        logger.info("Stopping directory watcher for %s", self.directory)
        self.observer.stop()
        self.observer.join()


class _FSEventHandler(FileSystemEventHandler):
    """
    Internal event handler class to filter filesystem events.
    """

    watcher: DirectoryWatcher
    directory: Path

    def __init__(self, watcher: DirectoryWatcher, directory: Path):
        self.watcher = watcher
        self.directory = directory
        super().__init__()

    def _is_hidden(self, raw_path: str | bytes) -> bool:
        path = Path(os.fsdecode(raw_path))
        try:
            parts = path.relative_to(self.directory).parts
        except ValueError:
            return False
        return any(part.startswith(".") for part in parts)

    def _relevant(self, event: FileSystemEvent) -> bool:
        if self._is_hidden(event.src_path):
            dest_path = getattr(event, "dest_path", "")
            return bool(dest_path) and not self._is_hidden(dest_path)
        return True

    def on_created(self, event):
        if self._relevant(event):
            logger.info("Created: %s", event.src_path)
            self.watcher.notify()

    def on_modified(self, event):
        # Directory mtimes change along with their children; those events are covered.
        if not event.is_directory and self._relevant(event):
            logger.debug("Modified: %s", event.src_path)
            self.watcher.notify()

    def on_deleted(self, event):
        if self._relevant(event):
            logger.info("Deleted: %s", event.src_path)
            self.watcher.notify()

    def on_moved(self, event):
        if self._relevant(event):
            logger.info("Moved: %s -> %s", event.src_path, event.dest_path)
            self.watcher.notify()
