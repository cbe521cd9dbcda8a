"""Debounced, generation-tagged search sessions driven by a live query."""

import asyncio
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Protocol

from vault_search.logger import logging
from vault_search.search.cache import ContentCache
from vault_search.search.config import SearchConfig, get_search_config
from vault_search.search.matcher import normalize, rank_results
from vault_search.search.messages import (
    FileRef,
    Progress,
    SearchResult,
    SearchSession,
    SessionState,
)
from vault_search.search.scheduler import SearchScheduler

logger = logging.getLogger(__name__)


class ControllerState(Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    SEARCHING = "searching"
    COMPLETED = "completed"


class SearchListener(Protocol):
    def on_progress(self, progress: Progress) -> None: ...

    def on_results(self, results: Sequence[SearchResult]) -> None: ...

    def on_done(self) -> None: ...


class QueryController:
    """
    Turns a stream of query edits into search sessions.

    Every edit restarts a single debounce timer. When it fires, the generation counter
    is bumped and a scheduler runs for the new session. Callbacks carry the generation
    they were produced under and anything from an older generation is dropped, so
    superseded workers may keep running but nothing they produce is ever observed.

    Must be used from inside a running event loop.
    """

    files: Callable[[], Sequence[FileRef]]
    cache: ContentCache
    listener: SearchListener | None
    config: SearchConfig

    state: ControllerState
    generation: int
    query: str
    session: SearchSession | None
    results: list[SearchResult]
    progress: Progress

    def __init__(
        self,
        files: Callable[[], Sequence[FileRef]],
        cache: ContentCache,
        listener: SearchListener | None = None,
        config: SearchConfig | None = None,
    ):
        self.files = files
        self.cache = cache
        self.listener = listener
        self.config = config if config else get_search_config()

        self.state = ControllerState.IDLE
        self.generation = 0
        self.query = ""
        self.session = None
        self.results = []
        self.progress = Progress(0, 0)

        self._debounce: asyncio.TimerHandle | None = None
        self._buffer: list[SearchResult] = []
        self._tasks: set[asyncio.Task] = set()
        self._settled = asyncio.Event()
        self._settled.set()

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def set_query(self, text: str):
        """Handle an edit of the query text."""
        normalized = normalize(text)
        if not normalized:
            self._reset()
            return

        if normalized == self.query and self.state is not ControllerState.IDLE:
            return

        self.query = normalized
        self._schedule()

    def refresh(self):
        """Re-run the current query, e.g. after the vault tree changed."""
        if self.query:
            self._schedule()

    async def wait(self):
        """Wait until no debounce timer or current session is outstanding."""
        await self._settled.wait()

    async def aclose(self):
        self._cancel_debounce()
        self._retire_session()
        self.generation += 1
        self._settled.set()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _schedule(self):
        self._cancel_debounce()
        self.state = ControllerState.DEBOUNCING
        self._settled.clear()
        loop = asyncio.get_running_loop()
        self._debounce = loop.call_later(self.config.debounce_seconds, self._fire, self.query)

    def _cancel_debounce(self):
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None

    def _retire_session(self):
        if self.session is not None and self.session.state is SessionState.SEARCHING:
            self.session.state = SessionState.SUPERSEDED
            logger.debug(
                "Session %d (%r) superseded", self.session.generation, self.session.query
            )

    def _reset(self):
        self._cancel_debounce()
        self._retire_session()
        # Bumping the generation silences whatever session is still running.
        self.generation += 1
        self.query = ""
        self.session = None
        self._buffer = []
        self.results = []
        self.state = ControllerState.IDLE
        self._set_progress(Progress(0, 0))
        if self.listener:
            self.listener.on_results([])
        self._settled.set()

    def _fire(self, query: str):
        self._debounce = None
        self._retire_session()
        self.generation += 1
        session = SearchSession.create(self.generation, query)

        try:
            files = list(self.files())
        except OSError as e:
            logger.warning("Failed to list vault files: %s", e)
            files = []
        except Exception:
            logger.exception("File listing failed for session %d", session.generation)
            files = []

        self.session = session
        self._buffer = []
        self.state = ControllerState.SEARCHING
        logger.info(
            "Starting session %d for %r over %d files", session.generation, query, len(files)
        )
        self._set_progress(Progress(0, len(files)))

        task = asyncio.get_running_loop().create_task(self._run(session, files))
        self._tasks.add(task)
        task.add_done_callback(self._task_finished)

    async def _run(self, session: SearchSession, files: list[FileRef]):
        scheduler = SearchScheduler(session, files, self.cache, self.config)
        try:
            await scheduler.run(self.is_current, self._on_progress, self._on_result)
        except Exception:
            logger.exception("Session %d failed", session.generation)
        self._complete(session, len(files))

    def _task_finished(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Search session failed", exc_info=error)

    def _on_progress(self, generation: int, progress: Progress):
        if self.is_current(generation):
            self._set_progress(progress)

    def _on_result(self, generation: int, result: SearchResult):
        if self.is_current(generation):
            self._buffer.append(result)

    def _complete(self, session: SearchSession, total: int):
        if not self.is_current(session.generation):
            logger.debug("Discarding output of superseded session %d", session.generation)
            return

        session.state = SessionState.COMPLETED
        matched = len(self._buffer)
        self.results = rank_results(self._buffer, self.config.max_results)
        self._buffer = []
        logger.info(
            "Session %d finished: %d of %d files matched, %d kept",
            session.generation,
            matched,
            total,
            len(self.results),
        )
        # A newer query may already be debouncing; it keeps the controller busy.
        if self._debounce is None:
            self.state = ControllerState.COMPLETED
        self._set_progress(Progress(total, total))
        if self.listener:
            self.listener.on_results(self.results)
            self.listener.on_done()
        if self._debounce is None:
            self._settled.set()

    def _set_progress(self, progress: Progress):
        self.progress = progress
        if self.listener:
            self.listener.on_progress(progress)
