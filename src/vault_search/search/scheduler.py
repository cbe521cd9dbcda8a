"""Bounded-concurrency scan of a vault's file list for one search session."""

import asyncio
import itertools
from collections.abc import Callable, Sequence

from vault_search.logger import logging
from vault_search.search.cache import ContentCache
from vault_search.search.config import SearchConfig
from vault_search.search.matcher import file_extension, match_content, match_name
from vault_search.search.messages import FileRef, Progress, SearchResult, SearchSession

logger = logging.getLogger(__name__)

IsCurrent = Callable[[int], bool]
ProgressCallback = Callable[[int, Progress], None]
ResultCallback = Callable[[int, SearchResult], None]


class SearchScheduler:
    """
    Runs a fixed pool of asyncio workers over a shared cursor.

    Each worker claims the next file index from the cursor until the list is exhausted
    or its generation stops being current. Claiming is a single ``next()`` call with no
    await in between, so every index goes to exactly one worker.
    """

    session: SearchSession
    files: Sequence[FileRef]
    cache: ContentCache
    config: SearchConfig
    scanned: int

    def __init__(
        self,
        session: SearchSession,
        files: Sequence[FileRef],
        cache: ContentCache,
        config: SearchConfig,
    ):
        self.session = session
        self.files = files
        self.cache = cache
        self.config = config
        self.scanned = 0
        self._cursor = itertools.count()

    async def run(
        self,
        is_current: IsCurrent,
        on_progress: ProgressCallback,
        on_result: ResultCallback,
    ) -> int:
        """Scan every file and return how many were claimed."""
        worker_count = min(self.config.concurrency, len(self.files))
        await asyncio.gather(
            *(
                self._worker(self.session.generation, is_current, on_progress, on_result)
                for _ in range(worker_count)
            )
        )
        return self.scanned

    async def _worker(
        self,
        generation: int,
        is_current: IsCurrent,
        on_progress: ProgressCallback,
        on_result: ResultCallback,
    ):
        total = len(self.files)
        while True:
            if not is_current(generation):
                return
            index = next(self._cursor)
            if index >= total:
                return

            self.scanned += 1
            if self.scanned % self.config.progress_interval == 0:
                on_progress(generation, Progress(self.scanned, total))

            result = await self.scan_file(self.files[index], generation, is_current)
            if result is not None:
                on_result(generation, result)

    async def scan_file(
        self, file: FileRef, generation: int, is_current: IsCurrent
    ) -> SearchResult | None:
        if file_extension(file.name) in self.config.skip_extensions:
            return None

        query = self.session.query
        result = match_name(query, file)
        if result is not None:
            return result

        if len(query) < self.config.min_content_query_len:
            return None
        if not is_current(generation):
            return None

        try:
            content = await self.cache.get(file.path)
        except Exception as e:
            logger.debug("Failed to read %s: %s", file.path, e)
            return None

        return match_content(
            file,
            content,
            query,
            self.session.tokens,
            max_matches=self.config.max_matches_per_file,
            radius=self.config.context_radius,
        )
