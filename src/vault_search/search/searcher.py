from vault_search.logger import logging
from vault_search.search.config import SearchConfig, get_search_config
from vault_search.search.matcher import normalize, rank_results
from vault_search.search.messages import Progress, SearchResult, SearchSession
from vault_search.search.scheduler import SearchScheduler
from vault_search.search.vault import Vault

logger = logging.getLogger(__name__)


class Searcher:
    vault: Vault
    config: SearchConfig

    def __init__(self, vault: Vault, config: SearchConfig | None = None):
        self.vault = vault
        self.config = config if config else get_search_config()

    async def search(self, query: str, limit: int | None = None) -> list[SearchResult]:
        """
        Run a single search session over the vault, without debouncing.

        Returns at most ``limit`` results (``max_results`` by default), best first.
        """
        normalized = normalize(query)
        if not normalized:
            return []

        try:
            files = self.vault.files()
        except OSError as e:
            logger.warning("Failed to list vault %s: %s", self.vault.name, e)
            return []

        session = SearchSession.create(0, normalized)
        scheduler = SearchScheduler(session, files, self.vault.cache, self.config)
        results: list[SearchResult] = []

        def on_progress(generation: int, progress: Progress):
            logger.debug("Scanned %d/%d files", progress.scanned, progress.total)

        def on_result(generation: int, result: SearchResult):
            results.append(result)

        await scheduler.run(lambda generation: True, on_progress, on_result)

        limit = self.config.max_results if limit is None else min(limit, self.config.max_results)
        logger.info(
            "Search for %r in vault %s: %d matches in %d files",
            normalized,
            self.vault.name,
            len(results),
            len(files),
        )
        return rank_results(results, limit)
