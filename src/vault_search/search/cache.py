from collections.abc import Awaitable, Callable

from vault_search.logger import logging

logger = logging.getLogger(__name__)

ContentReader = Callable[[str], Awaitable[str]]


class ContentCache:
    """
    Memoizes file content by path.

    Entries never expire on their own: the owner calls ``invalidate_all`` whenever the
    file tree changes. Two workers fetching the same path at once both read it and the
    last write wins, which is harmless since content is fixed for the cache's lifetime.
    """

    reader: ContentReader
    _entries: dict[str, str]

    def __init__(self, reader: ContentReader):
        self.reader = reader
        self._entries = {}

    async def get(self, path: str) -> str:
        if path in self._entries:
            return self._entries[path]
        content = await self.reader(path)
        self._entries[path] = content
        return content

    def invalidate_all(self):
        if self._entries:
            logger.debug("Dropping %d cached files", len(self._entries))
        self._entries.clear()

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)
