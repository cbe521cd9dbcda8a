"""Shared fixtures: on-disk vaults and in-memory file sets."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from vault_search.search.cache import ContentCache
from vault_search.search.config import SearchConfig
from vault_search.search.messages import FileRef, Progress, SearchResult


class MemoryFiles:
    """An in-memory vault: a flat file list plus a reader over a dict."""

    def __init__(self, contents: dict[str, str], failing: set[str] | None = None):
        self.contents = contents
        self.failing = failing or set()
        self.reads: list[str] = []

    def files(self) -> list[FileRef]:
        return [FileRef(path=path, name=path.rsplit("/", 1)[-1]) for path in self.contents]

    async def read(self, path: str) -> str:
        self.reads.append(path)
        await asyncio.sleep(0)
        if path in self.failing:
            raise OSError(f"cannot read {path}")
        return self.contents[path]

    def cache(self) -> ContentCache:
        return ContentCache(self.read)


class RecordingListener:
    def __init__(self):
        self.progress: list[Progress] = []
        self.results: list[list[SearchResult]] = []
        self.done = 0

    def on_progress(self, progress: Progress) -> None:
        self.progress.append(progress)

    def on_results(self, results) -> None:
        self.results.append(list(results))

    def on_done(self) -> None:
        self.done += 1


@pytest.fixture
def notes() -> MemoryFiles:
    return MemoryFiles(
        {
            "todo.md": "- [ ] call the bank",
            "notes.md": "buy milk and eggs",
            "journal/2024-01-05.md": "Went hiking. Remember to buy eggs.",
            "photos/cat.png": "not really an image",
        }
    )


@pytest.fixture
def fast_config() -> SearchConfig:
    return SearchConfig(debounce_ms=20, concurrency=4)


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    """A small vault on disk, including hidden and binary entries."""
    root = tmp_path / "Notes"
    (root / "projects").mkdir(parents=True)
    (root / ".obsidian").mkdir()
    (root / "todo.md").write_text("# Todo\n\n- [ ] call the bank\n")
    (root / "notes.md").write_text("buy milk and eggs")
    (root / "projects" / "roadmap.md").write_text("Q3: ship the search engine\n")
    (root / "projects" / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    (root / ".obsidian" / "workspace.json").write_text('{"todo": true}')
    return root
