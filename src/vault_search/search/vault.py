"""On-disk vaults: the file tree, its flat listing and content reads."""

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from vault_search.logger import logging
from vault_search.search.cache import ContentCache
from vault_search.search.messages import FileRef

logger = logging.getLogger(__name__)


@dataclass
class VaultNode:
    name: str
    path: str  # vault-relative, POSIX separators
    is_directory: bool = False
    children: list["VaultNode"] = field(default_factory=list)


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def build_tree(root: Path) -> list[VaultNode]:
    """
    Walk ``root`` into a tree of nodes, sorted by name.

    Hidden entries and symlinked folders are skipped. A folder that cannot be listed
    is left out without affecting the rest of the tree.
    """

    def walk(directory: Path) -> list[VaultNode]:
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            logger.debug("Failed to list %s: %s", directory, e)
            return []

        nodes = []
        for entry in entries:
            if _is_hidden(entry.name):
                continue
            rel_path = entry.relative_to(root).as_posix()
            if entry.is_dir():
                # symlinked folders can loop back into the vault
                if entry.is_symlink():
                    continue
                nodes.append(VaultNode(entry.name, rel_path, True, walk(entry)))
            elif entry.is_file():
                nodes.append(VaultNode(entry.name, rel_path))
        return nodes

    return walk(root)


def flatten(nodes: Iterable[VaultNode]) -> list[FileRef]:
    """Depth-first listing of every file in the tree."""
    files: list[FileRef] = []
    stack = list(reversed(list(nodes)))
    while stack:
        node = stack.pop()
        if node.is_directory:
            stack.extend(reversed(node.children))
            continue
        files.append(FileRef(path=node.path, name=node.name))
    return files


class Vault:
    name: str
    root: Path
    cache: ContentCache

    def __init__(self, name: str, root: Path):
        self.name = name
        self.root = Path(root).resolve()
        self.cache = ContentCache(self.read_content)
        self._files: list[FileRef] | None = None

    def files(self) -> Sequence[FileRef]:
        if self._files is None:
            self._files = flatten(build_tree(self.root))
            logger.info("Listed %d files in vault %s", len(self._files), self.name)
        return self._files

    def tree_changed(self):
        """Forget the file listing and every cached file."""
        logger.info("Vault %s changed, invalidating listing and content cache", self.name)
        self._files = None
        self.cache.invalidate_all()

    def resolve(self, path: str) -> Path:
        full_path = (self.root / path).resolve()
        if not full_path.is_relative_to(self.root):
            raise ValueError(f"Path escapes vault {self.name}: {path}")
        return full_path

    async def read_content(self, path: str) -> str:
        full_path = self.resolve(path)
        return await asyncio.to_thread(full_path.read_text, encoding="utf-8")

    def recent_files(self, limit: int = 20) -> list[FileRef]:
        """Most recently modified files first."""
        dated: list[tuple[float, FileRef]] = []
        for file in self.files():
            try:
                dated.append((self.resolve(file.path).stat().st_mtime, file))
            except OSError as e:
                logger.debug("Failed to stat %s: %s", file.path, e)
        dated.sort(key=lambda item: (-item[0], item[1].path))
        return [file for _, file in dated[:limit]]
