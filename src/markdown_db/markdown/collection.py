"""Collections: sets of documents discovered under a directory."""

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from markdown_db.markdown.dialect import Dialect
from markdown_db.markdown.document import Document
from markdown_db.markdown.source import FileSource, VaultSource

logger = logging.getLogger(__name__)


class Collection(Protocol):
    """Anything that can enumerate the documents currently visible from it."""

    def documents(self) -> Iterator[Document]: ...


def walk_markdown_files(root: Path) -> Iterator[Path]:
    """
    Yield every ``.md`` file below ``root``, recursively, in sorted order.

    Hidden files and directories (e.g. ``.obsidian``, ``.trash``) are skipped.
    A missing root yields nothing.
    """
    if not root.is_dir():
        logger.warning("Collection root %s does not exist, skipping", root)
        return

    for file_path in sorted(root.rglob("*.md")):
        if not file_path.is_file():
            continue

        relative_parts = file_path.relative_to(root).parts
        if any(part.startswith(".") for part in relative_parts):
            continue

        yield file_path


class DirectoryCollection:
    """Markdown files under a directory tree, identified by file:// URIs."""

    def __init__(self, path: Path, dialect: Dialect):
        self.path = Path(path).expanduser()
        self.dialect = dialect

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"

    def documents(self) -> Iterator[Document]:
        root = self.path.resolve()
        for file_path in walk_markdown_files(root):
            yield Document(FileSource(file_path), self.dialect)


class Vault(DirectoryCollection):
    """An Obsidian vault: documents are identified by obsidian:// URIs."""

    def __init__(self, path: Path, dialect: Dialect, name: str | None = None):
        super().__init__(path, dialect)
        self.name = name or self.path.name

    def __repr__(self) -> str:
        return f"Vault({self.name!r}, {str(self.path)!r})"

    def documents(self) -> Iterator[Document]:
        root = self.path.resolve()
        for file_path in walk_markdown_files(root):
            yield Document(VaultSource(file_path), self.dialect)
