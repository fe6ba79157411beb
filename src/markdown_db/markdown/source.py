"""Document sources: where raw markdown comes from and how it is identified."""

import base64
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable
from urllib.parse import quote


@runtime_checkable
class Source(Protocol):
    """Anything that can produce raw markdown and a stable URI.

    ``title``, ``created`` and ``modified`` are optional capabilities;
    sources that cannot provide them return None.
    """

    def read(self) -> str: ...

    def url(self) -> str: ...

    def title(self) -> str | None: ...

    def created(self) -> datetime | None: ...

    def modified(self) -> datetime | None: ...


class TextSource:
    """Literal in-memory markdown, identified by a data: URI of its content."""

    def __init__(self, text: str):
        self.text = text

    def read(self) -> str:
        return self.text

    def url(self) -> str:
        encoded = base64.urlsafe_b64encode(self.text.encode("utf-8")).decode("ascii")
        return f"data:text/plain;base64,{encoded.rstrip('=')}"

    def title(self) -> str | None:
        return None

    def created(self) -> datetime | None:
        return None

    def modified(self) -> datetime | None:
        return None

    def __repr__(self) -> str:
        return f"TextSource({self.text[:32]!r})"


def _from_timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class FileSource:
    """A markdown file on disk, identified by its absolute file:// URI."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> str:
        return self.path.read_text(encoding="utf-8")

    def url(self) -> str:
        return self.path.resolve().as_uri()

    def title(self) -> str | None:
        return self.path.stem or None

    def created(self) -> datetime | None:
        try:
            stat = self.path.stat()
        except OSError:
            return None
        # st_birthtime is missing on most Linux builds
        birthtime = getattr(stat, "st_birthtime", None)
        return _from_timestamp(birthtime if birthtime is not None else stat.st_ctime)

    def modified(self) -> datetime | None:
        try:
            return _from_timestamp(self.path.stat().st_mtime)
        except OSError:
            return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"


class VaultSource(FileSource):
    """A file inside an Obsidian vault, identified by an obsidian:// URI."""

    def url(self) -> str:
        path = os.fspath(self.path.resolve())
        return f"obsidian://open?path={quote(path, safe='')}"
