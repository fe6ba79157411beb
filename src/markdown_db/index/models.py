"""Data models for the index."""

from dataclasses import asdict, dataclass


@dataclass
class IndexRecord:
    """A document row as persisted in the index."""

    id: int | None = None
    uri: str = ""
    type: str | None = None
    title: str = ""
    markdown: str = ""
    created: str = ""  # ISO-8601, UTC
    modified: str = ""
    last_seen_at: str = ""


@dataclass(frozen=True)
class Entry:
    """A search result."""

    title: str
    url: str
    type: str | None
    markdown: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RefreshStats:
    """What a refresh cycle did."""

    indexed: int = 0  # new or changed, fully retokenized
    unchanged: int = 0
    deleted: int = 0
