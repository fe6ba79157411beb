"""Index that keeps SQLite in sync with collections of markdown documents."""

import logging
import sqlite3
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from pathlib import Path

from markdown_db.index.database import IN_MEMORY, Database
from markdown_db.index.models import Entry, IndexRecord, RefreshStats
from markdown_db.markdown import Collection, Document

logger = logging.getLogger(__name__)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC text that sorts chronologically as a string."""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def searchable_text(title: str, text: str, tags: list[str] | None) -> str:
    """Title, body text and #-qualified tags as fed to the word index."""
    tag_tokens = " ".join(f"#{tag}" for tag in tags or [])
    return f"{title} {text} {tag_tokens}"


def build_match_expression(query: str) -> str | None:
    """
    Turn a free-text query into an FTS5 expression.

    Every whitespace-separated term becomes a quoted prefix phrase; all of
    them must match. Returns None for a blank query.
    """
    terms = query.split()
    if not terms:
        return None
    return " ".join('"{}"*'.format(term.replace('"', '""')) for term in terms)


class Index:
    """
    Persistent full-text index of markdown documents.

    The collections are always the source of truth. SQLite is a derived index
    that is brought up to date by ``refresh`` and can be rebuilt at any time.
    """

    def __init__(self, db: Database):
        self.db = db

    @classmethod
    def open(cls, db_path: Path) -> "Index":
        """Open (creating if needed) the index stored at ``db_path``."""
        index = cls(Database(db_path))
        index.initialize()
        return index

    @classmethod
    def open_in_memory(cls) -> "Index":
        index = cls(Database(IN_MEMORY))
        index.initialize()
        return index

    @property
    def location(self) -> str:
        return str(self.db.db_path)

    def initialize(self) -> None:
        """Ensure the schema is current, recreating the store if it is not."""
        if self.db.ensure_schema():
            logger.info("Index schema created at %s", self.location)

    def close(self) -> None:
        self.db.close()

    def size(self) -> int:
        """Number of indexed documents."""
        return self.db.count_documents()

    def reset(self) -> None:
        """Drop every indexed document and recreate the schema."""
        logger.info("Resetting index at %s", self.location)
        self.db.create_schema()

    def refresh(self, collections: Iterable[Collection]) -> RefreshStats:
        """
        Bring the index up to date with ``collections`` in one transaction.

        Unchanged documents (stored copy at least as recent as the source)
        are only marked as seen; new and changed documents are fully
        reindexed; documents not seen in this cycle are deleted. If anything
        fails, nothing is changed.

        Returns:
            Counts of indexed, unchanged and deleted documents.
        """
        stats = RefreshStats()
        with self.db.transaction() as cursor:
            seen_at = self._cycle_timestamp(cursor)
            logger.debug("Refreshing index, cycle %s", seen_at)

            for collection in collections:
                logger.debug("Scanning %r", collection)
                for document in collection.documents():
                    if self._is_unchanged(cursor, document, seen_at):
                        stats.unchanged += 1
                    else:
                        self._index_document(cursor, document, seen_at)
                        stats.indexed += 1

            logger.debug("Deleting documents last seen before %s", seen_at)
            stats.deleted = self.db.delete_unseen(cursor, seen_at)
            self.db.delete_orphaned_word_index(cursor)

        logger.info(
            "Refresh complete: %d indexed, %d unchanged, %d deleted",
            stats.indexed,
            stats.unchanged,
            stats.deleted,
        )
        return stats

    def _cycle_timestamp(self, cursor: sqlite3.Cursor) -> str:
        """A timestamp later than any stored last_seen_at."""
        now = datetime.now(timezone.utc)
        latest = self.db.latest_seen_at(cursor)
        if latest is not None:
            previous = datetime.fromisoformat(latest)
            if now <= previous:
                now = previous + timedelta(microseconds=1)
        return format_timestamp(now)

    def _is_unchanged(
        self, cursor: sqlite3.Cursor, document: Document, seen_at: str
    ) -> bool:
        modified = document.modified
        if modified is None:
            return False
        unchanged = self.db.touch_unchanged(
            cursor, document.uri, format_timestamp(modified), seen_at
        )
        if unchanged:
            logger.debug("Document %s is up to date", document.uri)
        return unchanged

    def _index_document(
        self, cursor: sqlite3.Cursor, document: Document, seen_at: str
    ) -> None:
        """Upsert a document and rebuild its word index row."""
        uri = document.uri
        title = document.title or ""
        created = document.created
        modified = document.modified

        record = IndexRecord(
            uri=uri,
            type=document.doc_type,
            title=title,
            markdown=document.markdown,
            created=format_timestamp(created) if created else seen_at,
            modified=format_timestamp(modified) if modified else seen_at,
            last_seen_at=seen_at,
        )
        document_id = self.db.upsert_document(cursor, record)

        text = searchable_text(title, document.text, document.tags)
        self.db.replace_word_index(cursor, document_id, title, text)
        logger.debug("Indexed %s (id %d)", uri, document_id)

    def search(self, query: str) -> list[Entry]:
        """
        Search for documents matching every term of ``query`` as a prefix.

        Title matches come first, in rank order, followed by documents that
        only match in their text.
        """
        logger.info("Searching for %r", query)
        expression = build_match_expression(query)
        if expression is None:
            return []

        results = self.db.match(f"{{title}} : ({expression})")
        for entry in self.db.match(f"{{text}} : ({expression})"):
            if entry not in results:
                results.append(entry)
        return results

    def get_document(self, uri: str) -> IndexRecord | None:
        return self.db.get_document(uri)

    def list_documents(self) -> list[IndexRecord]:
        return self.db.list_documents()
