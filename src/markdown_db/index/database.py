"""SQLite database management for the index."""

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from markdown_db.index.models import Entry, IndexRecord

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 3

IN_MEMORY = ":memory:"

SCHEMA_SQL = """
-- markdown-db Index Schema v{version}
-- This index is disposable: it regenerates from the collections it indexes.

BEGIN;

DROP TABLE IF EXISTS documents;
DROP TABLE IF EXISTS word_index;
DROP TABLE IF EXISTS application;

-- Documents table
CREATE TABLE documents (
    id           INTEGER PRIMARY KEY,
    uri          TEXT NOT NULL UNIQUE,
    type         TEXT,
    title        TEXT NOT NULL,
    markdown     TEXT NOT NULL,
    created      TIMESTAMP NOT NULL,
    modified     TIMESTAMP NOT NULL,
    last_seen_at TIMESTAMP NOT NULL
);

CREATE INDEX idx_documents_last_seen_at ON documents(last_seen_at);

-- FTS5 virtual table: '#' and '-' are part of tokens so that #tags and
-- hyphenated-words are indexed whole.
CREATE VIRTUAL TABLE word_index USING fts5(
    document_id UNINDEXED,
    title,
    text,
    tokenize = "porter unicode61 remove_diacritics 1 tokenchars '-#'"
);

-- Schema version marker (single row)
CREATE TABLE application (
    id      INTEGER PRIMARY KEY,
    version INTEGER NOT NULL
);

INSERT INTO application (version) VALUES ({version});

COMMIT;
"""


class Database:
    """SQLite database for the markdown index."""

    def __init__(self, db_path: Path | str):
        """Initialize database connection settings.

        Args:
            db_path: Path to the database file, or ``":memory:"``.
        """
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._write_lock = threading.Lock()

    @property
    def in_memory(self) -> bool:
        return str(self.db_path) == IN_MEMORY

    def _get_connection(self) -> sqlite3.Connection:
        """Get the database connection, opening it on first use."""
        if self._conn is None:
            if not self.in_memory:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            # Transactions are managed explicitly, see transaction()
            self._conn = sqlite3.connect(str(self.db_path), isolation_level=None)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    @contextmanager
    def _read_cursor(self) -> Iterator[sqlite3.Cursor]:
        """Get a cursor for read operations."""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
        finally:
            cursor.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """Run a block of writes as one transaction.

        Commits when the block completes and rolls back everything if it
        raises.
        """
        with self._write_lock:
            conn = self._get_connection()
            cursor = conn.cursor()
            cursor.execute("BEGIN")
            try:
                yield cursor
                conn.commit()
            except BaseException:
                conn.rollback()
                raise
            finally:
                cursor.close()

    # Schema

    def schema_version(self) -> int:
        """Version recorded in the store, or 0 when there is none."""
        with self._read_cursor() as cursor:
            try:
                cursor.execute("SELECT version FROM application")
            except sqlite3.OperationalError:
                return 0
            row = cursor.fetchone()
            return row["version"] if row else 0

    def ensure_schema(self) -> bool:
        """Recreate the schema when the store is older than SCHEMA_VERSION.

        Returns:
            True if the schema was (re)created.
        """
        version = self.schema_version()
        if version >= SCHEMA_VERSION:
            return False
        logger.info(
            "Creating database schema v%d (found v%d)", SCHEMA_VERSION, version
        )
        self.create_schema()
        return True

    def create_schema(self) -> None:
        """Drop and recreate every table. All indexed data is lost."""
        with self._write_lock:
            self._get_connection().executescript(
                SCHEMA_SQL.format(version=SCHEMA_VERSION)
            )

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # Document operations

    def count_documents(self) -> int:
        with self._read_cursor() as cursor:
            cursor.execute("SELECT COUNT(*) AS count FROM documents")
            return cursor.fetchone()["count"]

    def get_document(self, uri: str) -> IndexRecord | None:
        """Get a document by its URI."""
        with self._read_cursor() as cursor:
            cursor.execute("SELECT * FROM documents WHERE uri = ?", (uri,))
            row = cursor.fetchone()
            return self._row_to_record(row) if row else None

    def list_documents(self) -> list[IndexRecord]:
        with self._read_cursor() as cursor:
            cursor.execute("SELECT * FROM documents ORDER BY uri")
            return [self._row_to_record(row) for row in cursor.fetchall()]

    def get_word_index(self, document_id: int) -> tuple[str, str] | None:
        """The ``(title, text)`` indexed for a document."""
        with self._read_cursor() as cursor:
            cursor.execute(
                "SELECT title, text FROM word_index WHERE document_id = ?",
                (document_id,),
            )
            row = cursor.fetchone()
            return (row["title"], row["text"]) if row else None

    def count_word_index(self) -> int:
        with self._read_cursor() as cursor:
            cursor.execute("SELECT COUNT(*) AS count FROM word_index")
            return cursor.fetchone()["count"]

    def _row_to_record(self, row: sqlite3.Row) -> IndexRecord:
        return IndexRecord(
            id=row["id"],
            uri=row["uri"],
            type=row["type"],
            title=row["title"],
            markdown=row["markdown"],
            created=row["created"],
            modified=row["modified"],
            last_seen_at=row["last_seen_at"],
        )

    # Refresh statements, executed inside transaction()

    @staticmethod
    def latest_seen_at(cursor: sqlite3.Cursor) -> str | None:
        cursor.execute("SELECT MAX(last_seen_at) AS latest FROM documents")
        return cursor.fetchone()["latest"]

    @staticmethod
    def touch_unchanged(
        cursor: sqlite3.Cursor, uri: str, modified: str, seen_at: str
    ) -> bool:
        """Mark a document seen if the stored copy is at least as recent.

        Returns:
            True if a stored, up-to-date document was found.
        """
        cursor.execute(
            "UPDATE documents SET last_seen_at = ? WHERE uri = ? AND modified >= ?",
            (seen_at, uri, modified),
        )
        return cursor.rowcount == 1

    @staticmethod
    def upsert_document(cursor: sqlite3.Cursor, record: IndexRecord) -> int:
        """Insert or update a document by URI, returning its (stable) ID."""
        cursor.execute(
            """INSERT INTO documents
            (uri, type, title, markdown, created, modified, last_seen_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(uri) DO UPDATE SET
                type = excluded.type,
                title = excluded.title,
                markdown = excluded.markdown,
                created = excluded.created,
                modified = excluded.modified,
                last_seen_at = excluded.last_seen_at
            """,
            (
                record.uri,
                record.type,
                record.title,
                record.markdown,
                record.created,
                record.modified,
                record.last_seen_at,
            ),
        )
        # lastrowid is not reliable for the update branch of an upsert
        cursor.execute("SELECT id FROM documents WHERE uri = ?", (record.uri,))
        return cursor.fetchone()["id"]

    @staticmethod
    def replace_word_index(
        cursor: sqlite3.Cursor, document_id: int, title: str, text: str
    ) -> None:
        cursor.execute("DELETE FROM word_index WHERE document_id = ?", (document_id,))
        cursor.execute(
            "INSERT INTO word_index (document_id, title, text) VALUES (?, ?, ?)",
            (document_id, title, text),
        )

    @staticmethod
    def delete_unseen(cursor: sqlite3.Cursor, seen_at: str) -> int:
        """Delete documents not observed in the cycle stamped ``seen_at``."""
        cursor.execute("DELETE FROM documents WHERE last_seen_at < ?", (seen_at,))
        return cursor.rowcount

    @staticmethod
    def delete_orphaned_word_index(cursor: sqlite3.Cursor) -> int:
        cursor.execute(
            """DELETE FROM word_index WHERE NOT EXISTS (
                SELECT 1 FROM documents WHERE documents.id = word_index.document_id
            )"""
        )
        return cursor.rowcount

    # Search operations

    def match(self, expression: str) -> list[Entry]:
        """Documents whose word index matches an FTS5 expression, best first."""
        with self._read_cursor() as cursor:
            cursor.execute(
                """SELECT documents.title, documents.uri, documents.type, documents.markdown
                FROM word_index
                JOIN documents ON documents.id = word_index.document_id
                WHERE word_index MATCH ?
                ORDER BY rank
                """,
                (expression,),
            )
            return [
                Entry(
                    title=row["title"],
                    url=row["uri"],
                    type=row["type"],
                    markdown=row["markdown"],
                )
                for row in cursor.fetchall()
            ]
