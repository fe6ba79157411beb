"""
Index module for markdown-db.

This module keeps a SQLite FTS5 index in sync with collections of markdown
documents and answers ranked text queries against it.
"""

from markdown_db.index.database import SCHEMA_VERSION, Database
from markdown_db.index.indexer import Index, build_match_expression, searchable_text
from markdown_db.index.models import Entry, IndexRecord, RefreshStats

__all__ = [
    "SCHEMA_VERSION",
    "Database",
    "Entry",
    "Index",
    "IndexRecord",
    "RefreshStats",
    "build_match_expression",
    "searchable_text",
]
