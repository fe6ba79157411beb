"""
Markdown module for markdown-db.

Turns sources of raw markdown into normalized documents: front matter is
parsed and stripped, wiki-links are rewritten into portable links, and plain
text and links are extracted for the index.
"""

from markdown_db.markdown.collection import (
    Collection,
    DirectoryCollection,
    Vault,
    walk_markdown_files,
)
from markdown_db.markdown.dialect import CommonMark, Dialect, Obsidian, wiki_url
from markdown_db.markdown.document import Document, Link, extract_links, extract_text
from markdown_db.markdown.frontmatter import (
    FrontMatter,
    FrontMatterError,
    normalize_tags,
    parse_front_matter,
)
from markdown_db.markdown.source import FileSource, Source, TextSource, VaultSource

__all__ = [
    "Collection",
    "CommonMark",
    "Dialect",
    "DirectoryCollection",
    "Document",
    "FileSource",
    "FrontMatter",
    "FrontMatterError",
    "Link",
    "Obsidian",
    "Source",
    "TextSource",
    "Vault",
    "VaultSource",
    "extract_links",
    "extract_text",
    "normalize_tags",
    "parse_front_matter",
    "walk_markdown_files",
    "wiki_url",
]
