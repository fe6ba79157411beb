"""Documents: one source, parsed once through a dialect."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import parse_qs, urlsplit

from markdown_it.tree import SyntaxTreeNode

from markdown_db.markdown.dialect import Dialect
from markdown_db.markdown.frontmatter import FrontMatter, parse_front_matter
from markdown_db.markdown.source import Source

logger = logging.getLogger(__name__)

# Nodes whose literal content is searchable text
LITERAL_NODES = {"text", "code_inline", "html_inline", "code_block", "fence", "html_block"}
BLOCK_LITERAL_NODES = {"code_block", "fence", "html_block"}
BREAK_NODES = {"softbreak", "hardbreak"}


def extract_text(node: SyntaxTreeNode) -> str:
    """Concatenate the literal text below ``node``, skipping markup.

    Line breaks become newlines and separate blocks are joined by a
    newline.
    """
    parts: list[str] = []
    for child in node.walk():
        starts_block = child.type == "inline" or child.type in BLOCK_LITERAL_NODES
        if starts_block and parts and not parts[-1].endswith("\n"):
            parts.append("\n")

        if child.type in LITERAL_NODES:
            parts.append(child.content)
        elif child.type in BREAK_NODES:
            parts.append("\n")
    return "".join(parts)


@dataclass(frozen=True)
class Link:
    """A link found in a document."""

    text: str
    url: str
    title: str = ""

    @property
    def meta(self) -> tuple[str, str] | None:
        """``(key, value)`` encoded as ``key=value`` in the link target."""
        parts = urlsplit(self.url)
        if parts.scheme:
            values = parse_qs(parts.query).get("path")
            if not values:
                return None
            encoded = values[0]
        else:
            encoded = self.url

        key, sep, value = encoded.partition("=")
        if not sep:
            return None
        return key, value


def extract_links(node: SyntaxTreeNode) -> list[Link]:
    """All links below ``node`` in document order."""
    links = []
    for child in node.walk():
        if child.type == "link":
            links.append(
                Link(
                    text=extract_text(child),
                    url=str(child.attrs.get("href", "")),
                    title=str(child.attrs.get("title", "")),
                )
            )
    return links


@dataclass
class _Parsed:
    root: SyntaxTreeNode
    front_matter: FrontMatter | None


class Document:
    """
    A markdown document read from a Source and normalized by a Dialect.

    The source is parsed at most once, on first access to any derived
    field. Parsing also detaches the front matter block from the tree, so
    ``markdown`` never contains it.
    """

    def __init__(self, source: Source, dialect: Dialect):
        self.source = source
        self.dialect = dialect
        self._parsed: _Parsed | None = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Document({self.source!r})"

    def _init(self) -> _Parsed:
        """Parse the source and extract its front matter, once."""
        with self._lock:
            if self._parsed is None:
                root = self.dialect.parse(self.source.read())
                front_matter = None
                for child in root.children:
                    if child.type == "front_matter":
                        root.children.remove(child)
                        front_matter = parse_front_matter(child.content)
                        break
                self._parsed = _Parsed(root=root, front_matter=front_matter)
                logger.debug("Parsed %s", self.uri)
            return self._parsed

    @property
    def uri(self) -> str:
        return self.source.url()

    @property
    def root(self) -> SyntaxTreeNode:
        return self._init().root

    @property
    def front_matter(self) -> FrontMatter | None:
        return self._init().front_matter

    @property
    def content(self) -> str:
        """The raw source text."""
        return self.source.read()

    @property
    def title(self) -> str | None:
        front_matter = self.front_matter
        if front_matter is not None and front_matter.title is not None:
            return front_matter.title
        return self.source.title()

    @property
    def doc_type(self) -> str | None:
        front_matter = self.front_matter
        if front_matter is not None and front_matter.type is not None:
            return front_matter.type
        for link in self.links:
            meta = link.meta
            if meta is not None and meta[0] == "type":
                return meta[1]
        return None

    @property
    def tags(self) -> list[str] | None:
        front_matter = self.front_matter
        return front_matter.tags if front_matter is not None else None

    @property
    def text(self) -> str:
        return extract_text(self.root)

    @property
    def links(self) -> list[Link]:
        return extract_links(self.root)

    @property
    def markdown(self) -> str:
        """Normalized markdown: front matter removed, wiki-links rewritten."""
        return self.dialect.render(self.root)

    @property
    def created(self) -> datetime | None:
        return self.source.created()

    @property
    def modified(self) -> datetime | None:
        return self.source.modified()
