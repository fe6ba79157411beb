"""Markdown dialects: how raw text becomes a normalized document tree."""

from typing import Protocol
from urllib.parse import quote

from markdown_it import MarkdownIt
from markdown_it.rules_inline import StateInline
from markdown_it.token import Token
from markdown_it.tree import SyntaxTreeNode
from mdformat.renderer import MDRenderer
from mdit_py_plugins.front_matter import front_matter_plugin

WIKI_LINK_PREFIX = "obsidian://open?path="


class Dialect(Protocol):
    """Turns raw markdown into a tree, and a tree back into markdown."""

    def parse(self, source: str) -> SyntaxTreeNode: ...

    def render(self, root: SyntaxTreeNode) -> str: ...


def wiki_url(target: str) -> str:
    """Portable URL for a wiki-link target."""
    return WIKI_LINK_PREFIX + quote(target, safe="/")


def _wikilink_rule(state: StateInline, silent: bool) -> bool:
    """Consume ``[[target]]`` or ``[[target|alias]]`` as a single link.

    Inside the text of another link the brackets are left alone: silent
    runs come from link label scanning, and ``linkLevel`` is set while a
    link's children are tokenized.
    """
    if silent or state.linkLevel > 0:
        return False

    start = state.pos
    if not state.src.startswith("[[", start):
        return False

    end = state.src.find("]]", start + 2)
    if end == -1:
        return False

    body = state.src[start + 2 : end]
    if not body.strip() or "\n" in body or "[" in body:
        return False

    parts = [part.strip() for part in body.split("|")]
    target = parts[0]
    label = parts[1] if len(parts) > 1 and parts[1] else target

    token = state.push("link_open", "a", 1)
    token.attrs = {"href": wiki_url(target)}
    token.markup = "wikilink"

    token = state.push("text", "", 0)
    token.content = label

    token = state.push("link_close", "a", -1)
    token.markup = "wikilink"

    state.pos = end + 2
    return True


def _markdown_parser() -> MarkdownIt:
    md = (
        MarkdownIt("commonmark", {"linkify": True}, renderer_cls=MDRenderer)
        .use(front_matter_plugin)
        .enable("linkify")
    )
    # Options read by mdformat's renderer
    md.options["mdformat"] = {"wrap": "keep", "number": False}
    md.options["store_labels"] = True
    md.options["parser_extension"] = []
    md.options["codeformatters"] = {}
    return md


class CommonMark:
    """Plain CommonMark with front matter and bare-URL links."""

    def __init__(self) -> None:
        self.md = _markdown_parser()

    def parse(self, source: str) -> SyntaxTreeNode:
        return SyntaxTreeNode(self.md.parse(source))

    def render(self, root: SyntaxTreeNode) -> str:
        tokens: list[Token] = root.to_tokens()
        return self.md.renderer.render(tokens, self.md.options, {})


class Obsidian(CommonMark):
    """
    The Obsidian dialect.

    Wiki-links (``[[Target]]``, ``[[Target|Alias]]``) become ordinary links to
    ``obsidian://open?path=Target`` labelled with the alias, or the target
    when there is none. The rule runs before the standard link rule so the
    surrounding brackets are part of the link and never left as literal text.
    """

    def __init__(self) -> None:
        super().__init__()
        self.md.inline.ruler.before("link", "wikilink", _wikilink_rule)
