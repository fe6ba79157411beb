"""Parser for the YAML front matter block at the top of a document."""

import logging
import re
from dataclasses import dataclass
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# Commas and/or whitespace separate tags given as a single string
TAG_SEPARATOR = re.compile(r"[,\s]+")


class FrontMatterError(ValueError):
    """Raised when a front matter block cannot be parsed."""


@dataclass
class FrontMatter:
    """Metadata declared in a document's front matter."""

    title: str | None = None
    type: str | None = None
    tags: list[str] | None = None


def normalize_tags(value: Any) -> list[str] | None:
    """
    Normalize a ``tags`` value to an ordered list of non-empty strings.

    Accepts a single string (``"a, b"``, ``"a b"``), or a sequence as produced
    by both the inline (``[a, b]``) and the indented YAML list forms. Nested
    lists and mappings inside a sequence are not tags and are dropped.

    Returns None when the field is absent or declares no tags, never an
    empty list.
    """
    if value is None:
        return None

    if isinstance(value, str):
        tags = [tag for tag in TAG_SEPARATOR.split(value) if tag]
    elif isinstance(value, (list, tuple)):
        tags = []
        for tag in value:
            if tag is None:
                continue
            if not isinstance(tag, (str, int, float)):
                logger.debug("Ignoring nested tag value %r", tag)
                continue
            tag = str(tag).strip()
            if tag:
                tags.append(tag)
    else:
        logger.debug("Ignoring tags of unsupported type %s", type(value).__name__)
        return None

    return tags or None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def parse_front_matter(content: str) -> FrontMatter:
    """
    Parse the body of a front matter block (without the ``---`` delimiters).

    Raises:
        FrontMatterError: if the YAML is malformed or is not a mapping.
    """
    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid YAML front matter: {e}") from e

    if raw is None:
        return FrontMatter()
    if not isinstance(raw, dict):
        raise FrontMatterError(
            f"Front matter must be a mapping, got {type(raw).__name__}"
        )

    return FrontMatter(
        title=_optional_str(raw.get("title")),
        type=_optional_str(raw.get("type")),
        tags=normalize_tags(raw.get("tags")),
    )
