#!/usr/bin/env python3
"""
tags.py
--------------------
Helpers for the raw tag list stored on a memo.

A memo keeps its tags as one delimiter-joined string with a trailing
delimiter (``"work,idea,"``), which lets ``LIKE '%work,%'`` style
lookups find memos carrying a tag. Tags typed by users live on the
first line of the memo content as ``#name`` tokens.

Functions:
    parse_tags: Collect #tags from the first line of memo content
    strip_tags: Remove those tags from the first line
    format_tags: Join tag names into the stored representation
    split_tags: Split the stored representation back into names
    escape_like: Escape LIKE wildcards in user-supplied text
    tag_patterns: LIKE patterns matching one exact name in a stored list
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

TAG_DELIMITER = ","
LIKE_ESCAPE = "\\"
_SEPARATORS = re.compile(r"[\s,]+")


def parse_tags(content: Optional[str]) -> List[str]:
    """
    Collect #tags written on the first line of memo content.

    Tokens are split on whitespace and commas; only tokens starting with
    '#' and longer than one character count. The '#' is kept as part of
    the tag name.

    Examples:
        >>> parse_tags("#work #idea, call Bob\\nrest of memo")
        ['#work', '#idea']
    """
    if not content:
        return []

    first_line = content.split("\n", 1)[0]
    tags: List[str] = []
    for token in _SEPARATORS.split(first_line):
        if token.startswith("#") and len(token) > 1 and token not in tags:
            tags.append(token)
    return tags


def strip_tags(content: Optional[str], tags: Iterable[str]) -> str:
    """
    Remove tag tokens from the first line of content.

    Tokens are split the same way parse_tags() splits them and only
    whole tokens are removed, so "#work" leaves "#workshop" intact. The
    remaining tokens are rejoined with single spaces. The first line is
    dropped entirely when nothing else is left on it.

    Examples:
        >>> strip_tags("#work #workshop call Bob\\nbody", ["#work"])
        '#workshop call Bob\\nbody'
    """
    if not content or not content.strip():
        return ""

    lines = content.split("\n")
    removed = set(tags)
    kept = [
        token
        for token in _SEPARATORS.split(lines[0])
        if token and token not in removed
    ]
    first = " ".join(kept)

    if first:
        lines[0] = first
    else:
        lines = lines[1:]
    return "\n".join(lines).strip()


def format_tags(tags: Iterable[str]) -> str:
    """Join tag names as ``"a,b,"``; an empty list gives ``""``."""
    names = [tag for tag in tags if tag]
    if not names:
        return ""
    return TAG_DELIMITER.join(names) + TAG_DELIMITER


def split_tags(raw: Optional[str]) -> List[str]:
    """Split a stored tag list into names, skipping empty segments."""
    if not raw:
        return []
    return [name for name in raw.split(TAG_DELIMITER) if name]


def escape_like(value: str) -> str:
    """Escape ``%``, ``_`` and the escape character for a LIKE pattern."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def tag_patterns(name: str) -> Tuple[str, str]:
    """
    LIKE patterns that together match a stored list containing `name`.

    The first matches the name at the start of the list, the second
    after a delimiter, so "work" never matches inside "homework,". Use
    them with ``escape=LIKE_ESCAPE``.

    Examples:
        >>> tag_patterns("work")
        ('work,%', '%,work,%')
    """
    escaped = escape_like(name)
    return (
        f"{escaped}{TAG_DELIMITER}%",
        f"%{TAG_DELIMITER}{escaped}{TAG_DELIMITER}%",
    )
