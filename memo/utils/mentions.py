#!/usr/bin/env python3
"""
mentions.py
--------------------
Encoding of the users mentioned in a comment.

The mention field on a comment row stores every mentioned user id as
``#<id>,`` so that the storage layer can find comments mentioning a
user with a plain ``LIKE '%#<id>,%'`` filter. The leading ``#`` and the
trailing ``,`` delimit each id: ``#1,`` never matches inside ``#11,`` or
``#21,``.

Functions:
    encode_mentions: Encode a set of user ids (None when empty)
    decode_mentions: Recover the set of user ids from a stored field
    matches_mention: In-process membership test on a stored field
    mention_pattern: SQL LIKE pattern for storage-side queries
    parse_mention_names: Extract @display-name tokens from comment text

Usage:
    from memo.utils.mentions import encode_mentions, matches_mention

    field = encode_mentions({7, 12})         # "#7,#12,"
    matches_mention(field, 7)                # True
    matches_mention(field, 1)                # False
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import re
from typing import Any, FrozenSet, Iterable, List, Optional

# --- Local imports ---
from memo.core.exceptions import ValidationError

MENTION_PREFIX = "#"
MENTION_SUFFIX = ","

_ENCODED_ID = re.compile(r"#(\d+),")
_MENTION_TOKEN = re.compile(r"@(\S+)")


def validate_user_id(value: Any) -> int:
    """
    Validate a mentioned user id.

    Accepts positive ints and strings of digits.

    Raises:
        ValidationError: For bools, non-positive numbers and anything
            that is not numeric
    """
    if isinstance(value, bool):
        raise ValidationError(f"Mention id must be a positive integer: {value!r}")
    if isinstance(value, int):
        user_id = value
    elif isinstance(value, str) and value.strip().isdigit():
        user_id = int(value.strip())
    else:
        raise ValidationError(f"Mention id must be a positive integer: {value!r}")

    if user_id <= 0:
        raise ValidationError(f"Mention id must be a positive integer: {value!r}")
    return user_id


def encode_mentions(user_ids: Iterable[Any]) -> Optional[str]:
    """
    Encode mentioned user ids into the stored field format.

    Args:
        user_ids: Iterable of user ids (order and duplicates are ignored)

    Returns:
        ``"#3,#7,"`` style string sorted by id, or None when nothing
        is mentioned

    Raises:
        ValidationError: If any id is malformed; no id is ever dropped
    """
    ids = sorted({validate_user_id(user_id) for user_id in user_ids})
    if not ids:
        return None
    return "".join(f"{MENTION_PREFIX}{user_id}{MENTION_SUFFIX}" for user_id in ids)


def decode_mentions(field: Optional[str]) -> FrozenSet[int]:
    """
    Decode a stored mention field back into user ids.

    Args:
        field: Stored value (None or empty means no mentions)

    Returns:
        Frozen set of mentioned user ids
    """
    if not field:
        return frozenset()
    return frozenset(int(match) for match in _ENCODED_ID.findall(field))


def matches_mention(field: Optional[str], user_id: Any) -> bool:
    """
    Check whether a stored mention field mentions a user.

    Uses the same delimiter contract as mention_pattern(), so the
    in-process answer agrees with the storage query.
    """
    if not field:
        return False
    token = f"{MENTION_PREFIX}{validate_user_id(user_id)}{MENTION_SUFFIX}"
    return token in field


def mention_pattern(user_id: Any) -> str:
    """
    Build the LIKE pattern matching comments that mention a user.

    Ids are digits only, so the pattern needs no escaping.
    """
    return f"%{MENTION_PREFIX}{validate_user_id(user_id)}{MENTION_SUFFIX}%"


def parse_mention_names(content: Optional[str]) -> List[str]:
    """
    Extract @name tokens from comment content.

    Trailing punctuation is stripped and duplicates are dropped while
    keeping first-seen order.

    Examples:
        >>> parse_mention_names("thanks @alice and @bob, see @alice")
        ['alice', 'bob']
    """
    if not content:
        return []

    names: List[str] = []
    for token in _MENTION_TOKEN.findall(content):
        name = token.rstrip(".,;:!?")
        if name and name not in names:
            names.append(name)
    return names
