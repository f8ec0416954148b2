"""Task ids, display ids, and board prefixes.

Two identities per task:
- ``id``: opaque, 15 lowercase alphanumerics, assigned by the caller before
  any write is attempted so that both persistence paths agree on it.
- Display id: ``{board prefix}-{seq}``, a human alias stable for the task's
  lifetime.

INVARIANT: ids and seqs are permanent. Once assigned they never change and
are never reused, even after deletion.
"""

from __future__ import annotations

import re
import secrets
import string

TASK_ID_LENGTH = 15
SHORT_ID_LENGTH = 8

_ID_ALPHABET = string.ascii_lowercase + string.digits

TASK_ID_PATTERN = re.compile(r"^[a-z0-9]{15}$")
PREFIX_PATTERN = re.compile(r"^[A-Z][A-Z0-9]{0,9}$")
DISPLAY_ID_PATTERN = re.compile(r"^([A-Za-z][A-Za-z0-9]{0,9})-(\d+)$")


def generate_task_id() -> str:
    """Mint a fresh random task id."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(TASK_ID_LENGTH))


def validate_task_id(task_id: str) -> bool:
    """Check whether *task_id* is a well-formed caller-supplied id."""
    return TASK_ID_PATTERN.match(task_id) is not None


def short_id(task_id: str) -> str:
    """First eight characters of an id, used in listings and candidate lists."""
    return task_id[:SHORT_ID_LENGTH]


def format_display_id(prefix: str, seq: int) -> str:
    """Build a display id.

    Examples:
        >>> format_display_id("WRK", 123)
        'WRK-123'
    """
    return f"{prefix}-{seq}"


def parse_display_id(ref: str) -> tuple[str, int] | None:
    """Split a display-id-shaped reference into ``(PREFIX, seq)``.

    The prefix is upper-cased. Returns None when *ref* is not shaped like
    a display id. Seq 0 still parses: it names no task, but a reference
    of this shape must not fall through to a title search.

    Examples:
        >>> parse_display_id("wrk-7")
        ('WRK', 7)
        >>> parse_display_id("WRK-0")
        ('WRK', 0)
    """
    match = DISPLAY_ID_PATTERN.match(ref)
    if match is None:
        return None
    return match.group(1).upper(), int(match.group(2))


def normalize_prefix(raw: str) -> str:
    """Upper-case and validate a board prefix.

    Raises:
        ValueError: If the prefix is empty, longer than 10 characters,
            or not alphanumeric starting with a letter.
    """
    prefix = raw.strip().upper()
    if not prefix:
        msg = "prefix is required"
        raise ValueError(msg)
    if len(prefix) > 10:
        msg = "prefix must be 10 characters or less"
        raise ValueError(msg)
    if PREFIX_PATTERN.match(prefix) is None:
        msg = "prefix must be alphanumeric and start with a letter"
        raise ValueError(msg)
    return prefix
