"""Small text helpers shared by the facade and the routes."""

import json
import re
from typing import Any, Optional

WORD_SPLIT_REGEX = re.compile(r"\s+")
_SLUG_STRIP_REGEX = re.compile(r"[^a-z0-9\s-]")


def count_words(content: Optional[str]) -> int:
    """Number of whitespace separated tokens; blank content counts as zero."""
    if not content:
        return 0
    stripped = content.strip()
    if not stripped:
        return 0
    return len(WORD_SPLIT_REGEX.split(stripped))


def slugify(value: str) -> str:
    slug = _SLUG_STRIP_REGEX.sub("", value.strip().lower())
    slug = WORD_SPLIT_REGEX.sub("-", slug).strip("-")
    return slug or "workspace"


def is_json_text(value: Optional[str]) -> bool:
    if value is None:
        return True
    try:
        json.loads(value)
    except (TypeError, ValueError):
        return False
    return True


def parse_json_text(value: Optional[str], default: Any = None) -> Any:
    """Decode a stored JSON column, falling back to ``default`` on bad data."""
    if not value:
        return default
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return default
