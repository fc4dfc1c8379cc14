"""Pure helper functions."""

from .categorizer import (
    HUMAN,
    KNOWN_BOTS,
    UNKNOWN,
    categorize_login,
    category_label,
    group_by_category,
    is_human,
)
from .dates import days_since, parse_iso, utc_now
from .identity import stable_hash

__all__ = [
    "HUMAN",
    "KNOWN_BOTS",
    "UNKNOWN",
    "categorize_login",
    "category_label",
    "days_since",
    "group_by_category",
    "is_human",
    "parse_iso",
    "stable_hash",
    "utc_now",
]
