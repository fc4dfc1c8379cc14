"""Reviewer/author categorization.

Review requests are grouped by the PR author's category: ``human`` or the
lowercased name of the bot that opened it.
"""

from collections.abc import Iterable
from typing import Any

HUMAN = "human"
UNKNOWN = "unknown"

KNOWN_BOTS = ("renovate", "dependabot", "snyk", "snyk-io", "buildagencygitapitoken")

BOT_SUFFIX = "[bot]"
REVIEWS_PREFIX = "reviews:"

# Groups listed here come right after humans, in this order
CATEGORY_ORDER = ("snyk-io", "renovate", "buildagencygitapitoken")

_CATEGORY_LABELS = {
    HUMAN: "From Humans",
    "buildagencygitapitoken": "Promotions",
    "snyk-io": "Snyk-io",
    "renovate": "Renovate",
}


def categorize_login(login: str | None) -> str:
    """Return ``human``, ``unknown``, or the bot's base name for a login.

    Examples:
        >>> categorize_login("renovate[bot]")
        'renovate'
        >>> categorize_login("reviews: snyk-io[bot]")
        'snyk-io'
        >>> categorize_login("alice")
        'human'
    """
    if not login:
        return UNKNOWN

    lowered = login.lower()
    for bot in KNOWN_BOTS:
        if lowered in (bot, f"{bot}{BOT_SUFFIX}"):
            return bot

    if login.endswith(BOT_SUFFIX):
        name = login
        if name.startswith(REVIEWS_PREFIX):
            name = name[len(REVIEWS_PREFIX) :].strip()
        name = name.replace(BOT_SUFFIX, "").lower()
        return name or UNKNOWN

    return HUMAN


def is_human(login: str | None) -> bool:
    return categorize_login(login) == HUMAN


def category_label(category: str) -> str:
    """Human-readable group heading for a category."""
    if category in _CATEGORY_LABELS:
        return _CATEGORY_LABELS[category]
    return category[:1].upper() + category[1:]


def _category_sort_key(category: str) -> tuple[int, int, str]:
    if category == HUMAN:
        return (0, 0, "")
    if category in CATEGORY_ORDER:
        return (1, CATEGORY_ORDER.index(category), "")
    return (2, 0, category)


def group_by_category(items: Iterable[Any]) -> list[tuple[str, str, list[Any]]]:
    """Group review requests by ``review_category``.

    Returns:
        ``(category, label, items)`` tuples, humans first, then the known
        bot order, then the rest alphabetically. Item order within a group
        is preserved.
    """
    groups: dict[str, list[Any]] = {}
    for item in items:
        category = getattr(item, "review_category", None) or UNKNOWN
        groups.setdefault(category, []).append(item)

    return [
        (category, category_label(category), groups[category])
        for category in sorted(groups, key=_category_sort_key)
    ]
