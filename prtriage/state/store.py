"""Persistent dismiss/snooze/seen state.

All sets are read-modify-written through a ``SettingsBackend`` on every
call, so the store holds no state of its own and several instances over the
same backend stay consistent.

Snoozes lapse lazily: every read and every write drops entries whose expiry
has passed. No timer is involved.
"""

import logging
import time
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any, TypeVar

from ..filtering import FilterState
from ..models import PullRequest
from .backends import SettingsBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")

DISMISSED_KEY = "dismissedPRs"
SNOOZED_KEY = "snoozedPRs"
SEEN_REVIEWS_KEY = "seenReviewIds"
SEEN_REVIEW_REQUESTS_KEY = "seenReviewRequestIds"
FILTER_STATE_KEY_PREFIX = "filterState."


def _to_epoch(until: datetime | float | int) -> float:
    if isinstance(until, datetime):
        return until.timestamp()
    return float(until)


class PersistentStateStore:
    """Durable opinion about which PRs are dismissed, snoozed, or notified."""

    def __init__(
        self,
        backend: SettingsBackend,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize state store.

        Args:
            backend: Key-value settings backend
            clock: Source of the current epoch time, used for snooze expiry
        """
        self.backend = backend
        self._clock = clock

    # Dismissed

    def dismissed_ids(self) -> set[int]:
        values = self.backend.get(DISMISSED_KEY, [])
        return {int(v) for v in values} if isinstance(values, list) else set()

    def _save_dismissed(self, ids: set[int]) -> None:
        self.backend.set(DISMISSED_KEY, sorted(ids))

    def dismiss(self, pr_id: int) -> None:
        ids = self.dismissed_ids()
        ids.add(pr_id)
        self._save_dismissed(ids)
        logger.debug(f"Dismissed PR {pr_id}")

    def undismiss(self, pr_id: int) -> None:
        ids = self.dismissed_ids()
        if pr_id in ids:
            ids.discard(pr_id)
            self._save_dismissed(ids)
            logger.debug(f"Undismissed PR {pr_id}")

    def is_dismissed(self, pr_id: int) -> bool:
        return pr_id in self.dismissed_ids()

    def dismissed_count(self) -> int:
        return len(self.dismissed_ids())

    def prune_dismissed(self, open_ids: Iterable[int]) -> int:
        """Forget dismissals for PRs no longer open.

        Returns:
            Number of dismissals removed
        """
        ids = self.dismissed_ids()
        kept = ids & set(open_ids)
        removed = len(ids) - len(kept)
        if removed:
            self._save_dismissed(kept)
            logger.info(f"Pruned {removed} dismissed PRs that are no longer open")
        return removed

    # Snoozed

    def _load_snoozed(self) -> dict[int, float]:
        raw = self.backend.get(SNOOZED_KEY, {})
        if not isinstance(raw, dict):
            return {}

        now = self._clock()
        active: dict[int, float] = {}
        for key, expiry in raw.items():
            try:
                pr_id, until = int(key), float(expiry)
            except (TypeError, ValueError):
                continue
            if until > now:
                active[pr_id] = until

        if len(active) != len(raw):
            # Persist the pruned map so expired entries do not linger on disk
            self._save_snoozed(active)
        return active

    def _save_snoozed(self, snoozed: dict[int, float]) -> None:
        now = self._clock()
        self.backend.set(
            SNOOZED_KEY,
            {str(pr_id): until for pr_id, until in snoozed.items() if until > now},
        )

    def snooze(self, pr_id: int, until: datetime | float | int) -> None:
        """Hide a PR until ``until`` (datetime or epoch seconds)."""
        snoozed = self._load_snoozed()
        snoozed[pr_id] = _to_epoch(until)
        self._save_snoozed(snoozed)
        logger.debug(f"Snoozed PR {pr_id} until {snoozed[pr_id]}")

    def unsnooze(self, pr_id: int) -> None:
        snoozed = self._load_snoozed()
        if snoozed.pop(pr_id, None) is not None:
            self._save_snoozed(snoozed)

    def is_snoozed(self, pr_id: int) -> bool:
        return pr_id in self._load_snoozed()

    def snoozed_until(self, pr_id: int) -> float | None:
        return self._load_snoozed().get(pr_id)

    def snoozed_ids(self) -> set[int]:
        return set(self._load_snoozed())

    def snoozed_count(self) -> int:
        return len(self._load_snoozed())

    # Seen reviews / review requests

    def seen_review_ids(self) -> set[str]:
        values = self.backend.get(SEEN_REVIEWS_KEY, [])
        return {str(v) for v in values} if isinstance(values, list) else set()

    def mark_review_seen(self, review_id: str) -> None:
        ids = self.seen_review_ids()
        if review_id not in ids:
            ids.add(review_id)
            self.backend.set(SEEN_REVIEWS_KEY, sorted(ids))

    def has_seen_review(self, review_id: str) -> bool:
        return review_id in self.seen_review_ids()

    def seen_review_request_ids(self) -> set[int]:
        values = self.backend.get(SEEN_REVIEW_REQUESTS_KEY, [])
        return {int(v) for v in values} if isinstance(values, list) else set()

    def mark_review_request_seen(self, pr_id: int) -> None:
        ids = self.seen_review_request_ids()
        if pr_id not in ids:
            ids.add(pr_id)
            self.backend.set(SEEN_REVIEW_REQUESTS_KEY, sorted(ids))

    def has_seen_review_request(self, pr_id: int) -> bool:
        return pr_id in self.seen_review_request_ids()

    # Collection helpers

    def filter_dismissed(self, items: Iterable[T]) -> list[T]:
        """Drop items whose ``id`` is dismissed."""
        dismissed = self.dismissed_ids()
        return [item for item in items if getattr(item, "id") not in dismissed]

    def filter_snoozed(self, items: Iterable[T]) -> list[T]:
        """Drop items whose ``id`` is currently snoozed."""
        snoozed = self.snoozed_ids()
        return [item for item in items if getattr(item, "id") not in snoozed]

    def annotate(self, prs: Iterable[PullRequest]) -> list[PullRequest]:
        """Return PRs with ``is_snoozed`` / ``is_dismissed`` set from the store."""
        dismissed = self.dismissed_ids()
        snoozed = self.snoozed_ids()
        return [
            pr.with_local_state(is_snoozed=pr.id in snoozed, is_dismissed=pr.id in dismissed)
            for pr in prs
        ]

    # Filter state per tab

    def save_filter_state(self, tab: str, state: FilterState) -> None:
        self.backend.set(f"{FILTER_STATE_KEY_PREFIX}{tab}", state.to_dict())

    def load_filter_state(self, tab: str) -> FilterState:
        data: Any = self.backend.get(f"{FILTER_STATE_KEY_PREFIX}{tab}")
        return FilterState.from_dict(data if isinstance(data, dict) else None)
