"""Pull request records and detection results.

A ``PullRequest`` is a tagged union: the ``variant`` field says whether the
record came from the authored list or the review-requested list, and
consumers branch on it instead of checking types. Variant-specific fields
stay ``None`` on the other variant.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from .enums import (
    MergeableState,
    MergeQueueState,
    PRState,
    PRVariant,
    ReviewStatus,
    StatusState,
)


@dataclass(frozen=True)
class MergeQueueEntry:
    """A PR's position in a repository merge queue."""

    state: MergeQueueState
    position: int | None = None

    @classmethod
    def from_node(cls, node: dict[str, Any] | None) -> "MergeQueueEntry | None":
        """Build from a ``mergeQueueEntry`` GraphQL node.

        Returns None when the node is absent or its state is not recognized.
        """
        if not node:
            return None
        try:
            state = MergeQueueState(node.get("state"))
        except ValueError:
            return None
        position = node.get("position")
        return cls(state=state, position=position if isinstance(position, int) else None)


@dataclass(frozen=True)
class PullRequest:
    """Normalized PR record shared by both list variants."""

    id: int
    node_id: str
    variant: PRVariant
    number: int
    title: str
    url: str
    repo_owner: str
    repo_name: str
    state: PRState
    review_status: ReviewStatus
    author: str
    created_at: datetime
    updated_at: datetime
    is_draft: bool = False
    days_waiting: float | None = None
    status_state: StatusState | None = None
    mergeable_state: MergeableState | None = None
    merge_queue_entry: MergeQueueEntry | None = None
    base_ref_name: str | None = None

    # Authored variant
    ready_at: datetime | None = None

    # Review-requested variant
    review_requested_at: datetime | None = None
    requested_reviewer: str | None = None
    review_category: str | None = None

    # Local state, filled in from the persistent store
    is_snoozed: bool = field(default=False, compare=False)
    is_dismissed: bool = field(default=False, compare=False)

    @property
    def is_authored(self) -> bool:
        return self.variant is PRVariant.AUTHORED

    @property
    def is_review_request(self) -> bool:
        return self.variant is PRVariant.REVIEW_REQUESTED

    @property
    def mergeable(self) -> bool | None:
        if self.mergeable_state is None:
            return None
        return self.mergeable_state is MergeableState.MERGEABLE

    @property
    def has_conflicts(self) -> bool:
        return self.mergeable_state is MergeableState.CONFLICTING

    @property
    def repo_full_name(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"

    @property
    def waiting_since(self) -> datetime | None:
        if self.is_authored:
            return self.ready_at
        return self.review_requested_at

    def with_local_state(self, is_snoozed: bool, is_dismissed: bool) -> "PullRequest":
        return replace(self, is_snoozed=is_snoozed, is_dismissed=is_dismissed)

    def with_review_status(self, review_status: ReviewStatus) -> "PullRequest":
        return replace(self, review_status=review_status)

    def with_merge_queue_entry(self, entry: MergeQueueEntry | None) -> "PullRequest":
        return replace(self, merge_queue_entry=entry)


@dataclass(frozen=True)
class NewReview:
    """A human review not yet notified about."""

    review_id: str
    pr_id: int
    pr_number: int
    pr_title: str
    review_state: str
    reviewer: str
    repo_full_name: str = ""


@dataclass(frozen=True)
class NewReviewRequest:
    """A review request not yet notified about. Keyed by PR identity."""

    pr_id: int
    pr_number: int
    pr_title: str
    review_category: str
    repo_full_name: str = ""
