"""Enums for pull request models."""

import enum


class PRVariant(str, enum.Enum):
    """Which list a PR record belongs to."""

    AUTHORED = "authored"
    REVIEW_REQUESTED = "review_requested"


class PRState(str, enum.Enum):
    """Pull request lifecycle state."""

    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"


class ReviewStatus(str, enum.Enum):
    """Latest review verdict on a PR."""

    WAITING = "waiting"
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    COMMENTED = "commented"

    @classmethod
    def from_review_state(cls, state: str | None) -> "ReviewStatus":
        """Map a remote review state (``APPROVED`` etc.) to a verdict."""
        return _REVIEW_STATE_MAP.get(state or "", cls.WAITING)


_REVIEW_STATE_MAP = {
    "APPROVED": ReviewStatus.APPROVED,
    "CHANGES_REQUESTED": ReviewStatus.CHANGES_REQUESTED,
    "COMMENTED": ReviewStatus.COMMENTED,
}


class StatusState(str, enum.Enum):
    """CI / status-check rollup for the latest commit."""

    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"
    ERROR = "error"


class MergeableState(str, enum.Enum):
    """Remote mergeability verdict."""

    MERGEABLE = "MERGEABLE"
    CONFLICTING = "CONFLICTING"
    UNKNOWN = "UNKNOWN"


class MergeQueueState(str, enum.Enum):
    """State of a PR's merge queue entry."""

    AWAITING_CHECKS = "AWAITING_CHECKS"
    QUEUED = "QUEUED"
    LOCKED = "LOCKED"
    MERGEABLE = "MERGEABLE"
    UNMERGEABLE = "UNMERGEABLE"

    @property
    def display_text(self) -> str:
        return _QUEUE_DISPLAY_TEXT[self]


_QUEUE_DISPLAY_TEXT = {
    MergeQueueState.AWAITING_CHECKS: "awaiting checks",
    MergeQueueState.QUEUED: "queued",
    MergeQueueState.LOCKED: "merging",
    MergeQueueState.MERGEABLE: "ready",
    MergeQueueState.UNMERGEABLE: "queue failed",
}


class MergeMethod(str, enum.Enum):
    """Merge strategies accepted by ``mergePullRequest``."""

    MERGE = "MERGE"
    SQUASH = "SQUASH"
    REBASE = "REBASE"


class MergeOutcome(str, enum.Enum):
    """Result of a merge request."""

    MERGED = "merged"
    QUEUED = "queued"


class FilterType(str, enum.Enum):
    """Toggleable list filters."""

    FAILED = "failed"
    PASSED = "passed"
    APPROVED = "approved"
    UNAPPROVED = "unapproved"
    MERGEABLE = "mergeable"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def mutually_exclusive_with(self) -> "FilterType | None":
        return _FILTER_PARTNERS.get(self)


_FILTER_PARTNERS = {
    FilterType.APPROVED: FilterType.UNAPPROVED,
    FilterType.UNAPPROVED: FilterType.APPROVED,
    FilterType.FAILED: FilterType.PASSED,
    FilterType.PASSED: FilterType.FAILED,
}
