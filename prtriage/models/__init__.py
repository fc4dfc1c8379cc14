"""Pull request data model."""

from .enums import (
    FilterType,
    MergeableState,
    MergeMethod,
    MergeOutcome,
    MergeQueueState,
    PRState,
    PRVariant,
    ReviewStatus,
    StatusState,
)
from .pull_request import MergeQueueEntry, NewReview, NewReviewRequest, PullRequest

__all__ = [
    "FilterType",
    "MergeMethod",
    "MergeOutcome",
    "MergeQueueEntry",
    "MergeQueueState",
    "MergeableState",
    "NewReview",
    "NewReviewRequest",
    "PRState",
    "PRVariant",
    "PullRequest",
    "ReviewStatus",
    "StatusState",
]
