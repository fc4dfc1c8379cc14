"""Merge method selection and merge-queue error classification."""

from typing import Any

from ..models import MergeMethod

MERGE_QUEUE_ERROR_PATTERNS = (
    "merge queue",
    "must be enqueued",
    "must be made through",
    "cannot be merged directly",
    "pull request is in a merge queue",
    "repository rule violations",
)

# Settings flag for each method, in order of preference
_METHOD_FLAGS = (
    (MergeMethod.MERGE, "mergeCommitAllowed"),
    (MergeMethod.SQUASH, "squashMergeAllowed"),
    (MergeMethod.REBASE, "rebaseMergeAllowed"),
)


def is_merge_queue_error(message: str | None) -> bool:
    """Check whether a merge error means the PR must go through a merge queue.

    Examples:
        >>> is_merge_queue_error("Changes must be made through the merge queue")
        True
        >>> is_merge_queue_error("Pull request is not mergeable")
        False
    """
    if not message:
        return False
    lowered = message.lower()
    if any(pattern in lowered for pattern in MERGE_QUEUE_ERROR_PATTERNS):
        return True
    return "repository rule" in lowered and "merge" in lowered


def choose_merge_method(settings: dict[str, Any] | None) -> MergeMethod:
    """Pick the first allowed method, falling back to MERGE."""
    if settings:
        for method, flag in _METHOD_FLAGS:
            if settings.get(flag):
                return method
    return MergeMethod.MERGE
