"""Conversion of GraphQL search nodes into ``PullRequest`` records."""

import logging
from datetime import datetime
from typing import Any

from ..models import (
    MergeableState,
    MergeQueueEntry,
    PRState,
    PRVariant,
    PullRequest,
    ReviewStatus,
    StatusState,
)
from ..utils import categorize_login, days_since, parse_iso, stable_hash, utc_now

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "unknown"


def _nodes(container: dict[str, Any] | None) -> list[dict[str, Any]]:
    if not container:
        return []
    return [node for node in container.get("nodes") or [] if node]


def search_nodes(data: dict[str, Any]) -> list[dict[str, Any]]:
    """Return the PR nodes of a ``search`` result, skipping non-PR hits."""
    return [node for node in _nodes(data.get("search")) if node.get("id")]


def login_of(actor: dict[str, Any] | None) -> str | None:
    if not actor:
        return None
    return actor.get("login")


def review_status_of(node: dict[str, Any]) -> ReviewStatus:
    """Verdict of the most recent review, ``waiting`` when none."""
    reviews = _nodes(node.get("reviews"))
    if not reviews:
        return ReviewStatus.WAITING
    return ReviewStatus.from_review_state(reviews[-1].get("state"))


def status_state_of(node: dict[str, Any]) -> StatusState | None:
    """CI rollup of the latest commit. Unrecognized states map to None."""
    commits = _nodes(node.get("commits"))
    if not commits:
        return None
    rollup = (commits[-1].get("commit") or {}).get("statusCheckRollup") or {}
    state = rollup.get("state")
    if not state:
        return None
    try:
        return StatusState(state.lower())
    except ValueError:
        return None


def mergeable_state_of(node: dict[str, Any]) -> MergeableState | None:
    value = node.get("mergeable")
    if not value:
        return None
    try:
        return MergeableState(value)
    except ValueError:
        return None


def pr_state_of(node: dict[str, Any]) -> PRState:
    try:
        return PRState((node.get("state") or "OPEN").lower())
    except ValueError:
        return PRState.OPEN


def ready_at_of(node: dict[str, Any], created_at: datetime) -> datetime:
    """Newest ready-for-review event, else creation time."""
    events = _nodes(node.get("timelineItems"))
    for event in reversed(events):
        moment = parse_iso(event.get("createdAt"))
        if moment is not None:
            return moment
    return created_at


def review_requested_at_of(
    node: dict[str, Any], username: str, created_at: datetime
) -> tuple[datetime, str]:
    """Resolve when (and for whom) review was requested.

    Tries, in order: the newest request naming ``username``, the newest
    request of anyone, the user's own latest review, then creation time.

    Returns:
        ``(requested_at, requested_reviewer)``; the reviewer falls back to
        ``username`` when no event names one
    """
    viewer = username.lower()
    events = [e for e in _nodes(node.get("timelineItems")) if parse_iso(e.get("createdAt"))]

    for event in reversed(events):
        reviewer = login_of(event.get("requestedReviewer"))
        if reviewer and reviewer.lower() == viewer:
            return parse_iso(event["createdAt"]), reviewer

    if events:
        latest = events[-1]
        reviewer = login_of(latest.get("requestedReviewer")) or username
        return parse_iso(latest["createdAt"]), reviewer

    for review in reversed(_nodes(node.get("reviews"))):
        author = login_of(review.get("author"))
        moment = parse_iso(review.get("createdAt"))
        if author and author.lower() == viewer and moment is not None:
            return moment, username

    return created_at, username


def normalize_pull_request(
    node: dict[str, Any],
    variant: PRVariant,
    username: str,
    now: datetime | None = None,
) -> PullRequest:
    """Build a ``PullRequest`` from a search node.

    Args:
        node: ``... on PullRequest`` node from a search query
        variant: Which list the node came from
        username: Viewer login, used to resolve review request times
        now: Reference time for ``days_waiting``

    Raises:
        KeyError: If the node lacks ``id`` or ``number``
    """
    node_id = node["id"]
    created_at = parse_iso(node.get("createdAt")) or utc_now()
    updated_at = parse_iso(node.get("updatedAt")) or created_at
    repository = node.get("repository") or {}
    author = login_of(node.get("author")) or UNKNOWN_AUTHOR
    reference = now or utc_now()

    fields: dict[str, Any] = {}
    if variant is PRVariant.AUTHORED:
        ready_at = ready_at_of(node, created_at)
        fields.update(ready_at=ready_at, days_waiting=days_since(ready_at, reference))
    else:
        requested_at, reviewer = review_requested_at_of(node, username, created_at)
        fields.update(
            review_requested_at=requested_at,
            requested_reviewer=reviewer,
            review_category=categorize_login(author),
            days_waiting=days_since(requested_at, reference),
        )

    return PullRequest(
        id=stable_hash(node_id),
        node_id=node_id,
        variant=variant,
        number=node["number"],
        title=node.get("title") or "",
        url=node.get("url") or "",
        repo_owner=login_of(repository.get("owner")) or "",
        repo_name=repository.get("name") or "",
        state=pr_state_of(node),
        review_status=review_status_of(node),
        author=author,
        created_at=created_at,
        updated_at=updated_at,
        is_draft=bool(node.get("isDraft")),
        status_state=status_state_of(node),
        mergeable_state=mergeable_state_of(node),
        merge_queue_entry=MergeQueueEntry.from_node(node.get("mergeQueueEntry")),
        base_ref_name=node.get("baseRefName"),
        **fields,
    )


def normalize_search(
    data: dict[str, Any],
    variant: PRVariant,
    username: str,
    now: datetime | None = None,
) -> list[PullRequest]:
    """Normalize every PR node of a search result, skipping malformed ones."""
    prs = []
    for node in search_nodes(data):
        try:
            prs.append(normalize_pull_request(node, variant, username, now))
        except KeyError as e:
            logger.warning(f"Skipping malformed PR node {node.get('id')}: missing {e}")
    return prs
