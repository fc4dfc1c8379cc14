"""Detection of reviews and review requests not yet notified about.

These functions are pure: they compare search results against the seen
sets and return what is new. Marking items seen is the caller's job, and
should happen only after the notification went out.
"""

from collections.abc import Iterable
from typing import Any

from ..github.queries import VERDICT_REVIEW_STATES
from ..models import NewReview, NewReviewRequest
from ..utils import categorize_login, is_human, stable_hash
from .normalization import login_of, search_nodes


def _repo_full_name(node: dict[str, Any]) -> str:
    repository = node.get("repository") or {}
    owner = login_of(repository.get("owner")) or ""
    name = repository.get("name") or ""
    return f"{owner}/{name}" if owner or name else ""


def find_new_reviews(
    search_results: Iterable[dict[str, Any]],
    seen_review_ids: set[str],
) -> list[NewReview]:
    """Collect unseen human reviews with a verdict.

    Args:
        search_results: ``data`` payloads of review detection searches
        seen_review_ids: Review ids already notified about

    Returns:
        New reviews, each review id at most once
    """
    found: list[NewReview] = []
    emitted: set[str] = set()

    for data in search_results:
        for node in search_nodes(data):
            for review in (node.get("reviews") or {}).get("nodes") or []:
                if not review:
                    continue
                review_id = review.get("id")
                state = review.get("state")
                reviewer = login_of(review.get("author"))

                if not review_id or state not in VERDICT_REVIEW_STATES:
                    continue
                if not is_human(reviewer):
                    continue
                if review_id in seen_review_ids or review_id in emitted:
                    continue

                emitted.add(review_id)
                found.append(
                    NewReview(
                        review_id=review_id,
                        pr_id=stable_hash(node["id"]),
                        pr_number=node.get("number", 0),
                        pr_title=node.get("title") or "",
                        review_state=state,
                        reviewer=reviewer or "",
                        repo_full_name=_repo_full_name(node),
                    )
                )
    return found


def find_new_review_requests(
    data: dict[str, Any],
    seen_request_ids: set[int],
) -> list[NewReviewRequest]:
    """Collect review-requested PRs not yet notified about, keyed by PR id."""
    found: list[NewReviewRequest] = []
    emitted: set[int] = set()

    for node in search_nodes(data):
        pr_id = stable_hash(node["id"])
        if pr_id in seen_request_ids or pr_id in emitted:
            continue
        emitted.add(pr_id)
        found.append(
            NewReviewRequest(
                pr_id=pr_id,
                pr_number=node.get("number", 0),
                pr_title=node.get("title") or "",
                review_category=categorize_login(login_of(node.get("author"))),
                repo_full_name=_repo_full_name(node),
            )
        )
    return found
