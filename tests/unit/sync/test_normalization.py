"""
Unit tests for search node normalization.

Why: Every list view and filter reads normalized PR records, so field
     mapping and fallbacks must match what GitHub sends.

What: Tests identity, review status, CI rollup, mergeability, queue entry,
      ready/requested timestamps and the review category.

How: Normalizes fake search nodes for both variants.
"""

from datetime import UTC, datetime

import pytest

from prtriage.models import (
    MergeableState,
    MergeQueueState,
    PRState,
    PRVariant,
    ReviewStatus,
    StatusState,
)
from prtriage.sync.normalization import normalize_pull_request, normalize_search
from prtriage.utils import stable_hash
from tests.fixtures.fakes import pr_node, review_node, search_data

NOW = datetime(2024, 1, 11, tzinfo=UTC)


def requested_event(created_at: str, reviewer: str | None) -> dict:
    return {
        "createdAt": created_at,
        "requestedReviewer": {"login": reviewer} if reviewer else None,
    }


class TestCommonFields:
    """Test fields shared by both variants."""

    def test_authored_pr(self) -> None:
        """
        Why: The authored list is the main view
        What: Checks every mapped field for a typical PR
        How: Normalizes PR #42 in acme/widgets with passing CI
        """
        node = pr_node(node_id="PR_42", number=42, title="Add widget", rollup="SUCCESS")

        pr = normalize_pull_request(node, PRVariant.AUTHORED, "octocat", NOW)

        assert pr.id == stable_hash("PR_42")
        assert pr.node_id == "PR_42"
        assert pr.number == 42
        assert pr.repo_full_name == "acme/widgets"
        assert pr.url == "https://github.com/acme/widgets/pull/42"
        assert pr.state is PRState.OPEN
        assert pr.review_status is ReviewStatus.WAITING
        assert pr.status_state is StatusState.SUCCESS
        assert pr.mergeable is True
        assert pr.base_ref_name == "main"
        assert pr.author == "alice"
        assert pr.is_authored
        assert pr.review_category is None

    @pytest.mark.parametrize(
        ("rollup", "expected"),
        [
            ("FAILURE", StatusState.FAILURE),
            ("ERROR", StatusState.ERROR),
            ("PENDING", StatusState.PENDING),
            ("EXPECTED", None),
            (None, None),
        ],
    )
    def test_status_rollup(self, rollup: str | None, expected: StatusState | None) -> None:
        pr = normalize_pull_request(pr_node(rollup=rollup), PRVariant.AUTHORED, "octocat")
        assert pr.status_state is expected

    def test_conflicts_and_unknown_mergeability(self) -> None:
        conflicting = normalize_pull_request(
            pr_node(mergeable="CONFLICTING"), PRVariant.AUTHORED, "octocat"
        )
        unknown = normalize_pull_request(pr_node(mergeable=None), PRVariant.AUTHORED, "octocat")

        assert conflicting.has_conflicts
        assert conflicting.mergeable is False
        assert conflicting.mergeable_state is MergeableState.CONFLICTING
        assert unknown.mergeable is None

    def test_merge_queue_entry(self) -> None:
        queued = normalize_pull_request(
            pr_node(merge_queue={"state": "AWAITING_CHECKS", "position": 3}),
            PRVariant.AUTHORED,
            "octocat",
        )
        odd = normalize_pull_request(
            pr_node(merge_queue={"state": "SOMETHING_NEW", "position": 1}),
            PRVariant.AUTHORED,
            "octocat",
        )

        assert queued.merge_queue_entry.state is MergeQueueState.AWAITING_CHECKS  # type: ignore[union-attr]
        assert queued.merge_queue_entry.position == 3  # type: ignore[union-attr]
        assert MergeQueueState.AWAITING_CHECKS.display_text == "awaiting checks"
        assert odd.merge_queue_entry is None

    def test_missing_author(self) -> None:
        pr = normalize_pull_request(pr_node(author=None), PRVariant.REVIEW_REQUESTED, "octocat")

        assert pr.author == "unknown"
        assert pr.review_category == "unknown"

    def test_identity_stable_across_fetches(self) -> None:
        first = normalize_search(search_data(pr_node(node_id="PR_9")), PRVariant.AUTHORED, "o")
        second = normalize_search(search_data(pr_node(node_id="PR_9")), PRVariant.AUTHORED, "o")

        assert first[0].id == second[0].id

    def test_malformed_and_non_pr_nodes_skipped(self) -> None:
        bad = pr_node(node_id="PR_bad")
        del bad["number"]

        prs = normalize_search(
            search_data(bad, {}, pr_node(node_id="PR_ok")), PRVariant.AUTHORED, "octocat"
        )

        assert [pr.node_id for pr in prs] == ["PR_ok"]


class TestAuthoredTimestamps:
    """Test ready_at resolution."""

    def test_ready_at_from_latest_ready_event(self) -> None:
        node = pr_node(
            created_at="2024-01-01T00:00:00Z",
            timeline=[{"createdAt": "2024-01-06T00:00:00Z"}],
        )

        pr = normalize_pull_request(node, PRVariant.AUTHORED, "octocat", NOW)

        assert pr.ready_at == datetime(2024, 1, 6, tzinfo=UTC)
        assert pr.days_waiting == pytest.approx(5.0)
        assert pr.waiting_since == pr.ready_at

    def test_ready_at_falls_back_to_created(self) -> None:
        pr = normalize_pull_request(pr_node(), PRVariant.AUTHORED, "octocat", NOW)

        assert pr.ready_at == pr.created_at
        assert pr.days_waiting == pytest.approx(10.0)


class TestReviewRequestedTimestamps:
    """Test the review_requested_at fallback chain."""

    def test_prefers_request_for_viewer(self) -> None:
        node = pr_node(
            timeline=[
                requested_event("2024-01-02T00:00:00Z", "OctoCat"),
                requested_event("2024-01-05T00:00:00Z", "someone-else"),
            ]
        )

        pr = normalize_pull_request(node, PRVariant.REVIEW_REQUESTED, "octocat", NOW)

        assert pr.review_requested_at == datetime(2024, 1, 2, tzinfo=UTC)
        assert pr.requested_reviewer == "OctoCat"
        assert pr.is_review_request

    def test_falls_back_to_latest_request(self) -> None:
        """
        Why: Team requests name the team, not the viewer
        What: Checks the newest request of any reviewer is used
        How: Provides only requests for other reviewers
        """
        node = pr_node(
            timeline=[
                requested_event("2024-01-02T00:00:00Z", "team-a"),
                requested_event("2024-01-04T00:00:00Z", None),
            ]
        )

        pr = normalize_pull_request(node, PRVariant.REVIEW_REQUESTED, "octocat", NOW)

        assert pr.review_requested_at == datetime(2024, 1, 4, tzinfo=UTC)
        assert pr.requested_reviewer == "octocat"

    def test_falls_back_to_own_review(self) -> None:
        node = pr_node(
            reviews=[
                review_node("R_1", "COMMENTED", "octocat", "2024-01-03T00:00:00Z"),
                review_node("R_2", "APPROVED", "bob", "2024-01-07T00:00:00Z"),
            ]
        )

        pr = normalize_pull_request(node, PRVariant.REVIEW_REQUESTED, "octocat", NOW)

        assert pr.review_requested_at == datetime(2024, 1, 3, tzinfo=UTC)

    def test_falls_back_to_created(self) -> None:
        pr = normalize_pull_request(pr_node(), PRVariant.REVIEW_REQUESTED, "octocat", NOW)

        assert pr.review_requested_at == pr.created_at
        assert pr.review_category == "human"

    def test_bot_author_category(self) -> None:
        pr = normalize_pull_request(
            pr_node(author="renovate[bot]"), PRVariant.REVIEW_REQUESTED, "octocat"
        )

        assert pr.review_category == "renovate"
