"""Filter state and the visible-list computation."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ..models import FilterType, PullRequest, ReviewStatus, StatusState

_FAILING = (StatusState.FAILURE, StatusState.ERROR)


def matches_filter(pr: PullRequest, filter_type: FilterType) -> bool:
    """Check a single active filter against a PR."""
    if filter_type is FilterType.FAILED:
        return pr.status_state in _FAILING
    if filter_type is FilterType.PASSED:
        return pr.status_state is StatusState.SUCCESS
    if filter_type is FilterType.APPROVED:
        return pr.review_status is ReviewStatus.APPROVED
    if filter_type is FilterType.UNAPPROVED:
        return pr.review_status is not ReviewStatus.APPROVED
    if filter_type is FilterType.MERGEABLE:
        return (
            pr.merge_queue_entry is None
            and pr.review_status is ReviewStatus.APPROVED
            and pr.mergeable is True
            and pr.status_state not in _FAILING
        )
    raise ValueError(f"Unknown filter: {filter_type}")


def sort_key(pr: PullRequest) -> tuple[str, Any]:
    """Repository name (case-insensitive), then oldest first."""
    return (pr.repo_name.lower(), pr.created_at)


@dataclass
class FilterState:
    """Active filters and display toggles for one list view.

    Value type: compare with ``==`` and persist with ``to_dict``.
    """

    active_filters: set[FilterType] = field(default_factory=set)
    show_drafts: bool = False
    show_snoozed: bool = False
    show_dismissed: bool = False

    @property
    def is_empty(self) -> bool:
        return not (
            self.active_filters
            or self.show_drafts
            or self.show_snoozed
            or self.show_dismissed
        )

    def is_active(self, filter_type: FilterType) -> bool:
        return filter_type in self.active_filters

    def toggle(self, filter_type: FilterType) -> None:
        """Turn a filter off if active, else on, dropping its exclusive partner."""
        if filter_type in self.active_filters:
            self.active_filters.discard(filter_type)
            return

        partner = filter_type.mutually_exclusive_with
        if partner is not None:
            self.active_filters.discard(partner)
        self.active_filters.add(filter_type)

    def matches(self, pr: PullRequest) -> bool:
        if pr.is_draft and not self.show_drafts:
            return False
        if pr.is_snoozed and not self.show_snoozed:
            return False
        if pr.is_dismissed and not self.show_dismissed:
            return False

        # AND: every active filter must hold
        return all(matches_filter(pr, f) for f in self.active_filters)

    def apply(self, prs: Iterable[PullRequest]) -> list[PullRequest]:
        """Return the visible PRs in display order."""
        return sorted((pr for pr in prs if self.matches(pr)), key=sort_key)

    def to_dict(self) -> dict[str, Any]:
        return {
            "activeFilters": sorted(f.value for f in self.active_filters),
            "showDrafts": self.show_drafts,
            "showSnoozed": self.show_snoozed,
            "showDismissed": self.show_dismissed,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "FilterState":
        """Rebuild from ``to_dict`` output, skipping unknown filter names."""
        if not data:
            return cls()

        active: set[FilterType] = set()
        for name in data.get("activeFilters", []):
            try:
                active.add(FilterType(name))
            except ValueError:
                continue

        return cls(
            active_filters=active,
            show_drafts=bool(data.get("showDrafts", False)),
            show_snoozed=bool(data.get("showSnoozed", False)),
            show_dismissed=bool(data.get("showDismissed", False)),
        )
