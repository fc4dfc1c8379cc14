"""List filtering and ordering."""

from .state import FilterState, matches_filter, sort_key

__all__ = ["FilterState", "matches_filter", "sort_key"]
