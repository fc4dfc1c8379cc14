"""Sync and triage of a GitHub user's authored and review-requested pull requests."""

__version__ = "0.1.0"
