"""
Unit tests for share message formatting.

Why: The share line is pasted into chat, so its shape must be exact.

What: Tests format_share_message with and without a ticket link.

How: Builds a PR through normalization and formats it.
"""

from prtriage.models import PRVariant
from prtriage.sync.normalization import normalize_pull_request
from prtriage.utils.formatting import format_share_message
from tests.fixtures.fakes import pr_node


def _pr(title: str):
    return normalize_pull_request(
        pr_node(number=42, title=title), PRVariant.AUTHORED, "octocat"
    )


def test_share_message_without_ticket_template() -> None:
    pr = _pr("ATM-1312 Fix login")

    assert format_share_message(pr) == (
        ":pr: [PR#42](https://github.com/acme/widgets/pull/42) (widgets) ATM-1312 Fix login"
    )


def test_share_message_links_ticket() -> None:
    pr = _pr("ATM-1312 Fix login")

    message = format_share_message(pr, "https://tracker.example/browse/{ticket}")

    assert message == (
        ":pr: [PR#42](https://github.com/acme/widgets/pull/42) (widgets) "
        "[ATM-1312](https://tracker.example/browse/ATM-1312) ATM-1312 Fix login"
    )


def test_share_message_title_without_ticket() -> None:
    pr = _pr("Fix login")

    message = format_share_message(pr, "https://tracker.example/browse/{ticket}")

    assert message == ":pr: [PR#42](https://github.com/acme/widgets/pull/42) (widgets) Fix login"
