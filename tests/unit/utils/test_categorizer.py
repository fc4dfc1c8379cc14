"""
Unit tests for login categorization.

Why: Review requests are grouped and review notifications filtered by
     whether the author is a human or a particular bot.

What: Tests categorize_login, category_label and group_by_category.

How: Table-driven checks over representative logins.
"""

from types import SimpleNamespace

import pytest

from prtriage.utils.categorizer import (
    HUMAN,
    UNKNOWN,
    categorize_login,
    category_label,
    group_by_category,
    is_human,
)


class TestCategorizeLogin:
    """Test categorize_login."""

    @pytest.mark.parametrize(
        ("login", "expected"),
        [
            ("renovate[bot]", "renovate"),
            ("Renovate", "renovate"),
            ("dependabot[bot]", "dependabot"),
            ("snyk-io[bot]", "snyk-io"),
            ("BuildAgencyGitApiToken", "buildagencygitapitoken"),
            ("reviews: snyk-io[bot]", "snyk-io"),
            ("reviews: custom-helper[bot]", "custom-helper"),
            ("Some-App[bot]", "some-app"),
            ("alice", HUMAN),
            ("robot-fan", HUMAN),
        ],
    )
    def test_categorizes_logins(self, login: str, expected: str) -> None:
        assert categorize_login(login) == expected

    @pytest.mark.parametrize("login", [None, ""])
    def test_missing_login_is_unknown(self, login: str | None) -> None:
        assert categorize_login(login) == UNKNOWN

    def test_bare_bot_suffix_is_unknown(self) -> None:
        """
        Why: A login made only of the suffix has no usable bot name
        What: Checks "[bot]" categorizes as unknown rather than an empty string
        How: Categorizes the bare suffix
        """
        assert categorize_login("[bot]") == UNKNOWN

    def test_is_human(self) -> None:
        assert is_human("alice")
        assert not is_human("renovate[bot]")
        assert not is_human(None)


class TestCategoryLabels:
    """Test category labels and grouping order."""

    def test_labels(self) -> None:
        assert category_label(HUMAN) == "From Humans"
        assert category_label("buildagencygitapitoken") == "Promotions"
        assert category_label("snyk-io") == "Snyk-io"
        assert category_label("dependabot") == "Dependabot"

    def test_group_order_humans_then_known_bots_then_alphabetical(self) -> None:
        """
        Why: Humans come first in the review list, then the noisiest bots
        What: Checks group ordering and that item order inside groups is kept
        How: Groups items with shuffled categories
        """
        items = [
            SimpleNamespace(n=1, review_category="zeta"),
            SimpleNamespace(n=2, review_category="renovate"),
            SimpleNamespace(n=3, review_category="dependabot"),
            SimpleNamespace(n=4, review_category=HUMAN),
            SimpleNamespace(n=5, review_category="snyk-io"),
            SimpleNamespace(n=6, review_category=HUMAN),
            SimpleNamespace(n=7, review_category="buildagencygitapitoken"),
        ]

        groups = group_by_category(items)

        assert [category for category, _, _ in groups] == [
            HUMAN,
            "snyk-io",
            "renovate",
            "buildagencygitapitoken",
            "dependabot",
            "zeta",
        ]
        assert [item.n for item in groups[0][2]] == [4, 6]
        assert groups[0][1] == "From Humans"
