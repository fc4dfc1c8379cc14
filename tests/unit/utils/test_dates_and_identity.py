"""
Unit tests for timestamp parsing, age calculation, and stable identities.

Why: PR ages drive the "days waiting" display and PR identities key every
     piece of persisted local state, so both must be exact and stable.

What: Tests parse_iso, days_since and stable_hash.

How: Uses fixed timestamps and hand-computed hash values.
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from prtriage.utils.dates import days_since, parse_iso
from prtriage.utils.identity import stable_hash


class TestParseIso:
    """Test parse_iso."""

    def test_parses_zulu_suffix(self) -> None:
        assert parse_iso("2024-01-01T12:00:00Z") == datetime(2024, 1, 1, 12, tzinfo=UTC)

    def test_parses_offset(self) -> None:
        parsed = parse_iso("2024-01-01T12:00:00+02:00")
        assert parsed == datetime(2024, 1, 1, 10, tzinfo=UTC)
        assert parsed.tzinfo == timezone(timedelta(hours=2))

    def test_naive_is_taken_as_utc(self) -> None:
        assert parse_iso("2024-01-01T12:00:00") == datetime(2024, 1, 1, 12, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "yesterday", "2024-13-45T00:00:00Z"])
    def test_invalid_input_returns_none(self, value: str | None) -> None:
        assert parse_iso(value) is None


class TestDaysSince:
    """Test days_since."""

    def test_fractional_days(self) -> None:
        now = datetime(2024, 1, 3, 12, tzinfo=UTC)
        assert days_since("2024-01-01T00:00:00Z", now) == pytest.approx(2.5)

    def test_none_for_unparseable(self) -> None:
        assert days_since("not a date") is None


class TestStableHash:
    """Test stable_hash."""

    def test_known_values(self) -> None:
        """
        Why: The identity must match across processes and releases
        What: Checks the 31-multiplier byte hash against hand-computed values
        How: "a" is 97 and "ab" is 97 * 31 + 98
        """
        assert stable_hash("") == 0
        assert stable_hash("a") == 97
        assert stable_hash("ab") == 3105

    def test_deterministic_and_non_negative(self) -> None:
        node_id = "PR_kwDOAbCdEf5a1b2c3d4e5f6g7h8i9j0"
        first = stable_hash(node_id)

        assert first == stable_hash(node_id)
        assert 0 <= first <= 2**63

    def test_distinguishes_node_ids(self) -> None:
        assert stable_hash("PR_1") != stable_hash("PR_2")

    def test_wraps_at_64_bits(self) -> None:
        """
        Why: Long ids overflow a signed 64-bit accumulator
        What: Checks the result stays within the signed 64-bit magnitude
        How: Hashes a long string whose unbounded value would be enormous
        """
        assert stable_hash("x" * 200) <= 2**63
