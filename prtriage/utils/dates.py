"""ISO timestamp parsing and age calculation."""

from datetime import UTC, datetime

SECONDS_PER_DAY = 60 * 60 * 24


def parse_iso(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Accepts a trailing ``Z``. Naive values are taken as UTC. Returns None
    for missing or malformed input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def utc_now() -> datetime:
    return datetime.now(UTC)


def days_since(value: str | datetime | None, now: datetime | None = None) -> float | None:
    """Elapsed days between ``value`` and ``now`` as a float."""
    moment = parse_iso(value)
    if moment is None:
        return None
    reference = now or utc_now()
    return (reference - moment).total_seconds() / SECONDS_PER_DAY
