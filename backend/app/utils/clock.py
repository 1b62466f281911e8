"""Time helpers.

Timestamps are stored as naive UTC datetimes. Token ``exp`` is whole seconds
since the epoch; ``iat`` keeps microseconds so it orders exactly against
stored times. Everything time-dependent goes through :func:`utcnow` so tests
can pin the clock with ``monkeypatch.setattr(clock, "utcnow", ...)``.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_epoch(moment: datetime) -> int:
    """Whole seconds since the epoch for a naive UTC datetime (fraction truncated)."""
    return int(moment.replace(tzinfo=timezone.utc).timestamp())


def to_timestamp(moment: datetime) -> float:
    """Seconds since the epoch for a naive UTC datetime, fraction kept."""
    return moment.replace(tzinfo=timezone.utc).timestamp()


def epoch_now() -> int:
    return to_epoch(utcnow())
