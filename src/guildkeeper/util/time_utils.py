"""
UTC time helpers shared by the stores.

Timestamps are stored as INTEGER unix microseconds so ordering in SQL is a
plain integer comparison and two writes in the same second still sort.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_micros(value: datetime) -> int:
    """Convert an aware (or naive-UTC) datetime to unix microseconds."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds


def from_micros(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    return _EPOCH + timedelta(microseconds=value)
