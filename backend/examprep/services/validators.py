"""
Validation helpers shared by the request schemas and routes.
"""

from datetime import datetime, timezone

from examprep.constants import (
    SUBJECTS, CLASSES, MIN_TEST_DURATION, MAX_TEST_DURATION,
    TEST_STATUS_UPCOMING, TEST_STATUS_ONGOING, TEST_STATUS_COMPLETED
)


def is_valid_subject(subject: str) -> bool:
    return subject in SUBJECTS


def is_valid_class(class_num) -> bool:
    try:
        return int(class_num) in CLASSES
    except (TypeError, ValueError):
        return False


def is_valid_test_duration(duration: int) -> bool:
    """Duration in minutes must lie within the configured limits (inclusive)."""
    return MIN_TEST_DURATION <= duration <= MAX_TEST_DURATION


def is_test_active(start_time: datetime, end_time: datetime, now: datetime) -> bool:
    """True while now is inside the test window, both ends included."""
    return start_time <= now <= end_time


def window_status(start_time: datetime, end_time: datetime, now: datetime) -> str:
    """Classify a test window relative to now: upcoming, ongoing or completed."""
    if now < start_time:
        return TEST_STATUS_UPCOMING
    if now > end_time:
        return TEST_STATUS_COMPLETED
    return TEST_STATUS_ONGOING


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def utc_now() -> datetime:
    """Current time as naive UTC, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
