"""Time ranges and practitioner conflict detection.

All functions here are pure. Callers are responsible for fetching the
practitioner's appointments; :func:`has_conflict` filters them again so it is
safe to pass an unfiltered list.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol
from uuid import UUID

from ayursutra.core.exceptions import ValidationError
from ayursutra.core.lifecycle import is_active

MIN_DURATION_MINUTES = 15


@dataclass(frozen=True)
class TimeRange:
    """Half-open interval ``[start, end)``."""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        """Length of the interval."""
        return self.end - self.start


class ScheduledItem(Protocol):
    """Anything with the fields the conflict detector looks at."""

    id: Any
    practitioner_id: UUID
    start_at: datetime
    duration_minutes: int
    status: Any


def interval_of(start: datetime, duration_minutes: int) -> TimeRange:
    """
    Build the interval an appointment occupies.

    Args:
        start: Appointment start time
        duration_minutes: Length in minutes

    Returns:
        Interval ending ``duration_minutes`` after ``start``

    Raises:
        ValidationError: If duration is below the minimum
    """
    if duration_minutes < MIN_DURATION_MINUTES:
        raise ValidationError(f"Minimum duration is {MIN_DURATION_MINUTES} minutes")
    return TimeRange(start=start, end=start + timedelta(minutes=duration_minutes))


def intervals_overlap(first: TimeRange, second: TimeRange) -> bool:
    """Touching endpoints do not overlap."""
    return first.start < second.end and second.start < first.end


def has_conflict(
    practitioner_id: UUID,
    candidate: TimeRange,
    existing: Iterable[ScheduledItem],
    exclude_appointment_id: Any | None = None,
) -> bool:
    """
    Decide whether ``candidate`` collides with the practitioner's calendar.

    Args:
        practitioner_id: Practitioner being booked
        candidate: Interval requested
        existing: The practitioner's appointments
        exclude_appointment_id: Appointment to ignore (the one being rescheduled)

    Returns:
        True if any other active appointment overlaps ``candidate``
    """
    for item in existing:
        if exclude_appointment_id is not None and item.id == exclude_appointment_id:
            continue
        if item.practitioner_id != practitioner_id or not is_active(item.status):
            continue
        if intervals_overlap(candidate, interval_of(item.start_at, item.duration_minutes)):
            return True
    return False
