"""Practitioner weekly availability templates."""

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from typing import Any

from ayursutra.core.exceptions import ValidationError

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


@dataclass(frozen=True)
class DaySchedule:
    """Working hours for one weekday as zone-naive ``HH:MM`` strings."""

    available: bool = True
    start_time: str = "09:00"
    end_time: str = "18:00"
    break_start: str | None = "13:00"
    break_end: str | None = "14:00"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DaySchedule":
        """Build from a stored JSON mapping, ignoring unknown keys."""
        fields = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**fields)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON storage."""
        return asdict(self)


DEFAULT_AVAILABILITY: dict[str, DaySchedule] = {
    "monday": DaySchedule(),
    "tuesday": DaySchedule(),
    "wednesday": DaySchedule(),
    "thursday": DaySchedule(),
    "friday": DaySchedule(),
    "saturday": DaySchedule(end_time="15:00", break_start="12:00", break_end="13:00"),
    "sunday": DaySchedule(
        available=False, end_time="15:00", break_start="12:00", break_end="13:00"
    ),
}


def parse_hhmm(value: str) -> time:
    """
    Parse a wall-clock ``HH:MM`` string.

    Raises:
        ValidationError: If the string is not a valid 24-hour time
    """
    try:
        hours, minutes = value.split(":")
        if len(hours) != 2 or len(minutes) != 2:
            raise ValueError(value)
        return time(int(hours), int(minutes))
    except ValueError:
        raise ValidationError(f"Invalid time of day '{value}', expected HH:MM")


def weekday_name(moment: date) -> str:
    """Lower-case English weekday name of ``moment``."""
    return WEEKDAYS[moment.weekday()]


def normalize_availability(
    availability: Mapping[str, Any] | None,
) -> dict[str, DaySchedule]:
    """Fill missing weekdays with defaults and coerce stored dicts to DaySchedule."""
    result = dict(DEFAULT_AVAILABILITY)
    for day, schedule in (availability or {}).items():
        if day not in WEEKDAYS:
            raise ValidationError(f"Unknown weekday '{day}'")
        if not isinstance(schedule, DaySchedule):
            schedule = DaySchedule.from_dict(schedule)
        validate_day_schedule(schedule)
        result[day] = schedule
    return result


def validate_day_schedule(schedule: DaySchedule) -> None:
    """Reject malformed or inverted working-hour and break windows."""
    start = parse_hhmm(schedule.start_time)
    end = parse_hhmm(schedule.end_time)
    if end <= start:
        raise ValidationError("End time must be after start time")

    if (schedule.break_start is None) != (schedule.break_end is None):
        raise ValidationError("Break start and end must be provided together")
    if schedule.break_start and schedule.break_end:
        if parse_hhmm(schedule.break_end) <= parse_hhmm(schedule.break_start):
            raise ValidationError("Break end must be after break start")


def is_time_available(
    availability: Mapping[str, Any] | None,
    weekday: str,
    time_of_day: str,
) -> bool:
    """
    Check a weekday/time-of-day pair against a weekly template.

    Working hours are inclusive at both ends; the break window is half-open.

    Args:
        availability: Weekly template keyed by weekday name
        weekday: Lower-case weekday name
        time_of_day: ``HH:MM`` wall-clock time

    Returns:
        True if the practitioner works at that time and is not on break
    """
    schedule = normalize_availability(availability)[weekday]
    if not schedule.available:
        return False

    moment = parse_hhmm(time_of_day)
    if moment < parse_hhmm(schedule.start_time) or moment > parse_hhmm(schedule.end_time):
        return False

    if schedule.break_start and schedule.break_end:
        if parse_hhmm(schedule.break_start) <= moment < parse_hhmm(schedule.break_end):
            return False

    return True


def is_within_availability(availability: Mapping[str, Any] | None, moment: datetime) -> bool:
    """Check a datetime's weekday and wall-clock time against a weekly template."""
    return is_time_available(availability, weekday_name(moment), moment.strftime("%H:%M"))
