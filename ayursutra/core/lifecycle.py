"""Appointment status state machine."""

from enum import Enum

from ayursutra.core.exceptions import InvalidStateTransition


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"
    RESCHEDULED = "rescheduled"


# Statuses that occupy the practitioner's time
ACTIVE_STATUSES: frozenset[AppointmentStatus] = frozenset(
    {
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.IN_PROGRESS,
    }
)

# Statuses counted as bookings for therapy popularity
QUALIFYING_STATUSES: frozenset[AppointmentStatus] = frozenset(
    {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.CONFIRMED,
    }
)

TERMINAL_STATUSES: frozenset[AppointmentStatus] = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
)

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
            AppointmentStatus.RESCHEDULED,
        }
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
            AppointmentStatus.RESCHEDULED,
        }
    ),
    AppointmentStatus.IN_PROGRESS: frozenset(
        {
            AppointmentStatus.COMPLETED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.RESCHEDULED,
        }
    ),
    AppointmentStatus.NO_SHOW: frozenset(
        {AppointmentStatus.RESCHEDULED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.RESCHEDULED: frozenset({AppointmentStatus.SCHEDULED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


def is_active(status: AppointmentStatus | str) -> bool:
    """Check whether a status blocks the practitioner's calendar."""
    return AppointmentStatus(status) in ACTIVE_STATUSES


def can_transition(current: AppointmentStatus | str, target: AppointmentStatus | str) -> bool:
    """Check whether ``current -> target`` is an allowed move."""
    return AppointmentStatus(target) in ALLOWED_TRANSITIONS[AppointmentStatus(current)]


def ensure_transition(
    current: AppointmentStatus | str,
    target: AppointmentStatus | str,
) -> None:
    """
    Validate a status transition.

    Args:
        current: Status the appointment is in now
        target: Status the operation wants to move it to

    Raises:
        InvalidStateTransition: If the move is not in the transition table
    """
    current = AppointmentStatus(current)
    target = AppointmentStatus(target)

    if can_transition(current, target):
        return

    if current in TERMINAL_STATUSES:
        message = f"Appointment is already {current.value}"
    else:
        message = f"Cannot move appointment from {current.value} to {target.value}"

    raise InvalidStateTransition(message, current=current.value, target=target.value)
