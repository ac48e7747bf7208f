"""Tests for the appointment status state machine."""

import pytest

from ayursutra.core.exceptions import InvalidStateTransition
from ayursutra.core.lifecycle import (
    ACTIVE_STATUSES,
    QUALIFYING_STATUSES,
    AppointmentStatus,
    can_transition,
    ensure_transition,
    is_active,
)

S = AppointmentStatus


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (S.SCHEDULED, S.CONFIRMED),
        (S.SCHEDULED, S.CANCELLED),
        (S.CONFIRMED, S.IN_PROGRESS),
        (S.IN_PROGRESS, S.COMPLETED),
        (S.IN_PROGRESS, S.RESCHEDULED),
        (S.NO_SHOW, S.RESCHEDULED),
        (S.RESCHEDULED, S.SCHEDULED),
    ],
)
def test_allowed_transitions(current: AppointmentStatus, target: AppointmentStatus) -> None:
    assert can_transition(current, target)
    ensure_transition(current, target)


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (S.COMPLETED, S.CANCELLED),
        (S.COMPLETED, S.RESCHEDULED),
        (S.CANCELLED, S.CANCELLED),
        (S.CANCELLED, S.SCHEDULED),
        (S.IN_PROGRESS, S.CONFIRMED),
        (S.NO_SHOW, S.COMPLETED),
        (S.RESCHEDULED, S.COMPLETED),
    ],
)
def test_rejected_transitions(current: AppointmentStatus, target: AppointmentStatus) -> None:
    assert not can_transition(current, target)
    with pytest.raises(InvalidStateTransition) as exc_info:
        ensure_transition(current, target)
    assert exc_info.value.current == current.value
    assert exc_info.value.target == target.value
    assert exc_info.value.status_code == 409


def test_terminal_status_message() -> None:
    with pytest.raises(InvalidStateTransition, match="already cancelled"):
        ensure_transition(S.CANCELLED, S.CANCELLED)


def test_accepts_string_values() -> None:
    assert can_transition("scheduled", "in-progress")
    assert not can_transition("completed", "scheduled")


def test_active_statuses() -> None:
    assert ACTIVE_STATUSES == {S.SCHEDULED, S.CONFIRMED, S.IN_PROGRESS}
    assert is_active("confirmed")
    assert not is_active(S.NO_SHOW)


def test_qualifying_statuses_exclude_in_progress() -> None:
    assert QUALIFYING_STATUSES == {S.COMPLETED, S.SCHEDULED, S.CONFIRMED}
    assert S.IN_PROGRESS not in QUALIFYING_STATUSES
