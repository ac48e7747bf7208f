"""Database models."""

from ayursutra.models.appointments import appointment_reschedules, appointments
from ayursutra.models.base import metadata
from ayursutra.models.patients import patients
from ayursutra.models.practitioners import practitioners
from ayursutra.models.therapies import therapies

__all__ = [
    "appointment_reschedules",
    "appointments",
    "metadata",
    "patients",
    "practitioners",
    "therapies",
]
