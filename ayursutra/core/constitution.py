"""Prakriti (dosha constitution) rules for patient Ayurvedic profiles."""

from collections.abc import Mapping

from ayursutra.core.exceptions import ValidationError

DOSHAS = ("vata", "pitta", "kapha")

# Assessed percentages may be off by this much from 100
CONSTITUTION_TOLERANCE = 5


def validate_constitution(constitution: Mapping[str, int | float]) -> None:
    """
    Check that assessed dosha percentages add up to roughly 100.

    An all-zero constitution means "not assessed yet" and is accepted.

    Raises:
        ValidationError: If a share is outside 0-100 or the total is off
    """
    shares = [constitution.get(dosha, 0) or 0 for dosha in DOSHAS]
    if any(share < 0 or share > 100 for share in shares):
        raise ValidationError("Dosha percentages must be between 0 and 100")

    total = sum(shares)
    if total > 0 and abs(total - 100) > CONSTITUTION_TOLERANCE:
        raise ValidationError("Constitution percentages should sum to approximately 100%")


def dominant_dosha(constitution: Mapping[str, int | float]) -> str:
    """Largest dosha share; ties go to vata, then pitta."""
    vata, pitta, kapha = (constitution.get(dosha, 0) or 0 for dosha in DOSHAS)
    if vata >= pitta and vata >= kapha:
        return "vata"
    if pitta >= kapha:
        return "pitta"
    return "kapha"
