"""Tests for dosha constitution rules."""

import pytest

from ayursutra.core.constitution import dominant_dosha, validate_constitution
from ayursutra.core.exceptions import ValidationError


@pytest.mark.parametrize(
    "constitution",
    [
        {"vata": 40, "pitta": 35, "kapha": 25},
        {"vata": 40, "pitta": 35, "kapha": 20},  # 95
        {"vata": 40, "pitta": 35, "kapha": 30},  # 105
        {"vata": 0, "pitta": 0, "kapha": 0},
        {},
    ],
)
def test_accepted_constitutions(constitution: dict) -> None:
    validate_constitution(constitution)


@pytest.mark.parametrize(
    "constitution",
    [
        {"vata": 40, "pitta": 35, "kapha": 19},  # 94
        {"vata": 40, "pitta": 35, "kapha": 31},  # 106
        {"vata": 10, "pitta": 0, "kapha": 0},
    ],
)
def test_constitution_must_sum_to_about_100(constitution: dict) -> None:
    with pytest.raises(ValidationError, match="approximately 100%"):
        validate_constitution(constitution)


def test_share_out_of_range() -> None:
    with pytest.raises(ValidationError, match="between 0 and 100"):
        validate_constitution({"vata": 120, "pitta": -20, "kapha": 0})


@pytest.mark.parametrize(
    ("constitution", "expected"),
    [
        ({"vata": 50, "pitta": 30, "kapha": 20}, "vata"),
        ({"vata": 30, "pitta": 50, "kapha": 20}, "pitta"),
        ({"vata": 20, "pitta": 30, "kapha": 50}, "kapha"),
        ({"vata": 40, "pitta": 40, "kapha": 20}, "vata"),
        ({"vata": 20, "pitta": 40, "kapha": 40}, "pitta"),
        ({"vata": 40, "pitta": 20, "kapha": 40}, "vata"),
        ({"vata": 0, "pitta": 0, "kapha": 0}, "vata"),
    ],
)
def test_dominant_dosha(constitution: dict, expected: str) -> None:
    assert dominant_dosha(constitution) == expected
