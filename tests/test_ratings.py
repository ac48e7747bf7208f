"""Tests for rating, popularity and pricing calculations."""

from decimal import Decimal

import pytest

from ayursutra.core.exceptions import ValidationError
from ayursutra.core.ratings import (
    RatingAggregate,
    effective_price,
    format_duration,
    recompute_popularity,
    update_rating,
)


def _fold(ratings: list[float]) -> RatingAggregate:
    aggregate = RatingAggregate()
    for rating in ratings:
        aggregate = update_rating(aggregate, rating)
    return aggregate


def test_average_of_four_and_five() -> None:
    aggregate = _fold([4, 5])
    assert aggregate.average_rating == 4.5
    assert aggregate.total_reviews == 2


def test_average_of_three_fives() -> None:
    assert _fold([5, 5, 5]).average_rating == 5.0


def test_average_is_rounded_to_one_decimal() -> None:
    assert _fold([5, 4, 4]).average_rating == 4.3


def test_input_aggregate_is_not_modified() -> None:
    original = RatingAggregate()
    update_rating(original, 4)
    assert original.total_reviews == 0
    assert original.average_rating == 0.0


def test_breakdown_only_updates_rated_dimensions() -> None:
    first = update_rating(RatingAggregate(), 4, {"expertise": 4, "punctuality": 2})
    second = update_rating(first, 5, {"expertise": 5, "communication": 0})
    assert second.breakdown["expertise"] == 4.5
    assert second.breakdown["punctuality"] == 2
    assert second.breakdown["communication"] == 0.0


@pytest.mark.parametrize("rating", [0, 5.5, -1])
def test_out_of_range_rating(rating: float) -> None:
    with pytest.raises(ValidationError):
        update_rating(RatingAggregate(), rating)


def test_unknown_breakdown_dimension() -> None:
    with pytest.raises(ValidationError, match="Unknown rating dimensions"):
        update_rating(RatingAggregate(), 4, {"bedside_manner": 4})


def test_popularity_formula() -> None:
    assert recompute_popularity(4.5, 10, 3) == 51.0
    assert recompute_popularity(0, 0, 0) == 0


def test_effective_price_applies_discount() -> None:
    assert effective_price(Decimal("2500"), Decimal("10")) == Decimal("2250.00")
    assert effective_price(Decimal("999.99")) == Decimal("999.99")


def test_effective_price_caps_discount() -> None:
    with pytest.raises(ValidationError):
        effective_price(Decimal("1000"), Decimal("60"))


@pytest.mark.parametrize(
    ("minutes", "expected"),
    [(45, "45 minutes"), (60, "1 hour"), (120, "2 hours"), (90, "1h 30m")],
)
def test_format_duration(minutes: int, expected: str) -> None:
    assert format_duration(minutes) == expected
