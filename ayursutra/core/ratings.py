"""Derived metrics: rating averages, popularity and pricing."""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal

from ayursutra.core.exceptions import ValidationError

RATING_DIMENSIONS = ("professionalism", "expertise", "communication", "punctuality")

# Weight of one qualifying booking in the popularity score
BOOKING_WEIGHT = 2

MAX_PACKAGE_DISCOUNT = Decimal("50")


def _empty_breakdown() -> dict[str, float]:
    return {dimension: 0.0 for dimension in RATING_DIMENSIONS}


@dataclass(frozen=True)
class RatingAggregate:
    """Running rating summary for a practitioner."""

    average_rating: float = 0.0
    total_reviews: int = 0
    breakdown: dict[str, float] = field(default_factory=_empty_breakdown)


def _round_one_decimal(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def update_rating(
    aggregate: RatingAggregate,
    new_rating: float,
    breakdown: Mapping[str, float | None] | None = None,
) -> RatingAggregate:
    """
    Fold one review into a rating aggregate.

    The main average is an incremental mean rounded to one decimal. Each
    breakdown dimension uses the same incremental mean but only when a value
    was supplied; missing (or zero) sub-ratings leave that dimension untouched.

    Args:
        aggregate: Current aggregate
        new_rating: Overall rating of the new review (1-5)
        breakdown: Optional per-dimension ratings

    Returns:
        New aggregate; the input is not modified

    Raises:
        ValidationError: If a rating is out of range or a dimension is unknown
    """
    if not 1 <= new_rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")

    breakdown = breakdown or {}
    unknown = set(breakdown) - set(RATING_DIMENSIONS)
    if unknown:
        raise ValidationError(f"Unknown rating dimensions: {', '.join(sorted(unknown))}")

    old_count = aggregate.total_reviews
    new_count = old_count + 1
    new_average = (aggregate.average_rating * old_count + new_rating) / new_count

    new_breakdown = dict(aggregate.breakdown)
    for dimension in RATING_DIMENSIONS:
        value = breakdown.get(dimension)
        if not value:
            continue
        if not 1 <= value <= 5:
            raise ValidationError(f"{dimension.capitalize()} rating must be between 1 and 5")
        new_breakdown[dimension] = (new_breakdown.get(dimension, 0.0) * old_count + value) / new_count

    return replace(
        aggregate,
        average_rating=_round_one_decimal(new_average),
        total_reviews=new_count,
        breakdown=new_breakdown,
    )


def recompute_popularity(
    average_rating: float,
    total_reviews: int,
    qualifying_appointment_count: int,
) -> float:
    """Popularity = average rating x reviews + 2 x qualifying bookings."""
    rating_weight = float(average_rating) * total_reviews
    booking_weight = BOOKING_WEIGHT * qualifying_appointment_count
    return rating_weight + booking_weight


def effective_price(base_price: Decimal, package_discount: Decimal | None = None) -> Decimal:
    """
    Apply a percentage package discount to a base price.

    Raises:
        ValidationError: If the discount is negative or above the cap
    """
    discount = Decimal(package_discount or 0)
    if discount < 0 or discount > MAX_PACKAGE_DISCOUNT:
        raise ValidationError(f"Package discount must be between 0 and {MAX_PACKAGE_DISCOUNT}%")
    price = Decimal(base_price) * (1 - discount / 100)
    return price.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_duration(minutes: int) -> str:
    """Human-readable duration, e.g. ``45 minutes``, ``2 hours`` or ``1h 30m``."""
    hours, remainder = divmod(minutes, 60)
    if hours == 0:
        return f"{remainder} minutes"
    if remainder == 0:
        return f"{hours} {'hour' if hours == 1 else 'hours'}"
    return f"{hours}h {remainder}m"
