from typing import Any, Iterable, Optional
import logging

from tutor_match.core.config import settings

logger = logging.getLogger(__name__)


def is_unconstrained(price_range) -> bool:
    """Whether the range spans the full configured bounds"""
    return (
        price_range.min_price <= settings.PRICE_FLOOR
        and price_range.max_price >= settings.PRICE_CEILING
    )


def in_range(price: Optional[float], price_range) -> bool:
    """Inclusive range test.

    A tutor without a known price only passes the unconstrained range, so a
    narrowed range never shows tutors it cannot vouch for.
    """
    if price is None:
        return is_unconstrained(price_range)
    return price_range.min_price <= price <= price_range.max_price


def _parse_price(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if price != price:  # NaN
        return None
    return price


def lowest_lesson_price(prices: Iterable[Any]) -> Optional[float]:
    """Lowest valid lesson price, ignoring missing and non-numeric prices"""
    valid = [price for price in (_parse_price(value) for value in prices) if price is not None]
    if not valid:
        return None
    return min(valid)


def filter_by_price(tutors, price_range) -> list:
    """Keep tutors whose lowest price falls in the range.

    With no bounds set the listing is not narrowed by price at all, so tutors
    priced above the ceiling stay visible.
    """
    tutors = list(tutors)
    if is_unconstrained(price_range):
        return tutors
    kept = [tutor for tutor in tutors if in_range(tutor.lowest_price, price_range)]
    logger.debug(f"Price filter kept {len(kept)} of {len(tutors)} tutors")
    return kept
