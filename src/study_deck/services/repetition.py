"""
Service for calculating spaced repetition intervals.

The policy has two branches only:

- a good grade (ease >= 3) doubles the interval and adds one day, so
  repeated good grades from a fresh card give 1, 3, 7, 15, 31 days;
- a bad grade (ease 1 or 2) resets the interval to one day.

The grade itself becomes the card's new ease. The next review is always
counted from the moment of grading, not from the previous due date.
"""

from datetime import datetime
from typing import Any, Tuple

from study_deck.errors import ReviewValidationError
from study_deck.models.deck_models import CardDocument
from study_deck.utils.datetime_utils import add_days, ensure_timezone_aware

MIN_EASE = 1
MAX_EASE = 5
GOOD_GRADE_THRESHOLD = 3


def validate_ease(ease: Any) -> int:
    """
    Check a grade against the 1-5 integer contract.

    Raises:
        ReviewValidationError: If ease is not an integer in [1, 5].
    """
    if isinstance(ease, bool) or not isinstance(ease, int):
        raise ReviewValidationError(
            "Ease should be an integer between 1 and 5", {"ease": ease, "min": MIN_EASE, "max": MAX_EASE}
        )
    if ease < MIN_EASE or ease > MAX_EASE:
        raise ReviewValidationError(
            "Ease should be an integer between 1 and 5", {"ease": ease, "min": MIN_EASE, "max": MAX_EASE}
        )
    return ease


def calculate_next_review(ease: int, current_interval: int, now: datetime) -> Tuple[datetime, int, float]:
    """
    Calculates the next review date, interval and ease for a grade.

    Args:
        ease: Grade in [1, 5]. 1-2: forgot, 3-5: remembered.
        current_interval: Current interval in days.
        now: Moment of grading.

    Returns:
        Tuple containing:
        - next_review_date (datetime)
        - new_interval (int)
        - new_ease (float)
    """
    validate_ease(ease)

    if ease >= GOOD_GRADE_THRESHOLD:
        new_interval = current_interval * 2 + 1
    else:
        new_interval = 1

    next_review_date = add_days(ensure_timezone_aware(now), new_interval)
    return next_review_date, new_interval, float(ease)


def grade_card(card: CardDocument, ease: int, now: datetime) -> CardDocument:
    """Return a copy of ``card`` rescheduled for ``ease`` graded at ``now``."""
    next_review, interval, new_ease = calculate_next_review(ease, card.interval, now)
    return card.model_copy(update={"ease": new_ease, "interval": interval, "next_review": next_review})
