"""
Unit tests for the review scheduling policy.

Covers the two interval branches, ease overwrite, next review computation
and grade validation.
"""

from datetime import datetime, timedelta, timezone

import pytest

from study_deck.errors import ReviewValidationError
from study_deck.models.deck_models import CardDocument
from study_deck.services.repetition import calculate_next_review, grade_card, validate_ease

NOW = datetime(2024, 3, 10, 12, 30, tzinfo=timezone.utc)


def fresh_card(**overrides) -> CardDocument:
    data = {"front_text": "hola", "back_text": "hello", "next_review": NOW}
    data.update(overrides)
    return CardDocument(**data)


class TestIntervalPolicy:
    @pytest.mark.parametrize("ease", [3, 4, 5])
    @pytest.mark.parametrize("prior", [0, 1, 3, 10, 64])
    def test_good_grade_doubles_plus_one(self, ease, prior):
        _, interval, _ = calculate_next_review(ease, prior, NOW)
        assert interval == prior * 2 + 1

    @pytest.mark.parametrize("ease", [1, 2])
    @pytest.mark.parametrize("prior", [0, 1, 7, 31, 500])
    def test_bad_grade_resets_to_one(self, ease, prior):
        _, interval, _ = calculate_next_review(ease, prior, NOW)
        assert interval == 1

    def test_repeated_good_grades_grow_as_powers_of_two_minus_one(self):
        card = fresh_card()
        intervals = []
        for _ in range(5):
            card = grade_card(card, 4, NOW)
            intervals.append(card.interval)
        assert intervals == [1, 3, 7, 15, 31]

    def test_next_review_is_grading_time_plus_interval(self):
        next_review, interval, _ = calculate_next_review(5, 7, NOW)
        assert interval == 15
        assert next_review == NOW + timedelta(days=15)

    def test_next_review_ignores_previous_due_date(self):
        card = fresh_card(interval=3, next_review=NOW - timedelta(days=40))
        graded = grade_card(card, 3, NOW)
        assert graded.next_review == NOW + timedelta(days=7)

    def test_naive_now_is_treated_as_utc(self):
        next_review, _, _ = calculate_next_review(4, 0, NOW.replace(tzinfo=None))
        assert next_review == NOW + timedelta(days=1)


class TestEaseOverwrite:
    @pytest.mark.parametrize("ease", [1, 2, 3, 4, 5])
    def test_grade_becomes_new_ease(self, ease):
        graded = grade_card(fresh_card(ease=4.7), ease, NOW)
        assert graded.ease == float(ease)

    def test_grade_card_does_not_mutate_input(self):
        card = fresh_card()
        graded = grade_card(card, 5, NOW)
        assert card.interval == 0
        assert card.ease == 2.5
        assert card.next_review == NOW
        assert graded.id == card.id
        assert graded.front_text == card.front_text


class TestScenario:
    def test_good_bad_good_sequence(self):
        t0 = NOW
        card = fresh_card(next_review=t0)
        assert (card.ease, card.interval, card.next_review) == (2.5, 0, t0)

        card = grade_card(card, 4, t0)
        assert card.interval == 1
        assert card.next_review == t0 + timedelta(days=1)

        card = grade_card(card, 2, t0 + timedelta(days=1))
        assert card.interval == 1
        assert card.next_review == t0 + timedelta(days=2)

        card = grade_card(card, 5, t0 + timedelta(days=2))
        assert card.interval == 3
        assert card.next_review == t0 + timedelta(days=5)


class TestValidation:
    @pytest.mark.parametrize("ease", [1, 2, 3, 4, 5])
    def test_accepts_integers_in_range(self, ease):
        assert validate_ease(ease) == ease

    @pytest.mark.parametrize("ease", [0, 6, -1, 100])
    def test_rejects_out_of_range(self, ease):
        with pytest.raises(ReviewValidationError) as exc_info:
            validate_ease(ease)
        assert exc_info.value.error_code == "REVIEW_VALIDATION_ERROR"
        assert exc_info.value.details["ease"] == ease

    @pytest.mark.parametrize("ease", [3.5, "3", None, True])
    def test_rejects_non_integers(self, ease):
        with pytest.raises(ReviewValidationError):
            validate_ease(ease)

    def test_engine_rejects_invalid_grade(self):
        with pytest.raises(ReviewValidationError):
            grade_card(fresh_card(), 6, NOW)
