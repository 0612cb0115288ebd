"""Builds the queue of cards due for review in a deck."""

from datetime import datetime
from itertools import islice
from typing import Iterator

from study_deck.models.deck_models import CardDocument, DeckDocument, DueCardView
from study_deck.utils.datetime_utils import ensure_timezone_aware

DEFAULT_QUEUE_LIMIT = 20


def _to_view(deck: DeckDocument, card: CardDocument) -> DueCardView:
    return DueCardView(
        deck_id=deck.id,
        deck_name=deck.name,
        card_id=card.id,
        front_text=card.front_text,
        back_text=card.back_text,
        next_review=card.next_review,
        ease=card.ease,
        interval=card.interval,
    )


def build_due_queue(deck: DeckDocument, now: datetime, limit: int = DEFAULT_QUEUE_LIMIT) -> Iterator[DueCardView]:
    """
    Yield at most ``limit`` cards of ``deck`` whose next review is at or before ``now``.

    Cards come out oldest-due first, ties broken by card id. The returned
    iterator is lazy and single-use; call again for a fresh view.
    """
    if limit < 0:
        raise ValueError("limit must be non-negative")

    now = ensure_timezone_aware(now)
    due = sorted((card for card in deck.cards if card.is_due(now)), key=lambda c: (c.next_review, c.id))
    return (_to_view(deck, card) for card in islice(due, limit))
