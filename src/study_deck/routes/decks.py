"""
Deck, card and review API routes.

Every route resolves the caller through the bearer token and delegates to
the deck manager; domain errors are mapped to HTTP statuses here.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from study_deck.errors import StudyDeckError
from study_deck.managers.deck_manager import DeckManager
from study_deck.managers.logging_manager import get_logger
from study_deck.models.deck_models import (
    AddCardsRequest,
    CardResponse,
    CreateDeckRequest,
    DeckResponse,
    DueCardView,
    Identity,
    ReviewRequest,
)
from study_deck.routes.dependencies import get_current_identity, get_deck_manager, to_http_exception

router = APIRouter(prefix="/decks", tags=["decks"])

logger = get_logger(prefix="[Deck Routes]")


@router.get("", response_model=List[DeckResponse], summary="List the caller's decks")
async def list_decks(
    identity: Identity = Depends(get_current_identity),
    manager: DeckManager = Depends(get_deck_manager),
) -> List[DeckResponse]:
    try:
        decks = await manager.list_decks(identity)
    except StudyDeckError as e:
        raise to_http_exception(e) from e
    return [DeckResponse.from_document(deck) for deck in decks]


@router.post("", response_model=DeckResponse, status_code=status.HTTP_201_CREATED, summary="Create a deck")
async def create_deck(
    payload: CreateDeckRequest,
    identity: Identity = Depends(get_current_identity),
    manager: DeckManager = Depends(get_deck_manager),
) -> DeckResponse:
    try:
        deck = await manager.create_deck(identity, payload)
    except StudyDeckError as e:
        raise to_http_exception(e) from e
    return DeckResponse.from_document(deck)


@router.delete("/{deck_id}", summary="Delete a deck and all of its cards")
async def delete_deck(
    deck_id: str,
    identity: Identity = Depends(get_current_identity),
    manager: DeckManager = Depends(get_deck_manager),
) -> dict:
    try:
        await manager.delete_deck(identity, deck_id)
    except StudyDeckError as e:
        raise to_http_exception(e) from e
    return {"message": "Deck deleted", "deck_id": deck_id}


@router.post(
    "/{deck_id}/cards",
    response_model=DeckResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add cards to a deck",
)
async def add_cards(
    deck_id: str,
    payload: AddCardsRequest,
    identity: Identity = Depends(get_current_identity),
    manager: DeckManager = Depends(get_deck_manager),
) -> DeckResponse:
    try:
        deck = await manager.add_cards(identity, deck_id, payload)
    except StudyDeckError as e:
        raise to_http_exception(e) from e
    return DeckResponse.from_document(deck)


@router.get("/{deck_id}/review", response_model=List[DueCardView], summary="Cards due for review")
async def review_queue(
    deck_id: str,
    identity: Identity = Depends(get_current_identity),
    manager: DeckManager = Depends(get_deck_manager),
) -> List[DueCardView]:
    try:
        return await manager.fetch_due_queue(identity, deck_id)
    except StudyDeckError as e:
        raise to_http_exception(e) from e


@router.patch(
    "/{deck_id}/cards/{card_id}/review",
    response_model=CardResponse,
    summary="Grade a card and reschedule it",
)
async def review_card(
    deck_id: str,
    card_id: str,
    payload: ReviewRequest,
    identity: Identity = Depends(get_current_identity),
    manager: DeckManager = Depends(get_deck_manager),
) -> CardResponse:
    try:
        card = await manager.apply_grade(identity, deck_id, card_id, payload.ease)
    except StudyDeckError as e:
        raise to_http_exception(e) from e

    logger.debug("Card %s in deck %s rescheduled for %s", card_id, deck_id, card.next_review.isoformat())
    return CardResponse.from_document(card)
