"""
Deck Manager for deck ownership, card creation and review scheduling.

Every deck-scoped operation follows the same pipeline: load the deck
(NotFound), check ownership (Forbidden), validate input (ValidationError),
then act. Grading writes a single card through the store's compare-and-swap
primitive and retries when another request regraded the same card first.
"""

from datetime import datetime
from typing import Any, List, Optional

from study_deck.errors import (
    CardNotFoundError,
    ConcurrencyConflictError,
    DeckAccessForbiddenError,
    DeckNotFoundError,
    UserNotFoundError,
)
from study_deck.managers.logging_manager import get_logger
from study_deck.models.deck_models import (
    AddCardsRequest,
    CardDocument,
    CreateDeckRequest,
    DeckDocument,
    DueCardView,
    Identity,
)
from study_deck.services.ownership import ensure_deck_access
from study_deck.services.repetition import grade_card, validate_ease
from study_deck.services.review_queue import DEFAULT_QUEUE_LIMIT, build_due_queue
from study_deck.stores.base import DeckStore
from study_deck.utils.datetime_utils import Clock, utc_now
from study_deck.utils.logging_utils import log_performance

DEFAULT_MAX_RETRIES = 3


class DeckManager:
    """
    Coordinates the ownership guard, the store and the scheduling engine.

    Args:
        store: Deck/user persistence backend.
        clock: Callable returning the current aware UTC time.
        queue_limit: Default maximum size of a review queue.
        max_retries: Grading attempts before giving up on a contended card.
    """

    def __init__(
        self,
        store: DeckStore,
        clock: Clock = utc_now,
        queue_limit: int = DEFAULT_QUEUE_LIMIT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        logging_manager: Any = None,
    ):
        self.store = store
        self.clock = clock
        self.queue_limit = queue_limit
        self.max_retries = max_retries
        self.logging_manager = logging_manager or get_logger(prefix="[DeckManager]")

    async def _load_deck(self, deck_id: str) -> DeckDocument:
        deck = await self.store.find_deck_by_id(deck_id)
        if deck is None:
            raise DeckNotFoundError(deck_id)
        return deck

    async def _load_owned_deck(self, identity: Identity, deck_id: str) -> DeckDocument:
        deck = await self._load_deck(deck_id)
        try:
            return ensure_deck_access(identity, deck)
        except DeckAccessForbiddenError:
            self.logging_manager.warning(
                "Deck access denied", extra={"deck_id": deck_id, "user_id": identity.user_id}
            )
            raise

    async def _load_user(self, identity: Identity):
        user = await self.store.find_user_by_id(identity.user_id)
        if user is None:
            raise UserNotFoundError(identity.user_id)
        return user

    # --- Review ---

    @log_performance("fetch_due_queue")
    async def fetch_due_queue(
        self, identity: Identity, deck_id: str, now: Optional[datetime] = None, limit: Optional[int] = None
    ) -> List[DueCardView]:
        """Return the cards of a deck that are due at ``now`` (defaults to the clock)."""
        deck = await self._load_owned_deck(identity, deck_id)
        queue = list(build_due_queue(deck, now or self.clock(), self.queue_limit if limit is None else limit))

        self.logging_manager.info(
            "Review queue built",
            extra={"deck_id": deck_id, "user_id": identity.user_id, "due_count": len(queue)},
        )
        return queue

    @log_performance("apply_grade")
    async def apply_grade(self, identity: Identity, deck_id: str, card_id: str, ease: Any) -> CardDocument:
        """
        Grade a card and persist its new schedule.

        Raises:
            DeckNotFoundError, CardNotFoundError: Unknown deck or card.
            DeckAccessForbiddenError: Caller does not own the deck.
            ReviewValidationError: ``ease`` is not an integer in [1, 5].
            ConcurrencyConflictError: The card kept changing under us.
        """
        deck = await self._load_owned_deck(identity, deck_id)
        card = deck.find_card(card_id)
        if card is None:
            raise CardNotFoundError(deck_id, card_id)
        ease = validate_ease(ease)

        for attempt in range(1, self.max_retries + 1):
            updated = grade_card(card, ease, self.clock())
            if await self.store.update_card_schedule(deck_id, card, updated):
                self.logging_manager.info(
                    "Card review updated",
                    extra={
                        "deck_id": deck_id,
                        "card_id": card_id,
                        "ease": ease,
                        "interval": updated.interval,
                        "attempt": attempt,
                    },
                )
                return updated

            self.logging_manager.warning(
                "Card changed while grading, retrying",
                extra={"deck_id": deck_id, "card_id": card_id, "attempt": attempt},
            )
            deck = await self._load_deck(deck_id)
            card = deck.find_card(card_id)
            if card is None:
                raise CardNotFoundError(deck_id, card_id)

        raise ConcurrencyConflictError(deck_id, card_id, self.max_retries)

    # --- Decks ---

    async def list_decks(self, identity: Identity) -> List[DeckDocument]:
        user = await self._load_user(identity)
        return await self.store.find_decks_by_ids(user.decks)

    async def create_deck(self, identity: Identity, request: CreateDeckRequest) -> DeckDocument:
        user = await self._load_user(identity)
        now = self.clock()
        deck = DeckDocument(
            name=request.name,
            description=request.description,
            owner_id=user.id,
            cards=[],
            created_at=now,
            updated_at=now,
        )
        saved = await self.store.save_deck(deck)
        await self.store.add_deck_to_user(user.id, saved.id)

        self.logging_manager.info("Deck created", extra={"deck_id": saved.id, "user_id": user.id})
        return saved

    async def add_cards(self, identity: Identity, deck_id: str, request: AddCardsRequest) -> DeckDocument:
        await self._load_owned_deck(identity, deck_id)
        now = self.clock()
        cards = [
            CardDocument(front_text=new_card.front_text, back_text=new_card.back_text, next_review=now)
            for new_card in request.cards
        ]

        deck = await self.store.push_cards(deck_id, cards)
        if deck is None:
            raise DeckNotFoundError(deck_id)

        self.logging_manager.info("Cards added", extra={"deck_id": deck_id, "card_count": len(cards)})
        return deck

    async def delete_deck(self, identity: Identity, deck_id: str) -> None:
        user = await self._load_user(identity)
        await self._load_owned_deck(identity, deck_id)

        if not await self.store.delete_deck(deck_id):
            raise DeckNotFoundError(deck_id)
        await self.store.remove_deck_from_user(user.id, deck_id)

        self.logging_manager.info("Deck deleted", extra={"deck_id": deck_id, "user_id": user.id})
