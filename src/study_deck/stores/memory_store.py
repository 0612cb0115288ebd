"""
In-process deck store for local development and tests.

Documents are held as deep copies behind an ``asyncio.Lock``; every
operation copies in and out so callers can never mutate stored state.
"""

import asyncio
from typing import Dict, List, Optional

from study_deck.errors import DeckVersionConflictError, UsernameTakenError
from study_deck.models.deck_models import CardDocument, DeckDocument, UserDocument
from study_deck.stores.base import DeckStore
from study_deck.utils.datetime_utils import utc_now


class InMemoryDeckStore(DeckStore):
    def __init__(self):
        self._users: Dict[str, UserDocument] = {}
        self._decks: Dict[str, DeckDocument] = {}
        self._lock = asyncio.Lock()

    # --- Users ---

    async def find_user_by_id(self, user_id: str) -> Optional[UserDocument]:
        async with self._lock:
            user = self._users.get(user_id)
            return user.model_copy(deep=True) if user else None

    async def find_user_by_username(self, username: str) -> Optional[UserDocument]:
        async with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return user.model_copy(deep=True)
            return None

    async def insert_user(self, user: UserDocument) -> UserDocument:
        async with self._lock:
            if any(existing.username == user.username for existing in self._users.values()):
                raise UsernameTakenError(user.username)
            self._users[user.id] = user.model_copy(deep=True)
            return user

    async def add_deck_to_user(self, user_id: str, deck_id: str) -> None:
        async with self._lock:
            user = self._users.get(user_id)
            if user and deck_id not in user.decks:
                user.decks.append(deck_id)

    async def remove_deck_from_user(self, user_id: str, deck_id: str) -> None:
        async with self._lock:
            user = self._users.get(user_id)
            if user:
                user.decks = [existing for existing in user.decks if existing != deck_id]

    # --- Decks ---

    async def find_deck_by_id(self, deck_id: str) -> Optional[DeckDocument]:
        async with self._lock:
            deck = self._decks.get(deck_id)
            return deck.model_copy(deep=True) if deck else None

    async def find_decks_by_ids(self, deck_ids: List[str]) -> List[DeckDocument]:
        async with self._lock:
            return [self._decks[deck_id].model_copy(deep=True) for deck_id in deck_ids if deck_id in self._decks]

    async def save_deck(self, deck: DeckDocument) -> DeckDocument:
        async with self._lock:
            stored = self._decks.get(deck.id)
            stored_version = stored.version if stored else 0
            if stored_version != deck.version:
                raise DeckVersionConflictError(deck.id, deck.version)
            saved = deck.model_copy(deep=True, update={"version": deck.version + 1, "updated_at": utc_now()})
            self._decks[deck.id] = saved
            return saved.model_copy(deep=True)

    async def push_cards(self, deck_id: str, cards: List[CardDocument]) -> Optional[DeckDocument]:
        async with self._lock:
            deck = self._decks.get(deck_id)
            if deck is None:
                return None
            deck.cards.extend(card.model_copy(deep=True) for card in cards)
            deck.version += 1
            deck.updated_at = utc_now()
            return deck.model_copy(deep=True)

    async def update_card_schedule(self, deck_id: str, expected: CardDocument, updated: CardDocument) -> bool:
        async with self._lock:
            deck = self._decks.get(deck_id)
            if deck is None:
                return False
            for index, card in enumerate(deck.cards):
                if card.id != expected.id:
                    continue
                if card.interval != expected.interval or card.next_review != expected.next_review:
                    return False
                deck.cards[index] = card.model_copy(
                    update={"ease": updated.ease, "interval": updated.interval, "next_review": updated.next_review}
                )
                deck.version += 1
                deck.updated_at = utc_now()
                return True
            return False

    async def delete_deck(self, deck_id: str) -> bool:
        async with self._lock:
            return self._decks.pop(deck_id, None) is not None
