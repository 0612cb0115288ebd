"""
Storage contract for users and decks.

Cards are embedded in their deck. Grading never rewrites a whole deck: it
goes through `update_card_schedule`, a compare-and-swap on a single card,
so two cards of the same deck can be graded concurrently without either
update being lost.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from study_deck.models.deck_models import CardDocument, DeckDocument, UserDocument


class DeckStore(ABC):
    """Persistence operations the deck manager relies on."""

    # --- Users ---

    @abstractmethod
    async def find_user_by_id(self, user_id: str) -> Optional[UserDocument]:
        ...

    @abstractmethod
    async def find_user_by_username(self, username: str) -> Optional[UserDocument]:
        ...

    @abstractmethod
    async def insert_user(self, user: UserDocument) -> UserDocument:
        """Insert a new user. Raises UsernameTakenError on a duplicate username."""

    @abstractmethod
    async def add_deck_to_user(self, user_id: str, deck_id: str) -> None:
        ...

    @abstractmethod
    async def remove_deck_from_user(self, user_id: str, deck_id: str) -> None:
        ...

    # --- Decks ---

    @abstractmethod
    async def find_deck_by_id(self, deck_id: str) -> Optional[DeckDocument]:
        ...

    @abstractmethod
    async def find_decks_by_ids(self, deck_ids: List[str]) -> List[DeckDocument]:
        ...

    @abstractmethod
    async def save_deck(self, deck: DeckDocument) -> DeckDocument:
        """
        Insert a new deck or replace an existing one whose stored version
        still equals ``deck.version``. Returns the deck with its new version.

        Raises:
            DeckVersionConflictError: If the stored version moved on.
        """

    @abstractmethod
    async def push_cards(self, deck_id: str, cards: List[CardDocument]) -> Optional[DeckDocument]:
        """Append cards atomically. Returns the updated deck, or None if it no longer exists."""

    @abstractmethod
    async def update_card_schedule(
        self, deck_id: str, expected: CardDocument, updated: CardDocument
    ) -> bool:
        """
        Replace the scheduling fields of one card if it still holds the
        state in ``expected``. Returns False when the card changed or is gone.
        """

    @abstractmethod
    async def delete_deck(self, deck_id: str) -> bool:
        ...
