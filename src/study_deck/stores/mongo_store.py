"""
MongoDB implementation of the deck store.

Single-card grading uses the positional operator on a filter that pins the
card's previous schedule with ``$elemMatch``, so the write is atomic for
that card and leaves every other card of the deck untouched.
"""

from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from study_deck.database import DECKS_COLLECTION, USERS_COLLECTION, DatabaseManager
from study_deck.errors import DeckVersionConflictError, StoreError, UsernameTakenError
from study_deck.managers.logging_manager import get_logger
from study_deck.models.deck_models import CardDocument, DeckDocument, UserDocument
from study_deck.stores.base import DeckStore
from study_deck.utils.datetime_utils import utc_now


class MongoDeckStore(DeckStore):
    """Deck store backed by the ``users`` and ``decks`` collections."""

    def __init__(self, db_manager: DatabaseManager, logging_manager=None):
        self.db_manager = db_manager
        self.logging_manager = logging_manager or get_logger(prefix="[MongoDeckStore]")
        self._users: Optional[AsyncIOMotorCollection] = None
        self._decks: Optional[AsyncIOMotorCollection] = None

    @property
    def users(self) -> AsyncIOMotorCollection:
        if self._users is None:
            self._users = self.db_manager.get_collection(USERS_COLLECTION)
        return self._users

    @property
    def decks(self) -> AsyncIOMotorCollection:
        if self._decks is None:
            self._decks = self.db_manager.get_collection(DECKS_COLLECTION)
        return self._decks

    def _store_error(self, operation: str, error: PyMongoError) -> StoreError:
        self.logging_manager.error("MongoDB %s failed: %s", operation, error)
        return StoreError(f"Failed to {operation}: {error}", details={"operation": operation})

    # --- Users ---

    async def find_user_by_id(self, user_id: str) -> Optional[UserDocument]:
        try:
            doc = await self.users.find_one({"_id": user_id})
        except PyMongoError as e:
            raise self._store_error("find user", e) from e
        return UserDocument(**doc) if doc else None

    async def find_user_by_username(self, username: str) -> Optional[UserDocument]:
        try:
            doc = await self.users.find_one({"username": username})
        except PyMongoError as e:
            raise self._store_error("find user", e) from e
        return UserDocument(**doc) if doc else None

    async def insert_user(self, user: UserDocument) -> UserDocument:
        try:
            await self.users.insert_one(user.to_mongo())
        except DuplicateKeyError as e:
            raise UsernameTakenError(user.username) from e
        except PyMongoError as e:
            raise self._store_error("insert user", e) from e
        return user

    async def add_deck_to_user(self, user_id: str, deck_id: str) -> None:
        try:
            await self.users.update_one({"_id": user_id}, {"$addToSet": {"decks": deck_id}})
        except PyMongoError as e:
            raise self._store_error("link deck to user", e) from e

    async def remove_deck_from_user(self, user_id: str, deck_id: str) -> None:
        try:
            await self.users.update_one({"_id": user_id}, {"$pull": {"decks": deck_id}})
        except PyMongoError as e:
            raise self._store_error("unlink deck from user", e) from e

    # --- Decks ---

    async def find_deck_by_id(self, deck_id: str) -> Optional[DeckDocument]:
        try:
            doc = await self.decks.find_one({"_id": deck_id})
        except PyMongoError as e:
            raise self._store_error("find deck", e) from e
        return DeckDocument(**doc) if doc else None

    async def find_decks_by_ids(self, deck_ids: List[str]) -> List[DeckDocument]:
        if not deck_ids:
            return []
        try:
            docs = await self.decks.find({"_id": {"$in": list(deck_ids)}}).to_list(length=None)
        except PyMongoError as e:
            raise self._store_error("list decks", e) from e
        by_id = {doc["_id"]: DeckDocument(**doc) for doc in docs}
        return [by_id[deck_id] for deck_id in deck_ids if deck_id in by_id]

    async def save_deck(self, deck: DeckDocument) -> DeckDocument:
        saved = deck.model_copy(update={"version": deck.version + 1, "updated_at": utc_now()})
        try:
            if deck.version == 0:
                await self.decks.insert_one(saved.to_mongo())
                return saved

            result = await self.decks.replace_one({"_id": deck.id, "version": deck.version}, saved.to_mongo())
        except PyMongoError as e:
            raise self._store_error("save deck", e) from e

        if result.matched_count == 0:
            raise DeckVersionConflictError(deck.id, deck.version)
        return saved

    async def push_cards(self, deck_id: str, cards: List[CardDocument]) -> Optional[DeckDocument]:
        try:
            doc = await self.decks.find_one_and_update(
                {"_id": deck_id},
                {
                    "$push": {"cards": {"$each": [card.model_dump(by_alias=True) for card in cards]}},
                    "$inc": {"version": 1},
                    "$set": {"updated_at": utc_now()},
                },
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise self._store_error("add cards", e) from e
        return DeckDocument(**doc) if doc else None

    async def update_card_schedule(self, deck_id: str, expected: CardDocument, updated: CardDocument) -> bool:
        try:
            result = await self.decks.update_one(
                {
                    "_id": deck_id,
                    "cards": {
                        "$elemMatch": {
                            "_id": expected.id,
                            "interval": expected.interval,
                            "next_review": expected.next_review,
                        }
                    },
                },
                {
                    "$set": {
                        "cards.$.ease": updated.ease,
                        "cards.$.interval": updated.interval,
                        "cards.$.next_review": updated.next_review,
                        "updated_at": utc_now(),
                    },
                    "$inc": {"version": 1},
                },
            )
        except PyMongoError as e:
            raise self._store_error("update card schedule", e) from e
        return result.modified_count == 1

    async def delete_deck(self, deck_id: str) -> bool:
        try:
            result = await self.decks.delete_one({"_id": deck_id})
        except PyMongoError as e:
            raise self._store_error("delete deck", e) from e
        return result.deleted_count == 1
