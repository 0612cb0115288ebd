"""
Unit tests for MongoDeckStore against mocked Motor collections.

Checks the exact filters and update documents sent to MongoDB and the
translation of driver errors.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from study_deck.database import DECKS_COLLECTION, USERS_COLLECTION
from study_deck.errors import DeckVersionConflictError, StoreError, UsernameTakenError
from study_deck.models.deck_models import CardDocument, UserDocument
from study_deck.services.repetition import grade_card
from study_deck.stores.mongo_store import MongoDeckStore

from conftest import T0, make_card


def mock_collection():
    collection = AsyncMock(spec=AsyncIOMotorCollection)
    collection.find_one = AsyncMock()
    collection.insert_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.replace_one = AsyncMock()
    collection.find_one_and_update = AsyncMock()
    collection.delete_one = AsyncMock()
    collection.find = MagicMock()  # This returns a mock cursor
    return collection


@pytest.fixture
def collections():
    return {USERS_COLLECTION: mock_collection(), DECKS_COLLECTION: mock_collection()}


@pytest.fixture
def mock_db_manager(collections):
    db_manager = MagicMock()
    db_manager.get_collection.side_effect = lambda name: collections[name]
    return db_manager


@pytest.fixture
def mongo_store(mock_db_manager):
    return MongoDeckStore(db_manager=mock_db_manager, logging_manager=MagicMock())


@pytest.fixture
def deck_doc(sample_deck):
    return sample_deck.model_copy(update={"version": 4}).to_mongo()


class TestCollections:
    def test_collections_are_resolved_lazily_once(self, mongo_store, mock_db_manager, collections):
        assert mongo_store.decks is collections[DECKS_COLLECTION]
        assert mongo_store.decks is collections[DECKS_COLLECTION]
        assert mongo_store.users is collections[USERS_COLLECTION]
        assert mock_db_manager.get_collection.call_count == 2


class TestUpdateCardSchedule:
    @pytest.mark.asyncio
    async def test_filter_pins_previous_schedule(self, mongo_store, collections):
        decks = collections[DECKS_COLLECTION]
        decks.update_one.return_value = MagicMock(modified_count=1)
        expected = make_card("card-a", T0, interval=3)
        updated = grade_card(expected, 4, T0)

        assert await mongo_store.update_card_schedule("deck-1", expected, updated) is True

        query, update = decks.update_one.call_args.args
        assert query == {
            "_id": "deck-1",
            "cards": {"$elemMatch": {"_id": "card-a", "interval": 3, "next_review": T0}},
        }
        assert update["$set"]["cards.$.ease"] == 4.0
        assert update["$set"]["cards.$.interval"] == 7
        assert update["$set"]["cards.$.next_review"] == T0 + timedelta(days=7)
        assert update["$inc"] == {"version": 1}
        assert not any(key.startswith("cards.$.front") or key == "cards" for key in update["$set"])

    @pytest.mark.asyncio
    async def test_lost_race_returns_false(self, mongo_store, collections):
        collections[DECKS_COLLECTION].update_one.return_value = MagicMock(modified_count=0)
        card = make_card("card-a", T0)
        assert await mongo_store.update_card_schedule("deck-1", card, grade_card(card, 1, T0)) is False

    @pytest.mark.asyncio
    async def test_driver_error_becomes_store_error(self, mongo_store, collections):
        collections[DECKS_COLLECTION].update_one.side_effect = ServerSelectionTimeoutError("no primary")
        card = make_card("card-a", T0)

        with pytest.raises(StoreError) as exc_info:
            await mongo_store.update_card_schedule("deck-1", card, grade_card(card, 3, T0))
        assert exc_info.value.details == {"operation": "update card schedule"}
        assert exc_info.value.status_code == 500


class TestDecks:
    @pytest.mark.asyncio
    async def test_find_deck_by_id(self, mongo_store, collections, deck_doc):
        collections[DECKS_COLLECTION].find_one.return_value = deck_doc

        deck = await mongo_store.find_deck_by_id("deck-1")

        collections[DECKS_COLLECTION].find_one.assert_called_once_with({"_id": "deck-1"})
        assert deck.id == "deck-1"
        assert deck.version == 4
        assert [card.id for card in deck.cards] == ["card-a", "card-b"]

    @pytest.mark.asyncio
    async def test_find_missing_deck(self, mongo_store, collections):
        collections[DECKS_COLLECTION].find_one.return_value = None
        assert await mongo_store.find_deck_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_find_decks_by_ids_keeps_requested_order(self, mongo_store, collections, sample_deck):
        other = sample_deck.model_copy(update={"id": "deck-2"})
        cursor = MagicMock()
        cursor.to_list = AsyncMock(return_value=[other.to_mongo(), sample_deck.to_mongo()])
        collections[DECKS_COLLECTION].find.return_value = cursor

        decks = await mongo_store.find_decks_by_ids(["deck-1", "deck-2", "gone"])

        collections[DECKS_COLLECTION].find.assert_called_once_with({"_id": {"$in": ["deck-1", "deck-2", "gone"]}})
        assert [deck.id for deck in decks] == ["deck-1", "deck-2"]

    @pytest.mark.asyncio
    async def test_find_decks_by_ids_empty(self, mongo_store, collections):
        assert await mongo_store.find_decks_by_ids([]) == []
        collections[DECKS_COLLECTION].find.assert_not_called()

    @pytest.mark.asyncio
    async def test_save_new_deck_inserts(self, mongo_store, collections, sample_deck):
        saved = await mongo_store.save_deck(sample_deck)

        assert saved.version == 1
        inserted = collections[DECKS_COLLECTION].insert_one.call_args.args[0]
        assert inserted["_id"] == "deck-1"
        assert inserted["version"] == 1

    @pytest.mark.asyncio
    async def test_save_existing_deck_checks_version(self, mongo_store, collections, sample_deck):
        decks = collections[DECKS_COLLECTION]
        decks.replace_one.return_value = MagicMock(matched_count=1)

        saved = await mongo_store.save_deck(sample_deck.model_copy(update={"version": 2}))

        assert saved.version == 3
        assert decks.replace_one.call_args.args[0] == {"_id": "deck-1", "version": 2}

    @pytest.mark.asyncio
    async def test_save_stale_deck_conflicts(self, mongo_store, collections, sample_deck):
        collections[DECKS_COLLECTION].replace_one.return_value = MagicMock(matched_count=0)
        with pytest.raises(DeckVersionConflictError) as exc_info:
            await mongo_store.save_deck(sample_deck.model_copy(update={"version": 2}))
        assert exc_info.value.error_code == "DECK_VERSION_CONFLICT"
        assert exc_info.value.details["expected_version"] == 2

    @pytest.mark.asyncio
    async def test_push_cards(self, mongo_store, collections, deck_doc):
        decks = collections[DECKS_COLLECTION]
        decks.find_one_and_update.return_value = deck_doc
        new_card = CardDocument(_id="card-c", front_text="comer", back_text="to eat", next_review=T0)

        deck = await mongo_store.push_cards("deck-1", [new_card])

        query, update = decks.find_one_and_update.call_args.args
        assert query == {"_id": "deck-1"}
        assert update["$push"]["cards"]["$each"][0]["_id"] == "card-c"
        assert update["$inc"] == {"version": 1}
        assert decks.find_one_and_update.call_args.kwargs["return_document"] is ReturnDocument.AFTER
        assert deck.id == "deck-1"

    @pytest.mark.asyncio
    async def test_push_cards_to_missing_deck(self, mongo_store, collections):
        collections[DECKS_COLLECTION].find_one_and_update.return_value = None
        assert await mongo_store.push_cards("missing", []) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("deleted, expected", [(1, True), (0, False)])
    async def test_delete_deck(self, mongo_store, collections, deleted, expected):
        collections[DECKS_COLLECTION].delete_one.return_value = MagicMock(deleted_count=deleted)
        assert await mongo_store.delete_deck("deck-1") is expected


class TestUsers:
    @pytest.mark.asyncio
    async def test_insert_duplicate_username(self, mongo_store, collections):
        collections[USERS_COLLECTION].insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")
        with pytest.raises(UsernameTakenError) as exc_info:
            await mongo_store.insert_user(UserDocument(username="taken", password_hash="h"))
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_find_user_by_username(self, mongo_store, collections, owner):
        collections[USERS_COLLECTION].find_one.return_value = owner.to_mongo()

        user = await mongo_store.find_user_by_username("owner")

        collections[USERS_COLLECTION].find_one.assert_called_once_with({"username": "owner"})
        assert user.id == owner.id

    @pytest.mark.asyncio
    async def test_deck_links(self, mongo_store, collections):
        users = collections[USERS_COLLECTION]

        await mongo_store.add_deck_to_user("owner-1", "deck-9")
        await mongo_store.remove_deck_from_user("owner-1", "deck-9")

        assert users.update_one.call_args_list[0].args == ({"_id": "owner-1"}, {"$addToSet": {"decks": "deck-9"}})
        assert users.update_one.call_args_list[1].args == ({"_id": "owner-1"}, {"$pull": {"decks": "deck-9"}})
