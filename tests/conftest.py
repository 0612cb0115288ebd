"""
Pytest configuration for the Study Deck test suite.

Provides a fixed clock, an in-memory store and sample users/decks so the
scheduling and ownership logic can be tested without MongoDB.
"""

from datetime import datetime, timezone
import os
import sys

import pytest
import pytest_asyncio

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from study_deck.config import Settings
from study_deck.models.deck_models import CardDocument, DeckDocument, Identity, UserDocument
from study_deck.stores.memory_store import InMemoryDeckStore
from study_deck.utils.datetime_utils import FixedClock

T0 = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def test_settings():
    return Settings(SECRET_KEY="unit-test-secret-key", ENV="test", REVIEW_UPDATE_MAX_RETRIES=3)


@pytest.fixture
def store():
    return InMemoryDeckStore()


@pytest.fixture
def owner():
    return UserDocument(_id="owner-1", username="owner", password_hash="x", decks=[])


@pytest.fixture
def stranger():
    return UserDocument(_id="stranger-1", username="stranger", password_hash="x", decks=[])


@pytest.fixture
def owner_identity(owner):
    return Identity(user_id=owner.id, username=owner.username)


@pytest.fixture
def stranger_identity(stranger):
    return Identity(user_id=stranger.id, username=stranger.username)


def make_card(card_id: str, next_review: datetime, interval: int = 0, ease: float = 2.5) -> CardDocument:
    return CardDocument(
        _id=card_id,
        front_text=f"front {card_id}",
        back_text=f"back {card_id}",
        ease=ease,
        interval=interval,
        next_review=next_review,
    )


@pytest.fixture
def sample_deck(owner):
    return DeckDocument(
        _id="deck-1",
        name="Spanish verbs",
        description="Common irregular verbs",
        owner_id=owner.id,
        cards=[make_card("card-a", T0), make_card("card-b", T0)],
        created_at=T0,
        updated_at=T0,
    )


@pytest_asyncio.fixture
async def seeded_store(store, owner, stranger, sample_deck):
    """In-memory store holding two users and a deck owned by the first."""
    await store.insert_user(owner)
    await store.insert_user(stranger)
    await store.save_deck(sample_deck)
    await store.add_deck_to_user(owner.id, sample_deck.id)
    return store
