"""Deck and user persistence backends."""

from study_deck.stores.base import DeckStore
from study_deck.stores.memory_store import InMemoryDeckStore
from study_deck.stores.mongo_store import MongoDeckStore

__all__ = ["DeckStore", "InMemoryDeckStore", "MongoDeckStore"]
