"""Database package for the Study Deck service."""

from study_deck.database.manager import DECKS_COLLECTION, USERS_COLLECTION, DatabaseManager

__all__ = ["DECKS_COLLECTION", "USERS_COLLECTION", "DatabaseManager"]
