"""
Data models for the Study Deck service.

This module contains Pydantic models for request/response validation,
database documents, and the review queue view.
"""

from .deck_models import *

__all__ = [
    "AddCardsRequest",
    "CardDocument",
    "CardResponse",
    "CreateDeckRequest",
    "DeckDocument",
    "DeckResponse",
    "DueCardView",
    "Identity",
    "LoginRequest",
    "NewCard",
    "RegisterRequest",
    "ReviewRequest",
    "TokenResponse",
    "UserDocument",
    "UserResponse",
]
