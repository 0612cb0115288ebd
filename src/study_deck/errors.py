"""
Error taxonomy for deck and review operations.

Every error carries a human readable ``message``, a stable ``error_code``
and a ``details`` dict. The route layer maps the error kind to an HTTP
status through ``status_code``.
"""

from typing import Any, Dict, Optional


class StudyDeckError(Exception):
    """Base exception for deck, card and review operations."""

    status_code: int = 500

    def __init__(self, message: str, error_code: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "error_code": self.error_code, "details": self.details}


# --- Not found (404) ---


class NotFoundError(StudyDeckError):
    """A referenced deck, card or user does not exist."""

    status_code = 404


class DeckNotFoundError(NotFoundError):
    def __init__(self, deck_id: str):
        self.deck_id = deck_id
        super().__init__(f"No deck with id {deck_id}", "DECK_NOT_FOUND", {"deck_id": deck_id})


class CardNotFoundError(NotFoundError):
    def __init__(self, deck_id: str, card_id: str):
        self.deck_id = deck_id
        self.card_id = card_id
        super().__init__(
            f"No card with id {card_id} in deck {deck_id}",
            "CARD_NOT_FOUND",
            {"deck_id": deck_id, "card_id": card_id},
        )


class UserNotFoundError(NotFoundError):
    def __init__(self, user_ref: str):
        self.user_ref = user_ref
        super().__init__(f"User {user_ref} does not exist", "USER_NOT_FOUND", {"user": user_ref})


# --- Forbidden (403) ---


class ForbiddenError(StudyDeckError):
    """The identity is authenticated but may not touch the target resource."""

    status_code = 403


class DeckAccessForbiddenError(ForbiddenError):
    # Details stay empty so a denied caller learns nothing about the deck.
    def __init__(self):
        super().__init__("You don't have access to this deck", "DECK_ACCESS_FORBIDDEN")


# --- Validation (400) ---


class ValidationError(StudyDeckError):
    """Input outside the operation's contract; rejected before any write."""

    status_code = 400


class ReviewValidationError(ValidationError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "REVIEW_VALIDATION_ERROR", details)


# --- Conflict (409) ---


class ConflictError(StudyDeckError):
    status_code = 409


class UsernameTakenError(ConflictError):
    def __init__(self, username: str):
        super().__init__("User already exist", "USERNAME_TAKEN", {"username": username})


# --- Authentication (401) ---


class AuthenticationError(StudyDeckError):
    status_code = 401

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message, "AUTHENTICATION_FAILED")


# --- Store (500) ---


class StoreError(StudyDeckError):
    """Underlying persistence failure. Never retried by the core."""

    status_code = 500

    def __init__(self, message: str, error_code: str = "STORE_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class ConcurrencyConflictError(StoreError):
    def __init__(self, deck_id: str, card_id: str, attempts: int):
        super().__init__(
            f"Card {card_id} kept changing while being graded",
            "REVIEW_CONCURRENCY_CONFLICT",
            {"deck_id": deck_id, "card_id": card_id, "attempts": attempts},
        )


class DeckVersionConflictError(StoreError):
    def __init__(self, deck_id: str, expected_version: int):
        super().__init__(
            f"Deck {deck_id} was modified by another request",
            "DECK_VERSION_CONFLICT",
            {"deck_id": deck_id, "expected_version": expected_version},
        )
