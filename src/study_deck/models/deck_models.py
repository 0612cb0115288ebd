"""
Pydantic models for decks, embedded cards and users.

Documents are stored with their ``id`` under ``_id``; cards live inside
their deck document and have no collection of their own.
"""

from datetime import datetime
import html
from typing import Any, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from study_deck.utils.datetime_utils import ensure_timezone_aware, utc_now

DEFAULT_EASE = 2.5
DEFAULT_INTERVAL = 0


def new_id() -> str:
    return str(uuid4())


# --- Stored documents ---


class CardDocument(BaseModel):
    """Card embedded in a deck, carrying its spaced-repetition state."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id, alias="_id")
    front_text: str = Field(..., min_length=1)
    back_text: str = Field(..., min_length=1)
    ease: float = Field(default=DEFAULT_EASE, ge=1, le=5, description="Difficulty factor set by the last grade")
    interval: int = Field(default=DEFAULT_INTERVAL, ge=0, description="Days until next review")
    next_review: datetime = Field(default_factory=utc_now)

    @field_validator("next_review")
    @classmethod
    def next_review_is_aware(cls, v: datetime) -> datetime:
        return ensure_timezone_aware(v)

    def is_due(self, now: datetime) -> bool:
        return self.next_review <= now


class DeckDocument(BaseModel):
    """Database document model for the decks collection."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id, alias="_id")
    name: str
    description: str
    owner_id: str = Field(..., description="User that created the deck; never changes")
    cards: List[CardDocument] = Field(default_factory=list)
    version: int = Field(default=0, ge=0, description="Incremented on every write of the document")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("owner_id", mode="before")
    @classmethod
    def owner_id_as_str(cls, v):
        return str(v)

    @field_validator("created_at", "updated_at")
    @classmethod
    def timestamps_are_aware(cls, v: datetime) -> datetime:
        return ensure_timezone_aware(v)

    def find_card(self, card_id: str) -> Optional[CardDocument]:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    def to_mongo(self) -> dict:
        return self.model_dump(by_alias=True)


class UserDocument(BaseModel):
    """Database document model for the users collection."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id, alias="_id")
    username: str
    password_hash: str
    decks: List[str] = Field(default_factory=list, description="Ids of decks this user created")
    created_at: datetime = Field(default_factory=utc_now)

    def to_mongo(self) -> dict:
        return self.model_dump(by_alias=True)


class Identity(BaseModel):
    """Verified caller of a request, supplied by the identity provider."""

    user_id: str
    username: Optional[str] = None

    @field_validator("user_id", mode="before")
    @classmethod
    def user_id_as_str(cls, v):
        return str(v)


# --- Review queue ---


class DueCardView(BaseModel):
    """A due card flattened together with the identity of its deck."""

    deck_id: str
    deck_name: str
    card_id: str
    front_text: str
    back_text: str
    next_review: datetime
    ease: float
    interval: int


# --- API Request/Response Models ---


class CreateDeckRequest(BaseModel):
    name: str = Field(..., min_length=3)
    description: str = Field(..., min_length=5)

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class NewCard(BaseModel):
    """Front/back pair for bulk card creation; text is trimmed and HTML-escaped."""

    front_text: str = Field(..., min_length=1)
    back_text: str = Field(..., min_length=1)

    @field_validator("front_text", "back_text", mode="before")
    @classmethod
    def clean_text(cls, v):
        return html.escape(v.strip()) if isinstance(v, str) else v


class AddCardsRequest(BaseModel):
    cards: List[NewCard] = Field(..., min_length=1)


class ReviewRequest(BaseModel):
    """
    Grade for a card.

    ``ease`` is taken as sent: the review coordinator checks ownership first
    and only then validates it as an integer in [1, 5], so JSON booleans,
    fractions and strings are rejected there with REVIEW_VALIDATION_ERROR.
    """

    ease: Any = Field(...)


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class CardResponse(BaseModel):
    id: str
    front_text: str
    back_text: str
    ease: float
    interval: int
    next_review: datetime

    @classmethod
    def from_document(cls, card: CardDocument) -> "CardResponse":
        return cls(**card.model_dump())


class DeckResponse(BaseModel):
    id: str
    name: str
    description: str
    owner_id: str
    cards: List[CardResponse]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, deck: DeckDocument) -> "DeckResponse":
        return cls(
            id=deck.id,
            name=deck.name,
            description=deck.description,
            owner_id=deck.owner_id,
            cards=[CardResponse.from_document(card) for card in deck.cards],
            created_at=deck.created_at,
            updated_at=deck.updated_at,
        )


class UserResponse(BaseModel):
    id: str
    username: str
    decks: List[str]
    created_at: datetime

    @classmethod
    def from_document(cls, user: UserDocument) -> "UserResponse":
        return cls(id=user.id, username=user.username, decks=user.decks, created_at=user.created_at)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
