"""
Deck ownership checks.

A deck may be read or changed only by the user who created it. The check is
a pure comparison of canonical string ids; it never touches storage.
"""

from enum import Enum
from typing import Any

from study_deck.errors import DeckAccessForbiddenError
from study_deck.models.deck_models import DeckDocument, Identity


class AccessDecision(str, Enum):
    ALLOWED = "allowed"
    DENIED = "denied"


def canonical_id(value: Any) -> str:
    """Normalize an id (str, ObjectId, UUID) to its canonical string form."""
    return str(value).strip()


def authorize(identity: Identity, deck: DeckDocument) -> AccessDecision:
    if canonical_id(deck.owner_id) == canonical_id(identity.user_id):
        return AccessDecision.ALLOWED
    return AccessDecision.DENIED


def ensure_deck_access(identity: Identity, deck: DeckDocument) -> DeckDocument:
    """Return ``deck`` if ``identity`` owns it, else raise DeckAccessForbiddenError."""
    if authorize(identity, deck) is AccessDecision.DENIED:
        raise DeckAccessForbiddenError()
    return deck
