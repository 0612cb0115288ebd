"""Study Deck: flashcard decks with spaced-repetition review scheduling."""

__version__ = "1.0.0"
