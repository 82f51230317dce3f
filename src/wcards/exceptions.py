"""Exceptions raised by the card store, audio cache and sessions."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import Card


class WCardsError(Exception):
    """Base exception for all wcards errors."""


class CardNotFoundError(WCardsError):
    def __init__(self, card_id: str):
        super().__init__(f"Card not found: {card_id}")
        self.card_id = card_id


class DuplicateCardError(WCardsError):
    """A card with the same normalized English word already exists."""

    def __init__(self, existing_card: Optional["Card"] = None):
        super().__init__("A card with this English word already exists")
        self.existing_card = existing_card


class CardValidationError(WCardsError):
    pass


class AudioGenerationError(WCardsError):
    pass


class SessionError(WCardsError):
    pass


class InvalidTransitionError(SessionError):
    def __init__(self, state: str, event: str):
        super().__init__(f"Event '{event}' is not allowed in state '{state}'")
        self.state = state
        self.event = event
