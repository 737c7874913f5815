"""
srs_engine.errors
-----------------

Exceptions raised by the scheduling engine and its persistence collaborators.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from srs_engine.card import CardMemoryState


class SchedulingError(Exception):
    """
    Base class for every error raised by srs_engine.
    """


class InvalidRating(SchedulingError, ValueError):
    """
    Raised when a rating outside of {1, 2, 3, 4} is given to the engine.
    """

    def __init__(self, rating: object) -> None:
        self.rating = rating
        super().__init__(f"Invalid rating {rating!r}, expected one of 1, 2, 3, 4")


class InvalidState(SchedulingError, ValueError):
    """
    Raised when a CardMemoryState holds an impossible combination of fields.
    """


class ConcurrencyConflict(SchedulingError):
    """
    Raised by a state store when a compare-and-set commit loses a race.

    Attributes:
        user_id: The user whose card was being committed.
        card_id: The card that was being committed.
        current: The state currently held by the store, to re-rate against.
    """

    def __init__(
        self, user_id: str, card_id: str, current: CardMemoryState | None
    ) -> None:
        self.user_id = user_id
        self.card_id = card_id
        self.current = current
        super().__init__("this card was already updated elsewhere")


class LogWriteFailure(SchedulingError):
    """
    Raised by a review log writer when an append fails but may be retried.
    """


__all__ = [
    "SchedulingError",
    "InvalidRating",
    "InvalidState",
    "ConcurrencyConflict",
    "LogWriteFailure",
]
