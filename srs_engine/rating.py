from __future__ import annotations
from enum import IntEnum
from typing_extensions import Self
from srs_engine.errors import InvalidRating


class Rating(IntEnum):
    """
    Enum representing the four possible ratings when reviewing a card.
    """

    Again = 1
    Hard = 2
    Good = 3
    Easy = 4

    @classmethod
    def parse(cls, value: object) -> Self:
        """
        Converts an int, a Rating or a rating name ("good", "Easy", ...) to a Rating.

        Raises:
            InvalidRating: If the value does not name one of the four ratings.
        """

        # bool is an int subclass, True would otherwise pass as Again
        if isinstance(value, bool):
            raise InvalidRating(value)

        if isinstance(value, str):
            for rating in cls:
                if rating.name.lower() == value.strip().lower():
                    return rating
            raise InvalidRating(value)

        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise InvalidRating(value) from None

        raise InvalidRating(value)


__all__ = ["Rating"]
