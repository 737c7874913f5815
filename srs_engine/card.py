"""
srs_engine.card
---------------

This module defines the CardMemoryState class.

Classes:
    CardMemoryState: The memory state of one user for one flashcard.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
import json
from typing import TypedDict
from typing_extensions import Self
from srs_engine.errors import InvalidState
from srs_engine.memory import MAX_DIFFICULTY, MIN_DIFFICULTY
from srs_engine.state import State


class CardMemoryStateDict(TypedDict):
    """
    JSON-serializable dictionary representation of a CardMemoryState object.
    """

    card_id: str
    user_id: str
    state: int
    difficulty: float | None
    stability: float | None
    due: str
    last_review: str | None
    scheduled_days: int
    elapsed_days: int
    reps: int
    lapses: int
    step: int | None


@dataclass(frozen=True)
class CardMemoryState:
    """
    Represents the memory state of one user for one flashcard.

    Instances are immutable: the Scheduler returns a new object for every review.

    Attributes:
        card_id: Opaque identifier of the flashcard.
        user_id: Opaque identifier of the user.
        state: The card's current learning state.
        difficulty: Intrinsic hardness of the card in [1, 10], None while New.
        stability: Days until retrievability decays to 90%, None while New.
        due: The date and time when the card is due next.
        last_review: The date and time of the card's last review, None while New.
        scheduled_days: The interval in whole days chosen at the last review.
        elapsed_days: Whole days between the previous review and the last review.
        reps: Number of reviews ever applied to the card.
        lapses: Number of times the card was forgotten while in the Review state.
        step: The current learning or relearning step, None in the New and Review states.
    """

    card_id: str
    user_id: str
    state: State = State.New
    difficulty: float | None = None
    stability: float | None = None
    due: datetime | None = None
    last_review: datetime | None = None
    scheduled_days: int = 0
    elapsed_days: int = 0
    reps: int = 0
    lapses: int = 0
    step: int | None = None

    def __post_init__(self) -> None:
        if self.due is None:
            object.__setattr__(self, "due", datetime.now(timezone.utc))

    @classmethod
    def new(cls, card_id: str, user_id: str, now: datetime | None = None) -> Self:
        """
        Creates the New-state record for a card a user has just encountered.

        Args:
            card_id: The id of the card.
            user_id: The id of the user.
            now: The creation time, the card is due immediately. Defaults to the current time.

        Returns:
            A CardMemoryState in the New state.
        """

        if now is None:
            now = datetime.now(timezone.utc)

        return cls(card_id=card_id, user_id=user_id, state=State.New, due=now)

    @property
    def version(self) -> str | None:
        """
        The compare-and-set token used by state stores to detect concurrent writes.
        """

        return self.last_review.isoformat() if self.last_review else None

    def is_due(self, now: datetime) -> bool:
        return self.due <= now

    def validate(self) -> None:
        """
        Checks the invariants every CardMemoryState produced by the engine holds.

        Raises:
            InvalidState: If any invariant is violated.
        """

        for timestamp in (self.due, self.last_review):
            if timestamp is not None and timestamp.utcoffset() is None:
                raise InvalidState(
                    f"card {self.card_id!r} has a timezone-naive timestamp {timestamp.isoformat()}"
                )

        if self.reps < 0 or self.lapses < 0:
            raise InvalidState(
                f"card {self.card_id!r} has negative reps ({self.reps}) or lapses ({self.lapses})"
            )
        if self.reps < self.lapses:
            raise InvalidState(
                f"card {self.card_id!r} has more lapses ({self.lapses}) than reps ({self.reps})"
            )

        match self.state:
            case State.New:
                if (
                    self.reps != 0
                    or self.last_review is not None
                    or self.stability is not None
                    or self.difficulty is not None
                    or self.step is not None
                ):
                    raise InvalidState(
                        f"New card {self.card_id!r} must not carry review history"
                    )
                return

            case State.Learning | State.Relearning:
                if self.step is None or self.step < 0:
                    raise InvalidState(
                        f"{self.state.name} card {self.card_id!r} needs a learning step"
                    )

            case State.Review:
                if self.step is not None:
                    raise InvalidState(
                        f"Review card {self.card_id!r} must not have a learning step"
                    )

        if self.stability is None or self.difficulty is None:
            raise InvalidState(
                f"{self.state.name} card {self.card_id!r} is missing stability or difficulty"
            )
        if self.stability <= 0:
            raise InvalidState(
                f"card {self.card_id!r} has non-positive stability {self.stability}"
            )
        if not MIN_DIFFICULTY <= self.difficulty <= MAX_DIFFICULTY:
            raise InvalidState(
                f"card {self.card_id!r} has difficulty {self.difficulty} outside [{MIN_DIFFICULTY}, {MAX_DIFFICULTY}]"
            )
        if self.last_review is None:
            raise InvalidState(
                f"{self.state.name} card {self.card_id!r} has never been reviewed"
            )
        if self.due < self.last_review:
            raise InvalidState(
                f"card {self.card_id!r} is due before its last review"
            )

    def to_dict(self) -> CardMemoryStateDict:
        """
        Returns a JSON-serializable dictionary representation of the CardMemoryState object.

        This method is specifically useful for storing CardMemoryState objects in a database.

        Returns:
            A dictionary representation of the CardMemoryState object.
        """

        return {
            "card_id": self.card_id,
            "user_id": self.user_id,
            "state": self.state.value,
            "difficulty": self.difficulty,
            "stability": self.stability,
            "due": self.due.isoformat(),
            "last_review": self.last_review.isoformat() if self.last_review else None,
            "scheduled_days": self.scheduled_days,
            "elapsed_days": self.elapsed_days,
            "reps": self.reps,
            "lapses": self.lapses,
            "step": self.step,
        }

    @classmethod
    def from_dict(cls, source_dict: CardMemoryStateDict) -> Self:
        """
        Creates a CardMemoryState object from an existing dictionary.

        Args:
            source_dict: A dictionary representing an existing CardMemoryState object.

        Returns:
            A CardMemoryState object created from the provided dictionary.
        """

        return cls(
            card_id=str(source_dict["card_id"]),
            user_id=str(source_dict["user_id"]),
            state=State(int(source_dict["state"])),
            difficulty=(
                float(source_dict["difficulty"])
                if source_dict["difficulty"] is not None
                else None
            ),
            stability=(
                float(source_dict["stability"])
                if source_dict["stability"] is not None
                else None
            ),
            due=datetime.fromisoformat(source_dict["due"]),
            last_review=(
                datetime.fromisoformat(source_dict["last_review"])
                if source_dict["last_review"]
                else None
            ),
            scheduled_days=int(source_dict["scheduled_days"]),
            elapsed_days=int(source_dict["elapsed_days"]),
            reps=int(source_dict["reps"]),
            lapses=int(source_dict["lapses"]),
            step=source_dict["step"],
        )

    def to_json(self, indent: int | str | None = None) -> str:
        """
        Returns a JSON-serialized string of the CardMemoryState object.

        Args:
            indent: Equivalent argument to the indent in json.dumps()

        Returns:
            str: A JSON-serialized string of the CardMemoryState object.
        """

        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, source_json: str) -> Self:
        """
        Creates a CardMemoryState object from a JSON-serialized string.

        Args:
            source_json: A JSON-serialized string of an existing CardMemoryState object.

        Returns:
            Self: A CardMemoryState object created from the JSON string.
        """

        source_dict: CardMemoryStateDict = json.loads(source_json)
        return cls.from_dict(source_dict=source_dict)


__all__ = ["CardMemoryState"]
