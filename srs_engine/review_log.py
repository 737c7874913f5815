"""
srs_engine.review_log
---------------------

This module defines the ReviewLogEntry class and the review log writers.

Classes:
    ReviewLogEntry: The immutable record of one scheduling decision.
    ReviewLogWriter: Interface of an append-only review log.
    InMemoryReviewLog: A thread-safe, in-process ReviewLogWriter.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
import json
import logging
import threading
from typing import TypedDict
from typing_extensions import Self
from srs_engine.rating import Rating
from srs_engine.state import State

logger = logging.getLogger(__name__)


class ReviewLogEntryDict(TypedDict):
    """
    JSON-serializable dictionary representation of a ReviewLogEntry object.
    """

    card_id: str
    user_id: str
    lesson_id: str | None
    rating: int
    timestamp: str
    scheduled_days: int
    elapsed_days: int
    prior_state: int
    resulting_state: int
    duration: int | None
    context: str | None
    request_id: str | None
    applied: bool


@dataclass(frozen=True)
class ReviewLogEntry:
    """
    Represents the log entry of a CardMemoryState object that has been reviewed.

    Attributes:
        card_id: The id of the card being reviewed.
        user_id: The id of the user who reviewed it.
        lesson_id: The lesson the card belongs to, supplied by the caller.
        rating: The rating given to the card during the review.
        timestamp: The date and time of the review.
        scheduled_days: The interval in whole days chosen by the review.
        elapsed_days: Whole days since the card's previous review.
        prior_state: The card's state before the review.
        resulting_state: The card's state after the review.
        duration: The number of milliseconds it took to review the card or None if unspecified.
        context: Free-form tag of where the review happened, e.g. "review" or "lesson".
        request_id: Client-generated id used to drop retried submissions.
        applied: False when the rating was logged without changing the card's state.
    """

    card_id: str
    user_id: str
    lesson_id: str | None
    rating: Rating
    timestamp: datetime
    scheduled_days: int
    elapsed_days: int
    prior_state: State
    resulting_state: State
    duration: int | None = None
    context: str | None = None
    request_id: str | None = None
    applied: bool = True

    def to_dict(self) -> ReviewLogEntryDict:
        """
        Returns a dictionary representation of the ReviewLogEntry object.

        Returns:
            A dictionary representation of the ReviewLogEntry object.
        """

        return {
            "card_id": self.card_id,
            "user_id": self.user_id,
            "lesson_id": self.lesson_id,
            "rating": int(self.rating),
            "timestamp": self.timestamp.isoformat(),
            "scheduled_days": self.scheduled_days,
            "elapsed_days": self.elapsed_days,
            "prior_state": int(self.prior_state),
            "resulting_state": int(self.resulting_state),
            "duration": self.duration,
            "context": self.context,
            "request_id": self.request_id,
            "applied": self.applied,
        }

    @classmethod
    def from_dict(cls, source_dict: ReviewLogEntryDict) -> Self:
        """
        Creates a ReviewLogEntry object from an existing dictionary.

        Args:
            source_dict: A dictionary representing an existing ReviewLogEntry object.

        Returns:
            A ReviewLogEntry object created from the provided dictionary.
        """

        return cls(
            card_id=source_dict["card_id"],
            user_id=source_dict["user_id"],
            lesson_id=source_dict["lesson_id"],
            rating=Rating(int(source_dict["rating"])),
            timestamp=datetime.fromisoformat(source_dict["timestamp"]),
            scheduled_days=int(source_dict["scheduled_days"]),
            elapsed_days=int(source_dict["elapsed_days"]),
            prior_state=State(int(source_dict["prior_state"])),
            resulting_state=State(int(source_dict["resulting_state"])),
            duration=source_dict["duration"],
            context=source_dict.get("context"),
            request_id=source_dict.get("request_id"),
            applied=bool(source_dict.get("applied", True)),
        )

    def to_json(self, indent: int | str | None = None) -> str:
        """
        Returns a JSON-serialized string of the ReviewLogEntry object.

        Args:
            indent: Equivalent argument to the indent in json.dumps()

        Returns:
            str: A JSON-serialized string of the ReviewLogEntry object.
        """

        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, source_json: str) -> Self:
        """
        Creates a ReviewLogEntry object from a JSON-serialized string.

        Args:
            source_json: A JSON-serialized string of an existing ReviewLogEntry object.

        Returns:
            Self: A ReviewLogEntry object created from the JSON string.
        """

        source_dict: ReviewLogEntryDict = json.loads(source_json)
        return cls.from_dict(source_dict=source_dict)


class ReviewLogWriter(ABC):
    """
    Interface of the append-only review log.

    Entries are never edited or deleted once appended. Implementations raise
    LogWriteFailure for transient errors the caller may retry.
    """

    @abstractmethod
    def append(self, entry: ReviewLogEntry) -> None:
        """
        Appends an entry to the log.

        Raises:
            LogWriteFailure: If the entry could not be written but the write may be retried.
        """

    @abstractmethod
    def find_request(self, request_id: str) -> ReviewLogEntry | None:
        """
        Returns the entry written for a client request id, if any.
        """

    @abstractmethod
    def entries(
        self, user_id: str, card_id: str | None = None
    ) -> tuple[ReviewLogEntry, ...]:
        """
        Returns a user's entries in append order, optionally restricted to one card.
        """


class InMemoryReviewLog(ReviewLogWriter):
    """
    A ReviewLogWriter that keeps entries in a list guarded by a lock.
    """

    def __init__(self) -> None:
        self._entries: list[ReviewLogEntry] = []
        self._requests: dict[str, ReviewLogEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: ReviewLogEntry) -> None:
        with self._lock:
            if entry.request_id is not None:
                if entry.request_id in self._requests:
                    logger.info(
                        "Dropping duplicate review log entry for request %s",
                        entry.request_id,
                    )
                    return
                self._requests[entry.request_id] = entry

            self._entries.append(entry)

    def find_request(self, request_id: str) -> ReviewLogEntry | None:
        with self._lock:
            return self._requests.get(request_id)

    def entries(
        self, user_id: str, card_id: str | None = None
    ) -> tuple[ReviewLogEntry, ...]:
        with self._lock:
            return tuple(
                entry
                for entry in self._entries
                if entry.user_id == user_id
                and (card_id is None or entry.card_id == card_id)
            )

    def count_since(self, user_id: str, since: datetime) -> int:
        """
        Counts the applied reviews a user made at or after a given time.

        Typically used for a "reviewed today" counter.
        """

        return sum(
            1
            for entry in self.entries(user_id)
            if entry.applied and entry.timestamp >= since
        )


__all__ = ["ReviewLogEntry", "ReviewLogWriter", "InMemoryReviewLog"]
