"""
srs_engine.store
----------------

This module defines the persistence boundary of the engine.

Classes:
    CardStateStore: Interface of a store holding one CardMemoryState per (user, card).
    InMemoryCardStateStore: A thread-safe, in-process CardStateStore.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import datetime
import logging
import threading
from srs_engine.card import CardMemoryState
from srs_engine.errors import ConcurrencyConflict

logger = logging.getLogger(__name__)


class CardStateStore(ABC):
    """
    Interface of the card state store.

    Commits use compare-and-set on CardMemoryState.version so two devices racing to rate
    the same card cannot both apply their rating.
    """

    @abstractmethod
    def get(self, user_id: str, card_id: str) -> CardMemoryState | None:
        """
        Returns the stored state, or None if the user never encountered the card.
        """

    @abstractmethod
    def get_or_create(
        self, user_id: str, card_id: str, now: datetime | None = None
    ) -> CardMemoryState:
        """
        Returns the stored state, creating a New-state record on first access.
        """

    @abstractmethod
    def commit(
        self,
        user_id: str,
        card_id: str,
        expected_version: str | None,
        new_state: CardMemoryState,
    ) -> None:
        """
        Stores new_state if the stored version still equals expected_version.

        Raises:
            ConcurrencyConflict: If another write got there first.
        """

    @abstractmethod
    def states_for_user(self, user_id: str) -> list[CardMemoryState]:
        """
        Returns every stored state of a user.
        """


class InMemoryCardStateStore(CardStateStore):
    """
    A CardStateStore that keeps states in a dict guarded by a lock.
    """

    def __init__(self) -> None:
        self._states: dict[tuple[str, str], CardMemoryState] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._states)

    def get(self, user_id: str, card_id: str) -> CardMemoryState | None:
        with self._lock:
            return self._states.get((user_id, card_id))

    def get_or_create(
        self, user_id: str, card_id: str, now: datetime | None = None
    ) -> CardMemoryState:
        with self._lock:
            state = self._states.get((user_id, card_id))
            if state is None:
                state = CardMemoryState.new(card_id, user_id, now=now)
                self._states[(user_id, card_id)] = state
            return state

    def commit(
        self,
        user_id: str,
        card_id: str,
        expected_version: str | None,
        new_state: CardMemoryState,
    ) -> None:
        if (new_state.user_id, new_state.card_id) != (user_id, card_id):
            raise ValueError(
                f"state of card {new_state.card_id!r} for user {new_state.user_id!r} "
                f"cannot be stored under card {card_id!r} for user {user_id!r}"
            )

        with self._lock:
            current = self._states.get((user_id, card_id))
            current_version = current.version if current is not None else None

            if current_version != expected_version:
                logger.info(
                    "Rejected commit of card %s for user %s: expected version %s, found %s",
                    card_id,
                    user_id,
                    expected_version,
                    current_version,
                )
                raise ConcurrencyConflict(user_id, card_id, current)

            self._states[(user_id, card_id)] = new_state

    def states_for_user(self, user_id: str) -> list[CardMemoryState]:
        with self._lock:
            return [
                state
                for (owner, _), state in self._states.items()
                if owner == user_id
            ]


__all__ = ["CardStateStore", "InMemoryCardStateStore"]
