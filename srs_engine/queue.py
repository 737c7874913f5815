"""
srs_engine.queue
----------------

Ordering and selection of the cards to show next. Nothing here mutates a state.
"""

from __future__ import annotations
from collections.abc import Iterable
from datetime import datetime
from srs_engine.card import CardMemoryState
from srs_engine.state import State

# lower is more urgent
STATE_PRIORITY = {
    State.Relearning: 0,
    State.Learning: 1,
    State.Review: 2,
    State.New: 3,
}


def build_queue(
    states: Iterable[CardMemoryState], now: datetime
) -> list[CardMemoryState]:
    """
    Returns the cards due at `now`, ordered by due date then card id.

    Args:
        states: Every CardMemoryState of a user.
        now: The current date and time.

    Returns:
        list[CardMemoryState]: The due cards, possibly empty.
    """

    return sorted(
        (state for state in states if state.due <= now),
        key=lambda state: (state.due, state.card_id),
    )


def due_card_ids(states: Iterable[CardMemoryState], now: datetime) -> list[str]:
    return [state.card_id for state in build_queue(states, now)]


def count_due(states: Iterable[CardMemoryState], now: datetime) -> int:
    return sum(1 for state in states if state.due <= now)


def sort_by_priority(states: Iterable[CardMemoryState]) -> list[CardMemoryState]:
    """
    Orders cards by review urgency: Relearning first, then Learning, Review and New.

    Within a state, earlier due dates come first and card ids break ties.
    """

    return sorted(
        states,
        key=lambda state: (STATE_PRIORITY[state.state], state.due, state.card_id),
    )


__all__ = ["build_queue", "due_card_ids", "count_due", "sort_by_priority"]
