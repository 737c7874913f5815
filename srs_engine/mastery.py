"""
srs_engine.mastery
------------------

This module summarizes how well a single card is known, for display next to the card.

Classes:
    MasteryLevel: Coarse mastery buckets, from New to Mastered.
    CardMastery: The mastery summary of one card at a point in time.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from srs_engine.card import CardMemoryState
from srs_engine.forgetting_curve import FSRS_DEFAULT_DECAY, retrievability
from srs_engine.state import State

MASTERED_STABILITY_DAYS = 30.0
PROFICIENT_STABILITY_DAYS = 7.0


class MasteryLevel(Enum):
    New = "new"
    Learning = "learning"
    Familiar = "familiar"
    Proficient = "proficient"
    Mastered = "mastered"


@dataclass(frozen=True)
class CardMastery:
    """
    Attributes:
        card_id: The card the summary is about.
        level: The card's mastery bucket.
        retrievability: Probability of recall at the time of the summary, 0 for New cards.
        stability_days: The card's stability, 0 for New cards.
        is_due: Whether the card is due at the time of the summary.
    """

    card_id: str
    level: MasteryLevel
    retrievability: float
    stability_days: float
    is_due: bool


def card_mastery(
    state: CardMemoryState,
    now: datetime | None = None,
    decay: float = FSRS_DEFAULT_DECAY,
) -> CardMastery:
    """
    Summarizes a card's mastery.

    Learning and Relearning cards are Learning. Review cards are bucketed by stability:
    Mastered from 30 days, Proficient from 7 days, Familiar below.

    Args:
        state: The card to summarize.
        now: The current date and time.
        decay: The forgetting curve decay, weight 20 of the scheduler's parameters.

    Returns:
        CardMastery: The summary. Nothing about the card is changed.
    """

    if now is None:
        now = datetime.now(timezone.utc)

    if state.state == State.New or state.stability is None or state.last_review is None:
        return CardMastery(
            card_id=state.card_id,
            level=MasteryLevel.New,
            retrievability=0.0,
            stability_days=0.0,
            is_due=state.is_due(now),
        )

    # fractional days, the summary is about this very moment
    elapsed_days = (now - state.last_review).total_seconds() / 86400

    if state.state in (State.Learning, State.Relearning):
        level = MasteryLevel.Learning
    elif state.stability >= MASTERED_STABILITY_DAYS:
        level = MasteryLevel.Mastered
    elif state.stability >= PROFICIENT_STABILITY_DAYS:
        level = MasteryLevel.Proficient
    else:
        level = MasteryLevel.Familiar

    return CardMastery(
        card_id=state.card_id,
        level=level,
        retrievability=retrievability(elapsed_days, state.stability, decay),
        stability_days=state.stability,
        is_due=state.is_due(now),
    )


__all__ = ["MasteryLevel", "CardMastery", "card_mastery"]
