"""
srs-engine
----------

The spaced-repetition scheduling engine of a flashcard learning product: decides, for every
(user, card) pair, when the card should next be shown and how a rating changes that timing.
"""

from srs_engine.card import CardMemoryState
from srs_engine.config import SchedulerConfig
from srs_engine.errors import (
    ConcurrencyConflict,
    InvalidRating,
    InvalidState,
    LogWriteFailure,
    SchedulingError,
)
from srs_engine.forgetting_curve import interval_for_retention, retrievability
from srs_engine.mastery import CardMastery, MasteryLevel, card_mastery
from srs_engine.memory import MemoryModel
from srs_engine.queue import build_queue, count_due, due_card_ids, sort_by_priority
from srs_engine.rating import Rating
from srs_engine.review_log import InMemoryReviewLog, ReviewLogEntry, ReviewLogWriter
from srs_engine.scheduler import Scheduler
from srs_engine.service import ReviewOutcome, ReviewService
from srs_engine.session import ReviewSession
from srs_engine.state import State
from srs_engine.store import CardStateStore, InMemoryCardStateStore

__all__ = [
    "Scheduler",
    "SchedulerConfig",
    "CardMemoryState",
    "Rating",
    "State",
    "ReviewLogEntry",
    "ReviewLogWriter",
    "InMemoryReviewLog",
    "CardStateStore",
    "InMemoryCardStateStore",
    "ReviewService",
    "ReviewOutcome",
    "ReviewSession",
    "MemoryModel",
    "CardMastery",
    "MasteryLevel",
    "card_mastery",
    "retrievability",
    "interval_for_retention",
    "build_queue",
    "due_card_ids",
    "count_due",
    "sort_by_priority",
    "SchedulingError",
    "InvalidRating",
    "InvalidState",
    "ConcurrencyConflict",
    "LogWriteFailure",
]
