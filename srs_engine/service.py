"""
srs_engine.service
------------------

This module wires the pure Scheduler to its persistence collaborators.

Classes:
    ReviewOutcome: What happened to one submitted rating.
    ReviewService: Applies ratings with optimistic concurrency and writes the review log.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime, timezone
import logging
from srs_engine.card import CardMemoryState
from srs_engine.errors import ConcurrencyConflict, LogWriteFailure
from srs_engine.queue import build_queue
from srs_engine.rating import Rating
from srs_engine.review_log import ReviewLogEntry, ReviewLogWriter
from srs_engine.scheduler import Scheduler
from srs_engine.store import CardStateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOutcome:
    """
    The result of ReviewService.submit_review.

    Attributes:
        state: The card's state after the submission.
        entry: The review log entry of the submission.
        log_written: False if the entry is still waiting in the pending log queue.
        duplicate: True if the request id had already been handled and nothing was applied.
    """

    state: CardMemoryState | None
    entry: ReviewLogEntry
    log_written: bool = True
    duplicate: bool = False


class ReviewService:
    """
    Applies a user's ratings to the card state store and the review log.

    The state commit and the log append are independent: a log failure is retried
    here and, if it persists, parked in `pending_logs` without undoing the commit.

    Attributes:
        store: The card state store.
        log: The review log writer.
        scheduler: The scheduler computing new states.
        log_retry_attempts: How many times an append is attempted before it is parked.
    """

    def __init__(
        self,
        store: CardStateStore,
        log: ReviewLogWriter,
        scheduler: Scheduler | None = None,
        log_retry_attempts: int = 3,
    ) -> None:
        if log_retry_attempts < 1:
            raise ValueError(
                f"log_retry_attempts must be at least 1, got {log_retry_attempts}"
            )

        self.store = store
        self.log = log
        self.scheduler = scheduler if scheduler is not None else Scheduler()
        self.log_retry_attempts = log_retry_attempts
        self._pending_logs: list[ReviewLogEntry] = []

    @property
    def pending_logs(self) -> tuple[ReviewLogEntry, ...]:
        return tuple(self._pending_logs)

    def submit_review(
        self,
        user_id: str,
        card_id: str,
        rating: Rating | int,
        now: datetime | None = None,
        *,
        based_on: CardMemoryState | None = None,
        request_id: str | None = None,
        lesson_id: str | None = None,
        duration: int | None = None,
        context: str | None = None,
    ) -> ReviewOutcome:
        """
        Applies a rating to a user's card.

        Args:
            user_id: The user who rated the card.
            card_id: The rated card.
            rating: The rating.
            now: The date and time of the review.
            based_on: The state the user was shown when rating. Defaults to the stored state.
            request_id: Client-generated id, a retried submission with the same id is not re-applied.
            lesson_id: Copied to the review log entry.
            duration: Milliseconds spent on the card, copied to the review log entry.
            context: Copied to the review log entry.

        Returns:
            ReviewOutcome: The committed state and its log entry.

        Raises:
            InvalidRating: If the rating is not one of 1, 2, 3, 4.
            ConcurrencyConflict: If the card was updated elsewhere since `based_on` was read.
                The rating is still logged, with `applied=False`.
        """

        rating = Rating.parse(rating)

        if request_id is not None:
            duplicate = self._find_request(request_id)
            if duplicate is not None:
                logger.info(
                    "Request %s for card %s of user %s was already handled",
                    request_id,
                    card_id,
                    user_id,
                )
                return ReviewOutcome(
                    state=self.store.get(user_id, card_id),
                    entry=duplicate,
                    log_written=duplicate not in self._pending_logs,
                    duplicate=True,
                )

        state = (
            based_on
            if based_on is not None
            else self.store.get_or_create(user_id, card_id, now=now)
        )

        new_state, entry = self.scheduler.review_card(
            state,
            rating,
            now,
            lesson_id=lesson_id,
            review_duration=duration,
            context=context,
            request_id=request_id,
        )

        try:
            self.store.commit(user_id, card_id, state.version, new_state)
        except ConcurrencyConflict:
            logger.info(
                "Card %s of user %s was updated elsewhere, logging rating %s without applying it",
                card_id,
                user_id,
                rating.name,
            )
            self._append(replace(entry, applied=False))
            raise

        log_written = self._append(entry)

        return ReviewOutcome(state=new_state, entry=entry, log_written=log_written)

    def flush_pending_logs(self) -> int:
        """
        Attempts once more every log entry whose append previously failed.

        Returns:
            int: The number of entries written.
        """

        pending, self._pending_logs = self._pending_logs, []
        written = 0

        for entry in pending:
            try:
                self.log.append(entry)
            except LogWriteFailure as exc:
                logger.warning(
                    "Review log append for card %s still failing: %s", entry.card_id, exc
                )
                self._pending_logs.append(entry)
            else:
                written += 1

        return written

    def due_queue(
        self, user_id: str, now: datetime | None = None
    ) -> list[CardMemoryState]:
        if now is None:
            now = datetime.now(timezone.utc)
        return build_queue(self.store.states_for_user(user_id), now)

    def _find_request(self, request_id: str) -> ReviewLogEntry | None:
        entry = self.log.find_request(request_id)
        if entry is not None:
            return entry

        for pending in self._pending_logs:
            if pending.request_id == request_id:
                return pending

        return None

    def _append(self, entry: ReviewLogEntry) -> bool:
        for attempt in range(1, self.log_retry_attempts + 1):
            try:
                self.log.append(entry)
            except LogWriteFailure as exc:
                logger.warning(
                    "Review log append for card %s failed (attempt %d/%d): %s",
                    entry.card_id,
                    attempt,
                    self.log_retry_attempts,
                    exc,
                )
            else:
                return True

        self._pending_logs.append(entry)
        return False


__all__ = ["ReviewOutcome", "ReviewService"]
