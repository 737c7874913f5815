"""
srs_engine.session
------------------

This module defines the ReviewSession class, which drives one sitting of reviews.

Classes:
    RatingResult: The outcome of rating one card within a session.
    SessionStatistics: Summary of a session so far.
    ReviewSession: Orders due and new cards and applies ratings through a ReviewService.
"""

from __future__ import annotations
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
import math
import time
from srs_engine.card import CardMemoryState
from srs_engine.errors import ConcurrencyConflict
from srs_engine.queue import sort_by_priority
from srs_engine.rating import Rating
from srs_engine.review_log import ReviewLogEntry
from srs_engine.service import ReviewService
from srs_engine.state import State


@dataclass(frozen=True)
class RatingResult:
    card_id: str
    rating: Rating
    state: CardMemoryState
    entry: ReviewLogEntry
    response_time_ms: int
    was_new: bool


@dataclass(frozen=True)
class SessionStatistics:
    """
    Summary statistics of a session.

    Attributes:
        total_reviewed: Cards rated so far.
        remaining: Cards still queued, including the current one.
        again_count: Cards rated Again.
        hard_count: Cards rated Hard.
        good_count: Cards rated Good.
        easy_count: Cards rated Easy.
        new_cards_studied: Rated cards that were New when the session started.
        review_cards_studied: Rated cards that were not.
        total_time_ms: Total response time.
        average_time_ms: Average response time per rated card.
        retention_rate: Fraction of non-new cards rated Good or Easy, 0 if none were rated.
        started_at: When the session was created.
    """

    total_reviewed: int
    remaining: int
    again_count: int
    hard_count: int
    good_count: int
    easy_count: int
    new_cards_studied: int
    review_cards_studied: int
    total_time_ms: int
    average_time_ms: float
    retention_rate: float
    started_at: datetime


class ReviewSession:
    """
    A single review session for one user.

    Due cards are ordered by urgency and new cards are interleaved among them at roughly
    even intervals. The size limits are per-session knobs, not daily caps.

    Attributes:
        service: The service ratings are submitted through.
        user_id: The reviewing user.
        max_cards: Maximum number of cards in the session.
        max_new_cards: Maximum number of new cards in the session.
        new_card_ratio: Share of the session reserved for new cards when both kinds are available.
    """

    def __init__(
        self,
        service: ReviewService,
        user_id: str,
        due_states: Iterable[CardMemoryState],
        new_states: Iterable[CardMemoryState] = (),
        max_cards: int = 20,
        max_new_cards: int = 10,
        new_card_ratio: float = 0.3,
    ) -> None:
        if max_cards < 0 or max_new_cards < 0:
            raise ValueError("session limits must not be negative")
        if not 0 <= new_card_ratio <= 1:
            raise ValueError(
                f"new_card_ratio must be between 0 and 1, got {new_card_ratio}"
            )

        self.service = service
        self.user_id = user_id
        self.max_cards = max_cards
        self.max_new_cards = max_new_cards
        self.new_card_ratio = new_card_ratio
        self.started_at = datetime.now(timezone.utc)

        self._results: list[RatingResult] = []
        self._index = 0
        self._presented_at: float | None = None
        self._queue = self._build_queue(list(due_states), list(new_states))

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def results(self) -> tuple[RatingResult, ...]:
        return tuple(self._results)

    def current(self) -> CardMemoryState | None:
        """
        Returns the card to present, or None when the session is over.
        """

        if self._index >= len(self._queue):
            return None

        if self._presented_at is None:
            self._presented_at = time.monotonic()

        return self._queue[self._index]

    def has_next(self) -> bool:
        return self._index < len(self._queue)

    def remaining(self) -> int:
        return max(0, len(self._queue) - self._index)

    def rate_current(
        self,
        rating: Rating | int,
        now: datetime | None = None,
        duration: int | None = None,
        request_id: str | None = None,
    ) -> RatingResult | None:
        """
        Rates the current card and moves on to the next one.

        Args:
            rating: The user's rating.
            now: The date and time of the review.
            duration: Milliseconds spent on the card. Measured from `current()` if None.
            request_id: Passed through to ReviewService.submit_review.

        Returns:
            RatingResult | None: The outcome, or None if no card is left.

        Raises:
            ConcurrencyConflict: If the card was updated elsewhere. The current card is
                replaced by the stored state, so rating it again applies normally.
        """

        state = self.current()
        if state is None:
            return None

        if duration is None:
            assert self._presented_at is not None
            duration = int((time.monotonic() - self._presented_at) * 1000)

        try:
            outcome = self.service.submit_review(
                self.user_id,
                state.card_id,
                rating,
                now,
                based_on=state,
                request_id=request_id,
                duration=duration,
                context="review",
            )
        except ConcurrencyConflict as exc:
            # the next rate_current re-rates against the stored state
            if exc.current is not None:
                self._queue[self._index] = exc.current
            raise

        result = RatingResult(
            card_id=state.card_id,
            rating=outcome.entry.rating,
            state=outcome.state if outcome.state is not None else state,
            entry=outcome.entry,
            response_time_ms=duration,
            was_new=state.state == State.New,
        )

        self._results.append(result)
        self._index += 1
        self._presented_at = None

        return result

    def add_cards(self, states: Iterable[CardMemoryState]) -> None:
        """
        Inserts cards right after the current one, so they come up soon.
        """

        position = self._index + 1
        self._queue[position:position] = list(states)

    def stats(self) -> SessionStatistics:
        counts = {rating: 0 for rating in Rating}
        for result in self._results:
            counts[result.rating] += 1

        new_cards_studied = sum(1 for result in self._results if result.was_new)
        review_results = [result for result in self._results if not result.was_new]
        recalled = sum(
            1
            for result in review_results
            if result.rating in (Rating.Good, Rating.Easy)
        )
        total_time_ms = sum(result.response_time_ms for result in self._results)

        return SessionStatistics(
            total_reviewed=len(self._results),
            remaining=self.remaining(),
            again_count=counts[Rating.Again],
            hard_count=counts[Rating.Hard],
            good_count=counts[Rating.Good],
            easy_count=counts[Rating.Easy],
            new_cards_studied=new_cards_studied,
            review_cards_studied=len(review_results),
            total_time_ms=total_time_ms,
            average_time_ms=(
                total_time_ms / len(self._results) if self._results else 0.0
            ),
            retention_rate=recalled / len(review_results) if review_results else 0.0,
            started_at=self.started_at,
        )

    def _build_queue(
        self,
        due_states: list[CardMemoryState],
        new_states: list[CardMemoryState],
    ) -> list[CardMemoryState]:
        ordered_due = sort_by_priority(due_states)

        target_new = min(
            len(new_states),
            self.max_new_cards,
            math.floor(self.max_cards * self.new_card_ratio),
        )
        target_review = min(len(ordered_due), self.max_cards - target_new)
        # fill the session with new cards when there are not enough due ones
        actual_new = min(
            len(new_states), self.max_new_cards, self.max_cards - target_review
        )

        return self._interleave(ordered_due[:target_review], new_states[:actual_new])

    def _interleave(
        self,
        review_states: list[CardMemoryState],
        new_states: list[CardMemoryState],
    ) -> list[CardMemoryState]:
        if not new_states:
            return review_states
        if not review_states:
            return new_states

        total = len(review_states) + len(new_states)
        spacing = total / len(new_states)
        result: list[CardMemoryState] = []
        new_index = 0
        review_index = 0
        next_new_at = math.floor(spacing / 2)

        for position in range(total):
            if new_index < len(new_states) and position >= next_new_at:
                result.append(new_states[new_index])
                new_index += 1
                next_new_at = math.floor(spacing / 2 + spacing * new_index)
            elif review_index < len(review_states):
                result.append(review_states[review_index])
                review_index += 1
            else:
                result.append(new_states[new_index])
                new_index += 1

        return result


__all__ = ["RatingResult", "SessionStatistics", "ReviewSession"]
