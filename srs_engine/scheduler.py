"""
srs_engine.scheduler
--------------------

This module defines the Scheduler class.

Classes:
    Scheduler: The spaced-repetition scheduler, a pure function of (state, rating, time, config).
"""

from __future__ import annotations
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from functools import lru_cache
import logging
import math
from random import Random
from srs_engine.card import CardMemoryState
from srs_engine.config import SchedulerConfig
from srs_engine.forgetting_curve import interval_for_retention, retrievability
from srs_engine.memory import MemoryModel
from srs_engine.rating import Rating
from srs_engine.review_log import ReviewLogEntry
from srs_engine.state import State

logger = logging.getLogger(__name__)

# intervals shorter than this are never fuzzed
FUZZ_THRESHOLD_DAYS = 2.5


@lru_cache(maxsize=16)
def _memory_model(parameters: tuple[float, ...]) -> MemoryModel:
    return MemoryModel(parameters)


class Scheduler:
    """
    The spaced-repetition scheduler.

    Decides when a card should next be shown and how a rating changes its memory state.
    The scheduler holds no mutable state: every call takes a CardMemoryState and returns
    a new one, so it is safe to share between threads.

    Attributes:
        config: The default configuration, used when a call does not pass its own.
    """

    config: SchedulerConfig

    def __init__(self, config: SchedulerConfig | None = None) -> None:
        self.config = config if config is not None else SchedulerConfig()

    def __repr__(self) -> str:
        return f"Scheduler(config={self.config!r})"

    def get_card_retrievability(
        self,
        state: CardMemoryState,
        now: datetime | None = None,
        config: SchedulerConfig | None = None,
    ) -> float:
        """
        Calculates a card's probability of recall at a given date and time.

        Args:
            state: The card whose retrievability is to be calculated.
            now: The current date and time.
            config: Overrides the scheduler's default configuration.

        Returns:
            float: The retrievability, 0 for cards that were never reviewed.
        """

        if state.last_review is None or state.stability is None:
            return 0.0

        config = config if config is not None else self.config
        now = self._to_utc(now)

        return retrievability(
            self._elapsed_days(state, now),
            state.stability,
            _memory_model(config.parameters).decay,
        )

    def review_card(
        self,
        state: CardMemoryState,
        rating: Rating | int,
        now: datetime | None = None,
        config: SchedulerConfig | None = None,
        *,
        lesson_id: str | None = None,
        review_duration: int | None = None,
        context: str | None = None,
        request_id: str | None = None,
    ) -> tuple[CardMemoryState, ReviewLogEntry]:
        """
        Reviews a card with a given rating at a given time.

        Args:
            state: The card being reviewed.
            rating: The chosen rating for the card being reviewed.
            now: The date and time of the review. Defaults to the current time.
            config: Overrides the scheduler's default configuration for this call.
            lesson_id: Copied to the review log entry.
            review_duration: The number of milliseconds it took to review the card, copied to the log.
            context: Copied to the review log entry.
            request_id: Copied to the review log entry.

        Returns:
            tuple[CardMemoryState, ReviewLogEntry]: The updated card and its review log entry.

        Raises:
            InvalidRating: If the rating is not one of 1, 2, 3, 4.
            InvalidState: If the given state breaks an invariant.
            ValueError: If `now` is not timezone-aware.
        """

        rating = Rating.parse(rating)
        config = config if config is not None else self.config
        now = self._to_utc(now)
        state.validate()

        model = _memory_model(config.parameters)

        difficulty = state.difficulty
        stability = state.stability
        lapses = state.lapses
        step: int | None

        match state.state:
            case State.New:
                elapsed_days = 0
                difficulty, stability = model.initial_state(rating)

                if len(config.learning_steps) == 0:
                    next_state, step = State.Review, None
                else:
                    next_state, step = State.Learning, 0

            case State.Learning | State.Relearning:
                elapsed_days = self._elapsed_days(state, now)
                difficulty, stability = self._next_memory(
                    model, state, rating, elapsed_days
                )

                steps = (
                    config.learning_steps
                    if state.state == State.Learning
                    else config.relearning_steps
                )
                next_state, step = self._next_step(
                    state.state, state.step, rating, steps
                )

            case State.Review:
                elapsed_days = self._elapsed_days(state, now)
                difficulty, stability = self._next_memory(
                    model, state, rating, elapsed_days
                )

                if rating == Rating.Again:
                    lapses += 1
                    # an empty relearning ladder sends the lapse straight back to Review
                    if len(config.relearning_steps) == 0:
                        next_state, step = State.Review, None
                    else:
                        next_state, step = State.Relearning, 0

                else:
                    next_state, step = State.Review, None

                    if elapsed_days < 1:
                        # a same-day pass never lowers stability
                        stability = max(stability, state.stability)

                    elif elapsed_days < state.scheduled_days:
                        # reviewed ahead of schedule: only part of the gain counts
                        stability = state.stability + (
                            stability - state.stability
                        ) * (elapsed_days / state.scheduled_days)

        # calculate the card's next interval
        if next_state == State.Review:
            scheduled_days = self.next_interval(stability, config=config)

            if state.state == State.Review and rating != Rating.Again:
                # never move a successfully recalled card before its previous due date,
                # even when maximum_interval was lowered after it was scheduled
                scheduled_days = max(scheduled_days, (state.due - now).days + 1)

            next_interval = timedelta(days=scheduled_days)

        else:
            steps = (
                config.learning_steps
                if next_state == State.Learning
                else config.relearning_steps
            )
            next_interval = steps[step]
            scheduled_days = next_interval.days

        new_state = replace(
            state,
            state=next_state,
            difficulty=difficulty,
            stability=stability,
            due=now + next_interval,
            last_review=now,
            scheduled_days=scheduled_days,
            elapsed_days=elapsed_days,
            reps=state.reps + 1,
            lapses=lapses,
            step=step,
        )

        logger.debug(
            "Card %s of user %s rated %s: %s -> %s, due in %s",
            state.card_id,
            state.user_id,
            rating.name,
            state.state.name,
            next_state.name,
            next_interval,
        )

        review_log = ReviewLogEntry(
            card_id=state.card_id,
            user_id=state.user_id,
            lesson_id=lesson_id,
            rating=rating,
            timestamp=now,
            scheduled_days=scheduled_days,
            elapsed_days=elapsed_days,
            prior_state=state.state,
            resulting_state=next_state,
            duration=review_duration,
            context=context,
            request_id=request_id,
        )

        return new_state, review_log

    def preview_card(
        self,
        state: CardMemoryState,
        now: datetime | None = None,
        config: SchedulerConfig | None = None,
    ) -> dict[Rating, tuple[CardMemoryState, ReviewLogEntry]]:
        """
        Computes the outcome of every rating without committing to any of them.

        The configured random source is not advanced: each outcome is fuzzed from a
        copy of its current state.

        Args:
            state: The card to preview.
            now: The date and time of the hypothetical review.
            config: Overrides the scheduler's default configuration.

        Returns:
            dict[Rating, tuple[CardMemoryState, ReviewLogEntry]]: The outcome for each rating.
        """

        config = config if config is not None else self.config
        now = self._to_utc(now)
        source_state = config.random_source.getstate()

        outcomes = {}
        for rating in Rating:
            preview_source = Random()
            preview_source.setstate(source_state)
            outcomes[rating] = self.review_card(
                state,
                rating,
                now,
                config=replace(config, random_source=preview_source),
            )

        return outcomes

    def reschedule_card(
        self,
        state: CardMemoryState,
        review_logs: Iterable[ReviewLogEntry],
        config: SchedulerConfig | None = None,
    ) -> CardMemoryState:
        """
        Replays a card's review log under the given configuration.

        Useful after changing the scheduler's configuration: the card is rebuilt as if it
        had always been scheduled with it. Entries that were logged without being applied
        are skipped.

        Args:
            state: The card to be rescheduled.
            review_logs: That card's review log entries (order doesn't matter).
            config: Overrides the scheduler's default configuration.

        Returns:
            CardMemoryState: A new state rebuilt from the log.

        Raises:
            ValueError: If any of the entries belongs to another card or user.
        """

        review_logs = list(review_logs)
        for review_log in review_logs:
            if (review_log.card_id, review_log.user_id) != (
                state.card_id,
                state.user_id,
            ):
                raise ValueError(
                    f"ReviewLogEntry for card {review_log.card_id!r} of user {review_log.user_id!r} "
                    f"does not match card {state.card_id!r} of user {state.user_id!r}"
                )

        review_logs = sorted(
            (review_log for review_log in review_logs if review_log.applied),
            key=lambda log: log.timestamp,
        )

        if review_logs:
            created_at = review_logs[0].timestamp
        else:
            created_at = state.due
        rescheduled = CardMemoryState.new(state.card_id, state.user_id, now=created_at)

        for review_log in review_logs:
            rescheduled, _ = self.review_card(
                rescheduled,
                review_log.rating,
                review_log.timestamp,
                config=config,
            )

        return rescheduled

    def unfuzzed_interval(
        self, stability: float, config: SchedulerConfig | None = None
    ) -> float:
        """
        Days until retrievability falls to the desired retention, clamped to the
        configured interval bounds but neither fuzzed nor rounded.
        """

        config = config if config is not None else self.config

        interval = interval_for_retention(
            stability,
            config.desired_retention,
            _memory_model(config.parameters).decay,
        )

        return min(
            max(interval, float(config.minimum_interval)),
            float(config.maximum_interval),
        )

    def next_interval(
        self,
        stability: float,
        config: SchedulerConfig | None = None,
        fuzz: bool = True,
    ) -> int:
        """
        The whole number of days a Review-state card with the given stability is scheduled for.

        Args:
            stability: The card's stability after the review.
            config: Overrides the scheduler's default configuration.
            fuzz: Whether to apply fuzz, when the configuration enables it.

        Returns:
            int: The interval in days.
        """

        config = config if config is not None else self.config
        interval = self.unfuzzed_interval(stability, config=config)

        if fuzz and config.enable_fuzzing:
            return self.fuzz_interval(interval, config=config)

        return self._clamp_interval(round(interval), config)

    def fuzz_interval(
        self, interval_days: float, config: SchedulerConfig | None = None
    ) -> int:
        """
        Takes the current calculated interval and adds a small amount of random fuzz to it.
        For example, a card that would've been due in 50 days, with a fuzz factor of 0.05,
        might be due anywhere from 48 to 52 days.

        Args:
            interval_days: The calculated next interval, before fuzzing.
            config: Overrides the scheduler's default configuration.

        Returns:
            int: The new interval in whole days, after fuzzing.
        """

        config = config if config is not None else self.config

        if interval_days < FUZZ_THRESHOLD_DAYS or config.fuzz_factor == 0:
            return self._clamp_interval(round(interval_days), config)

        min_ivl = max(
            math.ceil(interval_days * (1 - config.fuzz_factor)),
            config.minimum_interval,
        )
        max_ivl = min(
            math.floor(interval_days * (1 + config.fuzz_factor)),
            config.maximum_interval,
        )

        # no whole day inside the fuzz range
        if min_ivl > max_ivl:
            return self._clamp_interval(round(interval_days), config)

        fuzzed_interval = min_ivl + int(
            config.random_source.random() * (max_ivl - min_ivl + 1)
        )

        return min(fuzzed_interval, max_ivl)

    def _next_memory(
        self,
        model: MemoryModel,
        state: CardMemoryState,
        rating: Rating,
        elapsed_days: int,
    ) -> tuple[float, float]:
        assert state.stability is not None
        assert state.difficulty is not None

        if elapsed_days < 1:
            stability = model.short_term_stability(state.stability, rating)
            difficulty = model.next_difficulty(state.difficulty, rating)
            return difficulty, stability

        return model.update_memory(
            state.difficulty,
            state.stability,
            rating,
            retrievability(elapsed_days, state.stability, model.decay),
        )

    def _next_step(
        self,
        current: State,
        step: int | None,
        rating: Rating,
        steps: tuple[timedelta, ...],
    ) -> tuple[State, int | None]:
        assert step is not None

        if len(steps) == 0:
            return State.Review, None

        if rating == Rating.Again:
            return current, 0

        # also graduates cards left past the end of a ladder that has since been shortened
        if step + 1 < len(steps):
            return current, step + 1

        return State.Review, None

    def _elapsed_days(self, state: CardMemoryState, now: datetime) -> int:
        if state.last_review is None:
            return 0
        return max(0, (now - state.last_review).days)

    def _clamp_interval(self, interval_days: int, config: SchedulerConfig) -> int:
        return min(max(interval_days, config.minimum_interval), config.maximum_interval)

    def _to_utc(self, now: datetime | None) -> datetime:
        if now is None:
            return datetime.now(timezone.utc)

        if now.tzinfo is None or now.utcoffset() is None:
            raise ValueError("datetime must be timezone-aware")

        return now.astimezone(timezone.utc)


__all__ = ["Scheduler"]
