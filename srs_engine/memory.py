"""
srs_engine.memory
-----------------

This module defines the MemoryModel class as well as the FSRS weights and bounds it uses.

Classes:
    MemoryModel: Computes new difficulty and stability values after a review.
"""

from __future__ import annotations
from collections.abc import Sequence
import math
from srs_engine.forgetting_curve import FSRS_DEFAULT_DECAY
from srs_engine.rating import Rating

DEFAULT_PARAMETERS = (
    0.212,
    1.2931,
    2.3065,
    8.2956,
    6.4133,
    0.8334,
    3.0194,
    0.001,
    1.8722,
    0.1666,
    0.796,
    1.4835,
    0.0614,
    0.2629,
    1.6483,
    0.6014,
    1.8729,
    0.5425,
    0.0912,
    0.0658,
    FSRS_DEFAULT_DECAY,
)

STABILITY_MIN = 0.001
LOWER_BOUNDS_PARAMETERS = (
    STABILITY_MIN,
    STABILITY_MIN,
    STABILITY_MIN,
    STABILITY_MIN,
    1.0,
    0.001,
    0.001,
    0.001,
    0.0,
    0.0,
    0.001,
    0.001,
    0.001,
    0.001,
    0.0,
    0.0,
    1.0,
    0.0,
    0.0,
    0.0,
    0.1,
)

INITIAL_STABILITY_MAX = 100.0
UPPER_BOUNDS_PARAMETERS = (
    INITIAL_STABILITY_MAX,
    INITIAL_STABILITY_MAX,
    INITIAL_STABILITY_MAX,
    INITIAL_STABILITY_MAX,
    10.0,
    4.0,
    4.0,
    0.75,
    4.5,
    0.8,
    3.5,
    5.0,
    0.25,
    0.9,
    4.0,
    1.0,
    6.0,
    2.0,
    2.0,
    0.8,
    0.8,
)

MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0


def validate_parameters(parameters: Sequence[float]) -> None:
    if len(parameters) != len(LOWER_BOUNDS_PARAMETERS):
        raise ValueError(
            f"Expected {len(LOWER_BOUNDS_PARAMETERS)} parameters, got {len(parameters)}."
        )

    error_messages = []
    for index, (parameter, lower_bound, upper_bound) in enumerate(
        zip(parameters, LOWER_BOUNDS_PARAMETERS, UPPER_BOUNDS_PARAMETERS)
    ):
        if not lower_bound <= parameter <= upper_bound:
            error_message = f"parameters[{index}] = {parameter} is out of bounds: ({lower_bound}, {upper_bound})"
            error_messages.append(error_message)

    if len(error_messages) > 0:
        raise ValueError(
            "One or more parameters are out of bounds:\n" + "\n".join(error_messages)
        )


class MemoryModel:
    """
    The FSRS memory model.

    Turns a (difficulty, stability) pair and a rating into the next pair. It has no
    notion of card states or due dates, those belong to the Scheduler.

    Attributes:
        parameters: The 21 model weights.
    """

    parameters: tuple[float, ...]

    def __init__(self, parameters: Sequence[float] = DEFAULT_PARAMETERS) -> None:
        validate_parameters(parameters)
        self.parameters = tuple(parameters)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MemoryModel):
            return NotImplemented
        return self.parameters == other.parameters

    def __repr__(self) -> str:
        return f"MemoryModel(parameters={self.parameters!r})"

    @property
    def decay(self) -> float:
        return self.parameters[20]

    def initial_stability(self, rating: Rating) -> float:
        rating = Rating.parse(rating)
        return self._clamp_stability(self.parameters[rating - 1])

    def initial_difficulty(self, rating: Rating, clamp: bool = True) -> float:
        rating = Rating.parse(rating)
        initial_difficulty = (
            self.parameters[4] - (math.e ** (self.parameters[5] * (rating - 1))) + 1
        )

        if clamp:
            initial_difficulty = self._clamp_difficulty(initial_difficulty)

        return initial_difficulty

    def initial_state(self, rating: Rating) -> tuple[float, float]:
        """
        Returns the (difficulty, stability) of a card given its very first rating.
        """

        return self.initial_difficulty(rating), self.initial_stability(rating)

    def next_difficulty(self, difficulty: float, rating: Rating) -> float:
        """
        Moves difficulty toward the rating's target, then pulls it back toward the
        difficulty of a card first rated Easy so it cannot drift without bound.
        """

        rating = Rating.parse(rating)

        def _linear_damping(*, delta_difficulty: float, difficulty: float) -> float:
            return (10.0 - difficulty) * delta_difficulty / 9.0

        def _mean_reversion(*, arg_1: float, arg_2: float) -> float:
            return self.parameters[7] * arg_1 + (1 - self.parameters[7]) * arg_2

        arg_1 = self.initial_difficulty(Rating.Easy, clamp=False)

        delta_difficulty = -(self.parameters[6] * (rating - 3))
        arg_2 = difficulty + _linear_damping(
            delta_difficulty=delta_difficulty, difficulty=difficulty
        )

        next_difficulty = _mean_reversion(arg_1=arg_1, arg_2=arg_2)

        return self._clamp_difficulty(next_difficulty)

    def next_stability(
        self,
        difficulty: float,
        stability: float,
        retrievability: float,
        rating: Rating,
    ) -> float:
        rating = Rating.parse(rating)

        if rating == Rating.Again:
            next_stability = self.next_forget_stability(
                difficulty=difficulty,
                stability=stability,
                retrievability=retrievability,
            )
        else:
            next_stability = self.next_recall_stability(
                difficulty=difficulty,
                stability=stability,
                retrievability=retrievability,
                rating=rating,
            )

        return self._clamp_stability(next_stability)

    def next_recall_stability(
        self,
        difficulty: float,
        stability: float,
        retrievability: float,
        rating: Rating,
    ) -> float:
        # the lower the retrievability at review, the larger the gain
        hard_penalty = self.parameters[15] if rating == Rating.Hard else 1
        easy_bonus = self.parameters[16] if rating == Rating.Easy else 1

        return stability * (
            1
            + (math.e ** (self.parameters[8]))
            * (11 - difficulty)
            * (stability ** -self.parameters[9])
            * ((math.e ** ((1 - retrievability) * self.parameters[10])) - 1)
            * hard_penalty
            * easy_bonus
        )

    def next_forget_stability(
        self, difficulty: float, stability: float, retrievability: float
    ) -> float:
        long_term = (
            self.parameters[11]
            * (difficulty ** -self.parameters[12])
            * (((stability + 1) ** (self.parameters[13])) - 1)
            * (math.e ** ((1 - retrievability) * self.parameters[14]))
        )

        short_term = stability / (
            math.e ** (self.parameters[17] * self.parameters[18])
        )

        return min(long_term, short_term)

    def short_term_stability(self, stability: float, rating: Rating) -> float:
        """
        Stability after a review taken less than a day after the previous one.
        """

        rating = Rating.parse(rating)

        short_term_stability_increase = (
            math.e ** (self.parameters[17] * (rating - 3 + self.parameters[18]))
        ) * (stability ** -self.parameters[19])

        if rating in (Rating.Good, Rating.Easy):
            short_term_stability_increase = max(short_term_stability_increase, 1.0)

        return self._clamp_stability(stability * short_term_stability_increase)

    def update_memory(
        self,
        difficulty: float,
        stability: float,
        rating: Rating,
        retrievability: float,
    ) -> tuple[float, float]:
        """
        Computes the memory state after a review.

        Args:
            difficulty: Difficulty before the review.
            stability: Stability before the review.
            rating: The rating given at the review.
            retrievability: The forecast recall probability at the moment of the review.

        Returns:
            tuple[float, float]: The new (difficulty, stability).

        Raises:
            InvalidRating: If rating is not one of 1, 2, 3, 4.
        """

        rating = Rating.parse(rating)

        if difficulty is None or stability is None:
            raise ValueError("update_memory needs an existing difficulty and stability")

        next_stability = self.next_stability(
            difficulty=difficulty,
            stability=stability,
            retrievability=retrievability,
            rating=rating,
        )
        next_difficulty = self.next_difficulty(difficulty, rating)

        return next_difficulty, next_stability

    def _clamp_difficulty(self, difficulty: float) -> float:
        return min(max(difficulty, MIN_DIFFICULTY), MAX_DIFFICULTY)

    def _clamp_stability(self, stability: float) -> float:
        return max(stability, STABILITY_MIN)


__all__ = [
    "MemoryModel",
    "DEFAULT_PARAMETERS",
    "STABILITY_MIN",
    "MIN_DIFFICULTY",
    "MAX_DIFFICULTY",
]
