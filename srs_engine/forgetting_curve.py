"""
srs_engine.forgetting_curve
---------------------------

The FSRS power-law forgetting curve and its inverse.

The curve is parameterized so that retrievability equals 0.9 when the elapsed
time equals the stability, whatever the decay.
"""

from __future__ import annotations

FSRS_DEFAULT_DECAY = 0.1542

REFERENCE_RETRIEVABILITY = 0.9


def decay_factor(decay: float = FSRS_DEFAULT_DECAY) -> float:
    """
    Returns the FACTOR constant of the curve for a given (positive) decay.
    """

    return REFERENCE_RETRIEVABILITY ** (1 / -decay) - 1


def retrievability(
    elapsed_days: float, stability: float, decay: float = FSRS_DEFAULT_DECAY
) -> float:
    """
    Calculates the probability of recalling a card after a given number of days.

    Args:
        elapsed_days: Days since the last review. Negative values are treated as 0.
        stability: The card's stability in days.
        decay: The positive decay exponent of the power law.

    Returns:
        float: The retrievability, in (0, 1].

    Raises:
        ValueError: If stability is not positive.
    """

    if stability <= 0:
        raise ValueError(f"stability must be positive, got {stability}")

    elapsed_days = max(0.0, elapsed_days)

    return (1 + decay_factor(decay) * elapsed_days / stability) ** -decay


def interval_for_retention(
    stability: float,
    desired_retention: float,
    decay: float = FSRS_DEFAULT_DECAY,
) -> float:
    """
    Inverts the forgetting curve: the number of days after which retrievability
    falls to desired_retention.

    Args:
        stability: The card's stability in days.
        desired_retention: Target retrievability, strictly between 0 and 1.
        decay: The positive decay exponent of the power law.

    Returns:
        float: The (unrounded) number of days.
    """

    if stability <= 0:
        raise ValueError(f"stability must be positive, got {stability}")
    if not 0 < desired_retention < 1:
        raise ValueError(
            f"desired_retention must be between 0 and 1, got {desired_retention}"
        )

    return (stability / decay_factor(decay)) * (
        desired_retention ** (1 / -decay) - 1
    )


__all__ = [
    "FSRS_DEFAULT_DECAY",
    "decay_factor",
    "retrievability",
    "interval_for_retention",
]
