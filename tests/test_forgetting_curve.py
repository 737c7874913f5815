from srs_engine.forgetting_curve import (
    FSRS_DEFAULT_DECAY,
    decay_factor,
    interval_for_retention,
    retrievability,
)

import pytest


class TestForgettingCurve:
    def test_full_recall_right_after_review(self):
        for stability in (0.01, 0.5, 1.0, 10.0, 365.0, 10_000.0):
            assert retrievability(0, stability) == 1.0

    def test_ninety_percent_at_stability(self):
        for decay in (0.1, FSRS_DEFAULT_DECAY, 0.5, 0.8):
            for stability in (1.0, 7.5, 100.0):
                assert retrievability(stability, stability, decay) == pytest.approx(0.9)

    def test_monotonically_decreasing_in_time(self):
        stability = 12.0
        values = [retrievability(days, stability) for days in range(0, 400, 3)]

        assert all(later < earlier for earlier, later in zip(values, values[1:]))
        assert all(0 < value <= 1 for value in values)

    def test_higher_stability_forgets_slower(self):
        assert retrievability(20, 5.0) < retrievability(20, 50.0)

    def test_negative_elapsed_days_treated_as_zero(self):
        assert retrievability(-3, 10.0) == 1.0

    def test_non_positive_stability(self):
        with pytest.raises(ValueError):
            retrievability(1, 0)

        with pytest.raises(ValueError):
            retrievability(1, -2.0)

        with pytest.raises(ValueError):
            interval_for_retention(0, 0.9)

    def test_interval_for_retention_inverts_curve(self):
        for stability in (0.3, 4.0, 90.0):
            for desired_retention in (0.7, 0.85, 0.9, 0.97):
                days = interval_for_retention(stability, desired_retention)
                assert retrievability(days, stability) == pytest.approx(
                    desired_retention
                )

    def test_interval_equals_stability_at_ninety_percent(self):
        assert interval_for_retention(42.0, 0.9) == pytest.approx(42.0)

    def test_interval_for_invalid_retention(self):
        for desired_retention in (0, 1, 1.5, -0.2):
            with pytest.raises(ValueError):
                interval_for_retention(10.0, desired_retention)

    def test_decay_factor(self):
        assert decay_factor(0.5) == pytest.approx(0.9**-2 - 1)
        assert decay_factor() > 0
