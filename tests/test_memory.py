from srs_engine.memory import (
    DEFAULT_PARAMETERS,
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    STABILITY_MIN,
    MemoryModel,
)
from srs_engine.rating import Rating
from srs_engine.errors import InvalidRating

from random import Random
import pytest


class TestMemoryModel:
    def test_default_parameters(self):
        model = MemoryModel()

        assert model.parameters == DEFAULT_PARAMETERS
        assert len(model.parameters) == 21
        assert model.decay == DEFAULT_PARAMETERS[20]
        assert model == MemoryModel(list(DEFAULT_PARAMETERS))

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            MemoryModel(DEFAULT_PARAMETERS[:19])

        out_of_bounds = list(DEFAULT_PARAMETERS)
        out_of_bounds[4] = 50.0
        with pytest.raises(ValueError):
            MemoryModel(out_of_bounds)

    def test_initial_state_table(self):
        model = MemoryModel()

        for rating in Rating:
            difficulty, stability = model.initial_state(rating)
            assert stability == DEFAULT_PARAMETERS[rating - 1]
            assert MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY

        assert model.initial_difficulty(Rating.Again) == pytest.approx(
            DEFAULT_PARAMETERS[4]
        )
        assert model.initial_difficulty(Rating.Easy) == MIN_DIFFICULTY
        assert model.initial_difficulty(Rating.Easy, clamp=False) < MIN_DIFFICULTY

    def test_next_difficulty_direction(self):
        model = MemoryModel()

        assert model.next_difficulty(5.0, Rating.Again) > 5.0
        assert model.next_difficulty(5.0, Rating.Hard) > 5.0
        assert model.next_difficulty(5.0, Rating.Easy) < 5.0
        # Good only applies mean reversion
        assert model.next_difficulty(9.0, Rating.Good) < 9.0
        assert model.next_difficulty(9.0, Rating.Good) == pytest.approx(9.0, abs=0.05)

    def test_difficulty_stays_clamped(self):
        model = MemoryModel()

        difficulty = 5.0
        for _ in range(100):
            difficulty = model.next_difficulty(difficulty, Rating.Again)
            assert MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY
        assert difficulty == pytest.approx(MAX_DIFFICULTY, abs=0.1)

        for _ in range(100):
            difficulty = model.next_difficulty(difficulty, Rating.Easy)
            assert MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY
        assert difficulty == MIN_DIFFICULTY

        rng = Random(11)
        for _ in range(1000):
            difficulty = model.next_difficulty(difficulty, rng.choice(list(Rating)))
            assert MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY

    def test_recall_stability_grows_more_when_recall_was_harder(self):
        model = MemoryModel()

        low_r = model.next_recall_stability(5.0, 10.0, 0.7, Rating.Good)
        high_r = model.next_recall_stability(5.0, 10.0, 0.95, Rating.Good)

        assert low_r > high_r > 10.0

    def test_recall_stability_ordered_by_rating(self):
        model = MemoryModel()

        hard = model.next_stability(5.0, 10.0, 0.9, Rating.Hard)
        good = model.next_stability(5.0, 10.0, 0.9, Rating.Good)
        easy = model.next_stability(5.0, 10.0, 0.9, Rating.Easy)

        assert 10.0 < hard < good < easy

    def test_harder_cards_gain_less_stability(self):
        model = MemoryModel()

        assert model.next_stability(8.0, 10.0, 0.9, Rating.Good) < model.next_stability(
            3.0, 10.0, 0.9, Rating.Good
        )

    def test_forget_stability_is_lower(self):
        model = MemoryModel()

        for stability in (0.5, 3.0, 10.0, 200.0):
            forgotten = model.next_stability(5.0, stability, 0.9, Rating.Again)
            assert STABILITY_MIN <= forgotten < stability

    def test_short_term_stability(self):
        model = MemoryModel()

        assert model.short_term_stability(2.0, Rating.Good) >= 2.0
        assert model.short_term_stability(2.0, Rating.Easy) >= 2.0
        assert model.short_term_stability(2.0, Rating.Again) < 2.0
        assert model.short_term_stability(2.0, Rating.Again) >= STABILITY_MIN

    def test_update_memory(self):
        model = MemoryModel()

        difficulty, stability = model.update_memory(5.0, 10.0, Rating.Good, 0.9)

        assert difficulty == model.next_difficulty(5.0, Rating.Good)
        assert stability == model.next_stability(5.0, 10.0, 0.9, Rating.Good)

    def test_stability_stays_positive(self):
        model = MemoryModel()
        rng = Random(3)

        difficulty, stability = model.initial_state(Rating.Again)
        for _ in range(500):
            rating = rng.choice(list(Rating))
            retrievability = rng.uniform(0.01, 1.0)
            difficulty, stability = model.update_memory(
                difficulty, stability, rating, retrievability
            )
            assert stability >= STABILITY_MIN
            assert MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY

    def test_update_memory_invalid_rating(self):
        model = MemoryModel()

        for rating in (0, 5, "often"):
            with pytest.raises(InvalidRating):
                model.update_memory(5.0, 10.0, rating, 0.9)

    def test_update_memory_needs_existing_state(self):
        model = MemoryModel()

        with pytest.raises(ValueError):
            model.update_memory(None, 10.0, Rating.Good, 0.9)
