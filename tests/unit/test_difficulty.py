"""Unit tests for the difficulty recommender."""

import pytest

from memorio.core.difficulty import (
    COLD_START_LEVEL,
    mean_probability_known,
    recommend_difficulty,
)


class TestRecommendDifficulty:
    """Tests for mapping mean mastery to a 1-10 difficulty."""

    def test_cold_start(self):
        """No records for the skill type starts at the easiest level."""
        assert recommend_difficulty(None) == COLD_START_LEVEL == 1

    @pytest.mark.parametrize(
        "mean,expected",
        [
            (0.0, 1),
            (0.29, 1),
            (0.30, 2),
            (0.45, 3),
            (0.55, 4),
            (0.60, 5),
            (0.70, 6),
            (0.75, 7),
            (0.80, 8),
            (0.85, 9),
            (0.91, 9),
            (0.92, 10),
            (1.0, 10),
        ],
    )
    def test_half_open_buckets(self, mean, expected):
        """Each bucket includes its lower bound and excludes its upper bound."""
        assert recommend_difficulty(mean) == expected

    def test_monotonic(self):
        levels = [recommend_difficulty(i / 100) for i in range(101)]

        assert levels == sorted(levels)
        assert min(levels) == 1
        assert max(levels) == 10


class TestMeanProbabilityKnown:
    """Tests for averaging P(known)."""

    def test_empty_is_none(self):
        assert mean_probability_known([]) is None

    def test_mean(self):
        assert mean_probability_known([0.5, 1.0]) == pytest.approx(0.75)

    def test_accepts_generator(self):
        assert mean_probability_known(p for p in (0.2, 0.4, 0.6)) == pytest.approx(0.4)
