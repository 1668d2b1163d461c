"""
Difficulty recommendation from aggregate mastery.

Maps the mean P(known) across a user's concepts of one skill type to a
difficulty level from 1 to 10. Buckets are narrower in the 0.70-0.92
band so difficulty ramps up gradually as a learner approaches mastery.
"""

from __future__ import annotations

from collections.abc import Iterable

COLD_START_LEVEL = 1
TOP_LEVEL = 10

# (exclusive upper bound, level)
DIFFICULTY_THRESHOLDS: tuple[tuple[float, int], ...] = (
    (0.30, 1),
    (0.40, 2),
    (0.50, 3),
    (0.60, 4),
    (0.70, 5),
    (0.75, 6),
    (0.80, 7),
    (0.85, 8),
    (0.92, 9),
)


def mean_probability_known(probabilities: Iterable[float]) -> float | None:
    """Arithmetic mean, or None when there is nothing to average."""
    values = list(probabilities)
    if not values:
        return None
    return sum(values) / len(values)


def recommend_difficulty(mean_probability: float | None) -> int:
    """
    Recommend a difficulty level for the next exercise.

    Args:
        mean_probability: Mean P(known) across concepts, None if the user
            has no records for the skill type

    Returns:
        Difficulty level between 1 and 10
    """
    if mean_probability is None:
        return COLD_START_LEVEL

    for upper, level in DIFFICULTY_THRESHOLDS:
        if mean_probability < upper:
            return level
    return TOP_LEVEL


__all__ = [
    "COLD_START_LEVEL",
    "DIFFICULTY_THRESHOLDS",
    "TOP_LEVEL",
    "mean_probability_known",
    "recommend_difficulty",
]
