"""
SM-2 Review Scheduler.

Implements the SuperMemo 2 ease/interval update used to decide when a
skill is next reviewed.

SM-2 Quality Scale:
0 - Complete blackout, wrong response
1 - Incorrect, but upon seeing answer remembered
2 - Incorrect, but answer seemed easy to recall
3 - Correct, but with significant difficulty
4 - Correct, with some hesitation
5 - Correct, with perfect recall

Attempts are mapped onto this scale from correctness and exercise
difficulty only, so qualities 1 and 2 never occur in practice.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from .errors import ValidationError

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10
MIN_QUALITY = 0
MAX_QUALITY = 5


@dataclass(frozen=True)
class SM2Config:
    """Configuration for the SM-2 update."""

    initial_ease: float = 2.5
    minimum_ease: float = 1.3
    first_interval: float = 1.0  # Days after the first successful attempt
    second_interval: float = 6.0  # Days after the second successful attempt
    passing_quality: int = 3
    max_review_days: int = 36500  # Furthest next review date, interval itself is not capped


DEFAULT_SM2_CONFIG = SM2Config()


@dataclass(frozen=True)
class ReviewSchedule:
    """Result of one scheduling step."""

    ease_factor: float
    interval_days: float
    next_review_at: datetime


def validate_difficulty(difficulty_level: int) -> int:
    """Difficulty levels are integers from 1 to 10."""
    if isinstance(difficulty_level, bool) or not isinstance(difficulty_level, int):
        raise ValidationError(f"Difficulty level must be an integer, got {difficulty_level!r}")
    if not MIN_DIFFICULTY <= difficulty_level <= MAX_DIFFICULTY:
        raise ValidationError(
            f"Difficulty level must be between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}, "
            f"got {difficulty_level}"
        )
    return difficulty_level


def validate_quality(quality: int) -> int:
    """Quality must be an integer from 0 to 5."""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise ValidationError(f"Quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise ValidationError(f"Quality must be between 0 and 5, got {quality}")
    return quality


def quality_for_attempt(was_correct: bool, difficulty_level: int) -> int:
    """
    Convert an attempt outcome to an SM-2 quality.

    Any correct answer is worth at least 3; harder exercises earn more.

    Args:
        was_correct: Whether the attempt was answered correctly
        difficulty_level: Exercise difficulty (1-10)

    Returns:
        Quality on the 0-5 scale
    """
    validate_difficulty(difficulty_level)

    if not was_correct:
        return 0
    if difficulty_level >= 8:
        return 5
    if difficulty_level >= 6:
        return 4
    return 3


def next_ease_factor(
    ease_factor: float, quality: int, config: SM2Config = DEFAULT_SM2_CONFIG
) -> float:
    """EF' = max(min_ease, EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)))"""
    miss = MAX_QUALITY - quality
    delta = 0.1 - miss * (0.08 + miss * 0.02)
    return max(config.minimum_ease, ease_factor + delta)


def sm2_update(
    ease_factor: float,
    interval_days: float,
    total_attempts: int,
    quality: int,
    now: datetime,
    config: SM2Config = DEFAULT_SM2_CONFIG,
) -> ReviewSchedule:
    """
    Calculate the next ease factor, interval and review date.

    Args:
        ease_factor: Current ease factor
        interval_days: Current (fractional) interval in days
        total_attempts: Attempt count including the attempt being scheduled
        quality: SM-2 quality (0-5)
        now: Time of the attempt

    Returns:
        ReviewSchedule with the fractional interval and a whole-day review date,
        at most config.max_review_days ahead
    """
    validate_quality(quality)

    new_ease = next_ease_factor(ease_factor, quality, config)

    if quality < config.passing_quality:
        # Failed recall - restart the schedule
        new_interval = config.first_interval
    elif total_attempts <= 1:
        new_interval = config.first_interval
    elif total_attempts == 2:
        new_interval = config.second_interval
    else:
        new_interval = interval_days * new_ease

    # Long correct streaks grow the interval geometrically past datetime.max
    headroom_days = (datetime.max - now.replace(tzinfo=None)).days
    review_days = min(math.ceil(min(new_interval, config.max_review_days)), headroom_days)
    next_review_at = now + timedelta(days=review_days)

    return ReviewSchedule(
        ease_factor=new_ease,
        interval_days=new_interval,
        next_review_at=next_review_at,
    )


__all__ = [
    "DEFAULT_SM2_CONFIG",
    "MAX_DIFFICULTY",
    "MIN_DIFFICULTY",
    "ReviewSchedule",
    "SM2Config",
    "next_ease_factor",
    "quality_for_attempt",
    "sm2_update",
    "validate_difficulty",
    "validate_quality",
]
