"""
Core Module - Pure mastery algorithms.

Components:
- knowledge_tracing: Bayesian Knowledge Tracing estimator
- review_scheduler: SM-2 ease/interval scheduler and quality derivation
- difficulty: Mean mastery to difficulty level mapping
- skill_types: Closed skill type set and guess-rate table
- errors: Error taxonomy shared by every layer

Nothing in this package performs I/O.
"""

from memorio.core.difficulty import mean_probability_known, recommend_difficulty
from memorio.core.errors import (
    ConcurrencyConflict,
    MasteryError,
    NotFoundError,
    ValidationError,
)
from memorio.core.knowledge_tracing import (
    MASTERY_THRESHOLD,
    PRACTICE_THRESHOLD,
    bkt_update,
)
from memorio.core.review_scheduler import (
    ReviewSchedule,
    SM2Config,
    quality_for_attempt,
    sm2_update,
)
from memorio.core.skill_types import SkillType, guess_rate_for, normalize_skill_type

__all__ = [
    # Algorithms
    "bkt_update",
    "sm2_update",
    "quality_for_attempt",
    "recommend_difficulty",
    "mean_probability_known",
    "ReviewSchedule",
    "SM2Config",
    "MASTERY_THRESHOLD",
    "PRACTICE_THRESHOLD",
    # Skill types
    "SkillType",
    "guess_rate_for",
    "normalize_skill_type",
    # Errors
    "MasteryError",
    "ValidationError",
    "NotFoundError",
    "ConcurrencyConflict",
]
