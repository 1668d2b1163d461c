"""
Skill types and their fixed BKT guess rates.

The guess rate depends on how an exercise is answered:
recall tasks are nearly impossible to guess, recognition tasks less so,
and multiple-choice quizzes have a 1-in-4 floor.
"""

from __future__ import annotations

from enum import Enum

from .errors import ValidationError


class SkillType(str, Enum):
    """Memory-technique exercise families tracked by the mastery engine."""

    WORD_LINKING = "WORD_LINKING"
    NAMES_FACES = "NAMES_FACES"
    NUMBER_PEG = "NUMBER_PEG"
    QUIZ = "QUIZ"

    @classmethod
    def parse(cls, value: str | SkillType) -> SkillType | None:
        """
        Return the matching member, or None for skill types outside the known set.

        Raises:
            ValidationError: value is missing, blank or not a string
        """
        if isinstance(value, SkillType):
            return value
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"Skill type must be a non-empty string, got {value!r}")
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


RECALL_TASK_GUESS_RATE = 0.05
RECOGNITION_TASK_GUESS_RATE = 0.15
MULTIPLE_CHOICE_GUESS_RATE = 0.25
DEFAULT_GUESS_RATE = 0.15

GUESS_RATES: dict[SkillType, float] = {
    SkillType.WORD_LINKING: RECALL_TASK_GUESS_RATE,
    SkillType.NUMBER_PEG: RECALL_TASK_GUESS_RATE,
    SkillType.NAMES_FACES: RECOGNITION_TASK_GUESS_RATE,
    SkillType.QUIZ: MULTIPLE_CHOICE_GUESS_RATE,
}


def normalize_skill_type(value: str | SkillType) -> str:
    """Canonical storage form: known types by value, others upper-cased verbatim."""
    member = SkillType.parse(value)
    if member is not None:
        return member.value
    return value.strip().upper()


def guess_rate_for(skill_type: str | SkillType) -> float:
    """Guess rate for a skill type; unknown types get the default."""
    member = SkillType.parse(skill_type)
    if member is None:
        return DEFAULT_GUESS_RATE
    return GUESS_RATES.get(member, DEFAULT_GUESS_RATE)


__all__ = [
    "DEFAULT_GUESS_RATE",
    "GUESS_RATES",
    "MULTIPLE_CHOICE_GUESS_RATE",
    "RECALL_TASK_GUESS_RATE",
    "RECOGNITION_TASK_GUESS_RATE",
    "SkillType",
    "guess_rate_for",
    "normalize_skill_type",
]
