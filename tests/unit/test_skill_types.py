"""Unit tests for skill types and guess rates."""

import pytest

from memorio.core.errors import ValidationError
from memorio.core.skill_types import (
    DEFAULT_GUESS_RATE,
    SkillType,
    guess_rate_for,
    normalize_skill_type,
)


class TestGuessRates:
    """Tests for per-skill-type guess rates."""

    @pytest.mark.parametrize(
        "skill_type,expected",
        [
            ("WORD_LINKING", 0.05),
            ("NUMBER_PEG", 0.05),
            ("NAMES_FACES", 0.15),
            ("QUIZ", 0.25),
            (SkillType.QUIZ, 0.25),
        ],
    )
    def test_known_skill_types(self, skill_type, expected):
        assert guess_rate_for(skill_type) == expected

    def test_unknown_skill_type_uses_default(self):
        assert guess_rate_for("CHESS_OPENINGS") == DEFAULT_GUESS_RATE == 0.15

    def test_lookup_is_case_insensitive(self):
        assert guess_rate_for("word_linking") == 0.05


class TestNormalizeSkillType:
    """Tests for canonical skill type storage form."""

    def test_known_type(self):
        assert normalize_skill_type(" names_faces ") == "NAMES_FACES"

    def test_enum_member(self):
        assert normalize_skill_type(SkillType.NUMBER_PEG) == "NUMBER_PEG"

    def test_unknown_type_kept(self):
        assert normalize_skill_type("chess") == "CHESS"

    def test_parse_unknown_returns_none(self):
        assert SkillType.parse("chess") is None

    @pytest.mark.parametrize("value", [None, "", "   ", 42])
    def test_missing_skill_type_rejected(self, value):
        """Missing or blank skill types are a validation error, not a crash."""
        with pytest.raises(ValidationError):
            SkillType.parse(value)
        with pytest.raises(ValidationError):
            normalize_skill_type(value)
        with pytest.raises(ValidationError):
            guess_rate_for(value)
