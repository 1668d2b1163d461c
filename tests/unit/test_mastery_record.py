"""
Unit tests for the MasteryRecord model.

Exercises creation defaults and state transitions on detached records,
WITHOUT a database.
"""

from datetime import UTC, datetime, timedelta

import pytest

from memorio.core.errors import ValidationError
from memorio.db.models import MasteryRecord

NOW = datetime(2025, 1, 6, 9, 0, tzinfo=UTC)


@pytest.fixture
def record():
    return MasteryRecord("user-1", "NAMES_FACES", "face-042")


class TestMasteryRecordCreation:
    """Tests for default priors and normalization."""

    def test_defaults(self, record):
        assert record.probability_known == 0.3
        assert record.probability_learned == 0.1
        assert record.probability_slip == 0.1
        assert record.probability_guess == 0.15
        assert record.total_attempts == 0
        assert record.correct_attempts == 0
        assert record.ease_factor == 2.5
        assert record.review_interval_days == 1.0
        assert record.last_attempt_at is None
        assert record.next_review_at is None

    @pytest.mark.parametrize(
        "skill_type,guess",
        [("WORD_LINKING", 0.05), ("NUMBER_PEG", 0.05), ("QUIZ", 0.25), ("ORIGAMI", 0.15)],
    )
    def test_guess_rate_follows_skill_type(self, skill_type, guess):
        assert MasteryRecord("user-1", skill_type).probability_guess == guess

    def test_missing_concept_is_global(self):
        assert MasteryRecord("user-1", "WORD_LINKING").concept_id == ""
        assert MasteryRecord("user-1", "WORD_LINKING", None).concept_id == ""

    def test_skill_type_normalized(self):
        assert MasteryRecord("user-1", "names_faces").skill_type == "NAMES_FACES"

    def test_overrides(self):
        record = MasteryRecord(
            "user-1", "WORD_LINKING", probability_known=0.5, probability_slip=0.2
        )

        assert record.probability_known == 0.5
        assert record.probability_slip == 0.2

    @pytest.mark.parametrize(
        "field", ["probability_known", "probability_learned", "probability_slip"]
    )
    def test_invalid_override_rejected(self, field):
        with pytest.raises(ValidationError):
            MasteryRecord("user-1", "WORD_LINKING", **{field: 1.5})

    def test_guess_rate_is_fixed(self, record):
        """The guess rate cannot change after creation."""
        with pytest.raises(ValidationError):
            record.probability_guess = 0.25

        assert record.probability_guess == 0.15


class TestStateTransitions:
    """Tests for the knowledge and schedule updates."""

    def test_first_correct_attempt(self, record):
        """Difficulty 9 correct answer: BKT to 0.748, quality 5 schedule."""
        record.update_knowledge_state(True, NOW)
        record.update_spaced_repetition(5, NOW)

        assert record.probability_known == pytest.approx(0.748)
        assert record.total_attempts == 1
        assert record.correct_attempts == 1
        assert record.last_attempt_at == NOW
        assert record.ease_factor == pytest.approx(2.6)
        assert record.review_interval_days == 1.0
        assert record.next_review_at == NOW + timedelta(days=1)

    def test_second_incorrect_attempt(self, record):
        record.update_knowledge_state(True, NOW)
        record.update_spaced_repetition(5, NOW)
        later = NOW + timedelta(hours=2)

        record.update_knowledge_state(False, later)
        record.update_spaced_repetition(0, later)

        assert record.probability_known < 0.748
        assert record.total_attempts == 2
        assert record.correct_attempts == 1
        assert record.ease_factor == pytest.approx(1.8)
        assert record.review_interval_days == 1.0
        assert record.next_review_at == later + timedelta(days=1)

    def test_invalid_quality_leaves_schedule_untouched(self, record):
        with pytest.raises(ValidationError):
            record.update_spaced_repetition(9, NOW)

        assert record.ease_factor == 2.5
        assert record.next_review_at is None


class TestDerivedState:
    """Tests for accuracy, mastery and review flags."""

    def test_accuracy_without_attempts(self, record):
        assert record.accuracy_rate == 0.0

    def test_accuracy(self, record):
        for was_correct in (True, False, True, True):
            record.update_knowledge_state(was_correct, NOW)

        assert record.accuracy_rate == pytest.approx(0.75)
        assert record.correct_attempts <= record.total_attempts

    def test_unscheduled_needs_review(self, record):
        assert record.needs_review
        assert record.needs_review_at(NOW)

    def test_needs_review_after_due_date(self, record):
        record.next_review_at = NOW + timedelta(days=1)

        assert not record.needs_review_at(NOW)
        assert not record.needs_review_at(NOW + timedelta(days=1))
        assert record.needs_review_at(NOW + timedelta(days=1, seconds=1))

    def test_mastery_flags(self):
        strong = MasteryRecord("user-1", "QUIZ", probability_known=0.96)
        weak = MasteryRecord("user-1", "QUIZ", probability_known=0.2)

        assert strong.is_mastered and not strong.needs_practice
        assert weak.needs_practice and not weak.is_mastered


class TestSerialization:
    """Tests for to_dict / from_dict."""

    def test_round_trip_preserves_state(self, record):
        record.update_knowledge_state(True, NOW)
        record.update_spaced_repetition(5, NOW)

        data = record.to_dict(now=NOW)
        restored = MasteryRecord.from_dict(data)

        assert restored.to_dict(now=NOW) == data

    def test_derived_fields_exported(self, record):
        data = record.to_dict(now=NOW)

        assert data["accuracy_rate"] == 0.0
        assert data["is_mastered"] is False
        assert data["needs_review"] is True
        assert data["next_review_at"] is None
        assert data["concept_id"] == "face-042"

    def test_datetimes_are_iso_strings(self, record):
        record.update_knowledge_state(True, NOW)
        record.update_spaced_repetition(5, NOW)

        data = record.to_dict(now=NOW)

        assert data["last_attempt_at"] == NOW.isoformat()
        assert datetime.fromisoformat(data["next_review_at"]) == NOW + timedelta(days=1)
