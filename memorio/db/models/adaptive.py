"""
Adaptive Mastery Models.

SQLAlchemy models for per-skill mastery tracking:
- MasteryRecord: BKT belief + SM-2 schedule per (user, skill type, concept)
- AttemptLedgerEntry: append-only before/after snapshot of every attempt
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    event,
)
from sqlalchemy import Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from memorio.core.errors import ValidationError
from memorio.core.knowledge_tracing import (
    bkt_update,
    is_mastered,
    needs_practice,
    validate_probability,
)
from memorio.core.review_scheduler import (
    DEFAULT_SM2_CONFIG,
    sm2_update,
    validate_quality,
)
from memorio.core.skill_types import guess_rate_for, normalize_skill_type

from .base import Base, UTCDateTime, as_utc, utc_now

DEFAULT_PROBABILITY_KNOWN = 0.3
DEFAULT_PROBABILITY_LEARNED = 0.1
DEFAULT_PROBABILITY_SLIP = 0.1


def normalize_concept_id(concept_id: str | None) -> str:
    """Skill-type-global tracking is stored as an empty concept id."""
    return (concept_id or "").strip()


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    return as_utc(datetime.fromisoformat(value))


class MasteryRecord(Base):
    """
    Mastery state per user per skill type per concept.

    Stores the BKT parameters and current belief, performance counters and
    SM-2 schedule. State only changes through update_knowledge_state and
    update_spaced_repetition.
    """

    __tablename__ = "user_skill_mastery"

    id: Mapped[UUID] = mapped_column(SAUuid, primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    skill_type: Mapped[str] = mapped_column(String(50), nullable=False)
    concept_id: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    # BKT parameters (0-1)
    probability_known: Mapped[float] = mapped_column(Float, nullable=False)
    probability_learned: Mapped[float] = mapped_column(Float, nullable=False)
    probability_slip: Mapped[float] = mapped_column(Float, nullable=False)
    probability_guess: Mapped[float] = mapped_column(Float, nullable=False)

    # Performance tracking
    total_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    correct_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_attempt_at: Mapped[datetime | None] = mapped_column(UTCDateTime)

    # SM-2 schedule
    ease_factor: Mapped[float] = mapped_column(Float, nullable=False)
    review_interval_days: Mapped[float] = mapped_column(Float, nullable=False)
    next_review_at: Mapped[datetime | None] = mapped_column(UTCDateTime)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utc_now, onupdate=utc_now
    )

    # Optimistic concurrency counter
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("user_id", "skill_type", "concept_id", name="uq_user_skill_concept"),
        Index("idx_mastery_user_skill_type", "user_id", "skill_type"),
        Index("idx_mastery_next_review", "user_id", "next_review_at"),
        Index("idx_mastery_probability", "user_id", "probability_known"),
    )

    def __init__(
        self,
        user_id: str,
        skill_type: str,
        concept_id: str | None = None,
        *,
        probability_known: float = DEFAULT_PROBABILITY_KNOWN,
        probability_learned: float = DEFAULT_PROBABILITY_LEARNED,
        probability_slip: float = DEFAULT_PROBABILITY_SLIP,
        probability_guess: float | None = None,
        **kwargs: Any,
    ):
        """
        Create a record with default priors.

        Args:
            user_id: Owner of the record
            skill_type: Skill type (known types are canonicalized)
            concept_id: Concept scope, None/empty for skill-type-global tracking
            probability_known: Initial P(known)
            probability_learned: P(T) override
            probability_slip: P(S) override
            probability_guess: P(G) override, defaults to the skill type's guess rate
        """
        kwargs.setdefault("total_attempts", 0)
        kwargs.setdefault("correct_attempts", 0)
        kwargs.setdefault("ease_factor", DEFAULT_SM2_CONFIG.initial_ease)
        kwargs.setdefault("review_interval_days", DEFAULT_SM2_CONFIG.first_interval)
        super().__init__(
            user_id=user_id,
            skill_type=normalize_skill_type(skill_type),
            concept_id=normalize_concept_id(concept_id),
            probability_known=probability_known,
            probability_learned=probability_learned,
            probability_slip=probability_slip,
            probability_guess=(
                guess_rate_for(skill_type) if probability_guess is None else probability_guess
            ),
            **kwargs,
        )

    def __repr__(self) -> str:
        return (
            f"<MasteryRecord user={self.user_id} skill={self.skill_type} "
            f"concept={self.concept_id!r} p_known={self.probability_known:.3f}>"
        )

    @validates("probability_known", "probability_learned", "probability_slip")
    def _validate_probability(self, key: str, value: float) -> float:
        return validate_probability(key, value)

    @validates("probability_guess")
    def _validate_guess(self, key: str, value: float) -> float:
        validate_probability(key, value)
        current = self.__dict__.get(key)
        if current is not None and current != value:
            raise ValidationError("probability_guess is fixed when the record is created")
        return value

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def update_knowledge_state(self, was_correct: bool, now: datetime | None = None) -> float:
        """
        Apply one BKT step and advance the performance counters.

        Returns:
            The new P(known)
        """
        self.probability_known = bkt_update(
            self.probability_known,
            self.probability_slip,
            self.probability_guess,
            self.probability_learned,
            was_correct,
        )
        self.total_attempts += 1
        if was_correct:
            self.correct_attempts += 1
        self.last_attempt_at = now or utc_now()
        return self.probability_known

    def update_spaced_repetition(self, quality: int, now: datetime | None = None) -> None:
        """
        Apply one SM-2 step using the current attempt count.

        Raises:
            ValidationError: quality outside 0-5 (nothing is modified)
        """
        validate_quality(quality)
        schedule = sm2_update(
            self.ease_factor,
            self.review_interval_days,
            self.total_attempts,
            quality,
            now or utc_now(),
        )
        self.ease_factor = schedule.ease_factor
        self.review_interval_days = schedule.interval_days
        self.next_review_at = schedule.next_review_at

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def accuracy_rate(self) -> float:
        """Fraction of attempts answered correctly (0 before any attempt)."""
        if not self.total_attempts:
            return 0.0
        return self.correct_attempts / self.total_attempts

    @property
    def is_mastered(self) -> bool:
        return is_mastered(self.probability_known)

    @property
    def needs_practice(self) -> bool:
        return needs_practice(self.probability_known)

    def needs_review_at(self, now: datetime) -> bool:
        """Unscheduled skills and skills past their review date need review."""
        if self.next_review_at is None:
            return True
        return as_utc(now) > as_utc(self.next_review_at)

    @property
    def needs_review(self) -> bool:
        return self.needs_review_at(utc_now())

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self, now: datetime | None = None) -> dict[str, Any]:
        """JSON-friendly snapshot including derived fields."""
        return {
            "id": str(self.id) if self.id is not None else None,
            "user_id": self.user_id,
            "skill_type": self.skill_type,
            "concept_id": self.concept_id,
            "probability_known": self.probability_known,
            "probability_learned": self.probability_learned,
            "probability_slip": self.probability_slip,
            "probability_guess": self.probability_guess,
            "total_attempts": self.total_attempts,
            "correct_attempts": self.correct_attempts,
            "last_attempt_at": _isoformat(self.last_attempt_at),
            "ease_factor": self.ease_factor,
            "review_interval_days": self.review_interval_days,
            "next_review_at": _isoformat(self.next_review_at),
            "accuracy_rate": self.accuracy_rate,
            "is_mastered": self.is_mastered,
            "needs_review": self.needs_review_at(now or utc_now()),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MasteryRecord:
        """Rebuild a detached record from to_dict() output."""
        record = cls(
            data["user_id"],
            data["skill_type"],
            data.get("concept_id"),
            probability_known=data["probability_known"],
            probability_learned=data["probability_learned"],
            probability_slip=data["probability_slip"],
            probability_guess=data["probability_guess"],
            total_attempts=data["total_attempts"],
            correct_attempts=data["correct_attempts"],
            last_attempt_at=_parse_datetime(data.get("last_attempt_at")),
            ease_factor=data["ease_factor"],
            review_interval_days=data["review_interval_days"],
            next_review_at=_parse_datetime(data.get("next_review_at")),
        )
        if data.get("id"):
            record.id = UUID(data["id"])
        return record


class AttemptLedgerEntry(Base):
    """
    One recorded attempt with the mastery transition it caused.

    Entries are written once in the same transaction as the record update
    and never modified afterwards. Used for analytics and data export.
    """

    __tablename__ = "skill_attempt_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    mastery_record_id: Mapped[UUID] = mapped_column(
        ForeignKey("user_skill_mastery.id", ondelete="CASCADE"), nullable=False, index=True
    )
    exercise_session_id: Mapped[str | None] = mapped_column(String(64))
    skill_type: Mapped[str] = mapped_column(String(50), nullable=False)
    difficulty_level: Mapped[int] = mapped_column(Integer, nullable=False)
    was_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    quality: Mapped[int] = mapped_column(Integer, nullable=False)
    response_time_ms: Mapped[int | None] = mapped_column(Integer)

    # Context
    hours_since_last_practice: Mapped[float | None] = mapped_column(Float)
    user_skill_level_at_time: Mapped[int | None] = mapped_column(Integer)

    # BKT snapshots
    probability_known_before: Mapped[float] = mapped_column(Float, nullable=False)
    probability_known_after: Mapped[float] = mapped_column(Float, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)

    __table_args__ = (Index("idx_attempt_user_created", "user_id", "created_at"),)

    def __repr__(self) -> str:
        return (
            f"<AttemptLedgerEntry user={self.user_id} skill={self.skill_type} "
            f"correct={self.was_correct} p={self.probability_known_before:.3f}"
            f"->{self.probability_known_after:.3f}>"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "mastery_record_id": str(self.mastery_record_id),
            "exercise_session_id": self.exercise_session_id,
            "skill_type": self.skill_type,
            "difficulty_level": self.difficulty_level,
            "was_correct": self.was_correct,
            "quality": self.quality,
            "response_time_ms": self.response_time_ms,
            "hours_since_last_practice": self.hours_since_last_practice,
            "user_skill_level_at_time": self.user_skill_level_at_time,
            "probability_known_before": self.probability_known_before,
            "probability_known_after": self.probability_known_after,
            "created_at": _isoformat(self.created_at),
        }


@event.listens_for(AttemptLedgerEntry, "before_update")
def _reject_ledger_update(mapper, connection, target: AttemptLedgerEntry) -> None:
    raise ValidationError(f"Attempt ledger entry {target.id} is append-only")
