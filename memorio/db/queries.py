"""
Centralized Mastery Queries.

Read paths over persisted mastery records and the attempt ledger. None
of these run the estimator or scheduler; they only project stored state.

Usage:
    from memorio.db import queries

    with session_scope() as session:
        due = queries.skills_due_for_review(session, user_id, now)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime

from sqlalchemy import Integer, cast, func, select
from sqlalchemy.orm import Session

from memorio.core.difficulty import mean_probability_known
from memorio.core.knowledge_tracing import MASTERY_THRESHOLD, PRACTICE_THRESHOLD
from memorio.core.skill_types import normalize_skill_type
from memorio.db.models import AttemptLedgerEntry, MasteryRecord, normalize_concept_id


@dataclass(frozen=True)
class MasteryStats:
    """Aggregate mastery summary for one user."""

    total_skills: int = 0
    mastered_skills: int = 0
    skills_due_for_review: int = 0
    average_mastery: float = 0.0
    skills_needing_practice: int = 0

    def to_dict(self) -> dict[str, int | float]:
        return asdict(self)


# =============================================================================
# MASTERY RECORD QUERIES
# =============================================================================


def get_record(
    session: Session,
    user_id: str,
    skill_type: str,
    concept_id: str | None,
    for_update: bool = False,
) -> MasteryRecord | None:
    """
    Point lookup by (user, skill type, concept).

    With for_update the row is locked until the transaction ends on
    backends that support SELECT ... FOR UPDATE.
    """
    stmt = select(MasteryRecord).where(
        MasteryRecord.user_id == user_id,
        MasteryRecord.skill_type == normalize_skill_type(skill_type),
        MasteryRecord.concept_id == normalize_concept_id(concept_id),
    )
    if for_update:
        stmt = stmt.with_for_update()
    return session.execute(stmt).scalar_one_or_none()


def list_records(
    session: Session, user_id: str, skill_type: str | None = None
) -> list[MasteryRecord]:
    """All records of a user, optionally limited to one skill type."""
    stmt = select(MasteryRecord).where(MasteryRecord.user_id == user_id)
    if skill_type is not None:
        stmt = stmt.where(MasteryRecord.skill_type == normalize_skill_type(skill_type))
    stmt = stmt.order_by(MasteryRecord.skill_type, MasteryRecord.concept_id)
    return list(session.scalars(stmt))


def skills_due_for_review(session: Session, user_id: str, now: datetime) -> list[MasteryRecord]:
    """Scheduled skills whose review date has arrived, most overdue first."""
    stmt = (
        select(MasteryRecord)
        .where(
            MasteryRecord.user_id == user_id,
            MasteryRecord.next_review_at.is_not(None),
            MasteryRecord.next_review_at <= now,
        )
        .order_by(MasteryRecord.next_review_at.asc())
    )
    return list(session.scalars(stmt))


def skills_needing_practice(session: Session, user_id: str) -> list[MasteryRecord]:
    """Skills below the practice threshold, weakest first."""
    stmt = (
        select(MasteryRecord)
        .where(
            MasteryRecord.user_id == user_id,
            MasteryRecord.probability_known < PRACTICE_THRESHOLD,
        )
        .order_by(MasteryRecord.probability_known.asc())
    )
    return list(session.scalars(stmt))


def mastered_skills(session: Session, user_id: str) -> list[MasteryRecord]:
    """Skills at or above the mastery threshold."""
    stmt = (
        select(MasteryRecord)
        .where(
            MasteryRecord.user_id == user_id,
            MasteryRecord.probability_known >= MASTERY_THRESHOLD,
        )
        .order_by(MasteryRecord.probability_known.desc())
    )
    return list(session.scalars(stmt))


def mastery_stats(
    session: Session,
    user_id: str,
    now: datetime,
    excluded_skill_type: str | None = None,
) -> MasteryStats:
    """
    Aggregate stats over a user's records.

    Records of excluded_skill_type (ungraded quizzes) are left out so they
    do not dilute the average of the main exercises.
    """
    records = list_records(session, user_id)
    if excluded_skill_type:
        excluded = normalize_skill_type(excluded_skill_type)
        records = [r for r in records if r.skill_type != excluded]

    if not records:
        return MasteryStats()

    return MasteryStats(
        total_skills=len(records),
        mastered_skills=sum(1 for r in records if r.is_mastered),
        skills_due_for_review=sum(1 for r in records if r.needs_review_at(now)),
        average_mastery=mean_probability_known(r.probability_known for r in records),
        skills_needing_practice=sum(1 for r in records if r.needs_practice),
    )


# =============================================================================
# ATTEMPT LEDGER QUERIES
# =============================================================================


def attempts_for_user(
    session: Session, user_id: str, limit: int | None = None
) -> list[AttemptLedgerEntry]:
    """A user's attempts, newest first."""
    stmt = (
        select(AttemptLedgerEntry)
        .where(AttemptLedgerEntry.user_id == user_id)
        .order_by(AttemptLedgerEntry.created_at.desc(), AttemptLedgerEntry.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(session.scalars(stmt))


def attempts_for_record(session: Session, mastery_record_id) -> list[AttemptLedgerEntry]:
    """Transitions of one mastery record, newest first."""
    stmt = (
        select(AttemptLedgerEntry)
        .where(AttemptLedgerEntry.mastery_record_id == mastery_record_id)
        .order_by(AttemptLedgerEntry.created_at.desc(), AttemptLedgerEntry.id.desc())
    )
    return list(session.scalars(stmt))


def attempts_between(
    session: Session, user_id: str, start: datetime, end: datetime
) -> list[AttemptLedgerEntry]:
    """A user's attempts created within [start, end], newest first."""
    stmt = (
        select(AttemptLedgerEntry)
        .where(
            AttemptLedgerEntry.user_id == user_id,
            AttemptLedgerEntry.created_at.between(start, end),
        )
        .order_by(AttemptLedgerEntry.created_at.desc(), AttemptLedgerEntry.id.desc())
    )
    return list(session.scalars(stmt))


def average_accuracy(session: Session, user_id: str, skill_type: str) -> float | None:
    """Share of correct attempts for one skill type, None without attempts."""
    stmt = select(func.avg(cast(AttemptLedgerEntry.was_correct, Integer))).where(
        AttemptLedgerEntry.user_id == user_id,
        AttemptLedgerEntry.skill_type == normalize_skill_type(skill_type),
    )
    value = session.execute(stmt).scalar_one_or_none()
    return float(value) if value is not None else None


__all__ = [
    "MasteryStats",
    "attempts_between",
    "attempts_for_record",
    "attempts_for_user",
    "average_accuracy",
    "get_record",
    "list_records",
    "mastered_skills",
    "mastery_stats",
    "skills_due_for_review",
    "skills_needing_practice",
]
