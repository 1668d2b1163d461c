"""
Mastery Coordinator.

Runs the "record attempt" transaction and serves the read-only mastery
views. One attempt advances, in a single transaction:
- BKT belief and performance counters (KnowledgeStateEstimator)
- SM-2 ease, interval and next review date (ReviewScheduler)
- one AttemptLedgerEntry with the before/after snapshot

Attempts on the same (user, skill type, concept) serialize through a row
lock where the backend has one and an optimistic version check
everywhere; a lost race is retried a bounded number of times.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from config import Settings, get_settings
from memorio.core.difficulty import mean_probability_known, recommend_difficulty
from memorio.core.errors import ConcurrencyConflict, NotFoundError, ValidationError
from memorio.core.review_scheduler import quality_for_attempt
from memorio.core.skill_types import normalize_skill_type
from memorio.db import queries
from memorio.db.database import session_scope
from memorio.db.models import (
    AttemptLedgerEntry,
    MasteryRecord,
    as_utc,
    normalize_concept_id,
    utc_now,
)
from memorio.db.queries import MasteryStats


@dataclass
class MasteryDashboard:
    """Everything the mastery dashboard shows, read in one transaction."""

    stats: MasteryStats
    skills_due_for_review: list[MasteryRecord] = field(default_factory=list)
    skills_needing_practice: list[MasteryRecord] = field(default_factory=list)
    mastered_skills: list[MasteryRecord] = field(default_factory=list)

    def to_dict(self, now: datetime | None = None) -> dict[str, Any]:
        return {
            "stats": self.stats.to_dict(),
            "skills_due_for_review": [r.to_dict(now) for r in self.skills_due_for_review],
            "skills_needing_practice": [r.to_dict(now) for r in self.skills_needing_practice],
            "mastered_skills": [r.to_dict(now) for r in self.mastered_skills],
        }


def hours_between(earlier: datetime | None, later: datetime) -> float | None:
    """Elapsed whole minutes (truncated toward zero) in hours, None without a start time."""
    if earlier is None:
        return None
    minutes = int((as_utc(later) - as_utc(earlier)).total_seconds() / 60)
    return minutes / 60.0


class MasteryCoordinator:
    """
    Entry point for recording attempts and reading mastery state.

    Holds no mutable state of its own: every call opens a short-lived
    session, so one coordinator can serve concurrent requests.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize coordinator.

        Args:
            session_factory: Session factory (defaults to the configured database)
            settings: Settings instance (defaults to get_settings())
            clock: Source of the current time
        """
        self._session_factory = session_factory
        self.settings = settings or get_settings()
        self._clock = clock

    # =========================================================================
    # Record Attempt
    # =========================================================================

    def record_attempt(
        self,
        user_id: str,
        skill_type: str,
        concept_id: str | None,
        was_correct: bool,
        difficulty_level: int,
        session_id: str | None = None,
        response_time_ms: int | None = None,
        user_skill_level: int | None = None,
    ) -> MasteryRecord:
        """
        Record one completed exercise attempt and update mastery.

        Args:
            user_id: Learner
            skill_type: Skill type of the exercise
            concept_id: Concept scope (None for skill-type-global tracking)
            was_correct: Whether the attempt was correct
            difficulty_level: Exercise difficulty (1-10)
            session_id: Exercise session correlation id
            response_time_ms: Time taken to answer
            user_skill_level: Caller's skill level snapshot for analytics

        Returns:
            The updated MasteryRecord (detached)

        Raises:
            ValidationError: difficulty (and so quality) out of range
            ConcurrencyConflict: still losing races after all retries
        """
        quality = quality_for_attempt(was_correct, difficulty_level)
        if response_time_ms is not None and response_time_ms < 0:
            raise ValidationError(f"response_time_ms must not be negative, got {response_time_ms}")

        skill_key = normalize_skill_type(skill_type)
        concept_key = normalize_concept_id(concept_id)
        max_retries = self.settings.mastery_max_retries

        last_conflict: ConcurrencyConflict | None = None
        for attempt in range(1, max_retries + 1):
            try:
                return self._apply_attempt(
                    user_id=user_id,
                    skill_type=skill_key,
                    concept_id=concept_key,
                    was_correct=was_correct,
                    difficulty_level=difficulty_level,
                    quality=quality,
                    session_id=session_id,
                    response_time_ms=response_time_ms,
                    user_skill_level=user_skill_level,
                )
            except ConcurrencyConflict as e:
                last_conflict = e
                logger.warning(
                    f"Concurrent update on {user_id}/{skill_key}/{concept_key!r} "
                    f"(attempt {attempt}/{max_retries}) - retrying"
                )

        logger.error(
            f"Giving up on attempt for {user_id}/{skill_key}/{concept_key!r} "
            f"after {max_retries} conflicts"
        )
        raise ConcurrencyConflict(
            f"Mastery record {user_id}/{skill_key}/{concept_key!r} kept changing concurrently",
            attempts=max_retries,
        ) from last_conflict

    def _apply_attempt(
        self,
        user_id: str,
        skill_type: str,
        concept_id: str,
        was_correct: bool,
        difficulty_level: int,
        quality: int,
        session_id: str | None,
        response_time_ms: int | None,
        user_skill_level: int | None,
    ) -> MasteryRecord:
        """Load, update and persist one record plus its ledger entry atomically."""
        with session_scope(self._session_factory) as session:
            record = queries.get_record(session, user_id, skill_type, concept_id, for_update=True)
            creation_error = None
            if record is None:
                creation_error = self._create_record(user_id, skill_type, concept_id)
                record = queries.get_record(
                    session, user_id, skill_type, concept_id, for_update=True
                )
            if record is None:
                if creation_error is not None:
                    raise creation_error
                raise NotFoundError(
                    f"Mastery record {user_id}/{skill_type}/{concept_id!r} vanished after creation"
                )

            record_id = record.id
            now = self._clock()
            hours_since_last_practice = hours_between(record.last_attempt_at, now)
            probability_before = record.probability_known

            record.update_knowledge_state(was_correct, now)
            record.update_spaced_repetition(quality, now)

            session.add(
                AttemptLedgerEntry(
                    user_id=user_id,
                    mastery_record_id=record_id,
                    exercise_session_id=session_id,
                    skill_type=skill_type,
                    difficulty_level=difficulty_level,
                    was_correct=was_correct,
                    quality=quality,
                    response_time_ms=response_time_ms,
                    hours_since_last_practice=hours_since_last_practice,
                    user_skill_level_at_time=user_skill_level,
                    probability_known_before=probability_before,
                    probability_known_after=record.probability_known,
                    created_at=now,
                )
            )

            try:
                session.flush()
            except StaleDataError as e:
                raise ConcurrencyConflict(
                    f"Mastery record {record_id} was updated by another attempt"
                ) from e

            logger.debug(
                f"{user_id}/{skill_type}/{concept_id!r}: p_known "
                f"{probability_before:.3f} -> {record.probability_known:.3f}, q={quality}, "
                f"ease={record.ease_factor:.2f}, interval={record.review_interval_days:.2f}d"
            )

        return record

    def _create_record(
        self, user_id: str, skill_type: str, concept_id: str
    ) -> IntegrityError | None:
        """
        Insert a fresh record in its own transaction.

        Losing the race against another first attempt is fine: the unique
        constraint rejects the duplicate and the caller reloads the winner.
        The rejection is returned so the caller can re-raise it when no
        winner exists.
        """
        try:
            with session_scope(self._session_factory) as session:
                session.add(
                    MasteryRecord(
                        user_id,
                        skill_type,
                        concept_id,
                        **self.settings.get_bkt_defaults(),
                    )
                )
            logger.info(f"Created mastery record {user_id}/{skill_type}/{concept_id!r}")
        except IntegrityError as e:
            logger.debug(
                f"Mastery record {user_id}/{skill_type}/{concept_id!r} not inserted: {e.orig}"
            )
            return e
        return None

    # =========================================================================
    # Read Paths
    # =========================================================================

    def get_skill_mastery(
        self, user_id: str, skill_type: str, concept_id: str | None = None
    ) -> MasteryRecord:
        """
        Explicit record lookup.

        Raises:
            NotFoundError: no attempt was ever recorded for the tuple
        """
        with session_scope(self._session_factory) as session:
            record = queries.get_record(session, user_id, skill_type, concept_id)
        if record is None:
            raise NotFoundError(
                f"No mastery record for {user_id}/{normalize_skill_type(skill_type)}/"
                f"{normalize_concept_id(concept_id)!r}"
            )
        return record

    def get_skills_due_for_review(self, user_id: str) -> list[MasteryRecord]:
        with session_scope(self._session_factory) as session:
            return queries.skills_due_for_review(session, user_id, self._clock())

    def get_review_count(self, user_id: str) -> int:
        return len(self.get_skills_due_for_review(user_id))

    def get_skills_needing_practice(self, user_id: str) -> list[MasteryRecord]:
        with session_scope(self._session_factory) as session:
            return queries.skills_needing_practice(session, user_id)

    def get_mastered_skills(self, user_id: str) -> list[MasteryRecord]:
        with session_scope(self._session_factory) as session:
            return queries.mastered_skills(session, user_id)

    def get_mastery_stats(self, user_id: str) -> MasteryStats:
        with session_scope(self._session_factory) as session:
            return queries.mastery_stats(
                session,
                user_id,
                self._clock(),
                excluded_skill_type=self.settings.non_assessment_skill_type,
            )

    def get_recommended_difficulty(self, user_id: str, skill_type: str) -> int:
        """Difficulty (1-10) for the next exercise of a skill type."""
        with session_scope(self._session_factory) as session:
            records = queries.list_records(session, user_id, skill_type)
        return recommend_difficulty(mean_probability_known(r.probability_known for r in records))

    def get_dashboard(self, user_id: str) -> MasteryDashboard:
        now = self._clock()
        with session_scope(self._session_factory) as session:
            return MasteryDashboard(
                stats=queries.mastery_stats(
                    session,
                    user_id,
                    now,
                    excluded_skill_type=self.settings.non_assessment_skill_type,
                ),
                skills_due_for_review=queries.skills_due_for_review(session, user_id, now),
                skills_needing_practice=queries.skills_needing_practice(session, user_id),
                mastered_skills=queries.mastered_skills(session, user_id),
            )

    # =========================================================================
    # Attempt Ledger
    # =========================================================================

    def get_attempt_history(
        self, user_id: str, limit: int | None = None
    ) -> list[AttemptLedgerEntry]:
        with session_scope(self._session_factory) as session:
            return queries.attempts_for_user(session, user_id, limit=limit)

    def get_record_history(self, mastery_record_id) -> list[AttemptLedgerEntry]:
        with session_scope(self._session_factory) as session:
            return queries.attempts_for_record(session, mastery_record_id)

    def get_attempts_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[AttemptLedgerEntry]:
        with session_scope(self._session_factory) as session:
            return queries.attempts_between(session, user_id, start, end)

    def get_average_accuracy(self, user_id: str, skill_type: str) -> float | None:
        with session_scope(self._session_factory) as session:
            return queries.average_accuracy(session, user_id, skill_type)


__all__ = ["MasteryCoordinator", "MasteryDashboard", "hours_between"]
