"""
GDPR data export for mastery tracking.

Collects everything the mastery engine stores about a user: the mastery
records and the full attempt ledger, oldest attempt first.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy.orm import Session, sessionmaker

from memorio.db import queries
from memorio.db.database import session_scope
from memorio.db.models import MasteryRecord, utc_now

EXPORT_FORMAT_VERSION = "1.0"


def _skill_mastery_data(record: MasteryRecord) -> dict[str, Any]:
    return {
        "skill_type": record.skill_type,
        "concept_id": record.concept_id,
        "probability_known": record.probability_known,
        "total_attempts": record.total_attempts,
        "correct_attempts": record.correct_attempts,
        "last_attempt_at": record.last_attempt_at.isoformat() if record.last_attempt_at else None,
        "next_review_at": record.next_review_at.isoformat() if record.next_review_at else None,
    }


def export_user_data(
    user_id: str,
    session_factory: sessionmaker[Session] | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Export a user's mastery data.

    Args:
        user_id: User to export
        session_factory: Session factory (defaults to the configured database)
        now: Export timestamp (defaults to current UTC time)

    Returns:
        JSON-serializable dict with metadata, skill_mastery and attempt_history
    """
    with session_scope(session_factory) as session:
        records = queries.list_records(session, user_id)
        attempts = queries.attempts_for_user(session, user_id)

    attempts.reverse()
    logger.info(
        f"Exported mastery data for {user_id}: {len(records)} skills, {len(attempts)} attempts"
    )

    return {
        "metadata": {
            "user_id": user_id,
            "exported_at": (now or utc_now()).isoformat(),
            "format_version": EXPORT_FORMAT_VERSION,
        },
        "skill_mastery": [_skill_mastery_data(record) for record in records],
        "attempt_history": [entry.to_dict() for entry in attempts],
    }
