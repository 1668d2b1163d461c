# SQLAlchemy models
from .adaptive import AttemptLedgerEntry, MasteryRecord, normalize_concept_id
from .base import Base, UTCDateTime, as_utc, utc_now

__all__ = [
    # Base
    "Base",
    "UTCDateTime",
    "as_utc",
    "utc_now",
    # Adaptive mastery
    "MasteryRecord",
    "AttemptLedgerEntry",
    "normalize_concept_id",
]
