"""
Learning Module - mastery orchestration.

Components:
- MasteryCoordinator: record-attempt transaction and mastery read paths
- export_user_data: GDPR export of mastery records and attempt ledger
"""

from .data_export import export_user_data
from .mastery_coordinator import MasteryCoordinator, MasteryDashboard

__all__ = [
    "MasteryCoordinator",
    "MasteryDashboard",
    "export_user_data",
]
