"""
Phantom Guard - Security Service Package
========================================

Sliding-window detection of destructive actions, raids and spam.

Author: Phantom Guard Team
"""

from .constants import DEFAULT_THRESHOLDS, SYSTEM_RAID_ACTOR_ID
from .models import (
    ActionRecord,
    ActionType,
    ExemptionContext,
    Incident,
    PunishmentMode,
    SecurityActionResult,
    Threshold,
)
from .service import SecurityMonitor

__all__ = [
    "SecurityMonitor",
    "ActionRecord",
    "ActionType",
    "ExemptionContext",
    "Incident",
    "PunishmentMode",
    "SecurityActionResult",
    "Threshold",
    "DEFAULT_THRESHOLDS",
    "SYSTEM_RAID_ACTOR_ID",
]
