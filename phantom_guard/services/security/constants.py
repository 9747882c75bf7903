"""
Phantom Guard - Security Constants
==================================

Detection thresholds and limits.

Author: Phantom Guard Team
"""

from datetime import timedelta
from types import MappingProxyType
from typing import Mapping

from .models import ActionType, Threshold


# Actor id used for server-wide events (aggregate join rate)
SYSTEM_RAID_ACTOR_ID = 0

# Time windows (milliseconds)
NUKE_TIME_WINDOW_MS = 10_000
RAID_TIME_WINDOW_MS = 10_000
SPAM_TIME_WINDOW_MS = 5_000
MESSAGE_TIME_WINDOW_MS = 3_000

# Per-bucket cap, oldest dropped first
MAX_TRACKED_ACTIONS = 100

# Active incident map (LRU + TTL)
ACTIVE_INCIDENT_LIMIT = 500
INCIDENT_EXPIRY_SECONDS = 24 * 60 * 60

# Persisted securityIncidents per guild
INCIDENT_HISTORY_LIMIT = 100

MENTION_SPAM_MIN_MENTIONS = 5

PUNISHMENT_TIMEOUT = timedelta(hours=1)

DEFAULT_PUNISHMENT = "quarantine"


DEFAULT_THRESHOLDS: Mapping[ActionType, Threshold] = MappingProxyType({
    threshold.action_type: threshold
    for threshold in (
        Threshold(ActionType.MASS_DELETE, 3, NUKE_TIME_WINDOW_MS),
        Threshold(ActionType.MASS_BAN, 5, NUKE_TIME_WINDOW_MS),
        Threshold(ActionType.MASS_KICK, 5, NUKE_TIME_WINDOW_MS),
        Threshold(ActionType.MASS_ROLE_DELETE, 3, NUKE_TIME_WINDOW_MS),
        Threshold(ActionType.USER_JOINS, 5, RAID_TIME_WINDOW_MS),
        Threshold(ActionType.MESSAGE_SENDS, 5, MESSAGE_TIME_WINDOW_MS),
        Threshold(ActionType.MENTION_SPAM, 3, SPAM_TIME_WINDOW_MS),
        Threshold(ActionType.CHANNEL_DELETE, 3, NUKE_TIME_WINDOW_MS),
        Threshold(ActionType.WEBHOOK_CREATE, 3, NUKE_TIME_WINDOW_MS),
    )
})
"""Action types without an entry are tracked but never breach."""


__all__ = [
    "SYSTEM_RAID_ACTOR_ID",
    "NUKE_TIME_WINDOW_MS",
    "RAID_TIME_WINDOW_MS",
    "SPAM_TIME_WINDOW_MS",
    "MESSAGE_TIME_WINDOW_MS",
    "MAX_TRACKED_ACTIONS",
    "ACTIVE_INCIDENT_LIMIT",
    "INCIDENT_EXPIRY_SECONDS",
    "INCIDENT_HISTORY_LIMIT",
    "MENTION_SPAM_MIN_MENTIONS",
    "PUNISHMENT_TIMEOUT",
    "DEFAULT_PUNISHMENT",
    "DEFAULT_THRESHOLDS",
]
