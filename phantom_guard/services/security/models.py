"""
Phantom Guard - Security Models
===============================

Data types shared by the security components.

Author: Phantom Guard Team
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# =============================================================================
# Enums
# =============================================================================

class ActionType(str, Enum):
    """Tracked action kinds. Values are the persisted camelCase names."""

    MASS_DELETE = "massDelete"
    MASS_BAN = "massBan"
    MASS_KICK = "massKick"
    MASS_ROLE_DELETE = "massRoleDelete"
    USER_JOINS = "userJoins"
    MESSAGE_SENDS = "messageSends"
    MENTION_SPAM = "mentionSpam"
    CHANNEL_DELETE = "channelDelete"
    WEBHOOK_CREATE = "webhookCreate"
    CHANNEL_CREATE = "channelCreate"
    GUILD_UPDATE = "guildUpdate"

    @property
    def display_name(self) -> str:
        return ACTION_DISPLAY_NAMES.get(self, self.value)


ACTION_DISPLAY_NAMES: Dict[ActionType, str] = {
    ActionType.MASS_DELETE: "Mass Message Deletion",
    ActionType.MASS_BAN: "Mass Banning",
    ActionType.MASS_KICK: "Mass Kicking",
    ActionType.MASS_ROLE_DELETE: "Mass Role Deletion",
    ActionType.USER_JOINS: "Raid (Join Flood)",
    ActionType.MESSAGE_SENDS: "Message Spam",
    ActionType.MENTION_SPAM: "Mention Spam",
    ActionType.CHANNEL_DELETE: "Mass Channel Deletion",
    ActionType.WEBHOOK_CREATE: "Mass Webhook Creation",
    ActionType.CHANNEL_CREATE: "Channel Creation",
    ActionType.GUILD_UPDATE: "Server Settings Change",
}


class PunishmentMode(str, Enum):
    """Response applied to the actor behind an incident."""

    BAN = "ban"
    KICK = "kick"
    QUARANTINE = "quarantine"
    TIMEOUT = "timeout"

    @classmethod
    def parse(cls, value: Any) -> Optional["PunishmentMode"]:
        """Return the mode for a stored value, None when unrecognized."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# =============================================================================
# Data Classes
# =============================================================================

BucketKey = Tuple[int, int, ActionType]
"""(guild_id, actor_id, action_type)"""


@dataclass(frozen=True)
class ActionRecord:
    """One tracked action."""
    timestamp: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Threshold:
    """Breach rule: count actions within time_window_ms."""
    action_type: ActionType
    count: int
    time_window_ms: int

    @property
    def window(self) -> timedelta:
        return timedelta(milliseconds=self.time_window_ms)


@dataclass(frozen=True)
class ExemptionContext:
    """
    Identity facts about an actor, looked up from the guild.

    Never persisted. Audit metadata is carried separately.
    """
    is_server_owner: bool = False
    has_whitelisted_role: bool = False
    owner_id: Optional[int] = None


@dataclass
class SecurityActionResult:
    """Outcome of a punitive action."""
    success: bool
    action: str
    reason: Optional[str] = None
    error: Optional[str] = None

    def describe(self) -> str:
        if self.success:
            return f"{self.action} applied"
        detail = self.error or self.reason or "no action taken"
        return f"{self.action}: {detail}"


@dataclass
class Incident:
    """A threshold breach and the actions that caused it."""
    incident_id: str
    guild_id: int
    user_id: int
    action_type: ActionType
    actions: List[ActionRecord]
    timestamp: datetime
    resolved: bool = False
    alerted: bool = False

    @property
    def count(self) -> int:
        return len(self.actions)

    @property
    def epoch_ms(self) -> int:
        return int(self.timestamp.timestamp() * 1000)

    def to_summary(self) -> Dict[str, Any]:
        """Compact form stored in the guild's securityIncidents list."""
        return {
            "userId": self.user_id,
            "actionType": self.action_type.value,
            "timestamp": self.epoch_ms,
            "count": self.count,
            "incidentId": self.incident_id,
        }


__all__ = [
    "ActionType",
    "ACTION_DISPLAY_NAMES",
    "PunishmentMode",
    "BucketKey",
    "ActionRecord",
    "Threshold",
    "ExemptionContext",
    "SecurityActionResult",
    "Incident",
]
