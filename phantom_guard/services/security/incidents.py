"""
Phantom Guard - Incident Recorder
=================================

Turns a threshold breach into an incident record.

DESIGN:
    Every incident lives in two places:
    - the in-memory active map, holding the full record with its actions
    - the guild's persisted securityIncidents list, holding a compact
      summary, capped at INCIDENT_HISTORY_LIMIT with oldest evicted first

    The active map is an LRU bounded to ACTIVE_INCIDENT_LIMIT entries and
    expires entries older than INCIDENT_EXPIRY_SECONDS. After a restart
    the map is empty while persisted summaries survive.

    Incident ids are "{guild_id}:{epoch_ms}:{8 hex}" so two breaches in
    the same millisecond still get distinct ids.

Author: Phantom Guard Team
"""

import uuid
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence

from phantom_guard.core.logger import logger

from .constants import (
    ACTIVE_INCIDENT_LIMIT,
    INCIDENT_EXPIRY_SECONDS,
    INCIDENT_HISTORY_LIMIT,
)
from .models import ActionRecord, ActionType, Incident

if TYPE_CHECKING:
    from phantom_guard.core.database import DatabaseManager


class IncidentRecorder:
    """Active incident map plus persisted incident history."""

    def __init__(
        self,
        db: "DatabaseManager",
        clock: Callable[[], datetime],
        limit: int = ACTIVE_INCIDENT_LIMIT,
        expiry_seconds: int = INCIDENT_EXPIRY_SECONDS,
        history_limit: int = INCIDENT_HISTORY_LIMIT,
    ) -> None:
        self.db = db
        self._clock = clock
        self.limit = limit
        self.expiry = timedelta(seconds=expiry_seconds)
        self.history_limit = history_limit
        self._active: "OrderedDict[str, Incident]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._active)

    # =========================================================================
    # Recording
    # =========================================================================

    def _new_id(self, guild_id: int, now: datetime) -> str:
        epoch_ms = int(now.timestamp() * 1000)
        return f"{guild_id}:{epoch_ms}:{uuid.uuid4().hex[:8]}"

    def trigger(
        self,
        guild_id: int,
        actor_id: int,
        action_type: ActionType,
        actions: Sequence[ActionRecord],
    ) -> str:
        """
        Record a breach and return its incident id.

        A failed history write is logged; the in-memory incident is kept.
        """
        now = self._clock()
        incident = Incident(
            incident_id=self._new_id(guild_id, now),
            guild_id=guild_id,
            user_id=actor_id,
            action_type=action_type,
            actions=list(actions),
            timestamp=now,
        )

        self._expire(now)
        self._active[incident.incident_id] = incident
        while len(self._active) > self.limit:
            self._active.popitem(last=False)

        config = self.db.peek_server_config(guild_id)
        history: List[Dict[str, Any]] = list(config.get("securityIncidents") or [])
        history.append(incident.to_summary())
        if len(history) > self.history_limit:
            history = history[-self.history_limit:]

        if not self.db.update_server_config(guild_id, {"securityIncidents": history}):
            logger.warning("Incident History Not Persisted", [
                ("Guild", str(guild_id)),
                ("Incident", incident.incident_id),
            ])

        logger.tree("Security Incident Recorded", [
            ("Incident", incident.incident_id),
            ("Actor ID", str(actor_id)),
            ("Type", action_type.value),
            ("Actions", str(incident.count)),
            ("History Size", str(len(history))),
        ], emoji="📝")

        return incident.incident_id

    # =========================================================================
    # Lookups
    # =========================================================================

    def _expire(self, now: datetime) -> None:
        cutoff = now - self.expiry
        expired = [i for i, inc in self._active.items() if inc.timestamp < cutoff]
        for incident_id in expired:
            del self._active[incident_id]

    def get(self, incident_id: str) -> Optional[Incident]:
        self._expire(self._clock())
        incident = self._active.get(incident_id)
        if incident is not None:
            self._active.move_to_end(incident_id)
        return incident

    def active(self) -> Dict[str, Incident]:
        """Copy of the active map."""
        self._expire(self._clock())
        return dict(self._active)

    def mark_alerted(self, incident_id: str) -> bool:
        """
        Flag an incident as alerted.

        Returns False if the incident is unknown or was already alerted.
        """
        incident = self.get(incident_id)
        if incident is None or incident.alerted:
            return False
        incident.alerted = True
        return True

    def history(self, guild_id: int) -> List[Dict[str, Any]]:
        """Persisted summaries, oldest first."""
        return list(self.db.peek_server_config(guild_id).get("securityIncidents") or [])


__all__ = ["IncidentRecorder"]
