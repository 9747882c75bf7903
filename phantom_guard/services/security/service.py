"""
Phantom Guard - Security Monitor
================================

Owns the security pipeline for every guild the bot is in.

DESIGN:
    handle_action() is the single entry point for event handlers:

        resolve exemption context (await)
        -> exemption check, ledger append, prune, evaluate (no await)
        -> incident recorded on breach
        -> punitive action (await)
        -> alert (await)

    The only suspension point before the exemption decision is the
    context lookup, so the decision always reflects state at least as new
    as the action being judged. After a breach the bucket is cleared; the
    breaching records live on in the incident, and a continuing attacker
    re-triggers after another full threshold count.

Author: Phantom Guard Team
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Union

import discord

from phantom_guard.core.config import NY_TZ
from phantom_guard.core.database import DatabaseManager, get_db
from phantom_guard.core.logger import logger

from .alerts import AlertNotifier
from .constants import ACTIVE_INCIDENT_LIMIT, MAX_TRACKED_ACTIONS, SYSTEM_RAID_ACTOR_ID
from .dispatcher import PunitiveActionDispatcher
from .exemptions import ExemptionResolver
from .incidents import IncidentRecorder
from .ledger import ActionLedger
from .models import (
    ActionRecord,
    ActionType,
    ExemptionContext,
    Incident,
    SecurityActionResult,
    Threshold,
)
from .thresholds import ThresholdEvaluator

if TYPE_CHECKING:
    from phantom_guard.bot import PhantomGuard


def _now() -> datetime:
    return datetime.now(NY_TZ)


class SecurityMonitor:
    """
    Sliding-window detector and response pipeline.

    Features:
        - Per guild/actor/action-type sliding windows
        - Owner, role and user whitelist exemptions
        - Incident history persisted per guild
        - Ban / kick / quarantine / timeout responses
        - One alert per incident
    """

    def __init__(
        self,
        bot: Optional["PhantomGuard"] = None,
        db: Optional[DatabaseManager] = None,
        thresholds: Optional[Mapping[ActionType, Threshold]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        incident_limit: int = ACTIVE_INCIDENT_LIMIT,
    ) -> None:
        self.bot = bot
        self.db = db or get_db()
        self._clock = clock or _now

        self.thresholds = ThresholdEvaluator(thresholds)
        self.ledger = ActionLedger(max(MAX_TRACKED_ACTIONS, self.thresholds.max_count()))
        self.exemptions = ExemptionResolver(self.db)
        self.incidents = IncidentRecorder(self.db, self._clock, limit=incident_limit)
        self.dispatcher = PunitiveActionDispatcher(self.db, self.exemptions)
        self.alerts = AlertNotifier(self.db, self.incidents)

        logger.tree_nested("Security Monitor Loaded", [
            ("Thresholds", [
                (t.action_type.display_name, f"{t.count} in {t.time_window_ms / 1000:g}s")
                for t in self.thresholds.all()
            ] or [("None", "tracking only")]),
            ("Limits", [
                ("Incident Cache", str(incident_limit)),
                ("Bucket Cap", str(self.ledger.max_entries)),
            ]),
        ], emoji="🛡️")

    # =========================================================================
    # Recording
    # =========================================================================

    def _record_resolved(
        self,
        guild_id: int,
        actor_id: int,
        action_type: ActionType,
        metadata: Optional[Dict[str, Any]],
        context: Optional[ExemptionContext],
    ) -> Optional[str]:
        """
        Exemption, ledger and evaluation in one synchronous step.

        Returns the incident id on breach.
        """
        if self.exemptions.is_exempt(guild_id, actor_id, context):
            return None

        now = self._clock()
        key = (guild_id, actor_id, action_type)
        self.ledger.append(key, ActionRecord(timestamp=now, metadata=dict(metadata or {})))

        threshold = self.thresholds.get(action_type)
        if threshold is None:
            return None

        recent = self.ledger.prune(key, threshold.time_window_ms, now)

        logger.debug("Security Action Tracked", [
            ("Guild", str(guild_id)),
            ("Actor ID", str(actor_id)),
            ("Type", action_type.value),
            ("Count", f"{len(recent)} / {threshold.count}"),
        ])

        if not self.thresholds.breached(action_type, len(recent)):
            return None

        self.ledger.clear(key)

        logger.tree("🚨 SECURITY THRESHOLD BREACHED", [
            ("Guild", str(guild_id)),
            ("Actor ID", "Server-wide" if actor_id == SYSTEM_RAID_ACTOR_ID else str(actor_id)),
            ("Type", action_type.display_name),
            ("Count", f"{len(recent)} in {threshold.time_window_ms / 1000:g}s"),
        ], emoji="🚨")

        return self.incidents.trigger(guild_id, actor_id, action_type, recent)

    async def _record(
        self,
        guild: discord.Guild,
        actor_id: int,
        action_type: Union[ActionType, str],
        metadata: Optional[Dict[str, Any]] = None,
        context: Optional[ExemptionContext] = None,
    ) -> Optional[str]:
        action_type = ActionType(action_type)
        if context is None:
            context = await self.exemptions.resolve_context(guild, actor_id)
        return self._record_resolved(guild.id, actor_id, action_type, metadata, context)

    async def record_action(
        self,
        guild: discord.Guild,
        actor_id: int,
        action_type: Union[ActionType, str],
        metadata: Optional[Dict[str, Any]] = None,
        context: Optional[ExemptionContext] = None,
    ) -> bool:
        """
        Track an action and report whether it caused a breach.

        Args:
            guild: Guild the action happened in.
            actor_id: User responsible, or SYSTEM_RAID_ACTOR_ID.
            action_type: What happened.
            metadata: Opaque details stored with the record.
            context: Pre-resolved exemption facts; looked up when omitted.

        Returns:
            True iff this call created an incident.
        """
        return await self._record(guild, actor_id, action_type, metadata, context) is not None

    # =========================================================================
    # Pipeline
    # =========================================================================

    def _build_reason(self, incident: Incident) -> str:
        threshold = self.thresholds.get(incident.action_type)
        window = f" in {threshold.time_window_ms / 1000:g}s" if threshold else ""
        return (
            f"Phantom Guard: {incident.action_type.display_name} detected "
            f"({incident.count} actions{window})"
        )

    async def handle_action(
        self,
        guild: discord.Guild,
        actor_id: int,
        action_type: Union[ActionType, str],
        metadata: Optional[Dict[str, Any]] = None,
        context: Optional[ExemptionContext] = None,
    ) -> Optional[str]:
        """
        Record an action and, on breach, punish and alert once each.

        Returns:
            The new incident id, or None when nothing was breached.
        """
        incident_id = await self._record(guild, actor_id, action_type, metadata, context)
        if incident_id is None:
            return None

        incident = self.incidents.get(incident_id)
        reason = self._build_reason(incident) if incident else "Phantom Guard: security incident"

        result: SecurityActionResult = await self.dispatcher.apply_action(guild, actor_id, reason)

        await self.alerts.send_alert(guild, incident_id, f"Response: {result.describe()}")

        return incident_id

    # =========================================================================
    # Introspection
    # =========================================================================

    def get_active_incidents(self) -> Dict[str, Incident]:
        """Copy of the active incident map."""
        return self.incidents.active()

    def get_recent_actions(
        self,
        guild_id: int,
        actor_id: int,
        action_type: Union[ActionType, str],
        window_ms: Optional[int] = None,
    ) -> List[ActionRecord]:
        """
        Records in a bucket, without pruning it.

        window_ms defaults to the configured threshold window, so results
        match what the breach decision sees. With no threshold and no
        window every stored record is returned.
        """
        action_type = ActionType(action_type)
        if window_ms is None:
            window_ms = self.thresholds.window_ms(action_type)
        return self.ledger.recent((guild_id, actor_id, action_type), window_ms, self._clock())

    def get_incident_history(self, guild_id: int) -> List[Dict[str, Any]]:
        return self.incidents.history(guild_id)


__all__ = ["SecurityMonitor"]
