"""
Phantom Guard - Audit Log Security Mixin
========================================

Classifies audit log entries and routes them to the security monitor.

Author: Phantom Guard Team
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

import discord

from phantom_guard.core.logger import logger
from phantom_guard.services.security import ActionType

if TYPE_CHECKING:
    from .cog import AuditLogEvents


AUDIT_ACTION_MAP: Dict[discord.AuditLogAction, ActionType] = {
    discord.AuditLogAction.ban: ActionType.MASS_BAN,
    discord.AuditLogAction.kick: ActionType.MASS_KICK,
    discord.AuditLogAction.channel_delete: ActionType.CHANNEL_DELETE,
    discord.AuditLogAction.role_delete: ActionType.MASS_ROLE_DELETE,
    discord.AuditLogAction.webhook_create: ActionType.WEBHOOK_CREATE,
    discord.AuditLogAction.message_bulk_delete: ActionType.MASS_DELETE,
    discord.AuditLogAction.channel_create: ActionType.CHANNEL_CREATE,
    discord.AuditLogAction.guild_update: ActionType.GUILD_UPDATE,
}
"""Audit log actions the security monitor tracks."""


def classify_entry(entry: discord.AuditLogEntry) -> Optional[ActionType]:
    """Map an audit log entry to a tracked action type."""
    return AUDIT_ACTION_MAP.get(entry.action)


def entry_metadata(entry: discord.AuditLogEntry) -> Dict[str, Any]:
    target = entry.target
    return {
        "auditLogId": entry.id,
        "action": entry.action.name,
        "targetId": getattr(target, "id", None),
        "reason": entry.reason,
    }


class SecurityAuditMixin:
    """Mixin for security detection routing."""

    async def _check_security(self: "AuditLogEvents", entry: discord.AuditLogEntry) -> None:
        """Route audit log events to the security monitor."""
        monitor = self.bot.security_monitor
        if not monitor:
            return

        if not entry.user_id or not entry.guild:
            return

        # Our own punishments and cleanups show up in the audit log too
        if self.bot.user and entry.user_id == self.bot.user.id:
            return

        action_type = classify_entry(entry)
        if action_type is None:
            return

        try:
            await monitor.handle_action(
                entry.guild,
                entry.user_id,
                action_type,
                metadata=entry_metadata(entry),
            )
        except Exception as e:
            logger.warning("Security Check Failed", [
                ("Guild", str(entry.guild.id)),
                ("Action", entry.action.name),
                ("Error", str(e)[:100]),
                ("Type", type(e).__name__),
            ])


__all__ = ["SecurityAuditMixin", "AUDIT_ACTION_MAP", "classify_entry", "entry_metadata"]
