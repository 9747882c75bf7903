"""
Audit Log Events - Main Cog
===========================

Listens for audit log entries and routes them to the security monitor.

Author: Phantom Guard Team
"""

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from phantom_guard.core.logger import logger

from .security import SecurityAuditMixin, AUDIT_ACTION_MAP

if TYPE_CHECKING:
    from phantom_guard.bot import PhantomGuard


class AuditLogEvents(SecurityAuditMixin, commands.Cog):
    """Audit log event handlers."""

    def __init__(self, bot: "PhantomGuard") -> None:
        self.bot = bot

        logger.tree("Audit Log Events Loaded", [
            ("Security", "Enabled"),
            ("Tracked Actions", str(len(AUDIT_ACTION_MAP))),
        ], emoji="📋")

    @commands.Cog.listener()
    async def on_audit_log_entry_create(self, entry: discord.AuditLogEntry) -> None:
        """Route each new audit log entry to security detection."""
        await self._check_security(entry)


__all__ = ["AuditLogEvents"]
