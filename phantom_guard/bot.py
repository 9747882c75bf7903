"""
Phantom Guard - Main Bot Class
==============================

Discord client hosting the security monitor and its cogs.

Features:
- Anti-nuke detection from the audit log
- Raid detection from member joins
- Message and mention spam detection
- Owner-only security configuration commands
- Emergency server lockdown

Author: Phantom Guard Team
"""

from datetime import datetime
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from phantom_guard.core.config import get_config
from phantom_guard.core.database import get_db
from phantom_guard.core.logger import logger
from phantom_guard.services.security import SecurityMonitor
from phantom_guard.utils.error_handler import ErrorHandler


# =============================================================================
# PhantomGuard Class
# =============================================================================

class PhantomGuard(commands.Bot):
    """
    Main Discord bot class.

    SERVICE INITIALIZATION ORDER (setup_hook, before on_ready):
    1. Security monitor
    2. Command cogs
    3. Event cogs
    4. Command tree sync
    """

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(self) -> None:
        self.config = get_config()

        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.moderation = True

        super().__init__(
            command_prefix="!",
            intents=intents,
            help_command=None,
        )

        self.db = get_db()
        self.start_time: datetime = datetime.now()

        self.security_monitor: Optional[SecurityMonitor] = None

        self._ready_initialized: bool = False

        logger.info("Bot Instance Created")

    # =========================================================================
    # Setup Hook
    # =========================================================================

    async def setup_hook(self) -> None:
        """Create the security monitor, load cogs and sync commands."""
        if self.config.error_webhook_url:
            logger.set_webhook(self.config.error_webhook_url)

        self.security_monitor = SecurityMonitor(
            self,
            db=self.db,
            incident_limit=self.config.active_incident_limit,
        )

        self.tree.on_error = self.on_app_command_error

        from phantom_guard.commands import COMMAND_COGS
        for cog in COMMAND_COGS:
            try:
                await self.load_extension(cog)
                logger.info(f"Cog Loaded: {cog.split('.')[-1]}")
            except Exception as e:
                logger.error("Failed to Load Cog", [("Cog", cog), ("Error", str(e))])

        from phantom_guard.handlers import EVENT_COGS
        for cog in EVENT_COGS:
            try:
                await self.load_extension(cog)
                logger.info(f"Event Cog Loaded: {cog.split('.')[-1]}")
            except Exception as e:
                logger.error("Failed to Load Event Cog", [("Cog", cog), ("Error", str(e))])

        try:
            synced = await self.tree.sync()
            logger.tree("Commands Synced", [("Count", str(len(synced)))], emoji="✅")
        except discord.HTTPException as e:
            logger.error("Command Sync Failed", [("Error", str(e))])

    # =========================================================================
    # Events
    # =========================================================================

    async def on_ready(self) -> None:
        if self._ready_initialized:
            logger.info("Bot Reconnected (skipping re-initialization)")
            return

        self._ready_initialized = True

        if not self.user:
            return

        logger.tree("PHANTOM GUARD READY", [
            ("Name", self.user.name),
            ("ID", str(self.user.id)),
            ("Guilds", str(len(self.guilds))),
            ("Security Monitor", "Online" if self.security_monitor else "Offline"),
        ], emoji="🛡️")

    async def on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        """Log command failures and tell the user without leaking details."""
        original = getattr(error, "original", error)
        ErrorHandler.handle(
            original,
            location=f"command.{interaction.command.qualified_name if interaction.command else 'unknown'}",
            guild=interaction.guild_id,
            user=interaction.user.id,
        )

        message = "❌ Something went wrong while running this command."
        try:
            if interaction.response.is_done():
                await interaction.followup.send(message, ephemeral=True)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException as e:
            logger.debug("Command Error Reply Failed", [("Error", str(e)[:100])])

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def close(self) -> None:
        """Close the Discord connection and the database."""
        logger.info("Initiating Graceful Shutdown")

        await super().close()
        self.db.close()

        logger.tree("SHUTDOWN COMPLETE", [
            ("Uptime", str(datetime.now() - self.start_time)),
        ], emoji="🛑")


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["PhantomGuard"]
