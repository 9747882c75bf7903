"""
Phantom Guard - Lockdown Cog
============================

Emergency server lockdown commands.

Author: Phantom Guard Team
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional

import discord
from discord import app_commands
from discord.ext import commands

from phantom_guard.commands.security.helpers import ensure_authorized
from phantom_guard.core.config import NY_TZ
from phantom_guard.core.logger import logger

from .constants import MAX_CONCURRENT_OPS, LockdownResult
from .helpers import (
    build_lock_embed,
    build_status_embed,
    build_unlock_embed,
    send_public_announcement,
)
from .lock_ops import lock_all_channels
from .unlock_ops import unlock_all_channels

if TYPE_CHECKING:
    from phantom_guard.bot import PhantomGuard


DEFAULT_REASON = "Security emergency"


def _now() -> datetime:
    return datetime.now(NY_TZ)


def _epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class LockdownCog(commands.Cog):
    """Cog for emergency server lockdown commands."""

    def __init__(self, bot: "PhantomGuard", clock: Optional[Callable[[], datetime]] = None) -> None:
        self.bot = bot
        self.db = bot.db
        self._clock = clock or _now

        logger.tree("Lockdown Cog Loaded", [
            ("Commands", "/lockdown enable, disable, status"),
            ("Method", "@everyone channel overwrites (concurrent)"),
            ("Max Concurrent", str(MAX_CONCURRENT_OPS)),
        ], emoji="🔒")

    lockdown_group = app_commands.Group(
        name="lockdown",
        description="Emergency server lockdown",
        guild_only=True,
        default_permissions=discord.Permissions(administrator=True),
    )

    # =========================================================================
    # /lockdown enable
    # =========================================================================

    @lockdown_group.command(name="enable", description="Lock every text channel during an emergency")
    @app_commands.describe(reason="Reason for the lockdown")
    async def lockdown_enable(
        self,
        interaction: discord.Interaction,
        reason: Optional[str] = None,
    ) -> None:
        """
        Deny messaging and thread creation for @everyone in every text channel.

        The previous @everyone values are stored in the guild config and
        restored by /lockdown disable.
        """
        if not await ensure_authorized(interaction):
            return

        guild = interaction.guild
        reason = reason or DEFAULT_REASON
        config = self.db.get_server_config(guild.id)

        if config.get("lockdownActive"):
            logger.debug("Lockdown Already Active", [
                ("Guild", f"{guild.name} ({guild.id})"),
            ])
            await interaction.response.send_message(
                "🔒 Server is already in lockdown. Use `/lockdown disable` to restore permissions.",
                embed=build_status_embed(guild, config),
                ephemeral=True,
            )
            return

        await interaction.response.defer(ephemeral=True)

        logger.tree("LOCKDOWN INITIATED", [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("By", f"{interaction.user.name} ({interaction.user.id})"),
            ("Text Channels", str(len(guild.text_channels))),
            ("Reason", reason),
        ], emoji="🔒")

        # Announce first, the system channel is locked below
        await send_public_announcement(guild, "lock", reason)

        audit_reason = f"[LOCKDOWN] {reason} - requested by {interaction.user} ({interaction.user.id})"
        result, saved_channels = await lock_all_channels(guild, guild.default_role, audit_reason)

        saved = self.db.update_server_config(guild.id, {
            "lockdownActive": True,
            "lockdownInfo": {
                "reason": reason,
                "timestamp": _epoch_ms(self._clock()),
                "requesterId": interaction.user.id,
                "channels": saved_channels,
            },
        })

        if not saved:
            logger.error("Lockdown State Not Saved", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Channels Locked", str(result.success_count)),
            ])
            await interaction.followup.send(
                "⚠️ Channels were locked but the lockdown state could not be saved. "
                "Permissions must be restored manually.",
                ephemeral=True,
            )
            return

        logger.tree("SERVER LOCKED", [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("By", f"{interaction.user.name} ({interaction.user.id})"),
            ("Channels Locked", str(result.success_count)),
            ("Failed", str(result.failed_count)),
            ("Reason", reason),
        ], emoji="🔒")

        await interaction.followup.send(
            embed=build_lock_embed(interaction.user, reason, result),
            ephemeral=True,
        )

    # =========================================================================
    # /lockdown disable
    # =========================================================================

    @lockdown_group.command(name="disable", description="End the lockdown and restore channel permissions")
    async def lockdown_disable(self, interaction: discord.Interaction) -> None:
        if not await ensure_authorized(interaction):
            return

        guild = interaction.guild
        config = self.db.get_server_config(guild.id)
        info = config.get("lockdownInfo")

        if not config.get("lockdownActive") or not info:
            await interaction.response.send_message(
                "Server is not currently locked.",
                ephemeral=True,
            )
            return

        await interaction.response.defer(ephemeral=True)

        now = self._clock()
        started = info.get("timestamp")
        duration_ms: Optional[int] = _epoch_ms(now) - int(started) if started else None

        audit_reason = f"Lockdown ended by {interaction.user} ({interaction.user.id})"
        result: LockdownResult = await unlock_all_channels(
            guild,
            guild.default_role,
            info.get("channels") or {},
            audit_reason,
        )

        self.db.update_server_config(guild.id, {
            "lockdownActive": False,
            "lockdownInfo": None,
            "lastLockdown": {
                "reason": info.get("reason"),
                "endedAt": _epoch_ms(now),
                "duration": duration_ms,
                "endedBy": interaction.user.id,
            },
        })

        logger.success("Server Unlocked", [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("By", f"{interaction.user.name} ({interaction.user.id})"),
            ("Channels Restored", str(result.success_count)),
            ("Failed", str(result.failed_count)),
            ("Skipped", str(result.skipped_count)),
        ])

        await send_public_announcement(guild, "unlock")

        await interaction.followup.send(
            embed=build_unlock_embed(
                interaction.user,
                result,
                duration_ms / 1000 if duration_ms is not None else None,
            ),
            ephemeral=True,
        )

    # =========================================================================
    # /lockdown status
    # =========================================================================

    @lockdown_group.command(name="status", description="Show whether the server is locked")
    async def lockdown_status(self, interaction: discord.Interaction) -> None:
        if not await ensure_authorized(interaction):
            return
        config = self.db.get_server_config(interaction.guild.id)
        await interaction.response.send_message(
            embed=build_status_embed(interaction.guild, config),
            ephemeral=True,
        )


__all__ = ["LockdownCog"]
