"""
Phantom Guard - Security Cog
============================

Slash commands for per-guild security settings and the whitelist.

Author: Phantom Guard Team
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

import discord
from discord import app_commands
from discord.ext import commands

from phantom_guard.core.logger import logger
from phantom_guard.services.security import PunishmentMode

from .helpers import (
    build_incidents_embed,
    build_status_embed,
    build_whitelist_embed,
    ensure_authorized,
    update_id_list,
)

if TYPE_CHECKING:
    from phantom_guard.bot import PhantomGuard


PUNISHMENT_CHOICES = [
    app_commands.Choice(name=mode.value, value=mode.value) for mode in PunishmentMode
]


class SecurityCog(commands.Cog):
    """Cog for /security and /whitelist commands."""

    def __init__(self, bot: "PhantomGuard") -> None:
        self.bot = bot
        self.db = bot.db

        logger.tree("Security Cog Loaded", [
            ("Commands", "/security, /whitelist"),
            ("Access", "Server owner, developer"),
        ], emoji="🛡️")

    # =========================================================================
    # Command Groups
    # =========================================================================

    security_group = app_commands.Group(
        name="security",
        description="Configure server security protection",
        guild_only=True,
        default_permissions=discord.Permissions(administrator=True),
    )

    whitelist_group = app_commands.Group(
        name="whitelist",
        description="Manage users and roles exempt from security checks",
        guild_only=True,
        default_permissions=discord.Permissions(administrator=True),
    )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _save(
        self,
        interaction: discord.Interaction,
        partial: Dict[str, Any],
        success_message: str,
        log_title: str,
    ) -> None:
        guild = interaction.guild
        if not self.db.update_server_config(guild.id, partial):
            await interaction.response.send_message(
                "❌ Failed to save settings. Please try again.",
                ephemeral=True,
            )
            return

        logger.tree(log_title, [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("By", f"{interaction.user.name} ({interaction.user.id})"),
            *[(key, str(value)) for key, value in partial.items()],
        ], emoji="⚙️")

        await interaction.response.send_message(success_message, ephemeral=True)

    async def _edit_list(
        self,
        interaction: discord.Interaction,
        key: str,
        value: int,
        add: bool,
        mention: str,
    ) -> None:
        guild = interaction.guild
        changed = update_id_list(self.db, guild.id, key, value, add)

        if not changed:
            state = "already" if add else "not"
            await interaction.response.send_message(
                f"{mention} is {state} whitelisted.",
                ephemeral=True,
            )
            return

        logger.tree("Whitelist Updated", [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("By", f"{interaction.user.name} ({interaction.user.id})"),
            ("List", key),
            ("Change", f"{'+' if add else '-'}{value}"),
        ], emoji="✅")

        verb = "added to" if add else "removed from"
        await interaction.response.send_message(
            f"✅ {mention} {verb} the whitelist.",
            ephemeral=True,
        )

    # =========================================================================
    # /security
    # =========================================================================

    @security_group.command(name="enable", description="Enable security protection")
    async def security_enable(self, interaction: discord.Interaction) -> None:
        if not await ensure_authorized(interaction):
            return
        await self._save(
            interaction,
            {"securityDisabled": False},
            "✅ Security protection is now **enabled**.",
            "Security Enabled",
        )

    @security_group.command(name="disable", description="Disable security protection")
    async def security_disable(self, interaction: discord.Interaction) -> None:
        if not await ensure_authorized(interaction):
            return
        await self._save(
            interaction,
            {"securityDisabled": True},
            "⚠️ Security protection is now **disabled**. No actions will be tracked.",
            "Security Disabled",
        )

    @security_group.command(name="status", description="Show security settings")
    async def security_status(self, interaction: discord.Interaction) -> None:
        if not await ensure_authorized(interaction):
            return
        config = self.db.get_server_config(interaction.guild.id)
        await interaction.response.send_message(
            embed=build_status_embed(interaction.guild, config),
            ephemeral=True,
        )

    @security_group.command(name="action", description="Set the punishment for detected attacks")
    @app_commands.describe(mode="What to do with the offender")
    @app_commands.choices(mode=PUNISHMENT_CHOICES)
    async def security_action(
        self,
        interaction: discord.Interaction,
        mode: app_commands.Choice[str],
    ) -> None:
        if not await ensure_authorized(interaction):
            return
        await self._save(
            interaction,
            {"securityActionType": mode.value},
            f"✅ Offenders will now be handled with **{mode.value}**.",
            "Security Punishment Changed",
        )

    @security_group.command(name="quarantine-role", description="Set the role given to quarantined members")
    @app_commands.describe(role="Role with no permissions")
    async def security_quarantine_role(
        self,
        interaction: discord.Interaction,
        role: discord.Role,
    ) -> None:
        if not await ensure_authorized(interaction):
            return

        me = interaction.guild.me
        note = ""
        if me is not None and role.position >= me.top_role.position:
            note = "\n⚠️ This role is above my highest role, so I cannot assign it."

        await self._save(
            interaction,
            {"quarantineRoleId": role.id},
            f"✅ Quarantine role set to {role.mention}.{note}",
            "Quarantine Role Set",
        )

    @security_group.command(name="alerts", description="Set the channel for security alerts")
    @app_commands.describe(channel="Channel that receives alerts")
    async def security_alerts(
        self,
        interaction: discord.Interaction,
        channel: discord.TextChannel,
    ) -> None:
        if not await ensure_authorized(interaction):
            return
        await self._save(
            interaction,
            {"notificationChannelId": channel.id},
            f"✅ Security alerts will be sent to {channel.mention}.",
            "Alert Channel Set",
        )

    @security_group.command(name="incidents", description="Show recent security incidents")
    async def security_incidents(self, interaction: discord.Interaction) -> None:
        if not await ensure_authorized(interaction):
            return
        history = self.db.get_server_config(interaction.guild.id).get("securityIncidents") or []
        await interaction.response.send_message(
            embed=build_incidents_embed(history),
            ephemeral=True,
        )

    # =========================================================================
    # /whitelist
    # =========================================================================

    @whitelist_group.command(name="add-user", description="Exempt a user from security checks")
    async def whitelist_add_user(self, interaction: discord.Interaction, user: discord.User) -> None:
        if not await ensure_authorized(interaction):
            return
        await self._edit_list(interaction, "whitelistedUsers", user.id, True, user.mention)

    @whitelist_group.command(name="remove-user", description="Remove a user's exemption")
    async def whitelist_remove_user(self, interaction: discord.Interaction, user: discord.User) -> None:
        if not await ensure_authorized(interaction):
            return
        await self._edit_list(interaction, "whitelistedUsers", user.id, False, user.mention)

    @whitelist_group.command(name="add-role", description="Exempt members with a role")
    async def whitelist_add_role(self, interaction: discord.Interaction, role: discord.Role) -> None:
        if not await ensure_authorized(interaction):
            return
        await self._edit_list(interaction, "whitelistedRoles", role.id, True, role.mention)

    @whitelist_group.command(name="remove-role", description="Remove a role's exemption")
    async def whitelist_remove_role(self, interaction: discord.Interaction, role: discord.Role) -> None:
        if not await ensure_authorized(interaction):
            return
        await self._edit_list(interaction, "whitelistedRoles", role.id, False, role.mention)

    @whitelist_group.command(name="list", description="Show whitelisted users and roles")
    async def whitelist_list(self, interaction: discord.Interaction) -> None:
        if not await ensure_authorized(interaction):
            return
        config = self.db.get_server_config(interaction.guild.id)
        await interaction.response.send_message(
            embed=build_whitelist_embed(config),
            ephemeral=True,
        )


__all__ = ["SecurityCog"]
