"""
Phantom Guard - Security Command Helpers
========================================

Permission checks, list editing and embed builders for the security
commands.

Author: Phantom Guard Team
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List

import discord

from phantom_guard.core.config import EmbedColors, NY_TZ, is_guild_owner_or_developer
from phantom_guard.services.security import ActionType

if TYPE_CHECKING:
    from phantom_guard.core.database import DatabaseManager


INCIDENT_LIST_LIMIT = 10


async def ensure_authorized(interaction: discord.Interaction) -> bool:
    """
    Allow only the guild owner or the developer.

    Sends the ephemeral refusal itself and returns False when denied.
    """
    if not interaction.guild:
        await interaction.response.send_message(
            "This command can only be used in a server.",
            ephemeral=True,
        )
        return False

    if not is_guild_owner_or_developer(interaction.user, interaction.guild):
        await interaction.response.send_message(
            "Only the server owner can change security settings.",
            ephemeral=True,
        )
        return False

    return True


def update_id_list(
    db: "DatabaseManager",
    guild_id: int,
    key: str,
    value: int,
    add: bool,
) -> bool:
    """
    Add or remove an id in one of the guild's id lists.

    Returns:
        True if the list changed and was saved.
    """
    current: List[int] = [int(v) for v in db.get_server_config(guild_id).get(key) or []]

    if add:
        if value in current:
            return False
        current.append(value)
    else:
        if value not in current:
            return False
        current.remove(value)

    return db.update_server_config(guild_id, {key: current})


def _action_name(value: Any) -> str:
    try:
        return ActionType(value).display_name
    except ValueError:
        return str(value)


def format_incident(summary: Dict[str, Any]) -> str:
    """One line per persisted incident summary."""
    timestamp = summary.get("timestamp")
    when = f"<t:{int(timestamp) // 1000}:R>" if timestamp else "unknown time"
    user_id = summary.get("userId")
    actor = "server-wide" if not user_id else f"<@{user_id}>"
    return (
        f"**{_action_name(summary.get('actionType'))}** by {actor} "
        f"({summary.get('count', '?')} actions, {when})"
    )


def build_status_embed(guild: discord.Guild, config: Dict[str, Any]) -> discord.Embed:
    disabled = bool(config.get("securityDisabled"))
    channel_id = config.get("notificationChannelId")
    role_id = config.get("quarantineRoleId")

    embed = discord.Embed(
        title="🛡️ Security Status",
        color=EmbedColors.WARNING if disabled else EmbedColors.SUCCESS,
        timestamp=datetime.now(NY_TZ),
    )
    embed.add_field(name="Protection", value="❌ Disabled" if disabled else "✅ Enabled", inline=True)
    embed.add_field(name="Punishment", value=str(config.get("securityActionType")), inline=True)
    embed.add_field(name="Incidents", value=str(len(config.get("securityIncidents") or [])), inline=True)
    embed.add_field(name="Alert Channel", value=f"<#{channel_id}>" if channel_id else "Not set", inline=True)
    embed.add_field(name="Quarantine Role", value=f"<@&{role_id}>" if role_id else "Not set", inline=True)
    embed.add_field(
        name="Whitelist",
        value=(
            f"{len(config.get('whitelistedUsers') or [])} users, "
            f"{len(config.get('whitelistedRoles') or [])} roles"
        ),
        inline=True,
    )
    embed.set_footer(text=guild.name)
    return embed


def build_incidents_embed(history: List[Dict[str, Any]]) -> discord.Embed:
    newest = list(reversed(history))[:INCIDENT_LIST_LIMIT]
    embed = discord.Embed(
        title="📝 Recent Security Incidents",
        description="\n".join(format_incident(s) for s in newest) if newest else "No incidents recorded.",
        color=EmbedColors.ALERT if newest else EmbedColors.SUCCESS,
    )
    embed.set_footer(text=f"Showing {len(newest)} of {len(history)}")
    return embed


def build_whitelist_embed(config: Dict[str, Any]) -> discord.Embed:
    users = config.get("whitelistedUsers") or []
    roles = config.get("whitelistedRoles") or []
    embed = discord.Embed(title="✅ Security Whitelist", color=EmbedColors.INFO)
    embed.add_field(
        name=f"Users ({len(users)})",
        value="\n".join(f"<@{u}>" for u in users)[:1024] if users else "None",
        inline=False,
    )
    embed.add_field(
        name=f"Roles ({len(roles)})",
        value="\n".join(f"<@&{r}>" for r in roles)[:1024] if roles else "None",
        inline=False,
    )
    return embed


__all__ = [
    "INCIDENT_LIST_LIMIT",
    "ensure_authorized",
    "update_id_list",
    "format_incident",
    "build_status_embed",
    "build_incidents_embed",
    "build_whitelist_embed",
]
