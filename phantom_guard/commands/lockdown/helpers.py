"""
Phantom Guard - Lockdown Helpers
================================

Embed builders and the public announcement for the lockdown command.

Author: Phantom Guard Team
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

import discord

from phantom_guard.core.config import EmbedColors, NY_TZ
from phantom_guard.core.logger import logger
from phantom_guard.utils.discord_rate_limit import log_http_error

from .constants import LockdownResult


ERROR_PREVIEW_LIMIT = 3


def format_duration(seconds: float) -> str:
    seconds = max(int(seconds), 0)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def _started(info: Mapping[str, Any]) -> str:
    timestamp = info.get("timestamp")
    return f"<t:{int(timestamp) // 1000}:R>" if timestamp else "Unknown"


def build_lock_embed(
    user: discord.abc.User,
    reason: str,
    result: LockdownResult,
) -> discord.Embed:
    embed = discord.Embed(
        title="🔒 Server Locked",
        description="**Server is now in lockdown mode.**\nMembers cannot send messages or create threads.",
        color=EmbedColors.ALERT,
        timestamp=datetime.now(NY_TZ),
    )
    embed.add_field(name="Requested By", value=user.mention, inline=True)
    embed.add_field(name="Channels Locked", value=f"`{result.success_count}`", inline=True)

    if result.failed_count > 0:
        embed.add_field(name="Failed", value=f"`{result.failed_count}`", inline=True)
        if result.errors:
            preview = "\n".join(result.errors[:ERROR_PREVIEW_LIMIT])
            if len(result.errors) > ERROR_PREVIEW_LIMIT:
                preview += f"\n... and {len(result.errors) - ERROR_PREVIEW_LIMIT} more"
            embed.add_field(name="Errors", value=f"```{preview}```", inline=False)

    embed.add_field(name="Reason", value=reason, inline=False)
    embed.add_field(name="Restore", value="Use `/lockdown disable` to restore permissions", inline=False)
    return embed


def build_unlock_embed(
    user: discord.abc.User,
    result: LockdownResult,
    duration_seconds: Optional[float],
) -> discord.Embed:
    embed = discord.Embed(
        title="🔓 Server Unlocked",
        description="**Server lockdown has ended.**\nChannels have been restored to their previous state.",
        color=EmbedColors.SUCCESS,
        timestamp=datetime.now(NY_TZ),
    )
    embed.add_field(name="Requested By", value=user.mention, inline=True)
    embed.add_field(name="Channels Restored", value=f"`{result.success_count}`", inline=True)
    if result.failed_count > 0:
        embed.add_field(name="Failed", value=f"`{result.failed_count}`", inline=True)
    if result.skipped_count > 0:
        embed.add_field(name="Deleted Meanwhile", value=f"`{result.skipped_count}`", inline=True)
    if duration_seconds is not None:
        embed.add_field(name="Duration", value=f"`{format_duration(duration_seconds)}`", inline=True)
    return embed


def build_status_embed(guild: discord.Guild, config: Mapping[str, Any]) -> discord.Embed:
    info = config.get("lockdownInfo") or {}

    if config.get("lockdownActive"):
        embed = discord.Embed(
            title="🔒 Lockdown Active",
            color=EmbedColors.ALERT,
            timestamp=datetime.now(NY_TZ),
        )
        embed.add_field(name="Reason", value=str(info.get("reason") or "Not specified"), inline=False)
        embed.add_field(name="Started", value=_started(info), inline=True)
        requester = info.get("requesterId")
        embed.add_field(name="Requested By", value=f"<@{requester}>" if requester else "Unknown", inline=True)
        embed.add_field(name="Channels Locked", value=f"`{len(info.get('channels') or {})}`", inline=True)
    else:
        embed = discord.Embed(
            title="🔓 No Active Lockdown",
            color=EmbedColors.SUCCESS,
            timestamp=datetime.now(NY_TZ),
        )
        last = config.get("lastLockdown")
        if last:
            embed.add_field(name="Last Reason", value=str(last.get("reason") or "Not specified"), inline=False)
            embed.add_field(
                name="Last Duration",
                value=f"`{format_duration((last.get('duration') or 0) / 1000)}`",
                inline=True,
            )

    embed.set_footer(text=guild.name)
    return embed


async def send_public_announcement(guild: discord.Guild, action: str, reason: Optional[str] = None) -> bool:
    """
    Tell members about a lockdown in the guild's system channel.

    Args:
        guild: The guild.
        action: "lock" or "unlock".
        reason: Lockdown reason, shown on lock.

    Returns:
        True if sent successfully.
    """
    channel = guild.system_channel
    if channel is None:
        logger.debug("Announcement Skipped", [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("Reason", "No system channel"),
        ])
        return False

    if action == "lock":
        embed = discord.Embed(
            title="🚨 Server-Wide Lockdown Active",
            description=(
                "This server is currently in **lockdown mode**.\n"
                "Please stand by while the situation is handled."
            ),
            color=EmbedColors.ALERT,
            timestamp=datetime.now(NY_TZ),
        )
        if reason:
            embed.add_field(name="Reason", value=reason, inline=False)
    else:
        embed = discord.Embed(
            title="🔓 Lockdown Ended",
            description="The lockdown has been lifted.\nYou may now resume normal activity.",
            color=EmbedColors.SUCCESS,
            timestamp=datetime.now(NY_TZ),
        )

    try:
        await channel.send(embed=embed)
    except discord.Forbidden:
        logger.warning("Announcement Failed", [
            ("Channel", f"#{channel.name} ({channel.id})"),
            ("Error", "Missing permissions"),
        ])
        return False
    except discord.HTTPException as e:
        log_http_error(e, "Announcement", [
            ("Channel", f"#{channel.name} ({channel.id})"),
        ])
        return False

    logger.debug("Public Announcement Sent", [
        ("Channel", f"#{channel.name}"),
        ("Action", action),
    ])
    return True


__all__ = [
    "format_duration",
    "build_lock_embed",
    "build_unlock_embed",
    "build_status_embed",
    "send_public_announcement",
]
