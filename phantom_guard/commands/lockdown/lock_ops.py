"""
Phantom Guard - Lockdown Lock Operations
========================================

Channel locking operations for the lockdown command.

DESIGN:
    Before a channel is locked, the current @everyone values of every
    field in LOCKED_PERMISSIONS are captured (True, False or None for
    "not set"). The captured values are what unlock restores, so
    channels that were already read-only stay read-only afterwards.

Author: Phantom Guard Team
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Tuple

import discord

from phantom_guard.core.logger import logger
from phantom_guard.utils.discord_rate_limit import log_http_error

from .constants import LOCKED_PERMISSIONS, MAX_CONCURRENT_OPS, LockdownResult


SavedOverwrite = Dict[str, Optional[bool]]
LockOutcome = Tuple[bool, Optional[str], Optional[SavedOverwrite]]


async def lock_text_channel(
    channel: discord.TextChannel,
    everyone_role: discord.Role,
    reason: str,
) -> LockOutcome:
    """
    Lock a single text channel.

    Args:
        channel: The text channel to lock.
        everyone_role: The @everyone role.
        reason: Audit log reason.

    Returns:
        Tuple of (success, error_message, saved_overwrite).
    """
    try:
        current_overwrite: discord.PermissionOverwrite = channel.overwrites_for(everyone_role)
        saved: SavedOverwrite = {name: getattr(current_overwrite, name) for name in LOCKED_PERMISSIONS}

        for name in LOCKED_PERMISSIONS:
            setattr(current_overwrite, name, False)

        await channel.set_permissions(
            everyone_role,
            overwrite=current_overwrite,
            reason=reason,
        )

        logger.debug("Channel Locked", [
            ("Channel", f"#{channel.name}"),
            ("ID", str(channel.id)),
        ])

        return True, None, saved

    except discord.Forbidden:
        logger.warning("Channel Lock Failed", [
            ("Channel", f"#{channel.name} ({channel.id})"),
            ("Error", "Forbidden - missing permissions"),
        ])
        return False, f"#{channel.name}: Missing permissions", None

    except discord.HTTPException as e:
        log_http_error(e, "Channel Lock", [
            ("Channel", f"#{channel.name} ({channel.id})"),
        ])
        return False, f"#{channel.name}: {e.text[:50] if e.text else 'HTTP error'}", None


async def lock_all_channels(
    guild: discord.Guild,
    everyone_role: discord.Role,
    reason: str,
) -> Tuple[LockdownResult, Dict[str, SavedOverwrite]]:
    """
    Lock every text channel in a guild concurrently.

    Returns:
        The run result and the saved overwrites keyed by channel id
        string (JSON object keys).
    """
    result = LockdownResult()
    saved_channels: Dict[str, SavedOverwrite] = {}
    semaphore = asyncio.Semaphore(MAX_CONCURRENT_OPS)

    async def lock_with_semaphore(channel: discord.TextChannel) -> LockOutcome:
        async with semaphore:
            return await lock_text_channel(channel, everyone_role, reason)

    channels: List[discord.TextChannel] = list(guild.text_channels)
    if not channels:
        return result, saved_channels

    outcomes = await asyncio.gather(
        *(lock_with_semaphore(channel) for channel in channels),
        return_exceptions=True,
    )

    for channel, outcome in zip(channels, outcomes):
        if isinstance(outcome, Exception):
            result.failed_count += 1
            result.errors.append(f"#{channel.name}: {str(outcome)[:50]}")
            logger.error("Lock Task Exception", [
                ("Channel", f"#{channel.name} ({channel.id})"),
                ("Error", str(outcome)[:100]),
                ("Type", type(outcome).__name__),
            ])
            continue

        success, error, saved = outcome
        if success:
            result.success_count += 1
            saved_channels[str(channel.id)] = saved
        else:
            result.failed_count += 1
            if error:
                result.errors.append(error)

    return result, saved_channels


__all__ = ["SavedOverwrite", "lock_text_channel", "lock_all_channels"]
