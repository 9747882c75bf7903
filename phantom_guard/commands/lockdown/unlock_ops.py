"""
Phantom Guard - Lockdown Unlock Operations
==========================================

Channel unlocking operations for the lockdown command.

Author: Phantom Guard Team
"""

from __future__ import annotations

import asyncio
from typing import List, Mapping, Optional, Tuple

import discord

from phantom_guard.core.logger import logger
from phantom_guard.utils.discord_rate_limit import log_http_error

from .constants import LOCKED_PERMISSIONS, MAX_CONCURRENT_OPS, LockdownResult
from .lock_ops import SavedOverwrite


async def unlock_text_channel(
    channel: discord.TextChannel,
    everyone_role: discord.Role,
    saved: Optional[Mapping[str, Optional[bool]]],
    reason: str,
) -> Tuple[bool, Optional[str]]:
    """
    Restore a single text channel.

    Args:
        channel: The text channel to unlock.
        everyone_role: The @everyone role.
        saved: Values captured at lock time (None restores neutral).
        reason: Audit log reason.

    Returns:
        Tuple of (success, error_message).
    """
    saved = saved or {}
    try:
        current_overwrite: discord.PermissionOverwrite = channel.overwrites_for(everyone_role)
        for name in LOCKED_PERMISSIONS:
            setattr(current_overwrite, name, saved.get(name))

        # Drop the overwrite entirely if nothing else was set on it
        if current_overwrite.is_empty():
            await channel.set_permissions(everyone_role, overwrite=None, reason=reason)
        else:
            await channel.set_permissions(everyone_role, overwrite=current_overwrite, reason=reason)

        logger.debug("Channel Unlocked", [
            ("Channel", f"#{channel.name}"),
            ("ID", str(channel.id)),
            ("Restored", "saved" if saved else "default"),
        ])

        return True, None

    except discord.Forbidden:
        logger.warning("Channel Unlock Failed", [
            ("Channel", f"#{channel.name} ({channel.id})"),
            ("Error", "Forbidden"),
        ])
        return False, f"#{channel.name}: Missing permissions"

    except discord.HTTPException as e:
        log_http_error(e, "Channel Unlock", [
            ("Channel", f"#{channel.name} ({channel.id})"),
        ])
        return False, f"#{channel.name}: {e.text[:50] if e.text else 'HTTP error'}"


async def unlock_all_channels(
    guild: discord.Guild,
    everyone_role: discord.Role,
    saved_channels: Mapping[str, SavedOverwrite],
    reason: str,
) -> LockdownResult:
    """
    Restore every channel recorded at lock time.

    Channels deleted during the lockdown are counted as skipped.
    """
    result = LockdownResult()
    semaphore = asyncio.Semaphore(MAX_CONCURRENT_OPS)

    async def unlock_with_semaphore(channel: discord.TextChannel, saved: SavedOverwrite):
        async with semaphore:
            return await unlock_text_channel(channel, everyone_role, saved, reason)

    targets: List[Tuple[discord.TextChannel, SavedOverwrite]] = []
    for channel_id, saved in saved_channels.items():
        try:
            channel = guild.get_channel(int(channel_id))
        except (TypeError, ValueError):
            channel = None
        if channel is None:
            result.skipped_count += 1
            continue
        targets.append((channel, saved))

    if not targets:
        return result

    outcomes = await asyncio.gather(
        *(unlock_with_semaphore(channel, saved) for channel, saved in targets),
        return_exceptions=True,
    )

    for (channel, _), outcome in zip(targets, outcomes):
        if isinstance(outcome, Exception):
            result.failed_count += 1
            result.errors.append(f"#{channel.name}: {str(outcome)[:50]}")
            logger.error("Unlock Task Exception", [
                ("Channel", f"#{channel.name} ({channel.id})"),
                ("Error", str(outcome)[:100]),
                ("Type", type(outcome).__name__),
            ])
            continue

        success, error = outcome
        if success:
            result.success_count += 1
        else:
            result.failed_count += 1
            if error:
                result.errors.append(error)

    return result


__all__ = ["unlock_text_channel", "unlock_all_channels"]
