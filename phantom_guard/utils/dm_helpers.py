"""
Phantom Guard - DM Helpers
==========================

Direct message delivery with Discord errors logged instead of raised.

Usage:
    from phantom_guard.utils.dm_helpers import safe_send_dm

    sent = await safe_send_dm(owner, embed=embed, context="Owner Alert")

Author: Phantom Guard Team
"""

from typing import Optional, Union

import discord

from phantom_guard.core.logger import logger
from phantom_guard.utils.discord_rate_limit import log_http_error


async def safe_send_dm(
    user: Union[discord.User, discord.Member],
    embed: Optional[discord.Embed] = None,
    content: Optional[str] = None,
    context: Optional[str] = None,
) -> bool:
    """
    Send a DM to a user.

    Args:
        user: Recipient.
        embed: Optional embed to send.
        content: Optional text content.
        context: Label for logging (e.g. "Owner Alert").

    Returns:
        True if the DM was delivered, False otherwise.
    """
    try:
        await user.send(content=content, embed=embed)
        return True
    except discord.Forbidden:
        # DMs closed
        logger.debug("DM Blocked", [
            ("Context", context or "N/A"),
            ("User", f"{user} ({user.id})"),
        ])
        return False
    except discord.HTTPException as e:
        log_http_error(e, "DM Send", [
            ("User", f"{user} ({user.id})"),
            ("Context", context or "N/A"),
        ])
        return False


__all__ = ["safe_send_dm"]
