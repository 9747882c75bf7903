"""
Phantom Guard - Lockdown Command Package
========================================

Owner-only emergency server lockdown:

    /lockdown enable [reason] | disable | status

Author: Phantom Guard Team
"""

from typing import TYPE_CHECKING

from .cog import LockdownCog

if TYPE_CHECKING:
    from phantom_guard.bot import PhantomGuard


async def setup(bot: "PhantomGuard") -> None:
    """Load the Lockdown cog."""
    await bot.add_cog(LockdownCog(bot))


__all__ = ["LockdownCog", "setup"]
