"""
Phantom Guard - Activity Events Package
=======================================

Join-flood and message-spam feeds for the security monitor.

Author: Phantom Guard Team
"""

from typing import TYPE_CHECKING

from .cog import ActivityEvents

if TYPE_CHECKING:
    from phantom_guard.bot import PhantomGuard

__all__ = ["ActivityEvents", "setup"]


async def setup(bot: "PhantomGuard") -> None:
    """Load the ActivityEvents cog."""
    await bot.add_cog(ActivityEvents(bot))
