"""
Phantom Guard - Security Command Package
========================================

Owner-only slash commands for security settings:

    /security enable | disable | status | action | quarantine-role
              | alerts | incidents
    /whitelist add-user | remove-user | add-role | remove-role | list

Author: Phantom Guard Team
"""

from typing import TYPE_CHECKING

from .cog import SecurityCog

if TYPE_CHECKING:
    from phantom_guard.bot import PhantomGuard


async def setup(bot: "PhantomGuard") -> None:
    """Load the Security cog."""
    await bot.add_cog(SecurityCog(bot))


__all__ = ["SecurityCog", "setup"]
