"""
Phantom Guard - Audit Log Events Package
========================================

Routes audit log entries to the security monitor.

Structure:
    - security.py: Audit action classification and routing
    - cog.py: AuditLogEvents cog with the event listener

Author: Phantom Guard Team
"""

from typing import TYPE_CHECKING

from .cog import AuditLogEvents

if TYPE_CHECKING:
    from phantom_guard.bot import PhantomGuard

__all__ = ["AuditLogEvents", "setup"]


async def setup(bot: "PhantomGuard") -> None:
    """Load the AuditLogEvents cog."""
    await bot.add_cog(AuditLogEvents(bot))
