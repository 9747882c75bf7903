"""
Phantom Guard - Handlers Package
================================

Event cogs that feed Discord events into the security monitor.

DESIGN:
    Each package exposes async setup(bot) and is loaded by the bot
    with load_extension(). Add new event cogs to EVENT_COGS.

    - audit_log: bans, kicks, deletions, webhooks, server updates
    - activity: member joins and guild messages

Author: Phantom Guard Team
"""

# =============================================================================
# Event Cog Registry
# =============================================================================

EVENT_COGS = [
    "phantom_guard.handlers.audit_log",
    "phantom_guard.handlers.activity",
]
"""Event cog module paths for dynamic loading."""


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "EVENT_COGS",
]
