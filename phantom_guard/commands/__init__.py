"""
Phantom Guard - Commands Package
================================

Slash command cogs.

DESIGN:
    Each command package exposes async setup(bot) and is loaded by the
    bot with load_extension(). Add new command cogs to COMMAND_COGS.

Available Commands:
    /security: Enable, disable and configure protection (owner)
    /whitelist: Manage exempt users and roles (owner)
    /lockdown: Emergency lock and restore of every text channel (owner)

Author: Phantom Guard Team
"""

# =============================================================================
# Command Cog Registry
# =============================================================================

COMMAND_COGS = [
    "phantom_guard.commands.security",
    "phantom_guard.commands.lockdown",
]
"""Command cog module paths for dynamic loading."""


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "COMMAND_COGS",
]
