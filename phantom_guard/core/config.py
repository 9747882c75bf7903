"""
Phantom Guard - Configuration Module
====================================

Centralized process configuration with environment variable validation.

DESIGN:
    Process-wide settings (token, developer, webhook, tuning knobs) come
    from environment variables and are validated once at startup.
    Per-guild settings (whitelists, punishment mode, alert channel) live
    in the database config store, not here.

    Key patterns:
    - Singleton pattern via get_config() ensures one Config instance
    - Validation happens once at load time, not on every access
    - Permission helpers centralize authorization logic

Author: Phantom Guard Team
"""

import os
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo


# =============================================================================
# Timezone Configuration
# =============================================================================

NY_TZ = ZoneInfo("America/New_York")
"""Eastern timezone used for every timestamp the bot produces."""


# =============================================================================
# Configuration Dataclass
# =============================================================================

@dataclass
class Config:
    """
    Bot configuration loaded from environment variables.

    Attributes:
        discord_token: Discord bot authentication token.
        developer_id: User ID allowed to run owner-only commands anywhere.
        error_webhook_url: Webhook receiving error log entries.
        mention_spam_min_mentions: Mentions in one message that count as mention spam.
        active_incident_limit: Maximum incidents kept in memory.
    """

    # -------------------------------------------------------------------------
    # Required: Discord
    # -------------------------------------------------------------------------

    discord_token: str

    # -------------------------------------------------------------------------
    # Optional: Ownership
    # -------------------------------------------------------------------------

    developer_id: Optional[int] = None

    # -------------------------------------------------------------------------
    # Optional: Webhooks
    # -------------------------------------------------------------------------

    error_webhook_url: Optional[str] = None

    # -------------------------------------------------------------------------
    # Optional: Detection Tuning
    # -------------------------------------------------------------------------

    mention_spam_min_mentions: int = 5
    active_incident_limit: int = 500


# =============================================================================
# Embed Colors
# =============================================================================

class EmbedColors:
    """Standardized color palette for Discord embeds."""

    GREEN = 0x1F5E2E    # #1F5E2E - Primary success/positive
    GOLD = 0xE6B84A     # #E6B84A - Warnings/info/neutral
    RED = 0xDC3545      # #DC3545 - Security alerts, punishments
    BLUE = 0x3498DB     # #3498DB - Informational

    SUCCESS = GREEN
    ERROR = GOLD
    WARNING = GOLD
    INFO = BLUE
    ALERT = RED


# =============================================================================
# Validation
# =============================================================================

class ConfigValidationError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


def _parse_int_optional(value: Optional[str], name: str) -> Optional[int]:
    """
    Parse optional string to integer.

    Raises:
        ConfigValidationError: If a value is set but is not an integer.
    """
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigValidationError(f"Invalid integer for {name}: {value}")


def _parse_int_with_default(
    value: Optional[str],
    default: int,
    name: str,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
) -> int:
    """
    Parse optional integer with default and range clamping.

    Out-of-range values are clamped and invalid values fall back to the
    default; both cases log a warning.
    """
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        from phantom_guard.core.logger import logger
        logger.warning(f"Config {name}='{value}' invalid, using default {default}")
        return default

    if min_val is not None and parsed < min_val:
        from phantom_guard.core.logger import logger
        logger.warning(f"Config {name}={parsed} below min {min_val}, using {min_val}")
        return min_val
    if max_val is not None and parsed > max_val:
        from phantom_guard.core.logger import logger
        logger.warning(f"Config {name}={parsed} above max {max_val}, using {max_val}")
        return max_val
    return parsed


def _validate_url(value: Optional[str], name: str) -> Optional[str]:
    """Return the URL if it looks like http(s), None otherwise."""
    if not value:
        return None
    if not value.startswith(("https://", "http://")):
        from phantom_guard.core.logger import logger
        logger.warning(f"Config {name} invalid URL format, ignoring")
        return None
    return value


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config() -> Config:
    """
    Load and validate configuration from environment variables.

    Returns:
        Validated Config object with all settings.

    Raises:
        ConfigValidationError: If any required variable is missing or invalid.
    """
    missing = []

    discord_token = os.getenv("DISCORD_TOKEN")
    if not discord_token:
        missing.append("DISCORD_TOKEN")

    if missing:
        raise ConfigValidationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    return Config(
        discord_token=discord_token,
        developer_id=_parse_int_optional(os.getenv("DEVELOPER_ID"), "DEVELOPER_ID"),
        error_webhook_url=_validate_url(os.getenv("ERROR_WEBHOOK_URL"), "ERROR_WEBHOOK_URL"),
        mention_spam_min_mentions=_parse_int_with_default(
            os.getenv("MENTION_SPAM_MIN_MENTIONS"), 5, "MENTION_SPAM_MIN_MENTIONS", min_val=1, max_val=100
        ),
        active_incident_limit=_parse_int_with_default(
            os.getenv("ACTIVE_INCIDENT_LIMIT"), 500, "ACTIVE_INCIDENT_LIMIT", min_val=10, max_val=10000
        ),
    )


# =============================================================================
# Global Config Instance
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance, loading if needed.

    Raises:
        ConfigValidationError: On first call if config is invalid.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def validate_and_log_config() -> None:
    """
    Validate configuration and log a summary at startup.

    Raises:
        ConfigValidationError: If required configuration is missing.
    """
    from phantom_guard.core.logger import logger

    config = get_config()

    if not config.developer_id:
        logger.info("Optional config not set: DEVELOPER_ID")

    logger.tree("Configuration Validated", [
        ("Required", "✅ All required variables set"),
        ("Developer", str(config.developer_id) if config.developer_id else "None"),
        ("Error Webhook", "Enabled" if config.error_webhook_url else "Disabled"),
        ("Mention Spam", f"{config.mention_spam_min_mentions}+ mentions"),
        ("Incident Cache", str(config.active_incident_limit)),
    ], emoji="⚙️")


# =============================================================================
# Permission Helpers
# =============================================================================

def is_developer(user_id: int) -> bool:
    """Check if user is the bot developer."""
    developer_id = get_config().developer_id
    return developer_id is not None and user_id == developer_id


def is_guild_owner_or_developer(user, guild) -> bool:
    """
    Check if a user may change guild security settings.

    Args:
        user: Discord user or member invoking a command.
        guild: Guild the command runs in, may be None in DMs.

    Returns:
        True for the guild owner and for the developer.
    """
    if user is None:
        return False
    if is_developer(user.id):
        return True
    return guild is not None and guild.owner_id == user.id


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "Config",
    "ConfigValidationError",
    "EmbedColors",
    "NY_TZ",
    "get_config",
    "load_config",
    "validate_and_log_config",
    "is_developer",
    "is_guild_owner_or_developer",
]
