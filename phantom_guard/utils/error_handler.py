"""
Phantom Guard - Error Handler
=============================

Categorized error logging for failures that escape a component.

Features:
- Error categorization (Discord, network, database, config)
- Recovery suggestion per category
- Critical errors saved as JSON under logs/errors

Author: Phantom Guard Team
"""

import json
import sqlite3
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

import discord

from phantom_guard.core.config import ConfigValidationError
from phantom_guard.core.logger import logger


ERROR_DIR = Path("logs/errors")


class ErrorHandler:
    """Logs unexpected exceptions with category and recovery hint."""

    ERROR_CATEGORIES = {
        "config": (ConfigValidationError,),
        "discord": (discord.DiscordException,),
        "database": (sqlite3.Error,),
        "network": (ConnectionError, TimeoutError, OSError),
    }

    RECOVERY_SUGGESTIONS = {
        "config": "Check the .env file against the required variables",
        "discord": "Check the bot token and its permissions in the server",
        "database": "Check the data directory and database file permissions",
        "network": "Network issue - check connectivity to Discord",
        "general": "Unexpected error - check logs for details",
    }

    @classmethod
    def categorize_error(cls, e: BaseException) -> str:
        for category, error_types in cls.ERROR_CATEGORIES.items():
            if isinstance(e, error_types):
                return category
        return "general"

    @classmethod
    def handle(cls, e: BaseException, location: str, critical: bool = False, **context: Any) -> None:
        """
        Log an error with its category and context.

        Args:
            e: The exception.
            location: Where it happened, e.g. "main.main".
            critical: Also store the full context on disk.
            **context: Extra key/value pairs for the log entry.
        """
        category = cls.categorize_error(e)
        details = [
            ("Location", location),
            ("Category", category),
            ("Type", type(e).__name__),
            ("Error", str(e)[:200]),
            ("Recovery", cls.RECOVERY_SUGGESTIONS[category]),
            *[(key, str(value)[:100]) for key, value in context.items()],
        ]

        if critical:
            logger.error("💥 Critical Error", details)
            cls._store_critical_error(e, location, category, context)
        else:
            logger.warning("Unhandled Error", details)

    @staticmethod
    def _store_critical_error(
        e: BaseException,
        location: str,
        category: str,
        context: Dict[str, Any],
    ) -> None:
        payload = {
            "timestamp": datetime.now().isoformat(),
            "location": location,
            "category": category,
            "error_type": type(e).__name__,
            "error_message": str(e),
            "traceback": "".join(traceback.format_exception(type(e), e, e.__traceback__)),
            "python_version": sys.version,
            "context": context,
        }
        try:
            ERROR_DIR.mkdir(exist_ok=True, parents=True)
            error_file = ERROR_DIR / f"error_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
            with open(error_file, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, default=str)
            logger.info(f"Critical error saved to {error_file}")
        except OSError as save_error:
            logger.critical(f"Failed to save error details: {save_error}")


__all__ = ["ErrorHandler"]
