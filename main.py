#!/usr/bin/env python3
"""
Phantom Guard - Entry Point
===========================

Loads the environment, enforces a single running instance and starts
the bot.

Author: Phantom Guard Team
"""

import asyncio
import fcntl
import os
import sys
from typing import Optional, TextIO

from dotenv import load_dotenv

load_dotenv()

from phantom_guard.core.config import ConfigValidationError, validate_and_log_config  # noqa: E402
from phantom_guard.core.logger import logger  # noqa: E402
from phantom_guard.utils.error_handler import ErrorHandler  # noqa: E402


PID_FILE = os.getenv("PID_FILE", "phantom_guard.pid")

_lock_handle: Optional[TextIO] = None


def check_running_instance() -> bool:
    """
    Take an exclusive lock on the PID file.

    Returns:
        True if the lock was acquired, False if another instance holds it.
    """
    global _lock_handle

    try:
        fp = open(PID_FILE, "a+")
    except OSError as e:
        logger.error("Failed to Open Lock File", [
            ("Lock File", PID_FILE),
            ("Error", str(e)),
        ])
        return False

    try:
        fcntl.flock(fp.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        fp.seek(0)
        logger.error("Another Instance Is Running", [
            ("Lock File", PID_FILE),
            ("PID", fp.read().strip() or "unknown"),
        ])
        fp.close()
        return False

    fp.seek(0)
    fp.truncate()
    fp.write(str(os.getpid()))
    fp.flush()
    _lock_handle = fp

    logger.info(f"Instance lock acquired - PID: {os.getpid()}, Lock file: {PID_FILE}")
    return True


async def main() -> None:
    """Validate configuration and run the bot until it disconnects."""
    logger.tree("PHANTOM GUARD STARTING", [
        ("Run ID", logger.run_id),
        ("Features", "Anti-nuke, anti-raid, anti-spam"),
    ], emoji="🛡️")

    try:
        validate_and_log_config()
    except ConfigValidationError as e:
        ErrorHandler.handle(e, location="main.config", critical=False)
        sys.exit(1)

    from phantom_guard.bot import PhantomGuard

    bot = PhantomGuard()
    async with bot:
        await bot.start(bot.config.discord_token)


if __name__ == "__main__":
    if not check_running_instance():
        logger.error("⛔ Startup aborted - another instance is already running")
        sys.exit(1)

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("🛑 Bot stopped by user (Ctrl+C)")
    except Exception as e:
        ErrorHandler.handle(e, location="main.__main__", critical=True)
        sys.exit(1)
