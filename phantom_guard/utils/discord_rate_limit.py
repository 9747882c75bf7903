"""
Phantom Guard - Discord HTTP Error Helpers
==========================================

Consistent logging for failed Discord API calls.

DESIGN:
    Rate limits, missing permissions and missing objects are expected
    during an attack (the attacker may already have left or stripped our
    role), so they log as warnings. Everything else logs as an error and
    reaches the error webhook.

Author: Phantom Guard Team
"""

from typing import List, Optional, Tuple

import discord

from phantom_guard.core.logger import logger


# =============================================================================
# Constants
# =============================================================================

HTTP_STATUS_DESCRIPTIONS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    429: "Rate Limited",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


# =============================================================================
# Helpers
# =============================================================================

def describe_http_error(e: discord.HTTPException) -> str:
    """Short one-line description, e.g. '403 Forbidden: Missing Permissions'."""
    status_desc = HTTP_STATUS_DESCRIPTIONS.get(e.status, "Unknown")
    text = e.text if getattr(e, "text", None) else str(e)
    return f"{e.status} {status_desc}: {text}"


def log_http_error(
    e: discord.HTTPException,
    operation: str,
    context: Optional[List[Tuple[str, str]]] = None,
) -> None:
    """
    Log a Discord HTTPException with status details.

    Args:
        e: The HTTPException that occurred.
        operation: Description of what operation failed.
        context: Additional context tuples for logging [(key, value), ...].
    """
    status_desc = HTTP_STATUS_DESCRIPTIONS.get(e.status, "Unknown")
    retry_after = getattr(e, "retry_after", None)

    log_items = [
        ("Status", f"{e.status} ({status_desc})"),
        ("Error", str(e.text) if getattr(e, "text", None) else str(e)),
    ]

    if retry_after:
        log_items.append(("Retry After", f"{retry_after:.1f}s"))

    if context:
        log_items.extend(context)

    if e.status == 429:
        logger.warning(f"🚦 {operation} Rate Limited", log_items)
    elif e.status == 403:
        logger.warning(f"🚫 {operation} Forbidden", log_items)
    elif e.status == 404:
        logger.warning(f"❓ {operation} Not Found", log_items)
    else:
        logger.error(f"❌ {operation} Failed", log_items)


__all__ = [
    "HTTP_STATUS_DESCRIPTIONS",
    "describe_http_error",
    "log_http_error",
]
