"""
Phantom Guard - Lockdown Constants
==================================

Constants and data classes for the lockdown command.

Author: Phantom Guard Team
"""

from dataclasses import dataclass
from typing import List, Tuple


# @everyone overwrite fields denied while the server is locked
LOCKED_PERMISSIONS: Tuple[str, ...] = (
    "send_messages",
    "create_public_threads",
    "create_private_threads",
    "send_messages_in_threads",
)

# Maximum concurrent channel operations (Discord rate limit friendly)
MAX_CONCURRENT_OPS: int = 10


@dataclass
class LockdownResult:
    """Result of a lock/unlock run over the guild's channels."""
    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    errors: List[str] = None

    def __post_init__(self) -> None:
        if self.errors is None:
            self.errors = []


__all__ = ["LOCKED_PERMISSIONS", "MAX_CONCURRENT_OPS", "LockdownResult"]
