"""
Phantom Guard - Database Module
===============================

Centralized database management for Phantom Guard.

Author: Phantom Guard Team
"""

from phantom_guard.core.database.manager import (
    DatabaseManager,
    get_db,
    DATA_DIR,
    DB_PATH,
)
from phantom_guard.core.database.base import _safe_json_loads
from phantom_guard.core.database.server_config import DEFAULT_SERVER_CONFIG

__all__ = [
    "DatabaseManager",
    "get_db",
    "_safe_json_loads",
    "DATA_DIR",
    "DB_PATH",
    "DEFAULT_SERVER_CONFIG",
]
