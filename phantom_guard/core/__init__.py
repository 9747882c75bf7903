"""
Phantom Guard - Core Package
============================

Configuration, logging and the per-guild config store.

DESIGN:
    Core modules are singletons or global instances so state is shared
    across the application:
    - get_config() returns the same Config instance
    - get_db() returns the same DatabaseManager instance
    - logger is a global TreeLogger instance

Author: Phantom Guard Team
"""

from .config import (
    Config,
    ConfigValidationError,
    EmbedColors,
    NY_TZ,
    get_config,
    is_developer,
)

from .database import DatabaseManager, get_db

from .logger import logger, TreeLogger

__all__ = [
    "Config",
    "ConfigValidationError",
    "EmbedColors",
    "NY_TZ",
    "get_config",
    "is_developer",
    "DatabaseManager",
    "get_db",
    "logger",
    "TreeLogger",
]
