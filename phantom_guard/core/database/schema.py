"""
Database Schema Module
======================

Table definitions.

Author: Phantom Guard Team
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from phantom_guard.core.database.manager import DatabaseManager


class SchemaMixin:
    """Mixin for database schema initialization."""

    def _init_tables(self: "DatabaseManager") -> None:
        """
        Initialize all database tables.

        DESIGN: Tables are created if not exist, allowing safe restarts.
        """
        conn = self._ensure_connection()
        cursor = conn.cursor()

        # -----------------------------------------------------------------
        # Server Config Table
        # DESIGN: One JSON document per guild, merged with defaults on read
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS server_config (
                guild_id INTEGER PRIMARY KEY,
                data TEXT NOT NULL,
                updated_at REAL NOT NULL
            )
        """)

        conn.commit()


__all__ = ["SchemaMixin"]
