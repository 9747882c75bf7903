"""
Phantom Guard - Server Config Operations Mixin
==============================================

Per-guild security settings stored as JSON documents.

DESIGN:
    Each guild owns one JSON document in the server_config table. Reads
    merge the stored document over DEFAULT_SERVER_CONFIG so new keys get
    a default without a migration. Writes merge a partial update over the
    current document and persist the whole thing. Decoded documents are
    cached in memory; the cache is updated on every successful write.
    get_server_config() hands out a deep copy for callers that edit;
    peek_server_config() is a read-only view for per-event lookups.

Author: Phantom Guard Team
"""

import copy
import json
import sqlite3
import time
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Mapping

from phantom_guard.core.logger import logger
from phantom_guard.core.database.base import _safe_json_loads

if TYPE_CHECKING:
    from phantom_guard.core.database.manager import DatabaseManager


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_SERVER_CONFIG: Dict[str, Any] = {
    "securityDisabled": False,
    "whitelistedUsers": [],
    "whitelistedRoles": [],
    "securityActionType": "quarantine",
    "quarantineRoleId": None,
    "securityIncidents": [],
    "notificationChannelId": None,
    "lockdownActive": False,
    "lockdownInfo": None,
    "lastLockdown": None,
}


# =============================================================================
# Server Config Mixin
# =============================================================================

class ServerConfigMixin:
    """Mixin for per-guild configuration documents."""

    def _load_server_config(self: "DatabaseManager", guild_id: int) -> Dict[str, Any]:
        cached = self._server_config_cache.get(guild_id)
        if cached is not None:
            return cached

        row = self.fetchone(
            "SELECT data FROM server_config WHERE guild_id = ?",
            (guild_id,)
        )
        stored = _safe_json_loads(row["data"], {}) if row else {}
        if not isinstance(stored, dict):
            stored = {}

        merged = copy.deepcopy(DEFAULT_SERVER_CONFIG)
        merged.update(stored)
        self._server_config_cache[guild_id] = merged
        return merged

    def get_server_config(self: "DatabaseManager", guild_id: int) -> Dict[str, Any]:
        """
        Get a guild's configuration with defaults filled in.

        Args:
            guild_id: Discord guild ID.

        Returns:
            A copy of the configuration; mutating it does not touch storage.
        """
        return copy.deepcopy(self._load_server_config(guild_id))

    def peek_server_config(self: "DatabaseManager", guild_id: int) -> Mapping[str, Any]:
        """
        Read-only view of the cached configuration, without copying.

        For hot paths that only read. Nested lists are shared with the
        cache and must not be mutated.
        """
        return MappingProxyType(self._load_server_config(guild_id))

    def update_server_config(
        self: "DatabaseManager",
        guild_id: int,
        partial: Dict[str, Any],
    ) -> bool:
        """
        Merge a partial update into a guild's configuration and persist it.

        Keys not present in partial are left untouched.

        Args:
            guild_id: Discord guild ID.
            partial: Keys to overwrite.

        Returns:
            True if the update was written.
        """
        merged = copy.deepcopy(self._load_server_config(guild_id))
        merged.update(copy.deepcopy(partial))

        try:
            self.execute(
                "INSERT OR REPLACE INTO server_config (guild_id, data, updated_at) VALUES (?, ?, ?)",
                (guild_id, json.dumps(merged), time.time())
            )
        except (sqlite3.Error, TypeError, ValueError) as e:
            logger.error("Server Config Update Failed", [
                ("Guild ID", str(guild_id)),
                ("Keys", ", ".join(partial.keys())),
                ("Error", str(e)[:100]),
                ("Type", type(e).__name__),
            ])
            return False

        self._server_config_cache[guild_id] = merged

        logger.debug("Server Config Updated", [
            ("Guild ID", str(guild_id)),
            ("Keys", ", ".join(partial.keys())),
        ])
        return True

    def clear_server_config_cache(self: "DatabaseManager") -> None:
        """Drop cached documents so the next read hits the database."""
        self._server_config_cache.clear()


__all__ = ["ServerConfigMixin", "DEFAULT_SERVER_CONFIG"]
