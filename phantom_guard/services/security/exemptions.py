"""
Phantom Guard - Exemption Resolver
==================================

Decides whether an actor bypasses tracking entirely.

DESIGN:
    Lookups against Discord (owner, member roles) are asynchronous and
    happen in resolve_context(). is_exempt() is synchronous and reads
    only the context plus the guild's stored config, so the caller can
    run it, mutate the ledger and evaluate with no await in between.

    Check order, first match wins:
    1. Security disabled for the guild exempts everyone
    2. The system raid actor skips every identity check below
    3. Actor is the server owner
    4. Actor holds a whitelisted role
    5. Actor id equals the owner id carried in the context
    6. Actor id is in the user whitelist

Author: Phantom Guard Team
"""

from typing import TYPE_CHECKING, Any, Mapping, Optional

import discord

from phantom_guard.core.logger import logger
from phantom_guard.utils.discord_rate_limit import log_http_error

from .constants import SYSTEM_RAID_ACTOR_ID
from .models import ExemptionContext

if TYPE_CHECKING:
    from phantom_guard.core.database import DatabaseManager


def _id_set(values: Any) -> set:
    """Stored id lists may hold ints or strings."""
    result = set()
    for value in values or []:
        try:
            result.add(int(value))
        except (TypeError, ValueError):
            continue
    return result


class ExemptionResolver:
    """Exemption checks backed by the per-guild config store."""

    def __init__(self, db: "DatabaseManager") -> None:
        self.db = db

    def is_whitelisted_user(self, config: Mapping[str, Any], actor_id: int) -> bool:
        return actor_id in _id_set(config.get("whitelistedUsers"))

    def is_exempt(
        self,
        guild_id: int,
        actor_id: int,
        context: Optional[ExemptionContext] = None,
    ) -> bool:
        """Return True when the action must not be recorded."""
        config = self.db.peek_server_config(guild_id)

        if config.get("securityDisabled"):
            return True

        if actor_id == SYSTEM_RAID_ACTOR_ID:
            return False

        context = context or ExemptionContext()

        if context.is_server_owner:
            return True
        if context.has_whitelisted_role:
            return True
        if context.owner_id is not None and context.owner_id == actor_id:
            return True
        return self.is_whitelisted_user(config, actor_id)

    async def resolve_context(self, guild: discord.Guild, actor_id: int) -> ExemptionContext:
        """
        Look up owner and role facts for an actor.

        A member that cannot be fetched is treated as holding no
        whitelisted role.
        """
        if actor_id == SYSTEM_RAID_ACTOR_ID:
            return ExemptionContext()

        owner_id = guild.owner_id
        is_owner = owner_id is not None and owner_id == actor_id

        whitelisted_roles = _id_set(
            self.db.peek_server_config(guild.id).get("whitelistedRoles")
        )
        has_role = False
        if whitelisted_roles and not is_owner:
            member = guild.get_member(actor_id)
            if member is None:
                try:
                    member = await guild.fetch_member(actor_id)
                except discord.NotFound:
                    member = None
                except discord.HTTPException as e:
                    log_http_error(e, "Exemption Member Fetch", [
                        ("Guild", f"{guild.name} ({guild.id})"),
                        ("Actor ID", str(actor_id)),
                    ])
                    member = None

            if member is not None:
                has_role = any(role.id in whitelisted_roles for role in member.roles)

        context = ExemptionContext(
            is_server_owner=is_owner,
            has_whitelisted_role=has_role,
            owner_id=owner_id,
        )

        logger.debug("Exemption Context Resolved", [
            ("Guild", str(guild.id)),
            ("Actor ID", str(actor_id)),
            ("Owner", str(is_owner)),
            ("Whitelisted Role", str(has_role)),
        ])
        return context


__all__ = ["ExemptionResolver"]
