"""
Phantom Guard - Punitive Action Dispatcher
==========================================

Applies the guild's configured punishment to the actor behind an incident.

DESIGN:
    Owner and whitelist checks are repeated here against fresh state,
    independent of the detection path, so a stale or misrouted detection
    can never punish a protected actor.

    Order:
    0. System raid actor        -> log_only (nobody to punish)
    1. Guild owner              -> none ("owner")
    2. Whitelisted user         -> none ("whitelisted")
    3. Member not resolvable    -> none ("member not found")
    4. Member above our top role -> none ("insufficient permissions")
    5. Punishment mode from securityActionType, default quarantine

    Discord failures never propagate; they come back as a failed
    SecurityActionResult carrying the error text.

Author: Phantom Guard Team
"""

from typing import TYPE_CHECKING, Any, Mapping, Optional

import discord

from phantom_guard.core.logger import logger
from phantom_guard.utils.discord_rate_limit import describe_http_error, log_http_error

from .constants import DEFAULT_PUNISHMENT, PUNISHMENT_TIMEOUT, SYSTEM_RAID_ACTOR_ID
from .exemptions import ExemptionResolver
from .models import PunishmentMode, SecurityActionResult

if TYPE_CHECKING:
    from phantom_guard.core.database import DatabaseManager


class PunitiveActionDispatcher:
    """Ban, kick, quarantine or time out an offending member."""

    def __init__(self, db: "DatabaseManager", exemptions: ExemptionResolver) -> None:
        self.db = db
        self.exemptions = exemptions

    # =========================================================================
    # Entry Point
    # =========================================================================

    async def apply_action(
        self,
        guild: discord.Guild,
        actor_id: int,
        reason: str,
    ) -> SecurityActionResult:
        """
        Punish an actor according to the guild's punishment mode.

        Args:
            guild: Guild the incident happened in.
            actor_id: User id of the offender.
            reason: Audit log reason shown on the Discord action.

        Returns:
            Structured result; never raises for Discord failures.
        """
        if actor_id == SYSTEM_RAID_ACTOR_ID:
            return SecurityActionResult(False, "log_only", reason="server-wide event")

        if guild.owner_id == actor_id:
            logger.warning("Security Action Blocked", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Actor ID", str(actor_id)),
                ("Reason", "Actor is the server owner"),
            ])
            return SecurityActionResult(False, "none", reason="owner")

        config = self.db.peek_server_config(guild.id)
        if self.exemptions.is_whitelisted_user(config, actor_id):
            logger.warning("Security Action Blocked", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Actor ID", str(actor_id)),
                ("Reason", "Actor is whitelisted"),
            ])
            return SecurityActionResult(False, "none", reason="whitelisted")

        member = await self._resolve_member(guild, actor_id)
        if member is None:
            logger.warning("Security Action Skipped", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Actor ID", str(actor_id)),
                ("Reason", "Member not found"),
            ])
            return SecurityActionResult(False, "none", reason="member not found")

        if not self._is_manageable(guild, member):
            logger.warning("Security Action Skipped", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("User", f"{member.name} ({member.id})"),
                ("Reason", "Member's top role is not below ours"),
            ])
            return SecurityActionResult(False, "none", reason="insufficient permissions")

        mode = PunishmentMode.parse(config.get("securityActionType") or DEFAULT_PUNISHMENT)
        if mode is None:
            logger.info("Security Action Log Only", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Actor ID", str(actor_id)),
                ("Mode", str(config.get("securityActionType"))),
            ])
            return SecurityActionResult(False, "log_only")

        action = mode.value
        try:
            if mode is PunishmentMode.BAN:
                await member.ban(reason=reason)
            elif mode is PunishmentMode.KICK:
                await member.kick(reason=reason)
            elif mode is PunishmentMode.QUARANTINE:
                action = await self._quarantine(guild, member, config, reason)
            else:
                await member.timeout(PUNISHMENT_TIMEOUT, reason=reason)

        except discord.HTTPException as e:
            log_http_error(e, "Security Action", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("User", f"{member.name} ({member.id})"),
                ("Action", action),
            ])
            return SecurityActionResult(False, action, error=describe_http_error(e))

        except Exception as e:
            logger.error("Security Action Failed", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("User", f"{member.name} ({member.id})"),
                ("Action", action),
                ("Error", str(e)[:100]),
                ("Type", type(e).__name__),
            ])
            return SecurityActionResult(False, action, error=str(e))

        logger.tree("🛡️ Security Action Applied", [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("User", f"{member.name} ({member.id})"),
            ("Action", action),
            ("Reason", reason[:100]),
        ], emoji="🛡️")

        return SecurityActionResult(True, action)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _resolve_member(self, guild: discord.Guild, actor_id: int) -> Optional[discord.Member]:
        member = guild.get_member(actor_id)
        if member is not None:
            return member
        try:
            return await guild.fetch_member(actor_id)
        except discord.NotFound:
            return None
        except discord.HTTPException as e:
            log_http_error(e, "Security Member Fetch", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Actor ID", str(actor_id)),
            ])
            return None

    def _is_manageable(self, guild: discord.Guild, member: discord.Member) -> bool:
        """Our top role must sit strictly above the member's."""
        me = guild.me
        if me is None:
            return False
        return me.top_role.position > member.top_role.position

    async def _quarantine(
        self,
        guild: discord.Guild,
        member: discord.Member,
        config: Mapping[str, Any],
        reason: str,
    ) -> str:
        """
        Strip roles and add the quarantine role.

        Falls back to a timeout when no usable quarantine role exists.
        Returns the action actually taken.
        """
        role_id = config.get("quarantineRoleId")
        role = guild.get_role(int(role_id)) if role_id else None

        if role is None:
            logger.warning("Quarantine Role Unavailable", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Role ID", str(role_id) if role_id else "Not configured"),
                ("Fallback", f"Timeout ({PUNISHMENT_TIMEOUT})"),
            ])
            await member.timeout(PUNISHMENT_TIMEOUT, reason=reason)
            return PunishmentMode.TIMEOUT.value

        # Managed roles (bot integrations, boosts) cannot be removed
        removable = [
            r for r in member.roles
            if not r.is_default() and not r.managed and r.id != role.id
        ]
        if removable:
            await member.remove_roles(*removable, reason=reason)
        await member.add_roles(role, reason=reason)

        logger.tree("Member Quarantined", [
            ("User", f"{member.name} ({member.id})"),
            ("Roles Removed", str(len(removable))),
            ("Quarantine Role", f"{role.name} ({role.id})"),
        ], emoji="🔒")

        return PunishmentMode.QUARANTINE.value


__all__ = ["PunitiveActionDispatcher"]
