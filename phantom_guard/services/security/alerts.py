"""
Phantom Guard - Alert Notifier
==============================

Posts one embed per incident to the guild's notification channel and
DMs the guild owner.

DESIGN:
    The incident is marked alerted before the first await, so a second
    call for the same incident returns False even if the first send is
    still in flight. The owner DM is attempted once per incident whether
    or not a channel is configured. Failures are logged and reported as
    False; nothing is raised and nothing is retried.

Author: Phantom Guard Team
"""

from typing import TYPE_CHECKING, Optional

import discord

from phantom_guard.core.config import EmbedColors
from phantom_guard.core.logger import logger
from phantom_guard.utils.discord_rate_limit import log_http_error
from phantom_guard.utils.dm_helpers import safe_send_dm

from .constants import SYSTEM_RAID_ACTOR_ID
from .incidents import IncidentRecorder
from .models import Incident

if TYPE_CHECKING:
    from phantom_guard.core.database import DatabaseManager


class AlertNotifier:
    """Sends incident alerts to Discord."""

    def __init__(self, db: "DatabaseManager", incidents: IncidentRecorder) -> None:
        self.db = db
        self.incidents = incidents

    def build_embed(self, incident: Incident, message: Optional[str] = None) -> discord.Embed:
        epoch = int(incident.timestamp.timestamp())

        if incident.user_id == SYSTEM_RAID_ACTOR_ID:
            actor = "Server-wide"
        else:
            actor = f"<@{incident.user_id}> (`{incident.user_id}`)"

        embed = discord.Embed(
            title="🚨 Security Incident Detected",
            color=EmbedColors.ALERT,
            timestamp=incident.timestamp,
        )
        embed.add_field(name="Type", value=incident.action_type.display_name, inline=True)
        embed.add_field(name="Actor", value=actor, inline=True)
        embed.add_field(name="Actions", value=str(incident.count), inline=True)
        embed.add_field(name="Detected", value=f"<t:{epoch}:F>", inline=False)
        if message:
            embed.add_field(name="Details", value=message[:1024], inline=False)
        embed.set_footer(text=f"Incident {incident.incident_id}")
        return embed

    async def _resolve_channel(self, guild: discord.Guild, channel_id: int):
        channel = guild.get_channel(channel_id)
        if channel is not None:
            return channel
        try:
            return await guild.fetch_channel(channel_id)
        except discord.NotFound:
            return None
        except discord.HTTPException as e:
            log_http_error(e, "Alert Channel Fetch", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Channel ID", str(channel_id)),
            ])
            return None

    async def _resolve_owner(self, guild: discord.Guild) -> Optional[discord.Member]:
        owner_id = guild.owner_id
        if owner_id is None:
            return None
        owner = guild.get_member(owner_id)
        if owner is not None:
            return owner
        try:
            return await guild.fetch_member(owner_id)
        except discord.NotFound:
            return None
        except discord.HTTPException as e:
            log_http_error(e, "Alert Owner Fetch", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Owner ID", str(owner_id)),
            ])
            return None

    def build_owner_embed(
        self,
        guild: discord.Guild,
        incident: Incident,
        message: Optional[str] = None,
    ) -> discord.Embed:
        """Channel embed plus the server it came from."""
        embed = self.build_embed(incident, message)
        embed.title = "🔒 Security Incident Detected"
        embed.add_field(
            name="🏠 Server",
            value=f"{guild.name} (`{guild.id}`)\nAction taken automatically by Phantom Guard",
            inline=False,
        )
        return embed

    async def notify_owner(
        self,
        guild: discord.Guild,
        incident: Incident,
        message: Optional[str] = None,
    ) -> bool:
        """
        DM the guild owner about an incident.

        Closed DMs and API failures are logged and reported as False.
        """
        owner = await self._resolve_owner(guild)
        if owner is None:
            logger.debug("Owner Alert Skipped", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Incident", incident.incident_id),
                ("Reason", "Owner not found"),
            ])
            return False

        sent = await safe_send_dm(
            owner,
            embed=self.build_owner_embed(guild, incident, message),
            content=f"📢 **SECURITY NOTIFICATION**: A security event has occurred in your server \"{guild.name}\"",
            context="Owner Alert",
        )
        if sent:
            logger.success("Owner Alert Sent", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Owner", f"{owner.name} ({owner.id})"),
                ("Incident", incident.incident_id),
            ])
        return sent

    async def send_alert(
        self,
        guild: discord.Guild,
        incident_id: str,
        message: Optional[str] = None,
    ) -> bool:
        """
        DM the owner, then post the alert embed to the notification channel.

        Args:
            guild: Guild the incident belongs to.
            incident_id: Id returned by the incident recorder.
            message: Optional extra text, e.g. the punishment outcome.

        Returns:
            True if the channel embed was sent.
        """
        incident = self.incidents.get(incident_id)
        if incident is None:
            logger.warning("Alert Skipped (Unknown Incident)", [
                ("Guild", str(guild.id)),
                ("Incident", incident_id),
            ])
            return False

        if not self.incidents.mark_alerted(incident_id):
            logger.warning("Alert Skipped (Already Sent)", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Incident", incident_id),
            ])
            return False

        await self.notify_owner(guild, incident, message)

        config = self.db.peek_server_config(guild.id)
        channel_id = config.get("notificationChannelId")
        if not channel_id:
            logger.warning("Alert Skipped (No Channel)", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Incident", incident_id),
            ])
            return False

        try:
            channel_id = int(channel_id)
        except (TypeError, ValueError):
            channel = None
        else:
            channel = await self._resolve_channel(guild, channel_id)

        if channel is None or not hasattr(channel, "send"):
            logger.warning("Alert Channel Not Found", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Channel ID", str(channel_id)),
            ])
            return False

        try:
            await channel.send(embed=self.build_embed(incident, message))
        except discord.HTTPException as e:
            log_http_error(e, "Security Alert", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Incident", incident_id),
            ])
            return False
        except Exception as e:
            logger.error("Security Alert Failed", [
                ("Guild", f"{guild.name} ({guild.id})"),
                ("Incident", incident_id),
                ("Error", str(e)[:100]),
                ("Type", type(e).__name__),
            ])
            return False

        logger.tree("Security Alert Sent", [
            ("Guild", f"{guild.name} ({guild.id})"),
            ("Incident", incident_id),
            ("Channel", str(channel_id)),
        ], emoji="📢")
        return True


__all__ = ["AlertNotifier"]
