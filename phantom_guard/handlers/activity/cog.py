"""
Activity Events - Main Cog
==========================

Feeds member joins and guild messages to the security monitor.

DESIGN:
    Joins are counted server-wide under the system raid actor, since a
    raid is many accounts acting once each. Messages are counted per
    author; a message with enough mentions also counts as mention spam.

Author: Phantom Guard Team
"""

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from phantom_guard.core.logger import logger
from phantom_guard.services.security import ActionType, SYSTEM_RAID_ACTOR_ID
from phantom_guard.services.security.constants import MENTION_SPAM_MIN_MENTIONS

if TYPE_CHECKING:
    from phantom_guard.bot import PhantomGuard


def count_mentions(message: discord.Message) -> int:
    """User and role mentions, plus one for @everyone/@here."""
    count = len(message.mentions) + len(message.role_mentions)
    if message.mention_everyone:
        count += 1
    return count


class ActivityEvents(commands.Cog):
    """Join and message event handlers."""

    def __init__(self, bot: "PhantomGuard") -> None:
        self.bot = bot
        config = getattr(bot, "config", None)
        self.mention_threshold: int = (
            config.mention_spam_min_mentions if config else MENTION_SPAM_MIN_MENTIONS
        )

        logger.tree("Activity Events Loaded", [
            ("Joins", "Raid detection"),
            ("Messages", "Spam detection"),
            ("Mention Spam", f"{self.mention_threshold}+ mentions"),
        ], emoji="👥")

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        monitor = self.bot.security_monitor
        if not monitor:
            return

        try:
            await monitor.handle_action(
                member.guild,
                SYSTEM_RAID_ACTOR_ID,
                ActionType.USER_JOINS,
                metadata={"memberId": member.id, "bot": member.bot},
            )
        except Exception as e:
            logger.warning("Join Check Failed", [
                ("Guild", str(member.guild.id)),
                ("Member", str(member.id)),
                ("Error", str(e)[:100]),
                ("Type", type(e).__name__),
            ])

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        monitor = self.bot.security_monitor
        if not monitor:
            return

        if not message.guild or message.webhook_id:
            return
        if self.bot.user and message.author.id == self.bot.user.id:
            return

        metadata = {"messageId": message.id, "channelId": message.channel.id}

        try:
            await monitor.handle_action(
                message.guild,
                message.author.id,
                ActionType.MESSAGE_SENDS,
                metadata=metadata,
            )

            mentions = count_mentions(message)
            if mentions >= self.mention_threshold:
                await monitor.handle_action(
                    message.guild,
                    message.author.id,
                    ActionType.MENTION_SPAM,
                    metadata={**metadata, "mentions": mentions},
                )
        except Exception as e:
            logger.warning("Message Check Failed", [
                ("Guild", str(message.guild.id)),
                ("Author", str(message.author.id)),
                ("Error", str(e)[:100]),
                ("Type", type(e).__name__),
            ])


__all__ = ["ActivityEvents", "count_mentions"]
