"""
Phantom Guard - Test Fixtures
=============================

Shared fixtures for all tests.
"""

import os
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

os.environ["TESTING"] = "1"

from phantom_guard.core.config import NY_TZ  # noqa: E402


GUILD_ID = 987654321
OWNER_ID = 111111111
BOT_ID = 999888777
ATTACKER_ID = 123456789
ALERT_CHANNEL_ID = 444555666
QUARANTINE_ROLE_ID = 777888999


# =============================================================================
# Discord Error Helpers
# =============================================================================

def not_found(message: str = "Unknown Member") -> discord.NotFound:
    return discord.NotFound(MagicMock(status=404, reason="Not Found"), message)


def forbidden(message: str = "Missing Permissions") -> discord.Forbidden:
    return discord.Forbidden(MagicMock(status=403, reason="Forbidden"), message)


# =============================================================================
# Clock
# =============================================================================

class FakeClock:
    """Manually advanced clock for sliding-window tests."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, ms: int = 0, seconds: float = 0) -> datetime:
        self.now = self.now + timedelta(milliseconds=ms, seconds=seconds)
        return self.now


@pytest.fixture
def clock():
    """Clock starting at a fixed Eastern time."""
    return FakeClock(datetime(2024, 1, 15, 12, 0, 0, tzinfo=NY_TZ))


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def test_db(tmp_path, monkeypatch):
    """Create a fresh test database instance."""
    from phantom_guard.core.database import manager as manager_module

    manager_module.DatabaseManager._instance = None

    monkeypatch.setattr(manager_module, "DB_PATH", tmp_path / "test_phantom_guard.db")
    monkeypatch.setattr(manager_module, "DATA_DIR", tmp_path)

    db = manager_module.DatabaseManager()

    yield db

    db.close()
    manager_module.DatabaseManager._instance = None


# =============================================================================
# Discord Object Factories
# =============================================================================

@pytest.fixture
def make_role():
    """Factory for mock roles."""
    def _make_role(role_id: int, position: int = 1, default: bool = False, managed: bool = False):
        role = MagicMock()
        role.id = role_id
        role.name = "@everyone" if default else f"role-{role_id}"
        role.position = position
        role.managed = managed
        role.is_default = MagicMock(return_value=default)
        role.mention = f"<@&{role_id}>"
        return role
    return _make_role


@pytest.fixture
def make_member(make_role):
    """Factory for mock members with async moderation methods."""
    def _make_member(user_id: int, roles=(), top_position: int = 1, bot: bool = False):
        member = MagicMock()
        member.id = user_id
        member.name = f"user{user_id}"
        member.mention = f"<@{user_id}>"
        member.bot = bot
        member.roles = [make_role(GUILD_ID, position=0, default=True), *roles]
        member.top_role = make_role(user_id + 1, position=top_position)
        member.ban = AsyncMock()
        member.kick = AsyncMock()
        member.timeout = AsyncMock()
        member.add_roles = AsyncMock()
        member.remove_roles = AsyncMock()
        member.send = AsyncMock()
        return member
    return _make_member


@pytest.fixture
def make_channel():
    """Factory for mock text channels."""
    def _make_channel(channel_id: int = ALERT_CHANNEL_ID):
        channel = MagicMock()
        channel.id = channel_id
        channel.mention = f"<#{channel_id}>"
        channel.send = AsyncMock(return_value=MagicMock(id=1))
        return channel
    return _make_channel


@pytest.fixture
def make_guild(make_member):
    """
    Factory for mock guilds.

    Members, roles and channels passed in are resolvable through the
    get_* lookups; fetch_* lookups raise NotFound.
    """
    def _make_guild(
        guild_id: int = GUILD_ID,
        owner_id: int = OWNER_ID,
        members=(),
        roles=(),
        channels=(),
        bot_position: int = 50,
    ):
        guild = MagicMock()
        guild.id = guild_id
        guild.name = "Test Server"
        guild.owner_id = owner_id
        guild.me = make_member(BOT_ID, top_position=bot_position)

        members_by_id = {m.id: m for m in members}
        roles_by_id = {r.id: r for r in roles}
        channels_by_id = {c.id: c for c in channels}

        guild.get_member = MagicMock(side_effect=lambda uid: members_by_id.get(uid))
        guild.get_role = MagicMock(side_effect=lambda rid: roles_by_id.get(rid))
        guild.get_channel = MagicMock(side_effect=lambda cid: channels_by_id.get(cid))
        guild.fetch_member = AsyncMock(side_effect=not_found("Unknown Member"))
        guild.fetch_channel = AsyncMock(side_effect=not_found("Unknown Channel"))
        return guild
    return _make_guild


# =============================================================================
# Bot & Monitor
# =============================================================================

@pytest.fixture
def mock_bot(test_db):
    """Create a mock bot instance."""
    bot = MagicMock()
    bot.user = MagicMock()
    bot.user.id = BOT_ID
    bot.db = test_db
    bot.config = MagicMock()
    bot.config.mention_spam_min_mentions = 5
    bot.config.developer_id = None
    bot.security_monitor = None
    return bot


@pytest.fixture
def monitor(test_db, clock):
    """Security monitor on the default thresholds with a fake clock."""
    from phantom_guard.services.security import SecurityMonitor
    return SecurityMonitor(db=test_db, clock=clock)
