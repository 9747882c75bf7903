"""
Phantom Guard - Security Monitor Tests
======================================

Detection pipeline tests, from recorded action to punishment and alert.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from phantom_guard.core.logger import logger
from phantom_guard.services.security import (
    ActionType,
    DEFAULT_THRESHOLDS,
    ExemptionContext,
    SecurityActionResult,
    SecurityMonitor,
    SYSTEM_RAID_ACTOR_ID,
    Threshold,
)
from phantom_guard.services.security.constants import MAX_TRACKED_ACTIONS

from conftest import ALERT_CHANNEL_ID, ATTACKER_ID, GUILD_ID, OWNER_ID


PLAIN = ExemptionContext(owner_id=OWNER_ID)


@pytest.fixture
def ban_monitor(test_db, clock):
    """Monitor with a single massBan threshold of 3 in 5 seconds."""
    return SecurityMonitor(
        db=test_db,
        clock=clock,
        thresholds={ActionType.MASS_BAN: Threshold(ActionType.MASS_BAN, 3, 5000)},
    )


# =============================================================================
# Breach Detection
# =============================================================================

class TestBreachDetection:
    """Tests for threshold breaches."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action_type,threshold", list(DEFAULT_THRESHOLDS.items()))
    async def test_breach_on_nth_call_only(self, monitor, clock, make_guild, action_type, threshold):
        """Test N-1 actions never breach and the Nth breaches exactly once."""
        guild = make_guild()
        results = []
        for _ in range(threshold.count + 1):
            clock.advance(ms=1)
            results.append(await monitor.record_action(guild, ATTACKER_ID, action_type, context=PLAIN))

        assert results[:threshold.count - 1] == [False] * (threshold.count - 1)
        assert results[threshold.count - 1] is True
        assert results[threshold.count] is False

    @pytest.mark.asyncio
    async def test_actions_outside_window_do_not_count(self, ban_monitor, clock, make_guild):
        """Test expired actions are pruned before evaluation."""
        guild = make_guild()
        await ban_monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_BAN, context=PLAIN)
        await ban_monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_BAN, context=PLAIN)

        clock.advance(ms=5001)

        assert await ban_monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_BAN, context=PLAIN) is False
        assert len(ban_monitor.get_recent_actions(GUILD_ID, ATTACKER_ID, ActionType.MASS_BAN)) == 1

    @pytest.mark.asyncio
    async def test_actors_tracked_separately(self, ban_monitor, make_guild):
        """Test two actors never share a bucket."""
        guild = make_guild()
        for actor in (ATTACKER_ID, ATTACKER_ID + 1):
            await ban_monitor.record_action(guild, actor, ActionType.MASS_BAN, context=PLAIN)
            await ban_monitor.record_action(guild, actor, ActionType.MASS_BAN, context=PLAIN)

        assert ban_monitor.get_active_incidents() == {}

    @pytest.mark.asyncio
    async def test_untracked_threshold_never_breaches(self, monitor, make_guild):
        """Test action types without a threshold are stored but never breach."""
        guild = make_guild()
        for _ in range(20):
            assert await monitor.record_action(guild, ATTACKER_ID, ActionType.CHANNEL_CREATE, context=PLAIN) is False

        assert len(monitor.get_recent_actions(GUILD_ID, ATTACKER_ID, ActionType.CHANNEL_CREATE)) == 20

    @pytest.mark.asyncio
    async def test_string_action_type(self, ban_monitor, make_guild):
        """Test action types may be passed by value."""
        guild = make_guild()
        results = [
            await ban_monitor.record_action(guild, ATTACKER_ID, "massBan", context=PLAIN)
            for _ in range(3)
        ]
        assert results == [False, False, True]

    @pytest.mark.asyncio
    async def test_system_raid_actor(self, monitor, make_guild):
        """Test join floods are tracked under the system actor."""
        guild = make_guild()
        results = [
            await monitor.record_action(guild, SYSTEM_RAID_ACTOR_ID, ActionType.USER_JOINS)
            for _ in range(5)
        ]
        assert results[-1] is True
        guild.get_member.assert_not_called()

    @pytest.mark.asyncio
    async def test_count_above_bucket_cap(self, test_db, clock, make_guild):
        """Test thresholds larger than the default bucket cap still breach."""
        monitor = SecurityMonitor(
            db=test_db,
            clock=clock,
            thresholds={ActionType.MESSAGE_SENDS: Threshold(ActionType.MESSAGE_SENDS, 150, 60_000)},
        )
        guild = make_guild()

        results = []
        for _ in range(150):
            clock.advance(ms=1)
            results.append(await monitor.record_action(guild, ATTACKER_ID, ActionType.MESSAGE_SENDS, context=PLAIN))

        assert monitor.ledger.max_entries == 150
        assert results[:149] == [False] * 149
        assert results[149] is True

    def test_default_bucket_cap(self, monitor):
        """Test small tables keep the default bucket cap."""
        assert monitor.ledger.max_entries == MAX_TRACKED_ACTIONS

    def test_load_logs_threshold_table(self, test_db, clock, monkeypatch):
        """Test the load log lists each threshold and the limits."""
        tree_nested = MagicMock()
        monkeypatch.setattr(logger, "tree_nested", tree_nested)

        SecurityMonitor(
            db=test_db,
            clock=clock,
            thresholds={ActionType.MASS_BAN: Threshold(ActionType.MASS_BAN, 3, 5000)},
        )

        title, sections = tree_nested.call_args.args
        assert title == "Security Monitor Loaded"
        assert dict(sections)["Thresholds"] == [("Mass Banning", "3 in 5s")]
        assert ("Bucket Cap", str(MAX_TRACKED_ACTIONS)) in dict(sections)["Limits"]


# =============================================================================
# Exemptions
# =============================================================================

class TestExemptActors:
    """Tests that exempt actors never touch a bucket."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("context", [
        ExemptionContext(is_server_owner=True),
        ExemptionContext(has_whitelisted_role=True),
        ExemptionContext(owner_id=ATTACKER_ID),
    ])
    async def test_context_exemptions(self, ban_monitor, make_guild, context):
        """Test owner and role exemptions leave the bucket unchanged."""
        guild = make_guild()
        await ban_monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_BAN, context=PLAIN)

        for _ in range(5):
            assert await ban_monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_BAN, context=context) is False

        assert ban_monitor.ledger.size((GUILD_ID, ATTACKER_ID, ActionType.MASS_BAN)) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("partial", [
        {"securityDisabled": True},
        {"whitelistedUsers": [ATTACKER_ID]},
    ])
    async def test_config_exemptions(self, ban_monitor, test_db, make_guild, partial):
        """Test disabled security and user whitelist leave the bucket unchanged."""
        guild = make_guild()
        await ban_monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_BAN, context=PLAIN)
        test_db.update_server_config(GUILD_ID, partial)

        for _ in range(5):
            assert await ban_monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_BAN, context=PLAIN) is False

        assert ban_monitor.ledger.size((GUILD_ID, ATTACKER_ID, ActionType.MASS_BAN)) == 1

    @pytest.mark.asyncio
    async def test_owner_never_breaches(self, ban_monitor, make_guild):
        """Test the guild owner never breaches however many bans they make."""
        guild = make_guild(owner_id=ATTACKER_ID)

        for _ in range(20):
            assert await ban_monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_BAN) is False

        assert ban_monitor.get_incident_history(GUILD_ID) == []

    @pytest.mark.asyncio
    async def test_whitelisted_role_resolved_from_guild(self, ban_monitor, test_db, make_guild, make_member, make_role):
        """Test a member holding a whitelisted role is exempt."""
        member = make_member(ATTACKER_ID, roles=[make_role(555)])
        guild = make_guild(members=[member])
        test_db.update_server_config(GUILD_ID, {"whitelistedRoles": [555]})

        for _ in range(5):
            assert await ban_monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_BAN) is False


# =============================================================================
# Full Pipeline
# =============================================================================

class TestHandleAction:
    """Tests for record, punish and alert."""

    @pytest.mark.asyncio
    async def test_kick_scenario(self, ban_monitor, test_db, clock, make_guild, make_member):
        """Test three bans in four seconds breach, persist and kick."""
        attacker = make_member(ATTACKER_ID, top_position=5)
        guild = make_guild(members=[attacker])
        test_db.update_server_config(GUILD_ID, {"securityActionType": "kick"})

        results = []
        for _ in range(3):
            results.append(await ban_monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_BAN))
            clock.advance(seconds=2)

        assert results == [False, False, True]

        history = ban_monitor.get_incident_history(GUILD_ID)
        assert len(history) == 1
        assert history[0]["count"] == 3
        assert history[0]["actionType"] == "massBan"

        result = await ban_monitor.dispatcher.apply_action(guild, ATTACKER_ID, "test")
        assert (result.success, result.action) == (True, "kick")

    @pytest.mark.asyncio
    async def test_handle_action_punishes_and_alerts(self, ban_monitor, test_db, make_guild, make_member, make_channel):
        """Test a breach via handle_action kicks and sends one alert."""
        attacker = make_member(ATTACKER_ID, top_position=5)
        channel = make_channel(ALERT_CHANNEL_ID)
        guild = make_guild(members=[attacker], channels=[channel])
        test_db.update_server_config(GUILD_ID, {
            "securityActionType": "kick",
            "notificationChannelId": ALERT_CHANNEL_ID,
        })

        ids = [await ban_monitor.handle_action(guild, ATTACKER_ID, ActionType.MASS_BAN) for _ in range(3)]

        assert ids[:2] == [None, None]
        assert ids[2] is not None
        attacker.kick.assert_awaited_once()
        assert "Mass Banning detected (3 actions in 5s)" in attacker.kick.call_args.kwargs["reason"]
        channel.send.assert_awaited_once()
        assert ban_monitor.get_active_incidents()[ids[2]].alerted is True

    @pytest.mark.asyncio
    async def test_pipeline_never_copies_config(self, ban_monitor, test_db, make_guild, make_member, make_channel, monkeypatch):
        """Test per-event config reads go through the read-only view."""
        attacker = make_member(ATTACKER_ID, top_position=5)
        guild = make_guild(members=[attacker], channels=[make_channel(ALERT_CHANNEL_ID)])
        test_db.update_server_config(GUILD_ID, {
            "whitelistedRoles": [555],
            "notificationChannelId": ALERT_CHANNEL_ID,
        })
        copying_read = MagicMock(side_effect=AssertionError("config copied"))
        monkeypatch.setattr(test_db, "get_server_config", copying_read)

        ids = [await ban_monitor.handle_action(guild, ATTACKER_ID, ActionType.MASS_BAN) for _ in range(3)]

        assert ids[2] is not None
        copying_read.assert_not_called()

    @pytest.mark.asyncio
    async def test_quarantine_without_role_times_out(self, ban_monitor, make_guild, make_member, make_channel, test_db):
        """Test default quarantine with no role falls back to a timeout."""
        attacker = make_member(ATTACKER_ID, top_position=5)
        channel = make_channel(ALERT_CHANNEL_ID)
        guild = make_guild(members=[attacker], channels=[channel])
        test_db.update_server_config(GUILD_ID, {"notificationChannelId": ALERT_CHANNEL_ID})

        for _ in range(3):
            await ban_monitor.handle_action(guild, ATTACKER_ID, ActionType.MASS_BAN)

        attacker.timeout.assert_awaited_once()
        embed = channel.send.call_args.kwargs["embed"]
        assert any(f.value == "Response: timeout applied" for f in embed.fields)

    @pytest.mark.asyncio
    async def test_stale_context_still_protects_owner(self, ban_monitor, make_guild, make_member):
        """Test dispatch blocks the owner even when detection thought otherwise."""
        owner = make_member(ATTACKER_ID, top_position=5)
        guild = make_guild(owner_id=ATTACKER_ID, members=[owner])
        stale = ExemptionContext(owner_id=OWNER_ID)

        incident_ids = [
            await ban_monitor.handle_action(guild, ATTACKER_ID, ActionType.MASS_BAN, context=stale)
            for _ in range(3)
        ]

        assert incident_ids[2] is not None
        owner.ban.assert_not_awaited()
        owner.kick.assert_not_awaited()
        owner.timeout.assert_not_awaited()
        owner.add_roles.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_whitelist_added_after_detection(self, ban_monitor, test_db, make_guild, make_member):
        """Test a user whitelisted between detection and dispatch is spared."""
        attacker = make_member(ATTACKER_ID, top_position=5)
        guild = make_guild(members=[attacker])

        for _ in range(3):
            await ban_monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_BAN, context=PLAIN)
        test_db.update_server_config(GUILD_ID, {"whitelistedUsers": [ATTACKER_ID]})

        result = await ban_monitor.dispatcher.apply_action(guild, ATTACKER_ID, "test")

        assert result.reason == "whitelisted"
        attacker.timeout.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dispatch_before_alert(self, ban_monitor, make_guild):
        """Test the punishment runs before the alert is sent."""
        calls = []

        async def apply_action(guild, actor_id, reason):
            calls.append("dispatch")
            return SecurityActionResult(True, "ban")

        async def send_alert(guild, incident_id, message=None):
            calls.append(("alert", message))
            return True

        ban_monitor.dispatcher.apply_action = AsyncMock(side_effect=apply_action)
        ban_monitor.alerts.send_alert = AsyncMock(side_effect=send_alert)
        guild = make_guild()

        for _ in range(3):
            await ban_monitor.handle_action(guild, ATTACKER_ID, ActionType.MASS_BAN, context=PLAIN)

        assert calls == ["dispatch", ("alert", "Response: ban applied")]

    @pytest.mark.asyncio
    async def test_no_breach_no_dispatch(self, ban_monitor, make_guild):
        """Test nothing is dispatched below the threshold."""
        ban_monitor.dispatcher.apply_action = AsyncMock()
        guild = make_guild()

        assert await ban_monitor.handle_action(guild, ATTACKER_ID, ActionType.MASS_BAN, context=PLAIN) is None
        ban_monitor.dispatcher.apply_action.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_alert_for_unknown_incident(self, monitor, make_guild):
        """Test alerting an incident lost on restart is a no-op."""
        assert await monitor.alerts.send_alert(make_guild(), f"{GUILD_ID}:0:deadbeef") is False


# =============================================================================
# Introspection
# =============================================================================

class TestIntrospection:
    """Tests for read-only views."""

    @pytest.mark.asyncio
    async def test_recent_actions_default_window(self, monitor, clock, make_guild):
        """Test recent actions default to the threshold window without pruning."""
        guild = make_guild()
        await monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_KICK, {"target": 1}, context=PLAIN)
        clock.advance(seconds=11)
        await monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_KICK, {"target": 2}, context=PLAIN)

        recent = monitor.get_recent_actions(GUILD_ID, ATTACKER_ID, ActionType.MASS_KICK)
        assert [r.metadata["target"] for r in recent] == [2]

        everything = monitor.get_recent_actions(GUILD_ID, ATTACKER_ID, ActionType.MASS_KICK, window_ms=60_000)
        assert len(everything) == 1

    @pytest.mark.asyncio
    async def test_recent_actions_explicit_window(self, monitor, clock, make_guild):
        """Test an explicit window reads records the default would exclude."""
        guild = make_guild()
        await monitor.record_action(guild, ATTACKER_ID, ActionType.CHANNEL_CREATE, context=PLAIN)
        clock.advance(seconds=30)
        await monitor.record_action(guild, ATTACKER_ID, ActionType.CHANNEL_CREATE, context=PLAIN)

        assert len(monitor.get_recent_actions(GUILD_ID, ATTACKER_ID, ActionType.CHANNEL_CREATE, 60_000)) == 2
        assert len(monitor.get_recent_actions(GUILD_ID, ATTACKER_ID, ActionType.CHANNEL_CREATE, 10_000)) == 1

    @pytest.mark.asyncio
    async def test_active_incidents_is_copy(self, ban_monitor, make_guild):
        """Test the returned incident map is a copy."""
        guild = make_guild()
        for _ in range(3):
            await ban_monitor.record_action(guild, ATTACKER_ID, ActionType.MASS_BAN, context=PLAIN)

        ban_monitor.get_active_incidents().clear()

        assert len(ban_monitor.get_active_incidents()) == 1
