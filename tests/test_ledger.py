"""
Phantom Guard - Action Ledger Tests
===================================

Sliding-window bucket behavior.
"""

from phantom_guard.services.security.ledger import ActionLedger
from phantom_guard.services.security.models import ActionRecord, ActionType


KEY = (1, 2, ActionType.MASS_BAN)


class TestAppend:
    """Tests for appending records."""

    def test_append_returns_size(self, clock):
        """Test append returns the bucket size."""
        ledger = ActionLedger()
        assert ledger.append(KEY, ActionRecord(clock())) == 1
        assert ledger.append(KEY, ActionRecord(clock())) == 2

    def test_buckets_are_independent(self, clock):
        """Test different keys never share records."""
        ledger = ActionLedger()
        ledger.append(KEY, ActionRecord(clock()))
        ledger.append((1, 3, ActionType.MASS_BAN), ActionRecord(clock()))
        ledger.append((1, 2, ActionType.MASS_KICK), ActionRecord(clock()))

        assert ledger.size(KEY) == 1
        assert len(ledger) == 3

    def test_cap_drops_oldest(self, clock):
        """Test buckets are capped with oldest records dropped first."""
        ledger = ActionLedger(max_entries=3)
        for i in range(5):
            ledger.append(KEY, ActionRecord(clock.advance(ms=1), {"i": i}))

        assert [r.metadata["i"] for r in ledger.snapshot(KEY)] == [2, 3, 4]


class TestPrune:
    """Tests for window pruning."""

    def test_prune_drops_records_outside_window(self, clock):
        """Test t0, t0+W/2, t0+W+1 read at t0+W+1 keeps the last two."""
        window = 10_000
        ledger = ActionLedger()
        t0 = clock()

        ledger.append(KEY, ActionRecord(t0, {"n": 0}))
        ledger.append(KEY, ActionRecord(clock.advance(ms=window // 2), {"n": 1}))
        ledger.append(KEY, ActionRecord(clock.advance(ms=window // 2 + 1), {"n": 2}))

        kept = ledger.prune(KEY, window, clock())

        assert [r.metadata["n"] for r in kept] == [1, 2]
        assert ledger.size(KEY) == 2

    def test_record_exactly_at_window_edge_is_kept(self, clock):
        """Test a record at now - window is still inside the window."""
        ledger = ActionLedger()
        ledger.append(KEY, ActionRecord(clock()))
        clock.advance(ms=5000)

        assert len(ledger.prune(KEY, 5000, clock())) == 1

    def test_prune_removes_empty_bucket(self, clock):
        """Test a fully expired bucket is removed."""
        ledger = ActionLedger()
        ledger.append(KEY, ActionRecord(clock()))
        clock.advance(seconds=60)

        assert ledger.prune(KEY, 1000, clock()) == []
        assert len(ledger) == 0

    def test_prune_unknown_key(self, clock):
        """Test pruning a missing bucket returns nothing."""
        assert ActionLedger().prune(KEY, 1000, clock()) == []


class TestRecent:
    """Tests for non-mutating reads."""

    def test_recent_does_not_mutate(self, clock):
        """Test recent filters without touching the bucket."""
        ledger = ActionLedger()
        ledger.append(KEY, ActionRecord(clock()))
        ledger.append(KEY, ActionRecord(clock.advance(seconds=30)))

        assert len(ledger.recent(KEY, 1000, clock())) == 1
        assert ledger.size(KEY) == 2

    def test_recent_without_window_returns_everything(self, clock):
        """Test a None window returns all stored records."""
        ledger = ActionLedger()
        ledger.append(KEY, ActionRecord(clock()))
        ledger.append(KEY, ActionRecord(clock.advance(seconds=3600)))

        assert len(ledger.recent(KEY, None, clock())) == 2

    def test_clear(self, clock):
        """Test clear empties a bucket."""
        ledger = ActionLedger()
        ledger.append(KEY, ActionRecord(clock()))
        ledger.clear(KEY)
        ledger.clear(KEY)

        assert ledger.size(KEY) == 0
