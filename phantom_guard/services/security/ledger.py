"""
Phantom Guard - Action Ledger
=============================

Per-guild, per-actor, per-action-type log of recent actions.

DESIGN:
    Buckets are keyed by (guild_id, actor_id, action_type) and hold
    ActionRecords oldest first. Pruning is lazy: a bucket is only trimmed
    to its window when it is read through prune(). Every append also caps
    the bucket at max_entries so action types without a threshold cannot
    grow without bound. The owner sizes max_entries to at least the largest
    threshold count. Empty buckets are dropped.

Author: Phantom Guard Team
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .constants import MAX_TRACKED_ACTIONS
from .models import ActionRecord, BucketKey


class ActionLedger:
    """In-memory action buckets."""

    def __init__(self, max_entries: int = MAX_TRACKED_ACTIONS) -> None:
        self.max_entries = max_entries
        self._buckets: Dict[BucketKey, List[ActionRecord]] = {}

    def __len__(self) -> int:
        return len(self._buckets)

    def append(self, key: BucketKey, record: ActionRecord) -> int:
        """Append a record and return the bucket size."""
        bucket = self._buckets.setdefault(key, [])
        bucket.append(record)
        if len(bucket) > self.max_entries:
            del bucket[:len(bucket) - self.max_entries]
        return len(bucket)

    def prune(self, key: BucketKey, window_ms: int, now: datetime) -> List[ActionRecord]:
        """
        Drop records older than the window and return what remains.

        A record is kept when timestamp >= now - window_ms.
        """
        bucket = self._buckets.get(key)
        if not bucket:
            return []

        cutoff = now - timedelta(milliseconds=window_ms)
        kept = [r for r in bucket if r.timestamp >= cutoff]
        if kept:
            self._buckets[key] = kept
        else:
            del self._buckets[key]
        return list(kept)

    def recent(self, key: BucketKey, window_ms: Optional[int], now: datetime) -> List[ActionRecord]:
        """Records inside the window, without mutating the bucket."""
        bucket = self._buckets.get(key, [])
        if window_ms is None:
            return list(bucket)
        cutoff = now - timedelta(milliseconds=window_ms)
        return [r for r in bucket if r.timestamp >= cutoff]

    def snapshot(self, key: BucketKey) -> List[ActionRecord]:
        return list(self._buckets.get(key, []))

    def size(self, key: BucketKey) -> int:
        return len(self._buckets.get(key, []))

    def clear(self, key: BucketKey) -> None:
        self._buckets.pop(key, None)


__all__ = ["ActionLedger"]
