"""
Phantom Guard - Threshold Evaluator
===================================

Compares an already-pruned action count against the threshold table.

Author: Phantom Guard Team
"""

from typing import List, Mapping, Optional

from .constants import DEFAULT_THRESHOLDS
from .models import ActionType, Threshold


class ThresholdEvaluator:
    """Read-only view over a threshold table."""

    def __init__(self, thresholds: Optional[Mapping[ActionType, Threshold]] = None) -> None:
        table = DEFAULT_THRESHOLDS if thresholds is None else thresholds
        self._thresholds = dict(table)

    def __len__(self) -> int:
        return len(self._thresholds)

    def get(self, action_type: ActionType) -> Optional[Threshold]:
        return self._thresholds.get(action_type)

    def window_ms(self, action_type: ActionType) -> Optional[int]:
        threshold = self._thresholds.get(action_type)
        return threshold.time_window_ms if threshold else None

    def all(self) -> List[Threshold]:
        return list(self._thresholds.values())

    def max_count(self) -> int:
        """Largest count any threshold needs to see in one bucket."""
        return max((t.count for t in self._thresholds.values()), default=0)

    def breached(self, action_type: ActionType, recent_count: int) -> bool:
        """True when recent_count reaches the threshold count."""
        threshold = self._thresholds.get(action_type)
        if threshold is None:
            return False
        return recent_count >= threshold.count


__all__ = ["ThresholdEvaluator"]
