"""
Activity Ledger

In-memory map from metric name to a non-negative counter
(reflections, meditation_minutes, streak_days, total_energy_points, ...).

Readers use get()/snapshot(). Writes go through the ProgressTracker,
which is the only caller of set_value().
"""

from typing import Dict, Iterator, Mapping, Optional
import logging

from progress_engine.models.achievement import Number

logger = logging.getLogger(__name__)


class ActivityLedger:
    """Named non-negative metric counters for one user"""

    def __init__(self, initial: Optional[Mapping[str, Number]] = None):
        self._metrics: Dict[str, Number] = {}
        for name, value in (initial or {}).items():
            # Rehydrated values obey the same floor as live ones
            self._metrics[name] = max(0, value)

    def get(self, metric: str) -> Number:
        """Current value; unknown metrics read as 0"""
        return self._metrics.get(metric, 0)

    def snapshot(self) -> Dict[str, Number]:
        return dict(self._metrics)

    def set_value(self, metric: str, value: Number) -> None:
        """
        Store a metric value, floored at 0

        Written by the ProgressTracker; other code should treat the ledger
        as read-only so every change is followed by an evaluation pass.
        """
        self._metrics[metric] = max(0, value)

    def __contains__(self, metric: str) -> bool:
        return metric in self._metrics

    def __iter__(self) -> Iterator[str]:
        return iter(self._metrics)

    def __len__(self) -> int:
        return len(self._metrics)

    def to_dict(self) -> Dict[str, Number]:
        return self.snapshot()

    @classmethod
    def from_dict(cls, data: Mapping[str, Number]) -> "ActivityLedger":
        return cls(data)
