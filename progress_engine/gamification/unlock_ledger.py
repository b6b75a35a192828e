"""
Unlock Ledger

The idempotence boundary: one UnlockRecord per (achievement_id, tier).
Anything that credits points must go through record().
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from pydantic import ValidationError as PydanticValidationError

from progress_engine.exceptions import StateError
from progress_engine.models.achievement import UnlockRecord

logger = logging.getLogger(__name__)

UnlockKey = Tuple[str, Optional[int]]


class UnlockLedger:
    """Every award made to one user, in award order"""

    def __init__(self, records: Optional[Iterable[UnlockRecord]] = None):
        self._records: List[UnlockRecord] = []
        self._keys: set[UnlockKey] = set()
        self._tiers: Dict[str, List[int]] = {}
        for record in records or []:
            self.record(record)

    def record(self, unlock: UnlockRecord) -> bool:
        """
        Store an unlock

        Returns:
            True if stored, False if (achievement_id, tier) was already present
        """
        if unlock.key in self._keys:
            logger.debug(f"Ignored duplicate unlock {unlock.key}")
            return False

        self._records.append(unlock)
        self._keys.add(unlock.key)
        if unlock.tier is not None:
            self._tiers.setdefault(unlock.achievement_id, []).append(unlock.tier)
        return True

    def has(self, achievement_id: str, tier: Optional[int] = None) -> bool:
        return (achievement_id, tier) in self._keys

    def has_any(self, achievement_id: str) -> bool:
        """True if the achievement was awarded at all, tiered or not"""
        return self.has(achievement_id) or bool(self._tiers.get(achievement_id))

    def tiers_awarded(self, achievement_id: str) -> int:
        return len(self._tiers.get(achievement_id, []))

    def highest_tier(self, achievement_id: str) -> Optional[int]:
        tiers = self._tiers.get(achievement_id)
        return max(tiers) if tiers else None

    def total_points(self) -> int:
        return sum(record.points_awarded for record in self._records)

    def records(self) -> List[UnlockRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def to_dict(self) -> List[Dict[str, Any]]:
        return [record.model_dump(mode="json") for record in self._records]

    @classmethod
    def from_dict(cls, data: Iterable[Dict[str, Any]]) -> "UnlockLedger":
        try:
            records = [UnlockRecord.model_validate(item) for item in data]
        except PydanticValidationError as e:
            raise StateError("Stored unlock records are invalid", operation="load_unlocks", cause=e)
        return cls(records)
