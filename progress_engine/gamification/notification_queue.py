"""
Notification Queue

FIFO of unlocked achievements awaiting display. The head is the
"current" notification; new unlocks wait at the tail and never
pre-empt it.

EMPTY -> enqueue -> HAS_CURRENT -> dismiss (more waiting) -> HAS_CURRENT
                               -> dismiss (none waiting) -> EMPTY
"""

from collections import deque
from datetime import datetime
from typing import Deque, List, Optional
import logging

from progress_engine.models.achievement import NotificationEntry, UnlockedAchievement, utcnow

logger = logging.getLogger(__name__)


class NotificationQueue:
    """Unlock notifications in unlock order"""

    def __init__(self, max_size: int = 0):
        # 0 means unbounded
        self.max_size = max_size
        self._entries: Deque[NotificationEntry] = deque()

    def enqueue(self, achievement: UnlockedAchievement, enqueued_at: Optional[datetime] = None) -> NotificationEntry:
        entry = NotificationEntry(achievement=achievement, enqueued_at=enqueued_at or utcnow())
        self._entries.append(entry)

        if self.max_size and len(self._entries) > self.max_size:
            # Drop the oldest waiting entry, never the one on screen
            dropped = self._entries[1]
            del self._entries[1]
            logger.warning(
                f"Notification queue full ({self.max_size}); dropped "
                f"{dropped.achievement.achievement_id}"
            )
        return entry

    def current(self) -> Optional[NotificationEntry]:
        return self._entries[0] if self._entries else None

    def dismiss(self) -> Optional[NotificationEntry]:
        """Remove the current notification; the next one becomes current"""
        if not self._entries:
            return None
        return self._entries.popleft()

    def is_empty(self) -> bool:
        return not self._entries

    def pending(self) -> List[NotificationEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
