"""Unit tests for Notification Queue (progress_engine/gamification/notification_queue.py)"""
import pytest

from progress_engine.gamification.notification_queue import NotificationQueue
from progress_engine.models.achievement import UnlockedAchievement


def make_achievement(achievement_id, fixed_now):
    return UnlockedAchievement(
        achievement_id=achievement_id,
        type="step_completion",
        title=achievement_id.upper(),
        description="",
        category="general",
        points_awarded=10,
        unlocked_at=fixed_now,
    )


@pytest.fixture
def queue():
    return NotificationQueue()


def test_empty_queue(queue):
    """Test EMPTY state"""
    assert queue.is_empty()
    assert queue.current() is None
    assert queue.dismiss() is None
    assert len(queue) == 0


def test_current_does_not_remove(queue, fixed_now):
    """Test current() peeks at the head"""
    queue.enqueue(make_achievement("x", fixed_now))

    assert queue.current().achievement.achievement_id == "x"
    assert queue.current().achievement.achievement_id == "x"
    assert len(queue) == 1


def test_dismiss_promotes_next(queue, fixed_now):
    """Test enqueue X then Y; dismiss moves Y to current"""
    queue.enqueue(make_achievement("x", fixed_now))
    queue.enqueue(make_achievement("y", fixed_now))

    assert queue.current().achievement.achievement_id == "x"
    assert queue.dismiss().achievement.achievement_id == "x"
    assert queue.current().achievement.achievement_id == "y"
    queue.dismiss()
    assert queue.is_empty()


def test_fifo_order(queue, fixed_now):
    """Test A, B, C come out as A, B, C"""
    for achievement_id in ["a", "b", "c"]:
        queue.enqueue(make_achievement(achievement_id, fixed_now))

    dismissed = []
    while not queue.is_empty():
        dismissed.append(queue.dismiss().achievement.achievement_id)

    assert dismissed == ["a", "b", "c"]


def test_new_entry_does_not_preempt_current(queue, fixed_now):
    """Test arrivals while one is displayed wait at the tail"""
    queue.enqueue(make_achievement("shown", fixed_now))
    queue.enqueue(make_achievement("later", fixed_now))

    assert queue.current().achievement.achievement_id == "shown"
    assert [e.achievement.achievement_id for e in queue.pending()] == ["shown", "later"]


def test_max_size_drops_oldest_waiting(fixed_now):
    """Test a bounded queue keeps the current entry and drops the oldest waiting one"""
    queue = NotificationQueue(max_size=2)
    for achievement_id in ["a", "b", "c"]:
        queue.enqueue(make_achievement(achievement_id, fixed_now))

    assert [e.achievement.achievement_id for e in queue.pending()] == ["a", "c"]


def test_enqueued_at_recorded(queue, fixed_now):
    """Test explicit enqueue timestamps are kept"""
    entry = queue.enqueue(make_achievement("x", fixed_now), enqueued_at=fixed_now)
    assert entry.enqueued_at == fixed_now
