"""Global test fixtures and utilities for progress-engine tests"""
import pytest
from datetime import datetime, timezone

from progress_engine.gamification.activity_ledger import ActivityLedger
from progress_engine.gamification.engine import AchievementEngine
from progress_engine.gamification.rule_catalog import RuleCatalog
from progress_engine.gamification.unlock_ledger import UnlockLedger


# ============================================================================
# Clock Fixtures
# ============================================================================

@pytest.fixture
def fixed_now():
    """Fixed timestamp used for unlocks"""
    return datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock(fixed_now):
    """Clock callable returning fixed_now"""
    return lambda: fixed_now


# ============================================================================
# Catalog Fixtures
# ============================================================================

@pytest.fixture
def rule_definitions():
    """One rule of every variant"""
    return [
        {
            "id": "first-step",
            "type": "step_completion",
            "title": "First Step",
            "points": 10,
            "category": "exploration",
            "required_step": "welcome",
        },
        {
            "id": "trio",
            "type": "multi_step_completion",
            "title": "Trio",
            "points": 30,
            "category": "milestones",
            "required_steps": ["a", "b", "c"],
        },
        {
            "id": "first-meditation",
            "type": "interaction",
            "title": "First Meditation",
            "points": 20,
            "category": "exploration",
            "required_interaction": "meditation_practice_started",
        },
        {
            "id": "week-streak",
            "type": "streak",
            "title": "Week Streak",
            "points": 75,
            "category": "consistency",
            "streak_days": 7,
        },
        {
            "id": "energy-tiers",
            "type": "progressive_tiered",
            "title": "Energy",
            "description": "Collected energy",
            "category": "consistency",
            "tracked_metric": "energy",
            "tier_thresholds": [100, 500, 1000],
            "points_per_tier": [25, 50, 100],
        },
        {
            "id": "five-reflections",
            "type": "milestone_threshold",
            "title": "Five Reflections",
            "points": 40,
            "category": "milestones",
            "tracked_metric": "reflections",
            "threshold": 5,
        },
    ]


@pytest.fixture
def catalog(rule_definitions):
    """Validated catalog with one rule of every variant"""
    return RuleCatalog(rule_definitions)


@pytest.fixture
def ledger():
    """Empty activity ledger"""
    return ActivityLedger()


@pytest.fixture
def unlock_ledger():
    """Empty unlock ledger"""
    return UnlockLedger()


@pytest.fixture
def engine(catalog, fixed_clock):
    """Engine with the variant catalog, a fixed clock and unbounded notifications"""
    return AchievementEngine(catalog=catalog, clock=fixed_clock, max_notifications=0, user_id="123456789")
