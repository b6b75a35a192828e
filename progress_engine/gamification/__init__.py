"""
Achievement & progress rules engine

This module implements:
- Activity ledger and progress tracking (non-negative metrics)
- Declarative achievement rules (steps, interactions, streaks, tiers, milestones)
- Idempotent unlock ledger and FIFO unlock notifications
- Progress, points and analytics aggregates
"""

from progress_engine.gamification.activity_ledger import ActivityLedger
from progress_engine.gamification.aggregator import Aggregator
from progress_engine.gamification.engine import AchievementEngine
from progress_engine.gamification.notification_queue import NotificationQueue
from progress_engine.gamification.progress_tracker import ProgressTracker
from progress_engine.gamification.rule_catalog import RuleCatalog, load_catalog_file, load_configured_catalog
from progress_engine.gamification.rule_evaluator import evaluate
from progress_engine.gamification.unlock_ledger import UnlockLedger

__all__ = [
    "AchievementEngine",
    "ActivityLedger",
    "Aggregator",
    "NotificationQueue",
    "ProgressTracker",
    "RuleCatalog",
    "UnlockLedger",
    "evaluate",
    "load_catalog_file",
    "load_configured_catalog",
]
