"""
Aggregator

Read-only derived values over the catalog, the activity ledger and the
unlock ledger: points, per-achievement progress, overall completion and
dashboard analytics. Nothing here mutates state, so every method is safe
to call on each render.

Percentages are integers in 0..100, rounded down.
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Iterable, List, Mapping, Optional
import logging
import math

from progress_engine import config
from progress_engine.gamification.activity_ledger import ActivityLedger
from progress_engine.gamification.rule_catalog import RuleCatalog
from progress_engine.gamification.rule_evaluator import completed_step_count, is_satisfied, next_tier
from progress_engine.gamification.unlock_ledger import UnlockLedger
from progress_engine.models.achievement import (
    AchievementMetrics,
    AchievementProgress,
    AchievementRuleBase,
    Number,
    RuleType,
    utcnow,
)

logger = logging.getLogger(__name__)


def percentage(current: Number, required: Number) -> int:
    """min(100, current / required * 100), floored; 0 when required <= 0"""
    if required <= 0:
        return 0
    value = math.floor(current * 100 / required)
    return max(0, min(100, value))


class Aggregator:
    """Dashboard numbers for one user's engine state"""

    def __init__(
        self,
        catalog: RuleCatalog,
        ledger: ActivityLedger,
        unlock_ledger: UnlockLedger,
        completed_steps: Mapping[str, bool],
        interaction_log: Iterable[Any],
        streak_metric: Optional[str] = None
    ):
        self.catalog = catalog
        self.ledger = ledger
        self.unlock_ledger = unlock_ledger
        self.completed_steps = completed_steps
        self.interaction_log = interaction_log
        self.streak_metric = streak_metric or config.STREAK_METRIC

    # ============================================
    # Core aggregates
    # ============================================

    def get_achievement_progress(self, achievement_id: str) -> int:
        """
        Progress toward one achievement, 0..100

        Raises:
            RuleNotFoundError: Unknown achievement id
        """
        return self._rule_progress(self.catalog.get(achievement_id))

    def get_total_points(self) -> int:
        return self.unlock_ledger.total_points()

    def get_overall_completion_percentage(self) -> int:
        """Unlocked rules over all rules; a tiered rule counts once"""
        total = len(self.catalog)
        if total == 0:
            return 0
        return percentage(self._unlocked_count(), total)

    def _unlocked_count(self) -> int:
        return sum(1 for rule in self.catalog if is_satisfied(rule, self.unlock_ledger))

    def _rule_progress(self, rule: AchievementRuleBase) -> int:
        if rule.type == "progressive_tiered":
            return self._tiered_progress(rule)

        if self.unlock_ledger.has(rule.id):
            return 100

        if rule.type == "multi_step_completion":
            return percentage(completed_step_count(rule, self.completed_steps), len(rule.required_steps))

        elif rule.type == "streak":
            return percentage(self.ledger.get(self.streak_metric), rule.streak_days)

        elif rule.type == "milestone_threshold":
            return percentage(self.ledger.get(rule.tracked_metric), rule.threshold)

        # Step and interaction rules are all-or-nothing
        return 0

    def _tiered_progress(self, rule) -> int:
        """
        Tiers awarded plus the fraction of the way to the next tier,
        over the tier count
        """
        tier = next_tier(rule, self.unlock_ledger)
        if tier >= rule.tier_count:
            return 100

        lower = rule.tier_thresholds[tier - 1] if tier > 0 else 0
        upper = rule.tier_thresholds[tier]
        value = self.ledger.get(rule.tracked_metric)
        fraction = min(1.0, max(0.0, (value - lower) / (upper - lower)))

        return percentage(tier + fraction, rule.tier_count)

    # ============================================
    # Analytics
    # ============================================

    def progress_report(self) -> List[AchievementProgress]:
        """Progress for every rule, in catalog order"""
        return [
            AchievementProgress(
                achievement_id=rule.id,
                title=rule.title,
                type=RuleType(rule.type),
                category=rule.category,
                progress=self._rule_progress(rule),
                unlocked=is_satisfied(rule, self.unlock_ledger),
            )
            for rule in self.catalog
        ]

    def get_recommendations(self, limit: int = 3, min_progress: int = 50) -> List[AchievementProgress]:
        """
        Achievements not yet unlocked that are closest to completion

        Args:
            limit: Number of recommendations to return
            min_progress: Minimum progress percentage to be recommended
        """
        candidates = [
            item for item in self.progress_report()
            if not item.unlocked and item.progress >= min_progress
        ]
        # Stable sort keeps catalog order among equal progress
        candidates.sort(key=lambda item: item.progress, reverse=True)
        return candidates[:limit]

    def calculate_growth_rate(self, timeframe_days: int = 30, now: Optional[datetime] = None) -> float:
        """Unlocks per day over the trailing timeframe"""
        if timeframe_days <= 0:
            return 0.0
        window_start = (now or utcnow()) - timedelta(days=timeframe_days)
        in_window = [r for r in self.unlock_ledger.records() if r.timestamp >= window_start]
        return len(in_window) / timeframe_days

    def generate_metrics(self) -> AchievementMetrics:
        """Complete achievement metrics for a dashboard"""
        rules = list(self.catalog)
        completed = [rule for rule in rules if is_satisfied(rule, self.unlock_ledger)]
        upcoming = self.get_recommendations(limit=3, min_progress=0)

        return AchievementMetrics(
            total_achievements=len(rules),
            completed_achievements=len(completed),
            total_points=self.get_total_points(),
            achievements_by_type=dict(Counter(rule.type for rule in rules)),
            achievements_by_category=dict(Counter(rule.category for rule in rules)),
            completion_rate=self.get_overall_completion_percentage(),
            streak_achievements=sum(1 for rule in completed if rule.type == "streak"),
            progressive_achievements=sum(1 for rule in completed if rule.type == "progressive_tiered"),
            upcoming_achievements=[item.achievement_id for item in upcoming],
        )
