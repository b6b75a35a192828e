"""
Rule Evaluator

Decides which achievements are newly satisfied by the current state.

Per rule, in catalog order:
- already-awarded rules are skipped (tiered rules once every tier is awarded)
- step / multi-step / interaction / streak / milestone rules emit one record
- progressive tiered rules emit one record per newly crossed tier, in
  increasing tier order, so a large jump can award several tiers at once

All threshold comparisons are inclusive. A metric missing from the
ledger reads as 0. The evaluator only reads state; recording the
returned unlocks is the caller's job.
"""

from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional
import logging

from progress_engine import config
from progress_engine.gamification.activity_ledger import ActivityLedger
from progress_engine.gamification.rule_catalog import RuleCatalog
from progress_engine.gamification.unlock_ledger import UnlockLedger
from progress_engine.models.achievement import (
    AchievementRuleBase,
    InteractionRule,
    MilestoneThresholdRule,
    MultiStepCompletionRule,
    ProgressiveTieredRule,
    StepCompletionRule,
    StreakRule,
    UnlockRecord,
    utcnow,
)

logger = logging.getLogger(__name__)


def evaluate(
    catalog: RuleCatalog,
    ledger: ActivityLedger,
    completed_steps: Mapping[str, bool],
    interaction_log: Iterable[Any],
    unlock_ledger: UnlockLedger,
    now: Optional[datetime] = None,
    streak_metric: Optional[str] = None
) -> List[UnlockRecord]:
    """
    Evaluate every catalog rule against the current state

    Args:
        catalog: Validated rules
        ledger: Current metric values
        completed_steps: {step_id: completed}
        interaction_log: InteractionEvent objects (or dicts with a 'type' key)
        unlock_ledger: Awards made so far
        now: Timestamp for the returned records (defaults to utcnow)
        streak_metric: Metric read by streak rules (defaults to config.STREAK_METRIC)

    Returns:
        New UnlockRecords in catalog order, tiers ascending
    """
    timestamp = now or utcnow()
    streak_metric = streak_metric or config.STREAK_METRIC
    interaction_types = {_event_type(event) for event in interaction_log}

    new_unlocks: List[UnlockRecord] = []

    for rule in catalog:
        if rule.type == "progressive_tiered":
            new_unlocks.extend(_check_tiers(rule, ledger, unlock_ledger, timestamp))
            continue

        # Skip if already unlocked
        if unlock_ledger.has(rule.id):
            continue

        is_unlocked = False

        if rule.type == "step_completion":
            is_unlocked = _check_step(rule, completed_steps)

        elif rule.type == "multi_step_completion":
            is_unlocked = _check_multi_step(rule, completed_steps)

        elif rule.type == "interaction":
            is_unlocked = _check_interaction(rule, interaction_types)

        elif rule.type == "streak":
            is_unlocked = _check_streak(rule, ledger, streak_metric)

        elif rule.type == "milestone_threshold":
            is_unlocked = _check_milestone(rule, ledger)

        if is_unlocked:
            new_unlocks.append(
                UnlockRecord(
                    achievement_id=rule.id,
                    tier=None,
                    timestamp=timestamp,
                    points_awarded=rule.points,
                )
            )

    return new_unlocks


# ============================================
# Helper Functions for Rule Variants
# ============================================

def _event_type(event: Any) -> Optional[str]:
    if isinstance(event, Mapping):
        return event.get("type")
    return getattr(event, "type", None)


def _check_step(rule: StepCompletionRule, completed_steps: Mapping[str, bool]) -> bool:
    return completed_steps.get(rule.required_step) is True


def completed_step_count(rule: MultiStepCompletionRule, completed_steps: Mapping[str, bool]) -> int:
    return sum(1 for step in rule.required_steps if completed_steps.get(step) is True)


def _check_multi_step(rule: MultiStepCompletionRule, completed_steps: Mapping[str, bool]) -> bool:
    """Only a full set unlocks; partial ratios are for display"""
    return completed_step_count(rule, completed_steps) == len(rule.required_steps)


def _check_interaction(rule: InteractionRule, interaction_types: set) -> bool:
    return rule.required_interaction in interaction_types


def _check_streak(rule: StreakRule, ledger: ActivityLedger, streak_metric: str) -> bool:
    return ledger.get(streak_metric) >= rule.streak_days


def _check_milestone(rule: MilestoneThresholdRule, ledger: ActivityLedger) -> bool:
    return ledger.get(rule.tracked_metric) >= rule.threshold


def next_tier(rule: ProgressiveTieredRule, unlock_ledger: UnlockLedger) -> int:
    """Index of the first tier not yet awarded (tier_count when all are)"""
    highest = unlock_ledger.highest_tier(rule.id)
    return 0 if highest is None else highest + 1


def _check_tiers(
    rule: ProgressiveTieredRule,
    ledger: ActivityLedger,
    unlock_ledger: UnlockLedger,
    timestamp: datetime
) -> List[UnlockRecord]:
    """Award every crossed tier above the highest one already awarded"""
    tier = next_tier(rule, unlock_ledger)
    if tier >= rule.tier_count:
        return []

    value = ledger.get(rule.tracked_metric)
    unlocks = []
    while tier < rule.tier_count and value >= rule.tier_thresholds[tier]:
        unlocks.append(
            UnlockRecord(
                achievement_id=rule.id,
                tier=tier,
                timestamp=timestamp,
                points_awarded=rule.points_per_tier[tier],
            )
        )
        tier += 1

    if len(unlocks) > 1:
        logger.debug(f"{rule.id}: {len(unlocks)} tiers crossed in one update")
    return unlocks


def is_satisfied(rule: AchievementRuleBase, unlock_ledger: UnlockLedger) -> bool:
    """True once a rule has been awarded (any tier for tiered rules)"""
    return unlock_ledger.has_any(rule.id)
