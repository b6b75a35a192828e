"""Unit tests for Achievement Engine (progress_engine/gamification/engine.py)"""
import json
import threading
import pytest
from unittest.mock import Mock
from pydantic import ValidationError as PydanticValidationError

from progress_engine.exceptions import StateError, ValidationError
from progress_engine.gamification.engine import AchievementEngine
from progress_engine.models.achievement import AchievementRuleBase
from progress_engine.models.activity import ActivityLogged, EngineState, MetricDelta, StepCompleted


def unlock_keys(records):
    return [(r.achievement_id, r.tier) for r in records]


# ============================================================================
# Activity Processing Tests
# ============================================================================

def test_apply_delta_unlocks_and_queues(engine, fixed_now):
    """Test a delta evaluates rules in the same step and queues the notification"""
    records = engine.apply_delta("reflections", 5)

    assert unlock_keys(records) == [("five-reflections", None)]
    assert records[0].timestamp == fixed_now
    current = engine.current_notification()
    assert current.achievement.title == "Five Reflections"
    assert current.achievement.points_awarded == 40


def test_zero_delta_produces_nothing(engine):
    """Test a zero delta does not evaluate"""
    assert engine.apply_delta("reflections", 0) == []
    assert engine.current_notification() is None


def test_complete_step(engine):
    """Test completing a step unlocks its rule"""
    assert unlock_keys(engine.complete_step("welcome")) == [("first-step", None)]
    assert engine.completed_steps == {"welcome": True}


def test_log_interaction(engine, fixed_now):
    """Test logging an interaction appends to the log and unlocks"""
    records = engine.log_interaction("meditation_practice_started", step_id="meditation")

    assert unlock_keys(records) == [("first-meditation", None)]
    assert engine.interaction_log[0].step_id == "meditation"
    assert engine.interaction_log[0].timestamp == fixed_now


def test_apply_deltas_single_pass(engine):
    """Test batch deltas unlock everything satisfied by the combined state"""
    records = engine.apply_deltas({"reflections": 5, "streak_days": 7})

    assert unlock_keys(records) == [("week-streak", None), ("five-reflections", None)]


def test_reset_metric_keeps_unlocks(engine):
    """Test resetting a metric never revokes awards"""
    engine.apply_delta("streak_days", 7)
    engine.reset_metric("streak_days")

    assert engine.get_metric("streak_days") == 0
    assert engine.get_total_points() == 75
    assert engine.get_achievement_progress("week-streak") == 100


def test_log_activity_variants(engine):
    """Test log_activity default, value and amount semantics"""
    engine.log_activity("reflections")
    engine.log_activity("reflections", {"amount": 2})
    assert engine.get_metric("reflections") == 3

    records = engine.log_activity("reflections", {"value": 5})
    assert engine.get_metric("reflections") == 5
    assert unlock_keys(records) == [("five-reflections", None)]


@pytest.mark.parametrize("event, expected", [
    (StepCompleted(step_id="welcome"), [("first-step", None)]),
    (MetricDelta(metric="energy", amount=150), [("energy-tiers", 0)]),
    (ActivityLogged(activity_type="reflections", value=5), [("five-reflections", None)]),
    ({"kind": "interaction", "interaction_type": "meditation_practice_started"}, [("first-meditation", None)]),
    ({"kind": "metric_deltas", "deltas": {"streak_days": 7}}, [("week-streak", None)]),
    ({"kind": "metric_reset", "metric": "energy"}, []),
])
def test_process_activity_dispatch(engine, event, expected):
    """Test every activity kind routes to its operation"""
    assert unlock_keys(engine.process_activity(event)) == expected


def test_process_activity_invalid_event(engine):
    """Test malformed events are rejected before anything mutates"""
    with pytest.raises(PydanticValidationError):
        engine.process_activity({"kind": "metric_delta", "metric": "energy"})

    assert engine.get_metric("energy") == 0


def test_process_activity_unsupported_type(engine):
    """Test objects that are not activity events raise TypeError"""
    with pytest.raises(TypeError):
        engine.process_activity(42)


def test_invalid_delta_raises(engine):
    """Test non-numeric delta surfaces a ValidationError"""
    with pytest.raises(ValidationError):
        engine.apply_delta("reflections", "five")


def test_duplicate_activity_never_double_awards(engine):
    """Test repeating activity after unlock does not award again"""
    engine.apply_delta("reflections", 5)
    assert engine.apply_delta("reflections", 5) == []
    assert engine.evaluate() == []
    assert engine.get_total_points() == 40
    assert len(engine.notifications) == 1


# ============================================================================
# Notification Tests
# ============================================================================

def test_dismiss_advances_in_unlock_order(engine):
    """Test notifications are shown in unlock order"""
    engine.complete_step("welcome")
    engine.apply_delta("energy", 1000)

    titles = []
    while engine.current_notification() is not None:
        titles.append(engine.dismiss().achievement.title)

    assert titles == ["First Step", "Energy (Tier 1)", "Energy (Tier 2)", "Energy (Tier 3)"]
    assert engine.dismiss() is None


def test_dismiss_does_not_affect_ledgers(engine):
    """Test dismissing notifications leaves points intact"""
    engine.apply_delta("reflections", 5)
    engine.dismiss()

    assert engine.get_total_points() == 40
    assert engine.get_overall_completion_percentage() == 16


# ============================================================================
# Listener Tests
# ============================================================================

def test_listener_receives_unlocks(engine):
    """Test listeners get every new unlock"""
    listener = Mock()
    engine.add_listener(listener)

    engine.apply_delta("energy", 600)

    assert [call.args[0].tier for call in listener.call_args_list] == [0, 1]


def test_unsubscribe(engine):
    """Test unsubscribed listeners are not called"""
    listener = Mock()
    unsubscribe = engine.add_listener(listener)
    unsubscribe()
    unsubscribe()

    engine.apply_delta("reflections", 5)

    listener.assert_not_called()


def test_failing_listener_is_isolated(engine):
    """Test one failing listener does not block others or the ledger"""
    failing = Mock(side_effect=RuntimeError("boom"))
    healthy = Mock()
    engine.add_listener(failing)
    engine.add_listener(healthy)

    records = engine.apply_delta("reflections", 5)

    assert len(records) == 1
    healthy.assert_called_once()
    assert engine.get_total_points() == 40


# ============================================================================
# Catalog Tests
# ============================================================================

def test_invalid_rule_excluded_others_evaluated(rule_definitions, fixed_clock):
    """Test catalog issues are reported while valid rules still unlock"""
    rule_definitions.append({"id": "broken", "type": "streak", "title": "Broken"})
    engine = AchievementEngine(catalog=rule_definitions, clock=fixed_clock)

    assert [issue.rule_id for issue in engine.catalog_issues] == ["broken"]
    assert unlock_keys(engine.apply_delta("reflections", 5)) == [("five-reflections", None)]


def test_bare_rule_instance_excluded_others_evaluated(rule_definitions, fixed_clock):
    """Test a rule model without a variant never reaches evaluation"""
    rule_definitions.append(AchievementRuleBase(id="bare", title="Bare"))
    engine = AchievementEngine(catalog=rule_definitions, clock=fixed_clock)

    assert [issue.rule_id for issue in engine.catalog_issues] == ["bare"]
    assert unlock_keys(engine.apply_delta("reflections", 5)) == [("five-reflections", None)]


def test_default_catalog_used_when_none_given(monkeypatch):
    """Test the engine falls back to the configured catalog"""
    from progress_engine import config
    monkeypatch.setattr(config, "ACHIEVEMENT_CATALOG_PATH", "")

    engine = AchievementEngine()

    records = engine.log_activity("reflections", {"value": 15})
    assert unlock_keys(records) == [("reflection-journey", 0), ("reflection-journey", 1)]
    assert engine.get_total_points() == 75


def test_unlocked_achievements(engine):
    """Test unlocked achievements joined with rule headers"""
    engine.apply_delta("energy", 150)
    engine.complete_step("welcome")

    unlocked = engine.unlocked_achievements()

    assert [(a.achievement_id, a.tier) for a in unlocked] == [("energy-tiers", 0), ("first-step", None)]
    assert unlocked[0].description == "Collected energy - Level 1"


# ============================================================================
# Persistence Tests
# ============================================================================

def test_export_and_rehydrate_through_json(engine, catalog, fixed_clock):
    """Test state survives a JSON round trip and keeps idempotence"""
    engine.apply_delta("energy", 600)
    engine.complete_step("a")
    engine.log_interaction("tooltip_seen")

    stored = json.loads(engine.export_state().model_dump_json())
    restored = AchievementEngine.from_state(stored, catalog=catalog, clock=fixed_clock)

    assert restored.get_metric("energy") == 600
    assert restored.completed_steps == {"a": True}
    assert restored.interaction_log[0].type == "tooltip_seen"
    assert restored.get_total_points() == 75
    assert restored.evaluate() == []

    # Next tier continues from the stored one
    assert unlock_keys(restored.apply_delta("energy", 400)) == [("energy-tiers", 2)]


def test_rehydrated_notifications_start_empty(engine, catalog):
    """Test pending notifications are not part of persisted state"""
    engine.apply_delta("reflections", 5)

    restored = AchievementEngine.from_state(engine.export_state(), catalog=catalog)

    assert restored.current_notification() is None


def test_from_state_invalid_raises(catalog):
    """Test corrupt stored state raises StateError"""
    with pytest.raises(StateError):
        AchievementEngine.from_state({"metrics": {"energy": "lots"}}, catalog=catalog)


def test_state_negative_metric_floored(catalog):
    """Test rehydrated negative metrics are clamped"""
    engine = AchievementEngine(catalog=catalog, state=EngineState(metrics={"energy": -5}))
    assert engine.get_metric("energy") == 0


# ============================================================================
# Concurrency Tests
# ============================================================================

def test_concurrent_deltas_are_serialized(engine):
    """Test parallel callers never lose updates or double award"""
    def worker():
        for _ in range(100):
            engine.apply_delta("energy", 1)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert engine.get_metric("energy") == 800
    assert [r.tier for r in engine.unlock_ledger.records()] == [0, 1]
    assert engine.get_total_points() == 75
