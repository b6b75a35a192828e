"""
Achievement Engine

Single entry point the host application talks to. Each activity is one
atomic step:

1. apply the activity to the ledger (or steps / interaction log)
2. run one full rule evaluation pass
3. record new unlocks in the UnlockLedger and queue their notifications
4. notify listeners

All public operations hold one re-entrant lock, so a multi-threaded host
can call the engine from any thread. Nothing here performs I/O; state is
exported and rehydrated through EngineState.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union
import logging
import threading

from pydantic import ValidationError as PydanticValidationError

from progress_engine import config
from progress_engine.exceptions import StateError
from progress_engine.gamification.activity_ledger import ActivityLedger
from progress_engine.gamification.aggregator import Aggregator
from progress_engine.gamification.notification_queue import NotificationQueue
from progress_engine.gamification.progress_tracker import ProgressTracker
from progress_engine.gamification.rule_catalog import RuleCatalog, RuleDefinition, load_configured_catalog
from progress_engine.gamification.rule_evaluator import evaluate
from progress_engine.gamification.unlock_ledger import UnlockLedger
from progress_engine.models.achievement import (
    AchievementMetrics,
    AchievementProgress,
    NotificationEntry,
    Number,
    UnlockRecord,
    UnlockedAchievement,
    utcnow,
)
from progress_engine.models.activity import (
    ActivityLogged,
    EngineState,
    InteractionEvent,
    InteractionLogged,
    MetricDelta,
    MetricDeltas,
    MetricReset,
    StepCompleted,
    parse_activity_event,
)

logger = logging.getLogger(__name__)

UnlockListener = Callable[[UnlockedAchievement], None]


class AchievementEngine:
    """
    Achievement and progress rules engine for one user

    Example:
        engine = AchievementEngine(catalog=[...])
        engine.log_activity("reflections")
        entry = engine.current_notification()
        engine.dismiss()
    """

    def __init__(
        self,
        catalog: Optional[Union[RuleCatalog, Iterable[RuleDefinition]]] = None,
        state: Optional[EngineState] = None,
        clock: Optional[Callable[[], datetime]] = None,
        max_notifications: Optional[int] = None,
        user_id: Optional[str] = None
    ):
        if catalog is None:
            catalog = load_configured_catalog()
        elif not isinstance(catalog, RuleCatalog):
            catalog = RuleCatalog(catalog, strict=config.STRICT_CATALOG)

        state = state or EngineState()

        self.catalog = catalog
        self.user_id = user_id
        self._clock = clock or utcnow
        self._lock = threading.RLock()
        self._listeners: List[UnlockListener] = []

        self.ledger = ActivityLedger(state.metrics)
        self.unlock_ledger = UnlockLedger(state.unlocks)
        self.completed_steps: Dict[str, bool] = dict(state.completed_steps)
        self.interaction_log: List[InteractionEvent] = list(state.interaction_log)
        self.notifications = NotificationQueue(
            config.NOTIFICATION_QUEUE_MAX if max_notifications is None else max_notifications
        )

        # Every effective ledger mutation re-evaluates the rules
        self.tracker = ProgressTracker(self.ledger, on_change=self._run_evaluation)
        self.aggregator = Aggregator(
            self.catalog,
            self.ledger,
            self.unlock_ledger,
            self.completed_steps,
            self.interaction_log,
        )
        self._pass_unlocks: List[UnlockRecord] = []

    @property
    def catalog_issues(self) -> tuple:
        """Rules rejected at load, by id"""
        return self.catalog.issues

    # ============================================
    # Evaluation
    # ============================================

    def _run_evaluation(self) -> None:
        """One evaluation pass; new unlocks are recorded, queued and collected"""
        new_unlocks = evaluate(
            self.catalog,
            self.ledger,
            self.completed_steps,
            self.interaction_log,
            self.unlock_ledger,
            now=self._clock(),
        )
        for unlock in new_unlocks:
            if not self.unlock_ledger.record(unlock):
                continue

            rule = self.catalog.get(unlock.achievement_id)
            achievement = UnlockedAchievement.from_unlock(rule, unlock)
            self.notifications.enqueue(achievement, enqueued_at=unlock.timestamp)
            self._pass_unlocks.append(unlock)

            tier_label = f" tier {unlock.tier + 1}" if unlock.tier is not None else ""
            logger.info(
                f"User {self.user_id} unlocked achievement: {unlock.achievement_id}{tier_label} "
                f"({rule.title}) +{unlock.points_awarded} points"
            )

    def _step(self, mutate: Callable[[], Any]) -> List[UnlockRecord]:
        """Run one atomic activity step and return the unlocks it produced"""
        with self._lock:
            self._pass_unlocks = []
            mutate()
            unlocks = self._pass_unlocks
            self._pass_unlocks = []
            self._notify_listeners(unlocks)
            return unlocks

    def _notify_listeners(self, unlocks: List[UnlockRecord]) -> None:
        for unlock in unlocks:
            achievement = UnlockedAchievement.from_unlock(self.catalog.get(unlock.achievement_id), unlock)
            for listener in list(self._listeners):
                try:
                    listener(achievement)
                except Exception:
                    # Ledgers are already updated; one bad listener must not block the rest
                    logger.exception(f"Unlock listener failed for {unlock.achievement_id}")

    def evaluate(self) -> List[UnlockRecord]:
        """Re-run the rules without an activity, e.g. after rehydrating state"""
        return self._step(self._run_evaluation)

    def process_activity(self, event: Any) -> List[UnlockRecord]:
        """
        Apply one activity event and evaluate the rules once

        Args:
            event: An ActivityEvent model or the equivalent dict
                   ({'kind': 'activity_logged', 'activity_type': 'reflections'})

        Returns:
            UnlockRecords created by this activity
        """
        if isinstance(event, Mapping):
            event = parse_activity_event(dict(event))

        if isinstance(event, StepCompleted):
            return self.complete_step(event.step_id)
        elif isinstance(event, InteractionLogged):
            return self.log_interaction(event.interaction_type, event.step_id, event.timestamp)
        elif isinstance(event, MetricDelta):
            return self.apply_delta(event.metric, event.amount)
        elif isinstance(event, MetricDeltas):
            return self.apply_deltas(event.deltas)
        elif isinstance(event, MetricReset):
            return self.reset_metric(event.metric)
        elif isinstance(event, ActivityLogged):
            return self.log_activity(event.activity_type, event.detail())

        raise TypeError(f"Unsupported activity event: {type(event).__name__}")

    # ============================================
    # Inbound activity
    # ============================================

    def complete_step(self, step_id: str) -> List[UnlockRecord]:
        def mutate():
            self.completed_steps[step_id] = True
            self._run_evaluation()
        return self._step(mutate)

    def log_interaction(
        self,
        interaction_type: str,
        step_id: Optional[str] = None,
        timestamp: Optional[datetime] = None
    ) -> List[UnlockRecord]:
        event = InteractionEvent(type=interaction_type, step_id=step_id, timestamp=timestamp or self._clock())

        def mutate():
            self.interaction_log.append(event)
            self._run_evaluation()
        return self._step(mutate)

    def apply_delta(self, metric: str, amount: Number) -> List[UnlockRecord]:
        return self._step(lambda: self.tracker.apply_delta(metric, amount))

    def apply_deltas(self, deltas: Mapping[str, Number]) -> List[UnlockRecord]:
        return self._step(lambda: self.tracker.apply_deltas(deltas))

    def reset_metric(self, metric: str) -> List[UnlockRecord]:
        return self._step(lambda: self.tracker.reset_metric(metric))

    def log_activity(self, activity_type: str, detail: Optional[Mapping[str, Number]] = None) -> List[UnlockRecord]:
        return self._step(lambda: self.tracker.log_activity(activity_type, detail))

    def get_metric(self, metric: str) -> Number:
        with self._lock:
            return self.ledger.get(metric)

    # ============================================
    # Notifications
    # ============================================

    def current_notification(self) -> Optional[NotificationEntry]:
        with self._lock:
            return self.notifications.current()

    def dismiss(self) -> Optional[NotificationEntry]:
        with self._lock:
            return self.notifications.dismiss()

    def add_listener(self, listener: UnlockListener) -> Callable[[], None]:
        """
        Call listener(achievement) for every new unlock

        Returns:
            A function that unsubscribes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ============================================
    # Read-only aggregates
    # ============================================

    def get_achievement_progress(self, achievement_id: str) -> int:
        with self._lock:
            return self.aggregator.get_achievement_progress(achievement_id)

    def get_total_points(self) -> int:
        with self._lock:
            return self.aggregator.get_total_points()

    def get_overall_completion_percentage(self) -> int:
        with self._lock:
            return self.aggregator.get_overall_completion_percentage()

    def get_recommendations(self, limit: int = 3, min_progress: int = 50) -> List[AchievementProgress]:
        with self._lock:
            return self.aggregator.get_recommendations(limit=limit, min_progress=min_progress)

    def generate_metrics(self) -> AchievementMetrics:
        with self._lock:
            return self.aggregator.generate_metrics()

    def calculate_growth_rate(self, timeframe_days: int = 30) -> float:
        with self._lock:
            return self.aggregator.calculate_growth_rate(timeframe_days, now=self._clock())

    def unlocked_achievements(self) -> List[UnlockedAchievement]:
        """Every award in unlock order, joined with its rule"""
        with self._lock:
            result = []
            for record in self.unlock_ledger.records():
                rule = self.catalog.find(record.achievement_id)
                # Awards for rules since removed from the catalog still count toward points
                if rule is not None:
                    result.append(UnlockedAchievement.from_unlock(rule, record))
            return result

    # ============================================
    # Persistence boundary
    # ============================================

    def export_state(self) -> EngineState:
        with self._lock:
            return EngineState(
                metrics=self.ledger.to_dict(),
                unlocks=self.unlock_ledger.records(),
                completed_steps=dict(self.completed_steps),
                interaction_log=list(self.interaction_log),
            )

    @classmethod
    def from_state(
        cls,
        state: Union[EngineState, Mapping[str, Any]],
        catalog: Optional[Union[RuleCatalog, Iterable[RuleDefinition]]] = None,
        **kwargs
    ) -> "AchievementEngine":
        """
        Rehydrate an engine from exported state

        Raises:
            StateError: The stored state does not validate
        """
        if not isinstance(state, EngineState):
            try:
                state = EngineState.model_validate(state)
            except PydanticValidationError as e:
                raise StateError("Stored engine state is invalid", operation="from_state", cause=e)
        return cls(catalog=catalog, state=state, **kwargs)
