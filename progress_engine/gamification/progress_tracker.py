"""
Progress Tracker

Applies deltas to the ActivityLedger.

Rules:
- new value = max(0, current + amount); negative results clamp to 0
- a zero delta is a no-op: no mutation and no re-evaluation
- apply_deltas() mutates every metric first, then re-evaluates once
- every effective mutation is followed by the on_change callback,
  which the engine wires to a rule evaluation pass
"""

from numbers import Real
from typing import Callable, Dict, Mapping, Optional
import logging
import math

from progress_engine.exceptions import ValidationError
from progress_engine.gamification.activity_ledger import ActivityLedger
from progress_engine.models.achievement import Number

logger = logging.getLogger(__name__)


def _check_amount(metric: str, amount) -> None:
    if not metric:
        raise ValidationError("Metric name cannot be empty", field="metric", value=metric)
    # bool is a Real subclass but never a meaningful delta
    if isinstance(amount, bool) or not isinstance(amount, Real):
        raise ValidationError("Delta must be a number", field="amount", value=amount)
    if not math.isfinite(amount):
        raise ValidationError("Delta must be a finite number", field="amount", value=amount)


class ProgressTracker:
    """Mutates an ActivityLedger and signals after each effective change"""

    def __init__(
        self,
        ledger: ActivityLedger,
        on_change: Optional[Callable[[], None]] = None
    ):
        self.ledger = ledger
        self._on_change = on_change

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def _apply(self, metric: str, amount: Number) -> Number:
        current = self.ledger.get(metric)
        new_value = max(0, current + amount)
        self.ledger.set_value(metric, new_value)
        if current + amount < 0:
            logger.debug(f"Clamped {metric} at 0 (delta {amount} from {current})")
        else:
            logger.debug(f"{metric}: {current} -> {new_value}")
        return new_value

    def apply_delta(self, metric: str, amount: Number) -> Number:
        """
        Add amount to a metric

        Returns:
            The metric's value after the update
        """
        _check_amount(metric, amount)
        if amount == 0:
            return self.ledger.get(metric)

        new_value = self._apply(metric, amount)
        self._changed()
        return new_value

    def reset_metric(self, metric: str) -> None:
        """Set a metric to 0 unconditionally"""
        if not metric:
            raise ValidationError("Metric name cannot be empty", field="metric", value=metric)
        self.ledger.set_value(metric, 0)
        logger.debug(f"Reset {metric}")
        self._changed()

    def apply_deltas(self, deltas: Mapping[str, Number]) -> Dict[str, Number]:
        """
        Apply several deltas as one logical update

        All inputs are validated before anything is mutated, and on_change
        fires once after the last delta.

        Returns:
            {metric: new_value} for every metric that actually changed
        """
        for metric, amount in deltas.items():
            _check_amount(metric, amount)

        updated = {
            metric: self._apply(metric, amount)
            for metric, amount in deltas.items()
            if amount != 0
        }
        if updated:
            self._changed()
        return updated

    def log_activity(self, activity_type: str, detail: Optional[Mapping[str, Number]] = None) -> Number:
        """
        Record a domain activity against the metric of the same name

        Args:
            activity_type: Metric name ('reflections', 'meditation_minutes', ...)
            detail: {'value': n} sets the metric to n,
                    {'amount': n} adds n,
                    otherwise the metric is incremented by 1

        Returns:
            The metric's value after the update
        """
        detail = detail or {}
        if detail.get("value") is not None:
            value = detail["value"]
            _check_amount(activity_type, value)
            amount = value - self.ledger.get(activity_type)
        elif detail.get("amount") is not None:
            amount = detail["amount"]
        else:
            amount = 1

        return self.apply_delta(activity_type, amount)
