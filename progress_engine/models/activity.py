"""Activity event models"""
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from progress_engine.models.achievement import Number, UnlockRecord, utcnow


class InteractionEvent(BaseModel):
    """Entry in the externally owned interaction log"""
    model_config = ConfigDict(frozen=True)

    type: str = Field(..., min_length=1)
    step_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)


class _Activity(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class StepCompleted(_Activity):
    kind: Literal["step_completed"] = "step_completed"
    step_id: str = Field(..., min_length=1)


class InteractionLogged(_Activity):
    kind: Literal["interaction"] = "interaction"
    interaction_type: str = Field(..., min_length=1)
    step_id: Optional[str] = None
    timestamp: Optional[datetime] = None


class MetricDelta(_Activity):
    kind: Literal["metric_delta"] = "metric_delta"
    metric: str = Field(..., min_length=1)
    amount: Number


class MetricDeltas(_Activity):
    kind: Literal["metric_deltas"] = "metric_deltas"
    deltas: dict[str, Number]


class MetricReset(_Activity):
    kind: Literal["metric_reset"] = "metric_reset"
    metric: str = Field(..., min_length=1)


class ActivityLogged(_Activity):
    """
    Domain activity such as "user submitted a reflection"

    value sets the metric absolutely, amount increments it, neither means +1.
    """
    kind: Literal["activity_logged"] = "activity_logged"
    activity_type: str = Field(..., min_length=1)
    value: Optional[Number] = None
    amount: Optional[Number] = None

    @model_validator(mode="after")
    def value_or_amount(self) -> "ActivityLogged":
        if self.value is not None and self.amount is not None:
            raise ValueError("Provide either value or amount, not both")
        return self

    def detail(self) -> Optional[dict]:
        if self.value is not None:
            return {"value": self.value}
        if self.amount is not None:
            return {"amount": self.amount}
        return None


ActivityEvent = Annotated[
    Union[StepCompleted, InteractionLogged, MetricDelta, MetricDeltas, MetricReset, ActivityLogged],
    Field(discriminator="kind"),
]

activity_event_adapter: TypeAdapter = TypeAdapter(ActivityEvent)


def parse_activity_event(data: dict):
    """Validate a plain dict into one of the ActivityEvent variants"""
    return activity_event_adapter.validate_python(data)


class EngineState(BaseModel):
    """Everything the host needs to persist between sessions"""
    version: int = 1
    metrics: dict[str, Number] = Field(default_factory=dict)
    unlocks: list[UnlockRecord] = Field(default_factory=list)
    completed_steps: dict[str, bool] = Field(default_factory=dict)
    interaction_log: list[InteractionEvent] = Field(default_factory=list)
