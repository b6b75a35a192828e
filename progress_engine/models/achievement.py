"""Achievement models for gamification"""
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

Number = Union[int, float]


def _check_positive(v: Number) -> Number:
    if v <= 0:
        raise ValueError("must be greater than 0")
    return v


PositiveNumber = Annotated[Number, AfterValidator(_check_positive)]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RuleType(str, Enum):
    """Achievement rule variants"""
    STEP_COMPLETION = "step_completion"
    MULTI_STEP_COMPLETION = "multi_step_completion"
    INTERACTION = "interaction"
    STREAK = "streak"
    PROGRESSIVE_TIERED = "progressive_tiered"
    MILESTONE_THRESHOLD = "milestone_threshold"


class AchievementRuleBase(BaseModel):
    """Header shared by every achievement definition"""
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    points: int = Field(0, ge=0)
    category: str = "general"

    @property
    def is_tiered(self) -> bool:
        return False


class StepCompletionRule(AchievementRuleBase):
    """Unlocks once a named step is complete"""
    type: Literal["step_completion"] = "step_completion"
    required_step: str = Field(..., min_length=1)


class MultiStepCompletionRule(AchievementRuleBase):
    """Unlocks once every listed step is complete"""
    type: Literal["multi_step_completion"] = "multi_step_completion"
    required_steps: tuple[str, ...] = Field(..., min_length=1)

    @field_validator("required_steps")
    @classmethod
    def steps_unique(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if len(set(v)) != len(v):
            raise ValueError("required_steps must not contain duplicates")
        if any(not step for step in v):
            raise ValueError("required_steps cannot contain empty step names")
        return v


class InteractionRule(AchievementRuleBase):
    """Unlocks once a matching interaction has been logged"""
    type: Literal["interaction"] = "interaction"
    required_interaction: str = Field(..., min_length=1)


class StreakRule(AchievementRuleBase):
    """Unlocks once the day-streak metric reaches streak_days"""
    type: Literal["streak"] = "streak"
    streak_days: int = Field(..., ge=1)


class ProgressiveTieredRule(AchievementRuleBase):
    """
    Achievement with ordered tiers over a single metric

    Each tier is awarded once, in increasing order. Tier indexes are zero-based.
    """
    type: Literal["progressive_tiered"] = "progressive_tiered"
    tracked_metric: str = Field(..., min_length=1)
    tier_thresholds: tuple[PositiveNumber, ...] = Field(..., min_length=1)
    points_per_tier: tuple[Annotated[int, Field(ge=0)], ...] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_tiers(self) -> "ProgressiveTieredRule":
        if len(self.tier_thresholds) != len(self.points_per_tier):
            raise ValueError(
                f"tier_thresholds ({len(self.tier_thresholds)}) and "
                f"points_per_tier ({len(self.points_per_tier)}) must be the same length"
            )
        for lower, upper in zip(self.tier_thresholds, self.tier_thresholds[1:]):
            if upper <= lower:
                raise ValueError("tier_thresholds must be strictly increasing")
        return self

    @property
    def is_tiered(self) -> bool:
        return True

    @property
    def tier_count(self) -> int:
        return len(self.tier_thresholds)


class MilestoneThresholdRule(AchievementRuleBase):
    """Unlocks once a metric crosses a threshold; awarded exactly once"""
    type: Literal["milestone_threshold"] = "milestone_threshold"
    tracked_metric: str = Field(..., min_length=1)
    threshold: PositiveNumber


AchievementRule = Annotated[
    Union[
        StepCompletionRule,
        MultiStepCompletionRule,
        InteractionRule,
        StreakRule,
        ProgressiveTieredRule,
        MilestoneThresholdRule,
    ],
    Field(discriminator="type"),
]

rule_adapter: TypeAdapter = TypeAdapter(AchievementRule)

RULE_CLASSES = (
    StepCompletionRule,
    MultiStepCompletionRule,
    InteractionRule,
    StreakRule,
    ProgressiveTieredRule,
    MilestoneThresholdRule,
)


class UnlockRecord(BaseModel):
    """A single award: one per (achievement_id, tier)"""
    model_config = ConfigDict(frozen=True)

    achievement_id: str
    tier: Optional[int] = Field(None, ge=0)
    timestamp: datetime = Field(default_factory=utcnow)
    points_awarded: int = Field(0, ge=0)

    @property
    def key(self) -> tuple[str, Optional[int]]:
        return (self.achievement_id, self.tier)


class UnlockedAchievement(BaseModel):
    """Rule header joined with its unlock, as handed to the UI"""
    model_config = ConfigDict(frozen=True)

    achievement_id: str
    type: RuleType
    title: str
    description: str
    category: str
    tier: Optional[int] = None
    points_awarded: int
    unlocked_at: datetime

    @classmethod
    def from_unlock(cls, rule: AchievementRuleBase, record: UnlockRecord) -> "UnlockedAchievement":
        title = rule.title
        description = rule.description
        if record.tier is not None:
            # Tiers are displayed one-based
            title = f"{rule.title} (Tier {record.tier + 1})"
            description = f"{rule.description} - Level {record.tier + 1}" if rule.description else description
        return cls(
            achievement_id=rule.id,
            type=RuleType(rule.type),
            title=title,
            description=description,
            category=rule.category,
            tier=record.tier,
            points_awarded=record.points_awarded,
            unlocked_at=record.timestamp,
        )


class NotificationEntry(BaseModel):
    """Unlocked achievement waiting in the notification queue"""
    model_config = ConfigDict(frozen=True)

    achievement: UnlockedAchievement
    enqueued_at: datetime = Field(default_factory=utcnow)


class CatalogIssue(BaseModel):
    """A rule rejected at catalog load"""
    model_config = ConfigDict(frozen=True)

    rule_id: Optional[str] = None
    index: int
    reason: str


class AchievementProgress(BaseModel):
    """Per-achievement progress for dashboards"""
    achievement_id: str
    title: str
    type: RuleType
    category: str
    progress: int = Field(..., ge=0, le=100)
    unlocked: bool


class AchievementMetrics(BaseModel):
    """Analytics summary for dashboards"""
    total_achievements: int
    completed_achievements: int
    total_points: int
    achievements_by_type: dict[str, int]
    achievements_by_category: dict[str, int]
    completion_rate: int
    streak_achievements: int
    progressive_achievements: int
    upcoming_achievements: list[str]
