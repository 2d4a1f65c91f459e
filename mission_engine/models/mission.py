"""Mission catalog and user mission instance models"""
from enum import Enum
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, Field


class MissionCategory(str, Enum):
    """Mission catalog categories"""
    HEALTH_TRACKING = "health_tracking"
    FITNESS = "fitness"
    NUTRITION = "nutrition"
    MENTAL_HEALTH = "mental_health"


class MissionType(str, Enum):
    """How often a mission is meant to be repeated"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ONE_TIME = "one_time"


class MissionDifficulty(str, Enum):
    """Mission difficulty, used for catalog ordering"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


DIFFICULTY_ORDER = {
    MissionDifficulty.EASY: 0,
    MissionDifficulty.MEDIUM: 1,
    MissionDifficulty.HARD: 2,
}


class MissionStatus(str, Enum):
    """User mission instance status"""
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self is not MissionStatus.ACTIVE


class AggregationFunction(str, Enum):
    """How tracking rows for one day fold into a single total"""
    SUM = "SUM"
    MAX = "MAX"
    LATEST = "LATEST"


class MetricKey(str, Enum):
    """Trackable metrics a mission can be bound to"""
    WATER_ML = "WATER_ML"
    WATER_GLASSES = "WATER_GLASSES"
    STEPS = "STEPS"
    EXERCISE_MINUTES = "EXERCISE_MINUTES"
    SLEEP_HOURS = "SLEEP_HOURS"
    MEAL_COUNT = "MEAL_COUNT"
    FRUIT_SERVINGS = "FRUIT_SERVINGS"
    VEGETABLE_SERVINGS = "VEGETABLE_SERVINGS"
    MOOD_SCORE = "MOOD_SCORE"


class MetricSource(BaseModel):
    """Where a metric lives in the tracking store"""
    source_table: str
    aggregation_column: str
    aggregation_function: AggregationFunction
    date_column: str = "tracking_date"
    recorded_at_column: str = "created_at"


# Every metric maps to exactly one tracking table/column. Adding a metric
# means adding an enum member and an entry here.
METRIC_SOURCES: dict[MetricKey, MetricSource] = {
    MetricKey.WATER_ML: MetricSource(
        source_table="water_tracking",
        aggregation_column="amount_ml",
        aggregation_function=AggregationFunction.SUM,
    ),
    MetricKey.WATER_GLASSES: MetricSource(
        source_table="water_tracking",
        aggregation_column="glasses",
        aggregation_function=AggregationFunction.SUM,
    ),
    MetricKey.STEPS: MetricSource(
        source_table="fitness_tracking",
        aggregation_column="steps",
        aggregation_function=AggregationFunction.SUM,
    ),
    MetricKey.EXERCISE_MINUTES: MetricSource(
        source_table="fitness_tracking",
        aggregation_column="duration_minutes",
        aggregation_function=AggregationFunction.SUM,
    ),
    MetricKey.SLEEP_HOURS: MetricSource(
        source_table="sleep_tracking",
        aggregation_column="total_sleep_hours",
        aggregation_function=AggregationFunction.MAX,
    ),
    MetricKey.MEAL_COUNT: MetricSource(
        source_table="meal_tracking",
        aggregation_column="meal_count",
        aggregation_function=AggregationFunction.SUM,
    ),
    MetricKey.FRUIT_SERVINGS: MetricSource(
        source_table="meal_tracking",
        aggregation_column="fruit_servings",
        aggregation_function=AggregationFunction.SUM,
    ),
    MetricKey.VEGETABLE_SERVINGS: MetricSource(
        source_table="meal_tracking",
        aggregation_column="vegetable_servings",
        aggregation_function=AggregationFunction.SUM,
    ),
    MetricKey.MOOD_SCORE: MetricSource(
        source_table="mood_tracking",
        aggregation_column="mood_score",
        aggregation_function=AggregationFunction.LATEST,
    ),
}


class TrackingBinding(BaseModel):
    """Declarative link from a mission template to the metric that satisfies it"""
    metric_key: MetricKey
    source_table: str
    aggregation_column: str
    aggregation_function: AggregationFunction
    date_column: str = "tracking_date"
    recorded_at_column: str = "created_at"

    @classmethod
    def for_metric(
        cls,
        metric_key: MetricKey,
        aggregation_function: Optional[AggregationFunction] = None
    ) -> "TrackingBinding":
        """Build the canonical binding for a metric, optionally overriding the fold"""
        source = METRIC_SOURCES[metric_key]
        return cls(
            metric_key=metric_key,
            source_table=source.source_table,
            aggregation_column=source.aggregation_column,
            aggregation_function=aggregation_function or source.aggregation_function,
            date_column=source.date_column,
            recorded_at_column=source.recorded_at_column,
        )

    @property
    def snapshot_key(self) -> tuple:
        """Bindings with equal keys read the same aggregate"""
        return (self.source_table, self.aggregation_column, self.aggregation_function)


class MissionTemplate(BaseModel):
    """Catalog definition of a repeatable goal"""
    id: int
    title: str
    description: Optional[str] = None
    category: MissionCategory
    sub_category: MetricKey
    unit: str
    target_value: float
    points: int = 0
    tracking_binding: TrackingBinding
    mission_type: MissionType = MissionType.DAILY
    difficulty: MissionDifficulty = MissionDifficulty.EASY
    icon: Optional[str] = None
    color: Optional[str] = None
    is_active: bool = True

    model_config = {"frozen": True}


class UserMissionInstance(BaseModel):
    """A single user's attempt at a mission template on one calendar date"""
    id: int
    user_id: str
    mission_template_id: int
    instance_date: date
    current_value: float = 0
    progress_percent: int = 0
    status: MissionStatus = MissionStatus.ACTIVE
    notes: Optional[str] = None
    points_awarded: Optional[int] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 1


class MissionStats(BaseModel):
    """Per-user mission totals"""
    user_id: str
    total_missions: int = 0
    completed_missions: int = 0
    total_points: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)


class UserMissionDetail(BaseModel):
    """Instance joined with the template fields the mission screens render"""
    instance: UserMissionInstance
    mission: MissionTemplate
