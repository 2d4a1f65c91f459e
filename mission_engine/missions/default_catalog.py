"""
Default Mission Library

Templates served by the in-memory catalog when no mission_templates table is
available (local development, demos).
"""

from typing import List

from mission_engine.models.mission import (
    MetricKey,
    MissionCategory,
    MissionDifficulty,
    MissionTemplate,
    MissionType,
    TrackingBinding,
)


def _template(id: int, metric_key: MetricKey, **fields) -> MissionTemplate:
    return MissionTemplate(
        id=id,
        sub_category=metric_key,
        tracking_binding=TrackingBinding.for_metric(metric_key),
        mission_type=MissionType.DAILY,
        **fields
    )


DEFAULT_MISSIONS: List[MissionTemplate] = [
    # ========== HEALTH TRACKING ==========
    _template(
        1, MetricKey.WATER_GLASSES,
        title="Drink 8 Glasses of Water",
        description="Drink at least 8 glasses of plain water every day",
        category=MissionCategory.HEALTH_TRACKING,
        unit="glasses",
        target_value=8,
        points=15,
        icon="water-drop",
        color="#4FC3F7",
        difficulty=MissionDifficulty.EASY,
    ),
    _template(
        2, MetricKey.WATER_ML,
        title="Drink 2 Liters of Water",
        description="Reach 2000 ml of water intake today",
        category=MissionCategory.HEALTH_TRACKING,
        unit="ml",
        target_value=2000,
        points=10,
        icon="water-drop",
        color="#29B6F6",
        difficulty=MissionDifficulty.EASY,
    ),
    _template(
        3, MetricKey.SLEEP_HOURS,
        title="Sleep 8 Hours",
        description="Sleep at least 8 hours for proper rest",
        category=MissionCategory.HEALTH_TRACKING,
        unit="hours",
        target_value=8,
        points=20,
        icon="bed",
        color="#9C27B0",
        difficulty=MissionDifficulty.MEDIUM,
    ),

    # ========== FITNESS ==========
    _template(
        4, MetricKey.STEPS,
        title="Walk 10,000 Steps",
        description="Walk at least 10,000 steps today",
        category=MissionCategory.FITNESS,
        unit="steps",
        target_value=10000,
        points=25,
        icon="walk",
        color="#4CAF50",
        difficulty=MissionDifficulty.MEDIUM,
    ),
    _template(
        5, MetricKey.EXERCISE_MINUTES,
        title="Exercise 30 Minutes",
        description="Work out for at least 30 minutes today",
        category=MissionCategory.FITNESS,
        unit="minutes",
        target_value=30,
        points=20,
        icon="dumbbell",
        color="#FF5722",
        difficulty=MissionDifficulty.MEDIUM,
    ),

    # ========== NUTRITION ==========
    _template(
        6, MetricKey.FRUIT_SERVINGS,
        title="Eat 3 Servings of Fruit",
        description="Have at least 3 servings of fruit today",
        category=MissionCategory.NUTRITION,
        unit="servings",
        target_value=3,
        points=20,
        icon="fruit",
        color="#FF9800",
        difficulty=MissionDifficulty.EASY,
    ),
    _template(
        7, MetricKey.VEGETABLE_SERVINGS,
        title="Eat 4 Servings of Vegetables",
        description="Have at least 4 servings of vegetables today",
        category=MissionCategory.NUTRITION,
        unit="servings",
        target_value=4,
        points=25,
        icon="leaf",
        color="#8BC34A",
        difficulty=MissionDifficulty.MEDIUM,
    ),

    # ========== MENTAL HEALTH ==========
    _template(
        8, MetricKey.MOOD_SCORE,
        title="Check In With Your Mood",
        description="Log how you feel today",
        category=MissionCategory.MENTAL_HEALTH,
        unit="score",
        target_value=1,
        points=10,
        icon="emoticon",
        color="#FFC107",
        difficulty=MissionDifficulty.EASY,
    ),
]
