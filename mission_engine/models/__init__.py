"""Data models for the mission engine"""
from mission_engine.models.mission import (
    AggregationFunction,
    MetricKey,
    MetricSource,
    METRIC_SOURCES,
    MissionCategory,
    MissionDifficulty,
    MissionStats,
    MissionStatus,
    MissionTemplate,
    MissionType,
    TrackingBinding,
    UserMissionDetail,
    UserMissionInstance,
)

__all__ = [
    "AggregationFunction",
    "MetricKey",
    "MetricSource",
    "METRIC_SOURCES",
    "MissionCategory",
    "MissionDifficulty",
    "MissionStats",
    "MissionStatus",
    "MissionTemplate",
    "MissionType",
    "TrackingBinding",
    "UserMissionDetail",
    "UserMissionInstance",
]
