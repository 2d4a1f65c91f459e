"""
Mission progress engine components

- progress: pure progress calculator
- catalog: mission template lookup
- aggregator: per-date tracking totals
- store: user mission instances with compare-and-swap saves
- memory: in-memory catalog and store
"""

from mission_engine.missions.progress import compute_progress
from mission_engine.missions.catalog import MissionCatalog, template_from_row
from mission_engine.missions.aggregator import (
    TrackingAggregator,
    PostgresTrackingAggregator,
    InMemoryTrackingAggregator,
    fold_values,
)
from mission_engine.missions.store import InstanceStore, PostgresInstanceStore
from mission_engine.missions.memory import InMemoryInstanceStore, InMemoryMissionCatalog

__all__ = [
    "compute_progress",
    "MissionCatalog",
    "template_from_row",
    "TrackingAggregator",
    "PostgresTrackingAggregator",
    "InMemoryTrackingAggregator",
    "fold_values",
    "InstanceStore",
    "PostgresInstanceStore",
    "InMemoryInstanceStore",
    "InMemoryMissionCatalog",
]
