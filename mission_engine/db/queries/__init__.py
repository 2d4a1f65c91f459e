"""
Database queries, grouped by table family.

Module organization:
- catalog.py: Mission templates
- instances.py: User mission instances (compare-and-swap saves)
- tracking.py: Read-only aggregates over the tracking tables
"""

from mission_engine.db.queries.catalog import (
    get_mission_template,
    list_mission_templates,
)

from mission_engine.db.queries.instances import (
    insert_instance,
    get_instance,
    find_instance,
    list_instances,
    update_instance_if_version,
    get_instance_status_counts,
)

from mission_engine.db.queries.tracking import (
    build_aggregate_query,
    get_tracking_total,
)

__all__ = [
    "get_mission_template",
    "list_mission_templates",
    "insert_instance",
    "get_instance",
    "find_instance",
    "list_instances",
    "update_instance_if_version",
    "get_instance_status_counts",
    "build_aggregate_query",
    "get_tracking_total",
]
