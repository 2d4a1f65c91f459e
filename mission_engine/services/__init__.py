"""
Service Layer Package

Business logic between the HTTP layer and the stores.

- MissionService: mission lifecycle (accept, progress updates, abandon),
  the tracking hook and mission read models
- ServiceContainer: wires catalog, instance store and aggregator
"""

from mission_engine.services.container import (
    ServiceContainer,
    build_memory_container,
    build_postgres_container,
    get_container,
    init_container,
    reset_container,
)
from mission_engine.services.mission_service import MissionService

__all__ = [
    "ServiceContainer",
    "build_memory_container",
    "build_postgres_container",
    "get_container",
    "init_container",
    "reset_container",
    "MissionService",
]
