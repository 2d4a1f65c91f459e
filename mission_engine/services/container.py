"""
Service Container - Dependency Injection Container

Wires the mission catalog, instance store and tracking aggregator around the
configured storage backend. The mission service is lazy-loaded on first
access.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from mission_engine.missions.aggregator import (
    InMemoryTrackingAggregator,
    PostgresTrackingAggregator,
    TrackingAggregator,
)
from mission_engine.missions.catalog import MissionCatalog
from mission_engine.missions.default_catalog import DEFAULT_MISSIONS
from mission_engine.missions.memory import InMemoryInstanceStore, InMemoryMissionCatalog
from mission_engine.missions.store import InstanceStore, PostgresInstanceStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for the mission engine.

    Infrastructure (catalog, store, aggregator) is injected; the mission
    service is lazy-loaded via a property.
    """

    catalog: object
    instance_store: InstanceStore
    aggregator: TrackingAggregator
    db: Optional[object] = None  # Database instance when backed by PostgreSQL

    _mission_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def mission_service(self):
        """Get MissionService instance (lazy-loaded)"""
        if self._mission_service is None:
            from mission_engine.services.mission_service import MissionService
            self._mission_service = MissionService(
                self.catalog,
                self.instance_store,
                self.aggregator
            )
            logger.debug("MissionService instantiated")
        return self._mission_service


def build_postgres_container(db: object) -> ServiceContainer:
    """Container over the mission_templates, user_mission_instances and tracking tables"""
    return ServiceContainer(
        catalog=MissionCatalog(),
        instance_store=PostgresInstanceStore(),
        aggregator=PostgresTrackingAggregator(),
        db=db
    )


def build_memory_container() -> ServiceContainer:
    """Container holding everything in process memory, seeded with the default missions"""
    logger.warning("Using in-memory mission store - missions are NOT persisted")
    return ServiceContainer(
        catalog=InMemoryMissionCatalog(DEFAULT_MISSIONS),
        instance_store=InMemoryInstanceStore(),
        aggregator=InMemoryTrackingAggregator()
    )


# Global container instance (initialized at API startup)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() at startup before using services."
        )
    return _container


def init_container(container: ServiceContainer) -> ServiceContainer:
    """
    Install the global service container.

    Args:
        container: Container from build_postgres_container() or build_memory_container()
    """
    global _container
    _container = container
    logger.info("Service container initialized")
    return _container


def reset_container() -> None:
    """Drop the global container (application shutdown)"""
    global _container
    _container = None
