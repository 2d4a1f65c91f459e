"""Tests for the service container"""
import pytest

from mission_engine.missions.aggregator import InMemoryTrackingAggregator, PostgresTrackingAggregator
from mission_engine.missions.catalog import MissionCatalog
from mission_engine.missions.memory import InMemoryInstanceStore, InMemoryMissionCatalog
from mission_engine.missions.store import PostgresInstanceStore
from mission_engine.services.container import (
    build_memory_container,
    build_postgres_container,
    get_container,
    init_container,
    reset_container,
)
from mission_engine.services.mission_service import MissionService


@pytest.fixture(autouse=True)
def clean_container():
    reset_container()
    yield
    reset_container()


def test_get_container_before_init():
    with pytest.raises(RuntimeError, match="not initialized"):
        get_container()


@pytest.mark.asyncio
async def test_memory_container_is_seeded():
    container = init_container(build_memory_container())

    assert get_container() is container
    assert container.db is None
    assert isinstance(container.catalog, InMemoryMissionCatalog)
    assert isinstance(container.instance_store, InMemoryInstanceStore)
    assert isinstance(container.aggregator, InMemoryTrackingAggregator)
    assert await container.catalog.list_active()


def test_postgres_container_wiring():
    sentinel_db = object()
    container = build_postgres_container(sentinel_db)

    assert container.db is sentinel_db
    assert isinstance(container.catalog, MissionCatalog)
    assert isinstance(container.instance_store, PostgresInstanceStore)
    assert isinstance(container.aggregator, PostgresTrackingAggregator)


def test_mission_service_is_lazy_singleton():
    container = build_memory_container()

    service = container.mission_service

    assert isinstance(service, MissionService)
    assert container.mission_service is service
    assert service.store is container.instance_store
