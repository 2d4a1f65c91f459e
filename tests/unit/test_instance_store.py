"""Unit tests for the user mission instance stores"""
import pytest
from datetime import date, datetime
from unittest.mock import AsyncMock, patch

import psycopg

from mission_engine.exceptions import (
    ConflictError,
    RecordNotFoundError,
    StaleWriteError,
    StoreUnavailableError,
)
from mission_engine.missions.memory import InMemoryInstanceStore
from mission_engine.missions.store import PostgresInstanceStore
from mission_engine.models.mission import MissionStatus, UserMissionInstance


DAY = date(2025, 8, 22)


# ============================================================================
# InMemoryInstanceStore
# ============================================================================

@pytest.mark.asyncio
async def test_create_starts_active_at_zero():
    store = InMemoryInstanceStore()
    instance = await store.create("u1", 1, DAY)

    assert instance.status is MissionStatus.ACTIVE
    assert instance.current_value == 0
    assert instance.progress_percent == 0
    assert instance.points_awarded is None
    assert instance.version == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [MissionStatus.ACTIVE, MissionStatus.COMPLETED, MissionStatus.ABANDONED])
async def test_create_conflicts_whatever_the_existing_status(status):
    store = InMemoryInstanceStore()
    existing = await store.create("u1", 1, DAY)
    if status is not MissionStatus.ACTIVE:
        await store.save(existing.model_copy(update={"status": status}))

    with pytest.raises(ConflictError) as exc_info:
        await store.create("u1", 1, DAY)

    assert exc_info.value.existing_status == status.value
    assert exc_info.value.existing_instance_id == existing.id


@pytest.mark.asyncio
async def test_triple_is_per_user_template_and_date():
    store = InMemoryInstanceStore()
    first = await store.create("u1", 1, DAY)
    others = [
        await store.create("u2", 1, DAY),
        await store.create("u1", 2, DAY),
        await store.create("u1", 1, date(2025, 8, 23)),
    ]

    assert len({first.id, *(i.id for i in others)}) == 4


@pytest.mark.asyncio
async def test_save_bumps_version():
    store = InMemoryInstanceStore()
    instance = await store.create("u1", 1, DAY)

    saved = await store.save(instance.model_copy(update={"current_value": 3, "progress_percent": 38}))

    assert saved.version == 2
    assert saved.current_value == 3
    assert (await store.get(instance.id)).progress_percent == 38


@pytest.mark.asyncio
async def test_save_from_stale_read_is_rejected():
    store = InMemoryInstanceStore()
    instance = await store.create("u1", 1, DAY)
    first_reader = await store.get(instance.id)
    second_reader = await store.get(instance.id)

    await store.save(first_reader.model_copy(update={"current_value": 5}))

    with pytest.raises(StaleWriteError):
        await store.save(second_reader.model_copy(update={"current_value": 3}))
    assert (await store.get(instance.id)).current_value == 5


@pytest.mark.asyncio
async def test_returned_instances_are_copies():
    store = InMemoryInstanceStore()
    instance = await store.create("u1", 1, DAY)
    instance.current_value = 99

    assert (await store.get(instance.id)).current_value == 0


@pytest.mark.asyncio
async def test_get_unknown_raises_not_found():
    with pytest.raises(RecordNotFoundError):
        await InMemoryInstanceStore().get(404)


@pytest.mark.asyncio
async def test_list_for_user_filters_and_orders():
    store = InMemoryInstanceStore()
    older = await store.create("u1", 1, date(2025, 8, 21))
    newer = await store.create("u1", 1, DAY)
    abandoned = await store.create("u1", 2, DAY)
    await store.save(abandoned.model_copy(update={"status": MissionStatus.ABANDONED}))
    await store.create("u2", 1, DAY)

    everything = await store.list_for_user("u1")
    assert [i.id for i in everything] == [abandoned.id, newer.id, older.id]

    active_today = await store.list_for_user("u1", instance_date=DAY, statuses=[MissionStatus.ACTIVE])
    assert [i.id for i in active_today] == [newer.id]

    assert [i.id for i in await store.list_by_user_and_date("u1", date(2025, 8, 21))] == [older.id]


@pytest.mark.asyncio
async def test_stats_count_points_of_completed_only():
    store = InMemoryInstanceStore()
    done = await store.create("u1", 1, DAY)
    await store.save(done.model_copy(update={"status": MissionStatus.COMPLETED, "points_awarded": 15}))
    await store.create("u1", 2, DAY)
    await store.create("u2", 1, DAY)

    stats = await store.stats("u1")

    assert stats.total_missions == 2
    assert stats.completed_missions == 1
    assert stats.total_points == 15
    assert stats.by_status == {"completed": 1, "active": 1}


# ============================================================================
# PostgresInstanceStore
# ============================================================================

def _row(**overrides):
    row = {
        "id": 11,
        "user_id": "u1",
        "mission_template_id": 1,
        "instance_date": DAY,
        "current_value": 0,
        "progress_percent": 0,
        "status": "active",
        "notes": None,
        "points_awarded": None,
        "completed_at": None,
        "created_at": datetime(2025, 8, 22, 7, 0),
        "updated_at": datetime(2025, 8, 22, 7, 0),
        "version": 1,
    }
    row.update(overrides)
    return row


def _instance(**overrides):
    return UserMissionInstance(**_row(**overrides))


@pytest.mark.asyncio
@patch('mission_engine.missions.store.queries')
async def test_postgres_create(mock_queries):
    mock_queries.insert_instance = AsyncMock(return_value=_row())

    instance = await PostgresInstanceStore().create("u1", 1, DAY)

    assert instance.id == 11
    assert instance.status is MissionStatus.ACTIVE
    mock_queries.insert_instance.assert_awaited_once_with("u1", 1, DAY)


@pytest.mark.asyncio
@patch('mission_engine.missions.store.queries')
async def test_postgres_create_conflict_reports_existing(mock_queries):
    mock_queries.insert_instance = AsyncMock(return_value=None)
    mock_queries.find_instance = AsyncMock(return_value=_row(status="completed", points_awarded=15))

    with pytest.raises(ConflictError) as exc_info:
        await PostgresInstanceStore().create("u1", 1, DAY)

    assert exc_info.value.existing_status == "completed"
    assert exc_info.value.existing_instance_id == 11


@pytest.mark.asyncio
@patch('mission_engine.missions.store.queries')
async def test_postgres_save_passes_expected_version(mock_queries):
    mock_queries.update_instance_if_version = AsyncMock(return_value=_row(current_value=3, version=2))
    store = PostgresInstanceStore()

    saved = await store.save(_instance(current_value=3))

    payload, expected_version = mock_queries.update_instance_if_version.await_args.args
    assert expected_version == 1
    assert payload["status"] == "active"
    assert saved.version == 2


@pytest.mark.asyncio
@patch('mission_engine.missions.store.queries')
async def test_postgres_save_stale(mock_queries):
    mock_queries.update_instance_if_version = AsyncMock(return_value=None)
    mock_queries.get_instance = AsyncMock(return_value=_row(version=2))

    with pytest.raises(StaleWriteError):
        await PostgresInstanceStore().save(_instance())


@pytest.mark.asyncio
@patch('mission_engine.missions.store.queries')
async def test_postgres_save_vanished(mock_queries):
    mock_queries.update_instance_if_version = AsyncMock(return_value=None)
    mock_queries.get_instance = AsyncMock(return_value=None)

    with pytest.raises(RecordNotFoundError):
        await PostgresInstanceStore().save(_instance())


@pytest.mark.asyncio
@patch('mission_engine.missions.store.queries')
async def test_postgres_connection_failure_is_unavailable(mock_queries):
    mock_queries.get_instance = AsyncMock(side_effect=psycopg.OperationalError("connection refused"))

    with pytest.raises(StoreUnavailableError):
        await PostgresInstanceStore().get(11)


@pytest.mark.asyncio
@patch('mission_engine.missions.store.queries')
async def test_postgres_list_passes_status_values(mock_queries):
    mock_queries.list_instances = AsyncMock(return_value=[_row()])

    instances = await PostgresInstanceStore().list_for_user("u1", DAY, [MissionStatus.ACTIVE])

    assert len(instances) == 1
    mock_queries.list_instances.assert_awaited_once_with("u1", instance_date=DAY, statuses=["active"])


@pytest.mark.asyncio
@patch('mission_engine.missions.store.queries')
async def test_postgres_stats(mock_queries):
    mock_queries.get_instance_status_counts = AsyncMock(return_value=[
        {"status": "completed", "count": 3, "points": 45},
        {"status": "abandoned", "count": 1, "points": 0},
    ])

    stats = await PostgresInstanceStore().stats("u1")

    assert stats.total_missions == 4
    assert stats.completed_missions == 3
    assert stats.total_points == 45


@pytest.mark.asyncio
async def test_find_returns_instance_occupying_triple():
    store = InMemoryInstanceStore()
    created = await store.create("u1", 1, DAY)

    assert (await store.find("u1", 1, DAY)).id == created.id
    assert await store.find("u1", 1, date(2025, 8, 23)) is None


@pytest.mark.asyncio
@patch('mission_engine.missions.store.queries')
async def test_postgres_create_conflict_looks_up_through_find(mock_queries):
    mock_queries.insert_instance = AsyncMock(return_value=None)
    store = PostgresInstanceStore()

    with patch.object(store, "find", AsyncMock(return_value=_instance(status="abandoned"))) as mock_find:
        with pytest.raises(ConflictError) as exc_info:
            await store.create("u1", 1, DAY)

    mock_find.assert_awaited_once_with("u1", 1, DAY)
    assert exc_info.value.existing_status == "abandoned"


@pytest.mark.asyncio
@patch('mission_engine.missions.store.queries')
async def test_postgres_create_conflict_row_vanished(mock_queries):
    mock_queries.insert_instance = AsyncMock(return_value=None)
    mock_queries.find_instance = AsyncMock(return_value=None)

    with pytest.raises(ConflictError) as exc_info:
        await PostgresInstanceStore().create("u1", 1, DAY)

    assert exc_info.value.existing_status is None


@pytest.mark.asyncio
@patch('mission_engine.missions.store.queries')
async def test_postgres_create_lookup_outage_is_unavailable(mock_queries):
    mock_queries.insert_instance = AsyncMock(return_value=None)
    mock_queries.find_instance = AsyncMock(side_effect=psycopg.OperationalError("connection lost"))

    with pytest.raises(StoreUnavailableError):
        await PostgresInstanceStore().create("u1", 1, DAY)
