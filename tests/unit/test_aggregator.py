"""Unit tests for the tracking aggregator"""
import pytest
from datetime import date, datetime
from unittest.mock import AsyncMock, patch

import psycopg
from psycopg import sql

from mission_engine.db.queries.tracking import build_aggregate_query
from mission_engine.exceptions import StoreUnavailableError
from mission_engine.missions.aggregator import (
    InMemoryTrackingAggregator,
    PostgresTrackingAggregator,
    fold_values,
)
from mission_engine.models.mission import AggregationFunction, MetricKey, TrackingBinding


DAY = date(2025, 8, 22)


# ============================================================================
# fold_values
# ============================================================================

ROWS = [
    (datetime(2025, 8, 22, 8, 0), 3),
    (datetime(2025, 8, 22, 20, 0), 2),
    (datetime(2025, 8, 22, 12, 0), 4),
]


def test_fold_sum():
    assert fold_values(AggregationFunction.SUM, ROWS) == 9.0


def test_fold_max():
    assert fold_values(AggregationFunction.MAX, ROWS) == 4.0


def test_fold_latest_uses_recorded_at_not_row_order():
    """The most recently recorded value wins"""
    assert fold_values(AggregationFunction.LATEST, ROWS) == 2.0


@pytest.mark.parametrize("function", list(AggregationFunction))
def test_fold_empty_is_zero(function):
    assert fold_values(function, []) == 0.0


def test_fold_skips_missing_values():
    rows = [(datetime(2025, 8, 22, 9, 0), 5), (datetime(2025, 8, 22, 10, 0), None)]
    assert fold_values(AggregationFunction.LATEST, rows) == 5.0
    assert fold_values(AggregationFunction.SUM, rows) == 5.0


# ============================================================================
# InMemoryTrackingAggregator
# ============================================================================

@pytest.mark.asyncio
async def test_in_memory_sums_per_user_and_date():
    aggregator = InMemoryTrackingAggregator()
    aggregator.record("water_tracking", "u1", DAY, {"glasses": 3, "amount_ml": 750})
    aggregator.record("water_tracking", "u1", DAY, {"glasses": 2, "amount_ml": 500})
    aggregator.record("water_tracking", "u1", date(2025, 8, 21), {"glasses": 9})
    aggregator.record("water_tracking", "u2", DAY, {"glasses": 9})

    glasses = TrackingBinding.for_metric(MetricKey.WATER_GLASSES)
    ml = TrackingBinding.for_metric(MetricKey.WATER_ML)

    assert await aggregator.aggregate("u1", DAY, glasses) == 5.0
    assert await aggregator.aggregate("u1", DAY, ml) == 1250.0


@pytest.mark.asyncio
async def test_in_memory_sleep_takes_max():
    aggregator = InMemoryTrackingAggregator()
    aggregator.record("sleep_tracking", "u1", DAY, {"total_sleep_hours": 6.5})
    aggregator.record("sleep_tracking", "u1", DAY, {"total_sleep_hours": 7.25})

    binding = TrackingBinding.for_metric(MetricKey.SLEEP_HOURS)
    assert await aggregator.aggregate("u1", DAY, binding) == 7.25


@pytest.mark.asyncio
async def test_in_memory_nothing_recorded_is_zero():
    aggregator = InMemoryTrackingAggregator()
    binding = TrackingBinding.for_metric(MetricKey.STEPS)
    assert await aggregator.aggregate("u1", DAY, binding) == 0.0


# ============================================================================
# snapshot
# ============================================================================

@pytest.mark.asyncio
async def test_snapshot_aggregates_each_binding_once():
    """Templates sharing a metric read one aggregate"""
    aggregator = InMemoryTrackingAggregator()
    aggregator.record("water_tracking", "u1", DAY, {"glasses": 6})
    glasses = TrackingBinding.for_metric(MetricKey.WATER_GLASSES)
    steps = TrackingBinding.for_metric(MetricKey.STEPS)

    with patch.object(aggregator, "aggregate", wraps=aggregator.aggregate) as spy:
        totals = await aggregator.snapshot("u1", DAY, [glasses, glasses, steps])

    assert spy.await_count == 2
    assert totals == {glasses.snapshot_key: 6.0, steps.snapshot_key: 0.0}


def test_overridden_function_is_a_distinct_snapshot_key():
    default = TrackingBinding.for_metric(MetricKey.WATER_GLASSES)
    maxed = TrackingBinding.for_metric(MetricKey.WATER_GLASSES, AggregationFunction.MAX)

    assert maxed.aggregation_function is AggregationFunction.MAX
    assert default.snapshot_key != maxed.snapshot_key


# ============================================================================
# PostgresTrackingAggregator
# ============================================================================

@pytest.mark.asyncio
@patch('mission_engine.missions.aggregator.queries')
async def test_postgres_aggregate_reads_tracking_total(mock_queries):
    mock_queries.get_tracking_total = AsyncMock(return_value=4200.0)
    binding = TrackingBinding.for_metric(MetricKey.STEPS)

    total = await PostgresTrackingAggregator().aggregate("u1", DAY, binding)

    assert total == 4200.0
    mock_queries.get_tracking_total.assert_awaited_once_with("u1", DAY, binding)


@pytest.mark.asyncio
@patch('mission_engine.missions.aggregator.queries')
async def test_postgres_aggregate_wraps_connection_errors(mock_queries):
    mock_queries.get_tracking_total = AsyncMock(side_effect=psycopg.OperationalError("server closed"))
    binding = TrackingBinding.for_metric(MetricKey.STEPS)

    with pytest.raises(StoreUnavailableError):
        await PostgresTrackingAggregator().aggregate("u1", DAY, binding)


@pytest.mark.parametrize("metric", list(MetricKey))
def test_every_metric_composes_an_aggregate_query(metric):
    query = build_aggregate_query(TrackingBinding.for_metric(metric))
    assert isinstance(query, sql.Composed)
