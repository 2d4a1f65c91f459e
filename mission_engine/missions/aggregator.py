"""
Tracking Aggregator

Reads raw tracking records for a user's calendar date and folds them into a
single total per tracking binding. Read-only: the tracking tables belong to
the tracking subsystem.

Mood scores arrive on several scales across the tracking endpoints; callers
must record normalized scores before a MOOD_SCORE mission reads them.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Iterable, Dict, List, Optional, Tuple

from mission_engine.db import queries
from mission_engine.exceptions import wrap_external_exception
from mission_engine.models.mission import AggregationFunction, TrackingBinding

logger = logging.getLogger(__name__)


class TrackingAggregator(ABC):
    """Base aggregator: one total per (user, date, binding)"""

    @abstractmethod
    async def aggregate(self, user_id: str, tracking_date: date, binding: TrackingBinding) -> float:
        """Total for the binding's metric on that date; 0 when nothing was recorded"""

    async def snapshot(
        self,
        user_id: str,
        tracking_date: date,
        bindings: Iterable[TrackingBinding]
    ) -> Dict[tuple, float]:
        """
        Aggregate each distinct binding exactly once

        Returns:
            {binding.snapshot_key: total}
        """
        totals: Dict[tuple, float] = {}
        for binding in bindings:
            if binding.snapshot_key in totals:
                continue
            totals[binding.snapshot_key] = await self.aggregate(user_id, tracking_date, binding)
        return totals


class PostgresTrackingAggregator(TrackingAggregator):
    """Aggregates straight from the tracking tables"""

    async def aggregate(self, user_id: str, tracking_date: date, binding: TrackingBinding) -> float:
        try:
            total = await queries.get_tracking_total(user_id, tracking_date, binding)
        except Exception as e:
            raise wrap_external_exception(
                e,
                operation="aggregate_tracking",
                user_id=user_id,
                context={"metric_key": binding.metric_key.value, "date": tracking_date.isoformat()}
            )
        logger.debug(
            f"Aggregated {binding.aggregation_function.value}({binding.source_table}."
            f"{binding.aggregation_column}) for user {user_id} on {tracking_date}: {total}"
        )
        return total


def fold_values(function: AggregationFunction, rows: List[Tuple[datetime, float]]) -> float:
    """
    Fold (recorded_at, value) pairs the way the SQL aggregator does

    Args:
        function: SUM, MAX or LATEST
        rows: Tracking values with their recording time, any order
    """
    values = [(recorded_at, value) for recorded_at, value in rows if value is not None]
    if not values:
        return 0.0

    if function is AggregationFunction.SUM:
        return float(sum(value for _, value in values))
    elif function is AggregationFunction.MAX:
        return float(max(value for _, value in values))
    elif function is AggregationFunction.LATEST:
        return float(max(values, key=lambda pair: pair[0])[1])
    raise ValueError(f"Unsupported aggregation function: {function}")


class InMemoryTrackingAggregator(TrackingAggregator):
    """
    Aggregator over tracking rows held in process memory.

    Used by tests and local development where no tracking database exists.
    """

    def __init__(self):
        # (table, user_id, date) -> list of row dicts
        self._rows: Dict[tuple, List[dict]] = {}

    def record(
        self,
        source_table: str,
        user_id: str,
        tracking_date: date,
        values: dict,
        recorded_at: Optional[datetime] = None
    ) -> None:
        """Store a tracking row (the tracking subsystem's write, simulated)"""
        row = dict(values)
        row["_recorded_at"] = recorded_at or datetime.utcnow()
        self._rows.setdefault((source_table, user_id, tracking_date), []).append(row)

    async def aggregate(self, user_id: str, tracking_date: date, binding: TrackingBinding) -> float:
        rows = self._rows.get((binding.source_table, user_id, tracking_date), [])
        pairs = [
            (row["_recorded_at"], row.get(binding.aggregation_column))
            for row in rows
        ]
        return fold_values(binding.aggregation_function, pairs)
