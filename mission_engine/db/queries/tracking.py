"""Read-only tracking aggregate queries

Tracking tables belong to the tracking subsystem; every table is expected to
carry user_id, a calendar date column and a created-at timestamp.
"""
import logging
from datetime import date
from psycopg import sql
from mission_engine.db.connection import db
from mission_engine.models.mission import AggregationFunction, TrackingBinding

logger = logging.getLogger(__name__)


def build_aggregate_query(binding: TrackingBinding) -> sql.Composed:
    """Compose the aggregate SELECT for a binding with quoted identifiers"""
    table = sql.Identifier(binding.source_table)
    column = sql.Identifier(binding.aggregation_column)
    date_column = sql.Identifier(binding.date_column)
    function = binding.aggregation_function

    if function is AggregationFunction.SUM:
        return sql.SQL(
            "SELECT COALESCE(SUM({column}), 0) AS total FROM {table} "
            "WHERE user_id = %s AND {date_column} = %s"
        ).format(column=column, table=table, date_column=date_column)
    elif function is AggregationFunction.MAX:
        return sql.SQL(
            "SELECT COALESCE(MAX({column}), 0) AS total FROM {table} "
            "WHERE user_id = %s AND {date_column} = %s"
        ).format(column=column, table=table, date_column=date_column)
    elif function is AggregationFunction.LATEST:
        return sql.SQL(
            "SELECT {column} AS total FROM {table} "
            "WHERE user_id = %s AND {date_column} = %s AND {column} IS NOT NULL "
            "ORDER BY {recorded_at} DESC LIMIT 1"
        ).format(
            column=column,
            table=table,
            date_column=date_column,
            recorded_at=sql.Identifier(binding.recorded_at_column),
        )
    raise ValueError(f"Unsupported aggregation function: {function}")


async def get_tracking_total(user_id: str, tracking_date: date, binding: TrackingBinding) -> float:
    """
    Aggregate one metric for a user's calendar date

    Returns:
        The total, 0 when no rows were recorded
    """
    query = build_aggregate_query(binding)
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, (user_id, tracking_date))
            row = await cur.fetchone()

    if not row or row['total'] is None:
        return 0.0
    return float(row['total'])
