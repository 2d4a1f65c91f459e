"""User mission instance database queries

Table: user_mission_instances
    UNIQUE (user_id, mission_template_id, instance_date)
    version is bumped on every successful update and guards compare-and-swap saves.
"""
import logging
from datetime import date
from typing import Optional, Sequence
from mission_engine.db.connection import db

logger = logging.getLogger(__name__)

_INSTANCE_COLUMNS = """
    id, user_id, mission_template_id, instance_date, current_value, progress_percent,
    status, notes, points_awarded, completed_at, created_at, updated_at, version
"""


async def insert_instance(user_id: str, mission_template_id: int, instance_date: date) -> Optional[dict]:
    """
    Insert a fresh active instance

    Returns:
        The new row, or None when the (user, template, date) triple is taken
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                INSERT INTO user_mission_instances
                    (user_id, mission_template_id, instance_date, current_value,
                     progress_percent, status, version)
                VALUES (%s, %s, %s, 0, 0, 'active', 1)
                ON CONFLICT (user_id, mission_template_id, instance_date) DO NOTHING
                RETURNING {_INSTANCE_COLUMNS}
                """,
                (user_id, mission_template_id, instance_date)
            )
            row = await cur.fetchone()
            await conn.commit()
            return dict(row) if row else None


async def get_instance(instance_id: int) -> Optional[dict]:
    """Get a mission instance by id"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {_INSTANCE_COLUMNS}
                FROM user_mission_instances
                WHERE id = %s
                """,
                (instance_id,)
            )
            row = await cur.fetchone()
            return dict(row) if row else None


async def find_instance(user_id: str, mission_template_id: int, instance_date: date) -> Optional[dict]:
    """Get the instance occupying a (user, template, date) triple, if any"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {_INSTANCE_COLUMNS}
                FROM user_mission_instances
                WHERE user_id = %s AND mission_template_id = %s AND instance_date = %s
                """,
                (user_id, mission_template_id, instance_date)
            )
            row = await cur.fetchone()
            return dict(row) if row else None


async def list_instances(
    user_id: str,
    instance_date: Optional[date] = None,
    statuses: Optional[Sequence[str]] = None
) -> list[dict]:
    """
    List a user's instances, newest first

    Args:
        user_id: Owner of the instances
        instance_date: Restrict to one calendar date
        statuses: Restrict to these statuses (active, completed, abandoned)
    """
    conditions = ["user_id = %s"]
    params: list = [user_id]
    if instance_date is not None:
        conditions.append("instance_date = %s")
        params.append(instance_date)
    if statuses:
        conditions.append("status = ANY(%s)")
        params.append(list(statuses))

    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {_INSTANCE_COLUMNS}
                FROM user_mission_instances
                WHERE {' AND '.join(conditions)}
                ORDER BY instance_date DESC, created_at DESC, id DESC
                """,
                tuple(params)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]


async def update_instance_if_version(instance: dict, expected_version: int) -> Optional[dict]:
    """
    Compare-and-swap update of the mutable instance fields

    Args:
        instance: Dict with current_value, progress_percent, status, notes,
            points_awarded, completed_at and id
        expected_version: Version the caller read before modifying

    Returns:
        The updated row, or None when another writer bumped the version first
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                UPDATE user_mission_instances
                SET current_value = %s,
                    progress_percent = %s,
                    status = %s,
                    notes = %s,
                    points_awarded = %s,
                    completed_at = %s,
                    updated_at = CURRENT_TIMESTAMP,
                    version = version + 1
                WHERE id = %s AND version = %s
                RETURNING {_INSTANCE_COLUMNS}
                """,
                (
                    instance['current_value'],
                    instance['progress_percent'],
                    instance['status'],
                    instance['notes'],
                    instance['points_awarded'],
                    instance['completed_at'],
                    instance['id'],
                    expected_version
                )
            )
            row = await cur.fetchone()
            await conn.commit()
            return dict(row) if row else None


async def get_instance_status_counts(user_id: str) -> list[dict]:
    """
    Count a user's instances per status

    Returns:
        [{'status': str, 'count': int, 'points': int}, ...]
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT status, COUNT(id) AS count, COALESCE(SUM(points_awarded), 0) AS points
                FROM user_mission_instances
                WHERE user_id = %s
                GROUP BY status
                """,
                (user_id,)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]
