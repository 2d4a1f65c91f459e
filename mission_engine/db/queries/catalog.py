"""Mission catalog database queries"""
import logging
from typing import Optional
from mission_engine.db.connection import db

logger = logging.getLogger(__name__)

_TEMPLATE_COLUMNS = """
    id, title, description, category, sub_category, unit, target_value, points,
    aggregation_function, mission_type, difficulty, icon, color, is_active
"""


async def get_mission_template(template_id: int) -> Optional[dict]:
    """
    Get a mission template by id, active or not

    Returns:
        Row dict or None when the template does not exist
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {_TEMPLATE_COLUMNS}
                FROM mission_templates
                WHERE id = %s
                """,
                (template_id,)
            )
            row = await cur.fetchone()
            return dict(row) if row else None


async def list_mission_templates(
    category: Optional[str] = None,
    active_only: bool = True
) -> list[dict]:
    """
    List mission templates ordered by difficulty then title

    Args:
        category: Optional category filter (health_tracking, fitness, ...)
        active_only: Skip templates retired by the catalog admin
    """
    conditions = []
    params: list = []
    if active_only:
        conditions.append("is_active = TRUE")
    if category:
        conditions.append("category = %s")
        params.append(category)
    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {_TEMPLATE_COLUMNS}
                FROM mission_templates
                {where}
                ORDER BY
                    CASE difficulty WHEN 'easy' THEN 0 WHEN 'medium' THEN 1 ELSE 2 END,
                    title
                """,
                tuple(params)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]
