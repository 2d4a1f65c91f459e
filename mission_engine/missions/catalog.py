"""Mission Catalog - read-only lookup of mission templates"""

import logging
from typing import Optional

from mission_engine.db import queries
from mission_engine.exceptions import RecordNotFoundError, wrap_external_exception
from mission_engine.models.mission import (
    AggregationFunction,
    MetricKey,
    MissionCategory,
    MissionTemplate,
    TrackingBinding,
)

logger = logging.getLogger(__name__)


def template_from_row(row: dict) -> MissionTemplate:
    """Build a MissionTemplate from a mission_templates row"""
    metric_key = MetricKey(row['sub_category'])
    override = row.get('aggregation_function')
    binding = TrackingBinding.for_metric(
        metric_key,
        AggregationFunction(override) if override else None
    )
    return MissionTemplate(
        id=row['id'],
        title=row['title'],
        description=row.get('description'),
        category=row['category'],
        sub_category=metric_key,
        unit=row['unit'],
        target_value=row['target_value'],
        points=row.get('points') or 0,
        tracking_binding=binding,
        mission_type=row.get('mission_type') or "daily",
        difficulty=row.get('difficulty') or "easy",
        icon=row.get('icon'),
        color=row.get('color'),
        is_active=row.get('is_active', True),
    )


class MissionCatalog:
    """Catalog backed by the mission_templates table"""

    async def get(self, template_id: int) -> MissionTemplate:
        """
        Get a template by id

        Raises:
            RecordNotFoundError: Unknown template id
        """
        try:
            row = await queries.get_mission_template(template_id)
        except Exception as e:
            raise wrap_external_exception(e, operation="get_mission_template",
                                          context={"template_id": template_id})

        if not row:
            raise RecordNotFoundError(
                message=f"Mission template {template_id} not found",
                record_type="Mission",
                record_id=template_id
            )
        return template_from_row(row)

    async def list_active(self, category: Optional[MissionCategory] = None) -> list[MissionTemplate]:
        """Active templates, easiest first then by title"""
        try:
            rows = await queries.list_mission_templates(
                category=category.value if category else None,
                active_only=True
            )
        except Exception as e:
            raise wrap_external_exception(e, operation="list_mission_templates")
        return [template_from_row(row) for row in rows]
