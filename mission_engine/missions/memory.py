"""
In-memory catalog and instance store

Backs the engine in tests and local development. Mirrors the PostgreSQL
contract, including the unique triple and compare-and-swap saves, but
nothing survives a restart.
"""

import asyncio
import itertools
import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence

from mission_engine.exceptions import RecordNotFoundError, StaleWriteError
from mission_engine.missions.store import InstanceStore, stats_from_counts
from mission_engine.models.mission import (
    DIFFICULTY_ORDER,
    MissionCategory,
    MissionStats,
    MissionStatus,
    MissionTemplate,
    UserMissionInstance,
)

logger = logging.getLogger(__name__)


class InMemoryMissionCatalog:
    """Catalog over a fixed set of templates"""

    def __init__(self, templates: Iterable[MissionTemplate] = ()):
        self._templates: Dict[int, MissionTemplate] = {t.id: t for t in templates}

    def add(self, template: MissionTemplate) -> None:
        self._templates[template.id] = template

    async def get(self, template_id: int) -> MissionTemplate:
        template = self._templates.get(template_id)
        if template is None:
            raise RecordNotFoundError(
                message=f"Mission template {template_id} not found",
                record_type="Mission",
                record_id=template_id
            )
        return template

    async def list_active(self, category: Optional[MissionCategory] = None) -> List[MissionTemplate]:
        templates = [
            t for t in self._templates.values()
            if t.is_active and (category is None or t.category == category)
        ]
        return sorted(templates, key=lambda t: (DIFFICULTY_ORDER[t.difficulty], t.title))


class InMemoryInstanceStore(InstanceStore):
    """Instance store kept in a dict, guarded by one asyncio lock"""

    def __init__(self):
        self._instances: Dict[int, UserMissionInstance] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def create(self, user_id: str, mission_template_id: int, instance_date: date) -> UserMissionInstance:
        async with self._lock:
            existing = self._find(user_id, mission_template_id, instance_date)
            if existing is not None:
                raise self._conflict(existing)

            instance = UserMissionInstance(
                id=next(self._ids),
                user_id=user_id,
                mission_template_id=mission_template_id,
                instance_date=instance_date,
            )
            self._instances[instance.id] = instance
            logger.debug(f"Saved mission instance {instance.id} to memory store")
            return instance.model_copy()

    async def get(self, instance_id: int) -> UserMissionInstance:
        instance = self._instances.get(instance_id)
        if instance is None:
            raise self._not_found(instance_id)
        return instance.model_copy()

    async def find(self, user_id: str, mission_template_id: int, instance_date: date) -> Optional[UserMissionInstance]:
        existing = self._find(user_id, mission_template_id, instance_date)
        return existing.model_copy() if existing else None

    async def list_for_user(
        self,
        user_id: str,
        instance_date: Optional[date] = None,
        statuses: Optional[Sequence[MissionStatus]] = None
    ) -> List[UserMissionInstance]:
        matches = [
            i for i in self._instances.values()
            if i.user_id == user_id
            and (instance_date is None or i.instance_date == instance_date)
            and (not statuses or i.status in statuses)
        ]
        matches.sort(key=lambda i: (i.instance_date, i.created_at, i.id), reverse=True)
        return [i.model_copy() for i in matches]

    async def save(self, instance: UserMissionInstance) -> UserMissionInstance:
        async with self._lock:
            stored = self._instances.get(instance.id)
            if stored is None:
                raise self._not_found(instance.id)
            if stored.version != instance.version:
                raise StaleWriteError(
                    instance_id=instance.id,
                    expected_version=instance.version,
                    user_id=instance.user_id,
                    operation="save_instance"
                )

            updated = stored.model_copy(update={
                "current_value": instance.current_value,
                "progress_percent": instance.progress_percent,
                "status": instance.status,
                "notes": instance.notes,
                "points_awarded": instance.points_awarded,
                "completed_at": instance.completed_at,
                "updated_at": datetime.utcnow(),
                "version": stored.version + 1,
            })
            self._instances[instance.id] = updated
            return updated.model_copy()

    async def stats(self, user_id: str) -> MissionStats:
        counts: Dict[str, int] = {}
        points = 0
        for instance in self._instances.values():
            if instance.user_id != user_id:
                continue
            counts[instance.status.value] = counts.get(instance.status.value, 0) + 1
            if instance.status is MissionStatus.COMPLETED:
                points += instance.points_awarded or 0
        return stats_from_counts(user_id, counts, points)

    def _find(self, user_id: str, mission_template_id: int, instance_date: date) -> Optional[UserMissionInstance]:
        for instance in self._instances.values():
            if (
                instance.user_id == user_id
                and instance.mission_template_id == mission_template_id
                and instance.instance_date == instance_date
            ):
                return instance
        return None
