"""
User Mission Instance Store

One instance per (user, mission template, date). Saves are compare-and-swap
on the instance's version: a save built from a stale read raises
StaleWriteError instead of overwriting a concurrent writer.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Sequence

from mission_engine.db import queries
from mission_engine.exceptions import (
    ConflictError,
    RecordNotFoundError,
    StaleWriteError,
    wrap_external_exception,
)
from mission_engine.models.mission import MissionStats, MissionStatus, UserMissionInstance

logger = logging.getLogger(__name__)


class InstanceStore(ABC):
    """Storage contract for user mission instances"""

    @abstractmethod
    async def create(self, user_id: str, mission_template_id: int, instance_date: date) -> UserMissionInstance:
        """
        Create an active instance with zero progress

        Raises:
            ConflictError: The triple is already taken, whatever its status
        """

    @abstractmethod
    async def get(self, instance_id: int) -> UserMissionInstance:
        """
        Raises:
            RecordNotFoundError: Unknown instance id
        """

    @abstractmethod
    async def find(self, user_id: str, mission_template_id: int, instance_date: date) -> Optional[UserMissionInstance]:
        """Instance occupying the triple, or None"""

    @abstractmethod
    async def list_for_user(
        self,
        user_id: str,
        instance_date: Optional[date] = None,
        statuses: Optional[Sequence[MissionStatus]] = None
    ) -> List[UserMissionInstance]:
        """User's instances, newest date first"""

    @abstractmethod
    async def save(self, instance: UserMissionInstance) -> UserMissionInstance:
        """
        Replace the mutable fields if nobody saved since `instance.version` was read

        Returns:
            The stored instance with its new version and updated_at

        Raises:
            StaleWriteError: Version moved on
            RecordNotFoundError: Instance vanished
        """

    @abstractmethod
    async def stats(self, user_id: str) -> MissionStats:
        """Counts per status and points earned"""

    async def list_by_user_and_date(self, user_id: str, instance_date: date) -> List[UserMissionInstance]:
        return await self.list_for_user(user_id, instance_date=instance_date)

    def _conflict(self, existing: UserMissionInstance) -> ConflictError:
        return ConflictError(
            message=(
                f"Mission {existing.mission_template_id} already {existing.status.value} "
                f"for user {existing.user_id} on {existing.instance_date.isoformat()}"
            ),
            existing_status=existing.status.value,
            existing_instance_id=existing.id,
            user_id=existing.user_id,
            operation="create_instance"
        )

    def _not_found(self, instance_id: int) -> RecordNotFoundError:
        return RecordNotFoundError(
            message=f"Mission instance {instance_id} not found",
            record_type="Mission progress",
            record_id=instance_id
        )


def stats_from_counts(user_id: str, counts: dict, points: int) -> MissionStats:
    return MissionStats(
        user_id=user_id,
        total_missions=sum(counts.values()),
        completed_missions=counts.get(MissionStatus.COMPLETED.value, 0),
        total_points=points,
        by_status=counts
    )


class PostgresInstanceStore(InstanceStore):
    """Instance store over the user_mission_instances table"""

    async def create(self, user_id: str, mission_template_id: int, instance_date: date) -> UserMissionInstance:
        try:
            row = await queries.insert_instance(user_id, mission_template_id, instance_date)
        except Exception as e:
            raise wrap_external_exception(e, operation="create_instance", user_id=user_id)

        if row is None:
            existing = await self.find(user_id, mission_template_id, instance_date)
            if existing is None:
                # Conflicting row was removed between the insert and the lookup
                raise ConflictError(user_id=user_id, operation="create_instance")
            raise self._conflict(existing)

        logger.info(
            f"Created mission instance {row['id']} for user {user_id}: "
            f"template={mission_template_id}, date={instance_date}"
        )
        return UserMissionInstance(**row)

    async def get(self, instance_id: int) -> UserMissionInstance:
        try:
            row = await queries.get_instance(instance_id)
        except Exception as e:
            raise wrap_external_exception(e, operation="get_instance", context={"instance_id": instance_id})
        if not row:
            raise self._not_found(instance_id)
        return UserMissionInstance(**row)

    async def find(self, user_id: str, mission_template_id: int, instance_date: date) -> Optional[UserMissionInstance]:
        try:
            row = await queries.find_instance(user_id, mission_template_id, instance_date)
        except Exception as e:
            raise wrap_external_exception(e, operation="find_instance", user_id=user_id)
        return UserMissionInstance(**row) if row else None

    async def list_for_user(
        self,
        user_id: str,
        instance_date: Optional[date] = None,
        statuses: Optional[Sequence[MissionStatus]] = None
    ) -> List[UserMissionInstance]:
        try:
            rows = await queries.list_instances(
                user_id,
                instance_date=instance_date,
                statuses=[s.value for s in statuses] if statuses else None
            )
        except Exception as e:
            raise wrap_external_exception(e, operation="list_instances", user_id=user_id)
        return [UserMissionInstance(**row) for row in rows]

    async def save(self, instance: UserMissionInstance) -> UserMissionInstance:
        payload = instance.model_dump()
        payload['status'] = instance.status.value
        try:
            row = await queries.update_instance_if_version(payload, instance.version)
            if row is None:
                exists = await queries.get_instance(instance.id)
        except Exception as e:
            raise wrap_external_exception(
                e, operation="save_instance", user_id=instance.user_id,
                context={"instance_id": instance.id}
            )

        if row is None:
            if exists is None:
                raise self._not_found(instance.id)
            raise StaleWriteError(
                instance_id=instance.id,
                expected_version=instance.version,
                user_id=instance.user_id,
                operation="save_instance"
            )
        return UserMissionInstance(**row)

    async def stats(self, user_id: str) -> MissionStats:
        try:
            rows = await queries.get_instance_status_counts(user_id)
        except Exception as e:
            raise wrap_external_exception(e, operation="get_instance_stats", user_id=user_id)
        counts = {row['status']: int(row['count']) for row in rows}
        points = sum(
            int(row['points']) for row in rows
            if row['status'] == MissionStatus.COMPLETED.value
        )
        return stats_from_counts(user_id, counts, points)
