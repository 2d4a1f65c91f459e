"""
MissionService - Mission Lifecycle Business Logic

Orchestrates accept, manual update, auto update and abandon over the mission
catalog, the tracking aggregator and the instance store.

State machine per instance:
    active -> completed
    active -> abandoned
Completed and abandoned are terminal; nothing transitions out of them.
"""

import asyncio
import logging
import time
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple, Union

from mission_engine.config import AUTO_UPDATE_TIMEOUT_SECONDS, MAX_SAVE_RETRIES
from mission_engine.exceptions import (
    ConflictError,
    InvalidStateError,
    MissionEngineError,
    RecordNotFoundError,
)
from mission_engine.missions.aggregator import TrackingAggregator
from mission_engine.missions.progress import compute_progress
from mission_engine.missions.store import InstanceStore
from mission_engine.models.mission import (
    MetricKey,
    MissionCategory,
    MissionStats,
    MissionStatus,
    MissionTemplate,
    UserMissionDetail,
    UserMissionInstance,
)
from mission_engine.observability.metrics import (
    auto_update_duration_seconds,
    auto_updates_total,
    mission_conflicts_total,
    mission_points_awarded_total,
    mission_transitions_total,
)
from mission_engine.resilience.retry import retry_with_backoff

logger = logging.getLogger(__name__)

VISIBLE_STATUSES = (MissionStatus.ACTIVE, MissionStatus.COMPLETED)


class MissionService:
    """
    Service for the mission lifecycle.

    Responsibilities:
    - Accepting missions for a calendar date
    - Manual progress updates from the mission screen
    - Tracking-triggered progress recomputation
    - Abandoning missions
    - Read models for the mission screens and stats
    """

    def __init__(
        self,
        catalog,
        store: InstanceStore,
        aggregator: TrackingAggregator,
        max_save_retries: int = MAX_SAVE_RETRIES,
        auto_update_timeout: float = AUTO_UPDATE_TIMEOUT_SECONDS
    ):
        """
        Initialize MissionService.

        Args:
            catalog: Mission catalog (get / list_active)
            store: User mission instance store
            aggregator: Tracking aggregator
            max_save_retries: Attempts for a lost compare-and-swap race
            auto_update_timeout: Seconds a tracking-triggered recompute may take
        """
        self.catalog = catalog
        self.store = store
        self.aggregator = aggregator
        self.max_save_retries = max_save_retries
        self.auto_update_timeout = auto_update_timeout
        logger.debug("MissionService initialized")

    # ==========================================
    # Catalog
    # ==========================================

    async def list_catalog(self, category: Optional[MissionCategory] = None) -> List[MissionTemplate]:
        """Active mission templates, easiest first"""
        return await self.catalog.list_active(category)

    # ==========================================
    # Lifecycle operations
    # ==========================================

    async def accept(self, user_id: str, mission_template_id: int, instance_date: date) -> UserMissionDetail:
        """
        Accept a mission for one calendar date.

        Raises:
            RecordNotFoundError: Template unknown or retired
            ConflictError: An instance already exists for (user, template, date);
                existing_status tells whether it is active, completed or abandoned
            InvalidTargetError: Template target is not positive
        """
        template = await self.catalog.get(mission_template_id)
        if not template.is_active:
            raise RecordNotFoundError(
                message=f"Mission template {mission_template_id} is inactive",
                record_type="Mission",
                record_id=mission_template_id,
                user_id=user_id,
                operation="accept"
            )

        # Fails fast on a misconfigured target before any row is written
        compute_progress(0, template.target_value, template.id)

        try:
            instance = await self.store.create(user_id, mission_template_id, instance_date)
        except ConflictError as e:
            mission_conflicts_total.labels(existing_status=e.existing_status or "unknown").inc()
            raise

        mission_transitions_total.labels(transition="accepted", category=template.category.value).inc()
        logger.info(
            f"User {user_id} accepted mission {template.id} ('{template.title}') "
            f"for {instance_date.isoformat()}: instance={instance.id}"
        )
        return UserMissionDetail(instance=instance, mission=template)

    async def manual_update(
        self,
        instance_id: int,
        new_current_value: float,
        notes: Optional[str] = None,
        user_id: Optional[str] = None
    ) -> UserMissionDetail:
        """
        Set an instance's progress from user input.

        Args:
            instance_id: Instance to update
            new_current_value: Absolute amount achieved so far
            notes: Replaces the stored notes when given
            user_id: When given, the instance must belong to this user

        Raises:
            RecordNotFoundError: Unknown instance (or owned by someone else)
            InvalidStateError: Instance is completed or abandoned
            ValidationError: Negative value
        """
        async def apply_manual_update() -> Tuple[UserMissionInstance, MissionTemplate, bool]:
            instance = await self._load_owned(instance_id, user_id)
            self._require_active(instance, "manual_update")
            template = await self.catalog.get(instance.mission_template_id)
            updated, completed = self._with_progress(instance, template, new_current_value, notes)
            return await self.store.save(updated), template, completed

        saved, template, completed = await retry_with_backoff(
            apply_manual_update, max_retries=self.max_save_retries
        )
        if completed:
            self._record_completion(saved, template)
        logger.info(
            f"Manual update of mission instance {saved.id}: value={saved.current_value}, "
            f"progress={saved.progress_percent}%, status={saved.status.value}"
        )
        return UserMissionDetail(instance=saved, mission=template)

    async def auto_update(
        self,
        user_id: str,
        instance_date: date,
        affected_metric_key: Union[MetricKey, str]
    ) -> List[UserMissionInstance]:
        """
        Recompute active instances bound to a metric after a tracking write.

        The aggregator is queried once per distinct binding, so instances that
        share a metric see the same total. Progress only moves forward and
        terminal instances are never touched.

        Returns:
            Instances whose stored progress changed
        """
        metric_key = MetricKey(affected_metric_key)
        active = await self.store.list_for_user(
            user_id, instance_date=instance_date, statuses=[MissionStatus.ACTIVE]
        )
        if not active:
            return []

        templates: Dict[int, MissionTemplate] = {}
        affected: List[Tuple[UserMissionInstance, MissionTemplate]] = []
        for instance in active:
            template_id = instance.mission_template_id
            if template_id not in templates:
                templates[template_id] = await self.catalog.get(template_id)
            template = templates[template_id]
            if template.tracking_binding.metric_key == metric_key:
                affected.append((instance, template))

        if not affected:
            return []

        totals = await self.aggregator.snapshot(
            user_id, instance_date, [template.tracking_binding for _, template in affected]
        )

        updated: List[UserMissionInstance] = []
        for instance, template in affected:
            total = totals[template.tracking_binding.snapshot_key]
            saved = await self._advance_to(instance.id, template, total)
            if saved is not None:
                updated.append(saved)

        logger.info(
            f"Auto-update for user {user_id} on {instance_date.isoformat()} "
            f"({metric_key.value}): {len(affected)} matched, {len(updated)} changed"
        )
        return updated

    async def abandon(self, instance_id: int, user_id: Optional[str] = None) -> UserMissionDetail:
        """
        Give up on an active instance. No points; current_value is kept for audit.

        Raises:
            RecordNotFoundError: Unknown instance (or owned by someone else)
            InvalidStateError: Instance is already completed or abandoned
        """
        async def apply_abandon() -> UserMissionInstance:
            instance = await self._load_owned(instance_id, user_id)
            self._require_active(instance, "abandon")
            return await self.store.save(
                instance.model_copy(update={"status": MissionStatus.ABANDONED})
            )

        saved = await retry_with_backoff(apply_abandon, max_retries=self.max_save_retries)
        template = await self.catalog.get(saved.mission_template_id)
        mission_transitions_total.labels(transition="abandoned", category=template.category.value).inc()
        logger.info(f"Mission instance {saved.id} abandoned by user {saved.user_id}")
        return UserMissionDetail(instance=saved, mission=template)

    # ==========================================
    # Tracking hook
    # ==========================================

    async def on_tracking_recorded(
        self,
        user_id: str,
        instance_date: date,
        metric_key: Union[MetricKey, str]
    ) -> int:
        """
        Hook called by the tracking subsystem after every tracking write.

        Never raises: a failed or slow recompute is logged and picked up again
        by the next tracking event for that date.

        Returns:
            Number of instances whose progress changed
        """
        try:
            metric = MetricKey(metric_key)
        except ValueError:
            logger.warning(f"Ignoring tracking event with unknown metric '{metric_key}' for user {user_id}")
            auto_updates_total.labels(metric_key="unknown", outcome="unknown_metric").inc()
            return 0

        start_time = time.time()
        try:
            updated = await asyncio.wait_for(
                self.auto_update(user_id, instance_date, metric),
                timeout=self.auto_update_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Auto-update timed out after {self.auto_update_timeout}s for user {user_id} "
                f"on {instance_date.isoformat()} ({metric.value}); deferring to next tracking event"
            )
            auto_updates_total.labels(metric_key=metric.value, outcome="timeout").inc()
            return 0
        except MissionEngineError as e:
            # Already logged with full context on creation
            logger.warning(
                f"Auto-update deferred for user {user_id} on {instance_date.isoformat()} "
                f"({metric.value}): {e.__class__.__name__} [request_id={e.request_id}]"
            )
            auto_updates_total.labels(metric_key=metric.value, outcome="error").inc()
            return 0
        except Exception as e:
            logger.error(f"Unexpected error in auto-update for user {user_id}: {e}", exc_info=True)
            auto_updates_total.labels(metric_key=metric.value, outcome="error").inc()
            return 0
        finally:
            auto_update_duration_seconds.labels(metric_key=metric.value).observe(time.time() - start_time)

        auto_updates_total.labels(metric_key=metric.value, outcome="success").inc()
        return len(updated)

    # ==========================================
    # Read models
    # ==========================================

    async def get_instance(self, instance_id: int, user_id: Optional[str] = None) -> UserMissionDetail:
        """Single instance with its template"""
        instance = await self._load_owned(instance_id, user_id)
        template = await self.catalog.get(instance.mission_template_id)
        return UserMissionDetail(instance=instance, mission=template)

    async def list_my_missions(
        self,
        user_id: str,
        instance_date: Optional[date] = None,
        include_abandoned: bool = False
    ) -> List[UserMissionDetail]:
        """
        A user's missions joined with their templates, newest first.

        Abandoned instances are hidden unless include_abandoned is set.
        """
        statuses = None if include_abandoned else list(VISIBLE_STATUSES)
        instances = await self.store.list_for_user(user_id, instance_date=instance_date, statuses=statuses)

        templates: Dict[int, MissionTemplate] = {}
        details = []
        for instance in instances:
            template_id = instance.mission_template_id
            if template_id not in templates:
                templates[template_id] = await self.catalog.get(template_id)
            details.append(UserMissionDetail(instance=instance, mission=templates[template_id]))
        return details

    async def get_stats(self, user_id: str) -> MissionStats:
        """Mission totals and points earned"""
        return await self.store.stats(user_id)

    # ==========================================
    # Helpers
    # ==========================================

    async def _load_owned(self, instance_id: int, user_id: Optional[str]) -> UserMissionInstance:
        instance = await self.store.get(instance_id)
        if user_id is not None and instance.user_id != user_id:
            raise RecordNotFoundError(
                message=f"Mission instance {instance_id} does not belong to user {user_id}",
                record_type="Mission progress",
                record_id=instance_id,
                user_id=user_id
            )
        return instance

    def _require_active(self, instance: UserMissionInstance, operation: str) -> None:
        if instance.status.is_terminal:
            raise InvalidStateError(
                message=f"Cannot {operation.replace('_', ' ')} mission instance {instance.id}: "
                        f"already {instance.status.value}",
                current_status=instance.status.value,
                user_id=instance.user_id,
                operation=operation
            )

    def _with_progress(
        self,
        instance: UserMissionInstance,
        template: MissionTemplate,
        value: float,
        notes: Optional[str]
    ) -> Tuple[UserMissionInstance, bool]:
        """Copy of instance carrying the new value, recomputed progress and completion fields"""
        progress_percent, is_complete = compute_progress(value, template.target_value, template.id)
        changes = {
            "current_value": value,
            "progress_percent": progress_percent,
            "notes": notes if notes is not None else instance.notes,
        }
        if is_complete:
            changes.update({
                "status": MissionStatus.COMPLETED,
                "points_awarded": template.points,
                "completed_at": datetime.utcnow(),
            })
        return instance.model_copy(update=changes), is_complete

    async def _advance_to(
        self,
        instance_id: int,
        template: MissionTemplate,
        total: float
    ) -> Optional[UserMissionInstance]:
        """Move an instance forward to an aggregate total; None when nothing changed"""

        async def apply_auto_update() -> Optional[Tuple[UserMissionInstance, bool]]:
            instance = await self.store.get(instance_id)
            if instance.status.is_terminal or total <= instance.current_value:
                return None
            updated, completed = self._with_progress(instance, template, total, None)
            return await self.store.save(updated), completed

        result = await retry_with_backoff(apply_auto_update, max_retries=self.max_save_retries)
        if result is None:
            return None

        saved, completed = result
        if completed:
            self._record_completion(saved, template)
        return saved

    def _record_completion(self, instance: UserMissionInstance, template: MissionTemplate) -> None:
        mission_transitions_total.labels(transition="completed", category=template.category.value).inc()
        mission_points_awarded_total.labels(category=template.category.value).inc(instance.points_awarded or 0)
        logger.info(
            f"User {instance.user_id} completed mission {template.id} ('{template.title}') "
            f"for {instance.instance_date.isoformat()}: +{instance.points_awarded} points"
        )
