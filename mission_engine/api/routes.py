"""API routes for the mission engine"""
import datetime as dt
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, Query, status

from mission_engine.api.models import (
    AcceptMissionRequest,
    ErrorResponse,
    HealthCheckResponse,
    MissionActionResponse,
    MissionListResponse,
    MissionStatsResponse,
    MissionTemplateResponse,
    MyMissionsResponse,
    ProgressUpdateRequest,
    TrackingEventRequest,
    TrackingEventResponse,
    UserMissionResponse,
)
from mission_engine.models.mission import MissionCategory, MissionStatus
from mission_engine.services.container import get_container
from mission_engine.services.mission_service import MissionService
from mission_engine.utils.datetime_helpers import resolve_user_date

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def get_mission_service() -> MissionService:
    """Mission service from the global container"""
    return get_container().mission_service


async def get_user_id(x_user_id: str = Header(..., min_length=1)) -> str:
    """Caller identity, resolved upstream by the API gateway"""
    return x_user_id


# ==========================================
# Catalog
# ==========================================

@router.get("/api/v1/missions", response_model=MissionListResponse)
async def list_missions(service: MissionService = Depends(get_mission_service)):
    """All active missions, easiest first"""
    templates = await service.list_catalog()
    return MissionListResponse(missions=[MissionTemplateResponse.from_template(t) for t in templates])


@router.get("/api/v1/missions/category/{category}", response_model=MissionListResponse)
async def list_missions_by_category(
    category: MissionCategory,
    service: MissionService = Depends(get_mission_service)
):
    """Active missions in one category"""
    templates = await service.list_catalog(category)
    return MissionListResponse(missions=[MissionTemplateResponse.from_template(t) for t in templates])


# ==========================================
# User missions
# ==========================================

@router.get("/api/v1/missions/my-missions", response_model=MyMissionsResponse)
async def get_my_missions(
    date: Optional[dt.date] = Query(default=None, description="YYYY-MM-DD; all dates when omitted"),
    include_abandoned: bool = Query(default=False),
    user_id: str = Depends(get_user_id),
    service: MissionService = Depends(get_mission_service)
):
    """User's active and completed missions with template details"""
    details = await service.list_my_missions(user_id, instance_date=date, include_abandoned=include_abandoned)
    return MyMissionsResponse(
        user_id=user_id,
        date=date,
        missions=[UserMissionResponse.from_detail(d) for d in details]
    )


@router.get("/api/v1/missions/stats", response_model=MissionStatsResponse)
async def get_mission_stats(
    user_id: str = Depends(get_user_id),
    service: MissionService = Depends(get_mission_service)
):
    """Mission counts per status and total points earned"""
    stats = await service.get_stats(user_id)
    return MissionStatsResponse.from_stats(stats)


@router.post(
    "/api/v1/missions/{template_id}/accept",
    response_model=MissionActionResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES
)
async def accept_mission(
    template_id: int,
    request: Optional[AcceptMissionRequest] = None,
    user_id: str = Depends(get_user_id),
    service: MissionService = Depends(get_mission_service)
):
    """
    Accept a mission for a date

    409 tells whether the mission is already active, completed or abandoned
    for that date (existing_status).
    """
    request = request or AcceptMissionRequest()
    mission_date = resolve_user_date(request.date, request.timezone)
    detail = await service.accept(user_id, template_id, mission_date)
    return MissionActionResponse(
        message="Mission accepted successfully",
        data=UserMissionResponse.from_detail(detail)
    )


@router.get(
    "/api/v1/missions/progress/{instance_id}",
    response_model=UserMissionResponse,
    responses=ERROR_RESPONSES
)
async def get_mission_progress(
    instance_id: int,
    user_id: str = Depends(get_user_id),
    service: MissionService = Depends(get_mission_service)
):
    """One of the user's missions"""
    detail = await service.get_instance(instance_id, user_id=user_id)
    return UserMissionResponse.from_detail(detail)


@router.put(
    "/api/v1/missions/progress/{instance_id}",
    response_model=MissionActionResponse,
    responses=ERROR_RESPONSES
)
async def update_mission_progress(
    instance_id: int,
    request: ProgressUpdateRequest,
    user_id: str = Depends(get_user_id),
    service: MissionService = Depends(get_mission_service)
):
    """Set progress manually; completes the mission once the target is reached"""
    detail = await service.manual_update(
        instance_id,
        request.current_value,
        notes=request.notes,
        user_id=user_id
    )
    completed = detail.instance.status is MissionStatus.COMPLETED
    return MissionActionResponse(
        message="Mission completed!" if completed else "Progress updated",
        data=UserMissionResponse.from_detail(detail)
    )


@router.post(
    "/api/v1/missions/{instance_id}/abandon",
    response_model=MissionActionResponse,
    responses=ERROR_RESPONSES
)
async def abandon_mission(
    instance_id: int,
    user_id: str = Depends(get_user_id),
    service: MissionService = Depends(get_mission_service)
):
    """Abandon an active mission"""
    detail = await service.abandon(instance_id, user_id=user_id)
    return MissionActionResponse(
        message="Mission abandoned",
        data=UserMissionResponse.from_detail(detail)
    )


# ==========================================
# Tracking hook
# ==========================================

@router.post(
    "/api/v1/tracking-events",
    response_model=TrackingEventResponse,
    status_code=status.HTTP_202_ACCEPTED
)
async def record_tracking_event(
    request: TrackingEventRequest,
    service: MissionService = Depends(get_mission_service)
):
    """
    Called by the tracking APIs after each water/fitness/meal/sleep/mood write.

    Always 202 for a well-formed event: mission recompute failures are logged
    and retried on the next event, never reported back to the tracking write.
    """
    event_date = resolve_user_date(request.date, request.timezone)
    updated = await service.on_tracking_recorded(request.user_id, event_date, request.metric_key)
    return TrackingEventResponse(date=event_date, updated_missions=updated)


# ==========================================
# Health
# ==========================================

@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Service health check"""
    container = get_container()
    if container.db is None:
        database = "in-memory"
    elif not container.db.is_ready:
        database = "disconnected"
    else:
        try:
            async with container.db.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute("SELECT 1")
            database = "connected"
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            database = "disconnected"

    return HealthCheckResponse(
        status="healthy" if database != "disconnected" else "degraded",
        database=database,
        timestamp=dt.datetime.now()
    )
