"""Pydantic models for API request/response validation"""
import datetime as dt
from typing import Optional, List, Dict
from pydantic import BaseModel, Field

from mission_engine.models.mission import (
    MetricKey,
    MissionStats,
    MissionTemplate,
    UserMissionDetail,
)


class AcceptMissionRequest(BaseModel):
    """Request to accept a mission"""
    date: Optional[dt.date] = Field(
        default=None,
        description="Calendar date the mission is for (defaults to today in the user's timezone)"
    )
    timezone: Optional[str] = Field(
        default=None,
        description="User's IANA timezone, used when date is omitted"
    )


class ProgressUpdateRequest(BaseModel):
    """Request to set mission progress manually"""
    current_value: float = Field(..., ge=0, allow_inf_nan=False, description="Amount achieved so far, in the mission's unit")
    notes: Optional[str] = Field(default=None, max_length=2000, description="Free-text notes")


class TrackingEventRequest(BaseModel):
    """Notification from the tracking subsystem that a tracking row was written"""
    user_id: str = Field(..., description="User identifier")
    metric_key: MetricKey = Field(..., description="Metric the tracking row contributes to")
    date: Optional[dt.date] = Field(
        default=None,
        description="User-local date of the tracking row (defaults to today in timezone)"
    )
    timezone: Optional[str] = Field(default=None, description="User's IANA timezone")


class MissionTemplateResponse(BaseModel):
    """Mission catalog entry"""
    id: int
    title: str
    description: Optional[str] = None
    category: str
    sub_category: str
    type: str
    target_value: float
    unit: str
    points: int
    icon: Optional[str] = None
    color: Optional[str] = None
    difficulty: str

    @classmethod
    def from_template(cls, template: MissionTemplate) -> "MissionTemplateResponse":
        return cls(
            id=template.id,
            title=template.title,
            description=template.description,
            category=template.category.value,
            sub_category=template.sub_category.value,
            type=template.mission_type.value,
            target_value=template.target_value,
            unit=template.unit,
            points=template.points,
            icon=template.icon,
            color=template.color,
            difficulty=template.difficulty.value,
        )


class MissionListResponse(BaseModel):
    """Response with catalog entries"""
    missions: List[MissionTemplateResponse]


class UserMissionResponse(BaseModel):
    """User mission instance with joined template fields"""
    id: int
    user_id: str
    mission_id: int
    date: dt.date
    current_value: float
    progress: int
    status: str
    notes: Optional[str] = None
    points_earned: Optional[int] = None
    completed_at: Optional[dt.datetime] = None
    created_at: dt.datetime
    updated_at: dt.datetime
    mission: MissionTemplateResponse

    @classmethod
    def from_detail(cls, detail: UserMissionDetail) -> "UserMissionResponse":
        instance = detail.instance
        return cls(
            id=instance.id,
            user_id=instance.user_id,
            mission_id=instance.mission_template_id,
            date=instance.instance_date,
            current_value=instance.current_value,
            progress=instance.progress_percent,
            status=instance.status.value,
            notes=instance.notes,
            points_earned=instance.points_awarded,
            completed_at=instance.completed_at,
            created_at=instance.created_at,
            updated_at=instance.updated_at,
            mission=MissionTemplateResponse.from_template(detail.mission),
        )


class MissionActionResponse(BaseModel):
    """Response after accept / progress update / abandon"""
    message: str
    data: UserMissionResponse


class MyMissionsResponse(BaseModel):
    """Response with a user's missions"""
    user_id: str
    date: Optional[dt.date] = None
    missions: List[UserMissionResponse]


class MissionStatsResponse(BaseModel):
    """Response with mission totals"""
    user_id: str
    total_missions: int
    completed_missions: int
    total_points: int
    by_status: Dict[str, int]

    @classmethod
    def from_stats(cls, stats: MissionStats) -> "MissionStatsResponse":
        return cls(**stats.model_dump())


class TrackingEventResponse(BaseModel):
    """Acknowledgement of a tracking event"""
    accepted: bool = True
    date: dt.date
    updated_missions: int


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    database: str = Field(..., description="Database connection status")
    timestamp: dt.datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response model"""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    user_message: Optional[str] = Field(None, description="Guidance safe to show the user")
    request_id: Optional[str] = None
    timestamp: dt.datetime = Field(default_factory=dt.datetime.now)
