# schedule models — session creation and response schemas
# mirrors frontend PatientSchedule / DoctorDashboard session shape

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, field_validator

STATUSES: tuple[str, ...] = ("scheduled", "completed", "cancelled")


class ScheduleCreate(BaseModel):
    """payload for booking a therapy session"""
    therapist_id: str = Field(..., alias="therapistId", description="counterparty (therapist/patient) reference")
    start_time: datetime = Field(..., alias="startTime", description="iso-8601 session start")
    end_time: datetime = Field(..., alias="endTime", description="iso-8601 session end")
    notes: Optional[str] = Field(None, description="free text, shown as the therapy label")

    model_config = {"populate_by_name": True}

    @field_validator("therapist_id")
    @classmethod
    def therapist_id_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("therapistId must not be empty")
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # mongodb stores naive datetimes as utc, make that explicit
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class ScheduleResponse(BaseModel):
    """a single schedule record from the schedules collection"""
    id: str
    owner_id: str = Field(..., alias="ownerId")
    therapist_id: str = Field(..., alias="therapistId")
    start_time: datetime = Field(..., alias="startTime")
    end_time: datetime = Field(..., alias="endTime")
    notes: Optional[str] = None
    # stored value passed through as-is, same as the summary counts it
    status: str = "scheduled"
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    model_config = {"populate_by_name": True}


class ScheduleItemResponse(BaseModel):
    """envelope for create / cancel"""
    item: ScheduleResponse


class ScheduleListResponse(BaseModel):
    """envelope for listing an owner's sessions"""
    items: list[ScheduleResponse] = Field(default_factory=list)
