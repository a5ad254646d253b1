"""
Activity Request/Response Models
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import date, datetime
from uuid import UUID
from certi.schemas.common import ActivityType


class ActivityFields(BaseModel):
    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be a date after or equal to start_date.")
        return self


class CreateActivityRequest(ActivityFields):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    type: ActivityType = ActivityType.COURSE
    duration_hours: Optional[int] = Field(default=None, ge=0, le=10000)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True


class UpdateActivityRequest(ActivityFields):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    type: Optional[ActivityType] = None
    duration_hours: Optional[int] = Field(default=None, ge=0, le=10000)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class ActivitySummary(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    duration_hours: Optional[int] = None

    class Config:
        from_attributes = True


class ActivityResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    type: str
    duration_hours: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True
    certificates_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ToggleActivityStatusRequest(BaseModel):
    is_active: Optional[bool] = Field(default=None, description="Omit to flip the current flag")
