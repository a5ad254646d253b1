"""
Certificate Template Request/Response Models
"""

from pydantic import BaseModel, Field, AliasChoices, field_validator
from typing import Optional, List
from datetime import datetime
from uuid import UUID
from enum import Enum
from certi.schemas.common import ActivityType, parse_json_list


class TemplateStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TextFieldType(str, Enum):
    """Certificate value drawn at a text field position"""
    RECIPIENT = "recipient"
    CERTIFICATE_NAME = "certificate_name"
    ACTIVITY = "activity"
    DATE = "date"
    CODE = "code"
    CUSTOM = "custom"


class TextField(BaseModel):
    """Position and formatting of one value drawn on the template"""
    field_type: TextFieldType = Field(
        ...,
        validation_alias=AliasChoices("field_type", "field"),
    )
    label: Optional[str] = Field(
        default=None,
        max_length=100,
        validation_alias=AliasChoices("label", "field_name", "text"),
        description="Literal text for custom fields",
    )
    x: int = Field(..., ge=0, description="X coordinate in pixels")
    y: int = Field(..., ge=0, description="Y coordinate in pixels")
    font_size: int = Field(default=40, ge=8, le=200)
    font_color: str = Field(
        default="#000000",
        pattern=r"^#?[0-9a-fA-F]{6}$",
        validation_alias=AliasChoices("font_color", "color"),
    )
    font_family: str = Field(default="DejaVuSans")
    align: str = Field(default="center", pattern=r"^(left|center|right)$")


class TemplateFields(BaseModel):
    """Metadata sent as multipart form fields next to the template file"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    activity_type: ActivityType
    status: TemplateStatus = TemplateStatus.ACTIVE
    text_fields: List[TextField] = Field(default_factory=list)


class UpdateTemplateFields(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    activity_type: Optional[ActivityType] = None
    status: Optional[TemplateStatus] = None
    text_fields: Optional[List[TextField]] = None


class ToggleTemplateStatusRequest(BaseModel):
    is_active: Optional[bool] = Field(default=None, description="Omit to flip the current status")


class CloneTemplateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)


class TemplateResponse(BaseModel):
    """Certificate template details"""
    id: UUID
    name: str
    description: Optional[str] = None
    activity_type: str
    status: str
    is_active: bool = True
    file_path: Optional[str] = None
    file_url: Optional[str] = None
    text_fields: List[dict] = Field(default_factory=list)
    certificates_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("text_fields", mode="before")
    @classmethod
    def decode_text_fields(cls, value):
        return parse_json_list(value)

    class Config:
        from_attributes = True


class TemplateSummary(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True
