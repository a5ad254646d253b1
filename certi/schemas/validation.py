"""
Validation Request/Response Models
"""

from pydantic import BaseModel, Field, AliasChoices
from typing import Optional
from datetime import datetime
from uuid import UUID


class ValidateCertificateRequest(BaseModel):
    """Public validation by certificate code"""
    certificate_code: str = Field(
        ...,
        min_length=1,
        max_length=50,
        validation_alias=AliasChoices("certificate_code", "code"),
    )


class CreateValidationRequest(ValidateCertificateRequest):
    notes: Optional[str] = Field(default=None, max_length=1000)


class ValidationCertificate(BaseModel):
    id: UUID
    unique_code: str
    name: str
    status: str
    activity_name: Optional[str] = None


class ValidationResponse(BaseModel):
    """Audit row of one successful validation"""
    id: UUID
    certificate_id: UUID
    user_id: Optional[UUID] = None
    validation_code: str
    validator_ip: Optional[str] = None
    validator_user_agent: Optional[str] = None
    notes: Optional[str] = None
    validated_at: Optional[datetime] = None
    certificate: Optional[ValidationCertificate] = None

    class Config:
        from_attributes = True
