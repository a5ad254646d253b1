"""
Certificate Request/Response Models
"""

from pydantic import BaseModel, EmailStr, Field, AliasChoices, model_validator
from typing import Optional, List
from datetime import date, datetime
from uuid import UUID
from enum import Enum
from certi.schemas.user import UserSummary
from certi.schemas.activity import ActivitySummary
from certi.schemas.template import TemplateSummary


class CertificateStatus(str, Enum):
    """Lifecycle status; only ``issued`` certificates pass validation"""
    ISSUED = "issued"
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"
    PENDING = "pending"
    CANCELLED = "cancelled"


class DocumentFormat(str, Enum):
    PDF = "pdf"
    JPG = "jpg"


class CertificateDates(BaseModel):
    @model_validator(mode="after")
    def expiry_after_issue(self):
        if self.issue_date and self.expiry_date and self.expiry_date <= self.issue_date:
            raise ValueError("expiry_date must be a date after issue_date.")
        return self


class CreateCertificateRequest(CertificateDates):
    user_id: UUID
    activity_id: UUID
    template_id: UUID = Field(..., validation_alias=AliasChoices("template_id", "id_template"))
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    issue_date: Optional[date] = Field(default=None, description="Defaults to today")
    expiry_date: Optional[date] = None
    signed_by: Optional[UUID] = None
    qr_url: Optional[str] = Field(default=None, max_length=2048)
    status: CertificateStatus = CertificateStatus.ISSUED


class UpdateCertificateRequest(CertificateDates):
    user_id: Optional[UUID] = None
    activity_id: Optional[UUID] = None
    template_id: Optional[UUID] = Field(default=None, validation_alias=AliasChoices("template_id", "id_template"))
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    signed_by: Optional[UUID] = None
    qr_url: Optional[str] = Field(default=None, max_length=2048)
    status: Optional[CertificateStatus] = None


class ChangeStatusRequest(BaseModel):
    status: CertificateStatus


class GenerateDocumentRequest(BaseModel):
    format: DocumentFormat = DocumentFormat.PDF


class SendEmailRequest(BaseModel):
    """Deliver a certificate; defaults to the recipient's address"""
    email_to: Optional[EmailStr] = None
    subject: Optional[str] = Field(default=None, max_length=255)
    message: Optional[str] = Field(default=None, max_length=5000)
    format: DocumentFormat = DocumentFormat.PDF


class DocumentResponse(BaseModel):
    id: UUID
    document_type: str
    file_name: str
    file_path: str
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ValidationSummary(BaseModel):
    id: UUID
    validation_code: str
    validated_at: Optional[datetime] = None
    validator_ip: Optional[str] = None
    validator_user_agent: Optional[str] = None

    class Config:
        from_attributes = True


class EmailSendResponse(BaseModel):
    id: UUID
    certificate_id: UUID
    email_to: str
    subject: str
    status: str
    error_message: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CertificateResponse(BaseModel):
    """Certificate with its related records"""
    id: UUID
    user_id: UUID
    activity_id: UUID
    template_id: UUID
    signed_by: Optional[UUID] = None
    name: str
    description: Optional[str] = None
    unique_code: str
    qr_url: Optional[str] = None
    issue_date: date
    expiry_date: Optional[date] = None
    issued_at: Optional[datetime] = None
    status: str
    documents_count: int = 0
    validations_count: int = 0
    user: Optional[UserSummary] = None
    activity: Optional[ActivitySummary] = None
    template: Optional[TemplateSummary] = None
    signer: Optional[UserSummary] = None
    documents: Optional[List[DocumentResponse]] = None
    validations: Optional[List[ValidationSummary]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PublicCertificateResponse(BaseModel):
    """What anyone holding the code may see"""
    unique_code: str
    name: str
    description: Optional[str] = None
    status: str
    issue_date: date
    expiry_date: Optional[date] = None
    issued_at: Optional[datetime] = None
    recipient_name: Optional[str] = None
    activity: Optional[ActivitySummary] = None
    template: Optional[TemplateSummary] = None
