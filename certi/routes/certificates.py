"""
Certificate Routes
Issuance, search, status changes, documents and downloads
"""

from datetime import date
from io import BytesIO
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import StreamingResponse

from certi.auth import require_permission
from certi.responses import success_response, created_response
from certi.schemas.certificate import (
    CreateCertificateRequest,
    UpdateCertificateRequest,
    ChangeStatusRequest,
    GenerateDocumentRequest,
    SendEmailRequest,
    CertificateResponse,
    CertificateStatus,
    DocumentFormat,
    EmailSendResponse,
)
from certi.services.certificate_service import certificate_service
from certi.services.email_service import email_service

router = APIRouter()


def _certificate(certificate: dict) -> dict:
    return CertificateResponse.model_validate(certificate).model_dump()


async def _search(page, per_page, search, activity_id, template_id, user_id, status,
                  issue_date_from, issue_date_to, expiry_date_from, expiry_date_to) -> dict:
    result = await certificate_service.list_certificates(
        page=page,
        per_page=per_page,
        search=search,
        activity_id=activity_id,
        template_id=template_id,
        user_id=user_id,
        certificate_status=status.value if status else None,
        issue_date_from=issue_date_from,
        issue_date_to=issue_date_to,
        expiry_date_from=expiry_date_from,
        expiry_date_to=expiry_date_to,
    )
    return {"certificates": [_certificate(c) for c in result["certificates"]], "pagination": result["pagination"]}


@router.get("")
async def list_certificates(
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    search: Optional[str] = Query(None),
    activity_id: Optional[UUID] = Query(None),
    template_id: Optional[UUID] = Query(None),
    user_id: Optional[UUID] = Query(None),
    status: Optional[CertificateStatus] = Query(None),
    issue_date_from: Optional[date] = Query(None),
    issue_date_to: Optional[date] = Query(None),
    expiry_date_from: Optional[date] = Query(None),
    expiry_date_to: Optional[date] = Query(None),
    current_user: dict = Depends(require_permission("certificates.read"))
):
    data = await _search(page, per_page, search, activity_id, template_id, user_id, status,
                         issue_date_from, issue_date_to, expiry_date_from, expiry_date_to)
    return success_response(data, "Certificates retrieved successfully")


@router.get("/search")
async def search_certificates(
    q: Optional[str] = Query(None, description="Name, description, code or recipient"),
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    activity_id: Optional[UUID] = Query(None),
    template_id: Optional[UUID] = Query(None),
    user_id: Optional[UUID] = Query(None),
    status: Optional[CertificateStatus] = Query(None),
    issue_date_from: Optional[date] = Query(None),
    issue_date_to: Optional[date] = Query(None),
    expiry_date_from: Optional[date] = Query(None),
    expiry_date_to: Optional[date] = Query(None),
    current_user: dict = Depends(require_permission("certificates.read"))
):
    data = await _search(page, per_page, q, activity_id, template_id, user_id, status,
                         issue_date_from, issue_date_to, expiry_date_from, expiry_date_to)
    return success_response(data, "Certificates retrieved successfully")


@router.get("/my-certificates")
async def my_certificates(
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    status: Optional[CertificateStatus] = Query(None),
    current_user: dict = Depends(require_permission("certificates.read"))
):
    """Certificates issued to the authenticated user"""
    data = await _search(page, per_page, None, None, None, current_user["id"], status,
                         None, None, None, None)
    return success_response(data, "Certificates retrieved successfully")


@router.get("/statistics/overview")
async def statistics_overview(current_user: dict = Depends(require_permission("reports.certificates"))):
    return success_response(await certificate_service.statistics_overview(), "Statistics retrieved successfully")


@router.get("/statistics/by-activity")
async def statistics_by_activity(current_user: dict = Depends(require_permission("reports.certificates"))):
    return success_response(
        {"activities": await certificate_service.statistics_by_activity()},
        "Statistics retrieved successfully"
    )


@router.get("/activity/{activity_id}")
async def certificates_by_activity(
    activity_id: UUID,
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    current_user: dict = Depends(require_permission("certificates.read"))
):
    data = await _search(page, per_page, None, activity_id, None, None, None, None, None, None, None)
    return success_response(data, "Certificates retrieved successfully")


@router.get("/{certificate_id}")
async def get_certificate(certificate_id: UUID, current_user: dict = Depends(require_permission("certificates.read"))):
    certificate = await certificate_service.get_certificate(str(certificate_id))
    return success_response({"certificate": _certificate(certificate)}, "Certificate retrieved successfully")


@router.post("")
async def create_certificate(
    request: CreateCertificateRequest,
    current_user: dict = Depends(require_permission("certificates.create"))
):
    """
    Issue a certificate

    - **user_id**, **activity_id**, **template_id**: must exist
    - **issue_date**: defaults to today
    - **expiry_date**: optional, must be after issue_date
    """
    certificate = await certificate_service.create_certificate(request, issued_by=current_user["id"])
    return created_response({"certificate": _certificate(certificate)}, "Certificate created successfully")


@router.put("/{certificate_id}")
async def update_certificate(
    certificate_id: UUID,
    request: UpdateCertificateRequest,
    current_user: dict = Depends(require_permission("certificates.update"))
):
    certificate = await certificate_service.update_certificate(str(certificate_id), request)
    return success_response({"certificate": _certificate(certificate)}, "Certificate updated successfully")


@router.delete("/{certificate_id}")
async def delete_certificate(
    certificate_id: UUID,
    current_user: dict = Depends(require_permission("certificates.delete"))
):
    await certificate_service.delete_certificate(str(certificate_id))
    return success_response(None, "Certificate deleted successfully")


@router.patch("/{certificate_id}/change-status")
async def change_status(
    certificate_id: UUID,
    request: ChangeStatusRequest,
    current_user: dict = Depends(require_permission("certificates.issue"))
):
    certificate = await certificate_service.change_status(str(certificate_id), request.status.value)
    return success_response({"certificate": _certificate(certificate)}, "Certificate status updated successfully")


@router.post("/{certificate_id}/generate-document")
async def generate_document(
    certificate_id: UUID,
    request: Optional[GenerateDocumentRequest] = Body(None),
    current_user: dict = Depends(require_permission("documents.upload"))
):
    """Render the certificate and keep the file as a certificate document"""
    fmt = request.format.value if request else DocumentFormat.PDF.value
    document = await certificate_service.generate_document(str(certificate_id), fmt)
    return created_response({"document": document}, "Document generated successfully")


@router.get("/{certificate_id}/download")
async def download_certificate(
    certificate_id: UUID,
    format: DocumentFormat = Query(DocumentFormat.PDF),
    current_user: dict = Depends(require_permission("certificates.download"))
):
    """Download the rendered certificate as PDF or JPEG"""
    certificate = await certificate_service.get_certificate(str(certificate_id), with_relations=False)
    content, media_type, extension = await certificate_service.render_certificate(certificate, format.value)
    filename = certificate_service.download_filename(certificate, extension)
    return StreamingResponse(
        BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/{certificate_id}/preview")
async def preview_certificate(
    certificate_id: UUID,
    current_user: dict = Depends(require_permission("certificates.read"))
):
    certificate = await certificate_service.get_certificate(str(certificate_id), with_relations=False)
    content, media_type, extension = await certificate_service.render_certificate(certificate, "jpg")
    filename = certificate_service.download_filename(certificate, extension)
    return StreamingResponse(
        BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f'inline; filename="{filename}"'}
    )


@router.post("/{certificate_id}/send-email")
async def send_certificate_email(
    certificate_id: UUID,
    request: Optional[SendEmailRequest] = Body(None),
    current_user: dict = Depends(require_permission("emails.send"))
):
    """
    Email the certificate to its recipient

    The attempt is logged in email_sends whether or not delivery succeeds.
    """
    request = request or SendEmailRequest()
    email_send = await email_service.send_certificate(
        str(certificate_id),
        sent_by=current_user["id"],
        email_to=request.email_to,
        subject=request.subject,
        message=request.message,
        fmt=request.format.value,
    )
    email_send = EmailSendResponse.model_validate(email_send).model_dump()
    if email_send["status"] == "sent":
        return success_response({"email": email_send}, "Certificate sent successfully")
    return success_response({"email": email_send}, f"Email could not be sent: {email_send['error_message']}")
