"""
Validation Routes
Audit trail of certificate validations
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from certi.auth import require_permission
from certi.responses import success_response, created_response
from certi.schemas.validation import CreateValidationRequest, ValidationResponse
from certi.services.validation_service import validation_service

router = APIRouter()


def _validation(validation: dict) -> dict:
    return ValidationResponse.model_validate(validation).model_dump()


@router.get("")
async def list_validations(
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    certificate_code: Optional[str] = Query(None),
    validation_code: Optional[str] = Query(None),
    validator_ip: Optional[str] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    current_user: dict = Depends(require_permission("validations.read"))
):
    result = await validation_service.list_validations(
        page, per_page, certificate_code, validation_code, validator_ip, date_from, date_to
    )
    return success_response(
        {"validations": [_validation(v) for v in result["validations"]], "pagination": result["pagination"]},
        "Validations retrieved successfully"
    )


@router.get("/statistics/overview")
async def validation_statistics(current_user: dict = Depends(require_permission("reports.validations"))):
    return success_response(await validation_service.statistics(), "Statistics retrieved successfully")


@router.get("/certificate/{certificate_id}")
async def validations_by_certificate(
    certificate_id: UUID,
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    current_user: dict = Depends(require_permission("validations.read"))
):
    result = await validation_service.list_validations(page, per_page, certificate_id=str(certificate_id))
    return success_response(
        {"validations": [_validation(v) for v in result["validations"]], "pagination": result["pagination"]},
        "Validations retrieved successfully"
    )


@router.get("/{validation_id}")
async def get_validation(validation_id: UUID, current_user: dict = Depends(require_permission("validations.read"))):
    validation = await validation_service.get_validation(str(validation_id))
    return success_response({"validation": _validation(validation)}, "Validation retrieved successfully")


@router.post("")
async def create_validation(
    request: CreateValidationRequest,
    http_request: Request,
    current_user: dict = Depends(require_permission("validations.create"))
):
    """Validate a certificate code on behalf of the authenticated validator"""
    result = await validation_service.validate_certificate(
        request.certificate_code,
        validator_ip=http_request.client.host if http_request.client else None,
        user_agent=http_request.headers.get("user-agent"),
        user_id=current_user["id"],
        notes=request.notes,
    )
    return created_response(result, "Certificate is valid")
