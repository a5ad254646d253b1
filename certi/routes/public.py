"""
Public Routes
Certificate validation and lookup by code (no authentication required)
"""

from fastapi import APIRouter, Depends, Request

from certi.auth import get_optional_user
from certi.responses import success_response
from certi.schemas.certificate import PublicCertificateResponse
from certi.schemas.validation import ValidateCertificateRequest, ValidationResponse
from certi.services.certificate_service import certificate_service
from certi.services.validation_service import validation_service

router = APIRouter()


@router.post("/validate-certificate")
async def validate_certificate(
    request: ValidateCertificateRequest,
    http_request: Request,
    current_user: dict = Depends(get_optional_user)
):
    """
    Validate a certificate by its code

    A successful check records one validation row; failures answer 400
    and record nothing.
    """
    result = await validation_service.validate_certificate(
        request.certificate_code,
        validator_ip=http_request.client.host if http_request.client else None,
        user_agent=http_request.headers.get("user-agent"),
        user_id=current_user["id"] if current_user else None,
    )
    return success_response(result, "Certificate is valid")


@router.get("/validation/{code}")
async def get_validation_by_code(code: str):
    """Look up a past validation by its VAL- code"""
    validation = await validation_service.get_by_code(code)
    return success_response(
        {"validation": ValidationResponse.model_validate(validation).model_dump()},
        "Validation retrieved successfully"
    )


@router.get("/certificate/{code}")
async def get_certificate_by_code(code: str):
    """Public details of a certificate; does not record a validation"""
    certificate = await certificate_service.get_by_code(code)
    certificate["recipient_name"] = (certificate.get("user") or {}).get("name")
    return success_response(
        {"certificate": PublicCertificateResponse.model_validate(certificate).model_dump()},
        "Certificate retrieved successfully"
    )
