"""
Dashboard Routes
"""

from fastapi import APIRouter, Depends, Query

from certi.auth import require_permission
from certi.responses import success_response
from certi.schemas.certificate import CertificateResponse
from certi.services.dashboard_service import dashboard_service

router = APIRouter()


@router.get("/stats")
async def dashboard_stats(current_user: dict = Depends(require_permission("certificates.read"))):
    return success_response(await dashboard_service.stats(), "Statistics retrieved successfully")


@router.get("/recent-certificates")
async def recent_certificates(
    limit: int = Query(5, ge=1, le=50),
    current_user: dict = Depends(require_permission("certificates.read"))
):
    certificates = await dashboard_service.recent_certificates(limit)
    return success_response(
        [CertificateResponse.model_validate(c).model_dump() for c in certificates],
        "Recent certificates retrieved successfully"
    )


@router.get("/data")
async def dashboard_data(
    limit: int = Query(5, ge=1, le=50),
    current_user: dict = Depends(require_permission("certificates.read"))
):
    """Stats and recent certificates in one call"""
    data = await dashboard_service.data(limit)
    data["recentCertificates"] = [
        CertificateResponse.model_validate(c).model_dump() for c in data["recentCertificates"]
    ]
    return success_response(data, "Dashboard data retrieved successfully")
