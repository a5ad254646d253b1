"""
Dashboard Service
Summary numbers for the admin dashboard
"""

from datetime import date, datetime, timezone

from certi.database import database, rows_to_dicts
from certi.services.certificate_service import CERTIFICATE_SELECT, nest_certificate


class DashboardService:

    @staticmethod
    async def stats() -> dict:
        today = date.today()
        month_start = datetime(today.year, today.month, 1, tzinfo=timezone.utc)

        async def count(query: str, values: dict = None) -> int:
            return await database.fetch_val(query, values) or 0

        return {
            "totalUsers": await count("SELECT COUNT(*) FROM users"),
            "totalCertificates": await count("SELECT COUNT(*) FROM certificates"),
            "activeCertificates": await count(
                "SELECT COUNT(*) FROM certificates WHERE status IN ('issued', 'active')"
            ),
            "revokedCertificates": await count("SELECT COUNT(*) FROM certificates WHERE status = 'revoked'"),
            "thisMonthCertificates": await count(
                "SELECT COUNT(*) FROM certificates WHERE issued_at >= :month_start",
                {"month_start": month_start}
            ),
            "totalValidations": await count("SELECT COUNT(*) FROM validations"),
        }

    @staticmethod
    async def recent_certificates(limit: int = 5) -> list:
        rows = await database.fetch_all(
            f"{CERTIFICATE_SELECT} ORDER BY c.issued_at DESC, c.created_at DESC LIMIT :limit",
            {"limit": limit}
        )
        return [nest_certificate(row) for row in rows_to_dicts(rows)]

    @staticmethod
    async def data(limit: int = 5) -> dict:
        return {
            "stats": await DashboardService.stats(),
            "recentCertificates": await DashboardService.recent_certificates(limit),
        }


dashboard_service = DashboardService()
