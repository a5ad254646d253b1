"""
Validation Service
Certificate verification by code and the append-only validation audit trail
"""

import logging
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, status

from certi.database import database, row_to_dict, rows_to_dicts, pagination, as_date
from certi.services.codes import generate_validation_code

logger = logging.getLogger(__name__)

VALIDATION_SELECT = """
    SELECT v.*,
           c.unique_code AS certificate_code, c.name AS certificate_name, c.status AS certificate_status,
           a.name AS activity_name
    FROM validations v
    JOIN certificates c ON c.id = v.certificate_id
    LEFT JOIN activities a ON a.id = c.activity_id
"""


def _present(row: dict) -> dict:
    validation = dict(row)
    validation["certificate"] = {
        "id": validation["certificate_id"],
        "unique_code": validation.pop("certificate_code"),
        "name": validation.pop("certificate_name"),
        "status": validation.pop("certificate_status"),
        "activity_name": validation.pop("activity_name"),
    }
    return validation


class ValidationService:
    """Service for certificate validation"""

    @staticmethod
    async def validate_certificate(
        code: str,
        validator_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        user_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> dict:
        """
        Check a certificate code and record the validation

        Only ``issued`` certificates that have not passed their expiry date
        validate. A failed check raises 400 and leaves no audit row.

        Returns:
            Dict with ``certificate`` (including its activity) and ``validation``
        """
        async with database.transaction():
            row = await database.fetch_one(
                """
                SELECT c.*, a.name AS activity_name, a.description AS activity_description,
                       a.duration_hours AS activity_duration_hours, u.name AS recipient_name
                FROM certificates c
                LEFT JOIN activities a ON a.id = c.activity_id
                LEFT JOIN users u ON u.id = c.user_id
                WHERE c.unique_code = :code
                """,
                {"code": code}
            )

            if not row:
                logger.info("Validation failed for %s: not found", code)
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Certificate not found"
                )

            certificate = row_to_dict(row)

            if certificate["status"] != "issued":
                logger.info("Validation failed for %s: status %s", code, certificate["status"])
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Certificate is not active or has been revoked"
                )

            expiry_date = as_date(certificate["expiry_date"])
            if expiry_date and expiry_date < date.today():
                logger.info("Validation failed for %s: expired on %s", code, expiry_date)
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Certificate has expired"
                )

            validation_id = str(uuid.uuid4())
            validation_code = await generate_validation_code()
            await database.execute(
                """
                INSERT INTO validations
                (id, certificate_id, user_id, validation_code, validator_ip, validator_user_agent, notes,
                 validated_at)
                VALUES (:id, :certificate_id, :user_id, :validation_code, :validator_ip, :validator_user_agent,
                        :notes, CURRENT_TIMESTAMP)
                """,
                {
                    "id": validation_id,
                    "certificate_id": str(certificate["id"]),
                    "user_id": str(user_id) if user_id else None,
                    "validation_code": validation_code,
                    "validator_ip": validator_ip,
                    "validator_user_agent": (user_agent or "")[:500] or None,
                    "notes": notes,
                }
            )

        logger.info("Certificate %s validated (%s) from %s", code, validation_code, validator_ip)

        validation = await database.fetch_one("SELECT * FROM validations WHERE id = :id", {"id": validation_id})

        activity = None
        if certificate.get("activity_name"):
            activity = {
                "id": certificate["activity_id"],
                "name": certificate["activity_name"],
                "description": certificate["activity_description"],
                "duration_hours": certificate["activity_duration_hours"],
            }

        return {
            "certificate": {
                "id": certificate["id"],
                "unique_code": certificate["unique_code"],
                "name": certificate["name"],
                "description": certificate["description"],
                "status": certificate["status"],
                "issue_date": certificate["issue_date"],
                "expiry_date": certificate["expiry_date"],
                "issued_at": certificate["issued_at"],
                "recipient_name": certificate["recipient_name"],
                "activity": activity,
            },
            "validation": row_to_dict(validation),
        }

    @staticmethod
    async def get_validation(validation_id: str) -> dict:
        row = await database.fetch_one(f"{VALIDATION_SELECT} WHERE v.id = :id", {"id": validation_id})
        if not row:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Validation not found"
            )
        return _present(row_to_dict(row))

    @staticmethod
    async def get_by_code(validation_code: str) -> dict:
        row = await database.fetch_one(
            f"{VALIDATION_SELECT} WHERE v.validation_code = :code",
            {"code": validation_code}
        )
        if not row:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Validation not found"
            )
        return _present(row_to_dict(row))

    @staticmethod
    async def list_validations(
        page: int = 1,
        per_page: int = 15,
        certificate_code: Optional[str] = None,
        validation_code: Optional[str] = None,
        validator_ip: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        certificate_id: Optional[str] = None,
    ) -> dict:
        conditions = []
        values = {}

        if certificate_code:
            conditions.append("LOWER(c.unique_code) LIKE :certificate_code")
            values["certificate_code"] = f"%{certificate_code.lower()}%"
        if validation_code:
            conditions.append("LOWER(v.validation_code) LIKE :validation_code")
            values["validation_code"] = f"%{validation_code.lower()}%"
        if validator_ip:
            conditions.append("v.validator_ip = :validator_ip")
            values["validator_ip"] = validator_ip
        if date_from:
            conditions.append("v.validated_at >= :date_from")
            values["date_from"] = datetime(date_from.year, date_from.month, date_from.day, tzinfo=timezone.utc)
        if date_to:
            next_day = date_to + timedelta(days=1)
            conditions.append("v.validated_at < :date_to")
            values["date_to"] = datetime(next_day.year, next_day.month, next_day.day, tzinfo=timezone.utc)
        if certificate_id:
            conditions.append("v.certificate_id = :certificate_id")
            values["certificate_id"] = str(certificate_id)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        total = await database.fetch_val(
            f"SELECT COUNT(*) FROM validations v JOIN certificates c ON c.id = v.certificate_id {where}",
            values
        )
        rows = await database.fetch_all(
            f"""
            {VALIDATION_SELECT} {where}
            ORDER BY v.validated_at DESC, v.validation_code
            LIMIT :limit OFFSET :offset
            """,
            {**values, "limit": per_page, "offset": (page - 1) * per_page}
        )

        return {
            "validations": [_present(row) for row in rows_to_dicts(rows)],
            "pagination": pagination(page, per_page, total or 0),
        }

    @staticmethod
    async def statistics() -> dict:
        """Validation counts for today, this week, this month and the last 30 days"""
        now = datetime.now(timezone.utc)
        today = datetime(now.year, now.month, now.day, tzinfo=timezone.utc)
        week_start = today - timedelta(days=today.weekday())
        month_start = today.replace(day=1)
        thirty_days_ago = today - timedelta(days=29)

        async def count_since(since: datetime) -> int:
            return await database.fetch_val(
                "SELECT COUNT(*) FROM validations WHERE validated_at >= :since",
                {"since": since}
            ) or 0

        daily = await database.fetch_all(
            """
            SELECT DATE(validated_at) AS day, COUNT(*) AS total
            FROM validations
            WHERE validated_at >= :since
            GROUP BY DATE(validated_at)
            ORDER BY day
            """,
            {"since": thirty_days_ago}
        )

        return {
            "total": await database.fetch_val("SELECT COUNT(*) FROM validations") or 0,
            "today": await count_since(today),
            "this_week": await count_since(week_start),
            "this_month": await count_since(month_start),
            "daily_validations": [
                {"date": str(row["day"]), "total": row["total"]} for row in rows_to_dicts(daily)
            ],
        }


# Create singleton instance
validation_service = ValidationService()
