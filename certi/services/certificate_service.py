"""
Certificate Service
Business logic for certificate issuance, documents and statistics
"""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple

from fastapi import HTTPException, status

from certi.database import database, row_to_dict, rows_to_dicts, pagination
from certi.responses import field_error
from certi.schemas.certificate import CreateCertificateRequest, UpdateCertificateRequest
from certi.services.codes import generate_certificate_code
from certi.services.render_service import RenderService
from certi.services.storage_service import StorageService

logger = logging.getLogger(__name__)

CERTIFICATE_SELECT = """
    SELECT c.*,
           u.name AS user_name, u.email AS user_email,
           a.name AS activity_name, a.description AS activity_description,
           a.duration_hours AS activity_duration_hours,
           t.name AS template_name, t.activity_type AS template_activity_type, t.status AS template_status,
           s.name AS signer_name, s.email AS signer_email,
           (SELECT COUNT(*) FROM certificate_documents d WHERE d.certificate_id = c.id) AS documents_count,
           (SELECT COUNT(*) FROM validations v WHERE v.certificate_id = c.id) AS validations_count
    FROM certificates c
    LEFT JOIN users u ON u.id = c.user_id
    LEFT JOIN activities a ON a.id = c.activity_id
    LEFT JOIN certificate_templates t ON t.id = c.template_id
    LEFT JOIN users s ON s.id = c.signed_by
"""

CERTIFICATE_STATUSES = ("issued", "active", "revoked", "expired", "pending", "cancelled")


def nest_certificate(row: dict) -> dict:
    """Fold the joined columns into user/activity/template/signer objects"""
    certificate = dict(row)
    user_name = certificate.pop("user_name", None)
    user_email = certificate.pop("user_email", None)
    activity_name = certificate.pop("activity_name", None)
    activity_description = certificate.pop("activity_description", None)
    activity_duration = certificate.pop("activity_duration_hours", None)
    template_name = certificate.pop("template_name", None)
    template_activity_type = certificate.pop("template_activity_type", None)
    template_status = certificate.pop("template_status", None)
    signer_name = certificate.pop("signer_name", None)
    signer_email = certificate.pop("signer_email", None)

    certificate["user"] = (
        {"id": certificate["user_id"], "name": user_name, "email": user_email} if user_name else None
    )
    certificate["activity"] = (
        {
            "id": certificate["activity_id"],
            "name": activity_name,
            "description": activity_description,
            "duration_hours": activity_duration,
        }
        if activity_name else None
    )
    certificate["template"] = (
        {
            "id": certificate["template_id"],
            "name": template_name,
            "activity_type": template_activity_type,
            "status": template_status,
        }
        if template_name else None
    )
    certificate["signer"] = (
        {"id": certificate["signed_by"], "name": signer_name, "email": signer_email} if signer_name else None
    )
    return certificate


class CertificateService:
    """Service for certificate management operations"""

    @staticmethod
    async def _fetch(where: str, values: dict) -> Optional[dict]:
        row = await database.fetch_one(f"{CERTIFICATE_SELECT} WHERE {where}", values)
        return nest_certificate(row_to_dict(row)) if row else None

    @staticmethod
    async def get_certificate(certificate_id: str, with_relations: bool = True) -> dict:
        """Certificate with user/activity/template/signer and, optionally, documents and validations"""
        certificate = await CertificateService._fetch("c.id = :id", {"id": certificate_id})
        if not certificate:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Certificate not found"
            )

        if with_relations:
            documents = await database.fetch_all(
                """
                SELECT * FROM certificate_documents
                WHERE certificate_id = :id
                ORDER BY uploaded_at DESC
                """,
                {"id": certificate_id}
            )
            validations = await database.fetch_all(
                """
                SELECT id, validation_code, validated_at, validator_ip, validator_user_agent
                FROM validations
                WHERE certificate_id = :id
                ORDER BY validated_at DESC
                """,
                {"id": certificate_id}
            )
            certificate["documents"] = rows_to_dicts(documents)
            certificate["validations"] = rows_to_dicts(validations)

        return certificate

    @staticmethod
    async def get_by_code(code: str) -> dict:
        certificate = await CertificateService._fetch("c.unique_code = :code", {"code": code})
        if not certificate:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Certificate not found"
            )
        return certificate

    @staticmethod
    async def list_certificates(
        page: int = 1,
        per_page: int = 15,
        search: Optional[str] = None,
        activity_id: Optional[str] = None,
        template_id: Optional[str] = None,
        user_id: Optional[str] = None,
        certificate_status: Optional[str] = None,
        issue_date_from: Optional[date] = None,
        issue_date_to: Optional[date] = None,
        expiry_date_from: Optional[date] = None,
        expiry_date_to: Optional[date] = None,
    ) -> dict:
        """
        Paginated certificates, newest first

        ``search`` matches certificate name, description, code and the
        recipient's name or email.
        """
        conditions = []
        values = {}

        if search:
            conditions.append(
                """
                (LOWER(c.name) LIKE :search
                 OR LOWER(COALESCE(c.description, '')) LIKE :search
                 OR LOWER(c.unique_code) LIKE :search
                 OR LOWER(COALESCE(u.name, '')) LIKE :search
                 OR LOWER(COALESCE(u.email, '')) LIKE :search)
                """
            )
            values["search"] = f"%{search.lower()}%"
        if activity_id:
            conditions.append("c.activity_id = :activity_id")
            values["activity_id"] = str(activity_id)
        if template_id:
            conditions.append("c.template_id = :template_id")
            values["template_id"] = str(template_id)
        if user_id:
            conditions.append("c.user_id = :user_id")
            values["user_id"] = str(user_id)
        if certificate_status:
            conditions.append("c.status = :status")
            values["status"] = certificate_status
        if issue_date_from:
            conditions.append("c.issue_date >= :issue_date_from")
            values["issue_date_from"] = issue_date_from
        if issue_date_to:
            conditions.append("c.issue_date <= :issue_date_to")
            values["issue_date_to"] = issue_date_to
        if expiry_date_from:
            conditions.append("c.expiry_date >= :expiry_date_from")
            values["expiry_date_from"] = expiry_date_from
        if expiry_date_to:
            conditions.append("c.expiry_date <= :expiry_date_to")
            values["expiry_date_to"] = expiry_date_to

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        total = await database.fetch_val(
            f"SELECT COUNT(*) FROM certificates c LEFT JOIN users u ON u.id = c.user_id {where}",
            values
        )
        rows = await database.fetch_all(
            f"""
            {CERTIFICATE_SELECT} {where}
            ORDER BY c.issued_at DESC, c.unique_code
            LIMIT :limit OFFSET :offset
            """,
            {**values, "limit": per_page, "offset": (page - 1) * per_page}
        )

        return {
            "certificates": [nest_certificate(row) for row in rows_to_dicts(rows)],
            "pagination": pagination(page, per_page, total or 0),
        }

    @staticmethod
    async def _ensure_exists(table: str, field: str, value, label: str) -> None:
        found = await database.fetch_val(f"SELECT COUNT(*) FROM {table} WHERE id = :id", {"id": str(value)})
        if not found:
            raise field_error(field, f"The selected {label} is invalid.")

    @staticmethod
    async def _check_references(fields: dict) -> None:
        if fields.get("user_id") is not None:
            await CertificateService._ensure_exists("users", "user_id", fields["user_id"], "user")
        if fields.get("activity_id") is not None:
            await CertificateService._ensure_exists("activities", "activity_id", fields["activity_id"], "activity")
        if fields.get("template_id") is not None:
            await CertificateService._ensure_exists(
                "certificate_templates", "template_id", fields["template_id"], "template"
            )
        if fields.get("signed_by") is not None:
            await CertificateService._ensure_exists("users", "signed_by", fields["signed_by"], "signer")

    @staticmethod
    async def create_certificate(data: CreateCertificateRequest, issued_by: Optional[str] = None) -> dict:
        """
        Issue a certificate

        Referenced user, activity, template and signer must exist. The code is
        ``CERT-`` plus 8 characters and is unique across all certificates.
        """
        await CertificateService._check_references(data.model_dump())

        certificate_id = str(uuid.uuid4())
        issue_date = data.issue_date or date.today()

        async with database.transaction():
            unique_code = await generate_certificate_code()
            await database.execute(
                """
                INSERT INTO certificates
                (id, user_id, activity_id, template_id, signed_by, name, description, unique_code, qr_url,
                 issue_date, expiry_date, issued_at, status, created_at, updated_at)
                VALUES (:id, :user_id, :activity_id, :template_id, :signed_by, :name, :description, :unique_code,
                        :qr_url, :issue_date, :expiry_date, CURRENT_TIMESTAMP, :status,
                        CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
                """,
                {
                    "id": certificate_id,
                    "user_id": str(data.user_id),
                    "activity_id": str(data.activity_id),
                    "template_id": str(data.template_id),
                    "signed_by": str(data.signed_by) if data.signed_by else None,
                    "name": data.name,
                    "description": data.description,
                    "unique_code": unique_code,
                    "qr_url": data.qr_url,
                    "issue_date": issue_date,
                    "expiry_date": data.expiry_date,
                    "status": data.status.value,
                }
            )

        logger.info("Certificate %s issued to user %s by %s", unique_code, data.user_id, issued_by)
        return await CertificateService.get_certificate(certificate_id)

    @staticmethod
    async def update_certificate(certificate_id: str, data: UpdateCertificateRequest) -> dict:
        certificate = await CertificateService.get_certificate(certificate_id, with_relations=False)
        fields = data.model_dump(exclude_unset=True, mode="json")

        await CertificateService._check_references(fields)

        merged = {
            key: certificate[key]
            for key in ("user_id", "activity_id", "template_id", "signed_by", "name", "description",
                        "qr_url", "issue_date", "expiry_date", "status")
        }
        # user, activity, template, name, issue date and status cannot be cleared
        merged.update({
            key: value for key, value in fields.items()
            if value is not None or key in ("signed_by", "description", "qr_url", "expiry_date")
        })

        issue_date = date.fromisoformat(str(merged["issue_date"])[:10])
        expiry_date = date.fromisoformat(str(merged["expiry_date"])[:10]) if merged["expiry_date"] else None
        if expiry_date and expiry_date <= issue_date:
            raise field_error("expiry_date", "expiry_date must be a date after issue_date.")

        values = {key: (str(value) if value is not None else None) for key, value in merged.items()}
        values["issue_date"] = issue_date
        values["expiry_date"] = expiry_date

        await database.execute(
            """
            UPDATE certificates
            SET user_id = :user_id, activity_id = :activity_id, template_id = :template_id,
                signed_by = :signed_by, name = :name, description = :description, qr_url = :qr_url,
                issue_date = :issue_date, expiry_date = :expiry_date, status = :status,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = :id
            """,
            {**values, "id": certificate_id}
        )

        logger.info("Certificate updated: %s fields=%s", certificate["unique_code"], sorted(fields))
        return await CertificateService.get_certificate(certificate_id)

    @staticmethod
    async def delete_certificate(certificate_id: str) -> None:
        """Delete a certificate together with its documents, validations and email log"""
        certificate = await CertificateService.get_certificate(certificate_id)

        async with database.transaction():
            await database.execute("DELETE FROM certificate_documents WHERE certificate_id = :id", {"id": certificate_id})
            await database.execute("DELETE FROM validations WHERE certificate_id = :id", {"id": certificate_id})
            await database.execute("DELETE FROM email_sends WHERE certificate_id = :id", {"id": certificate_id})
            await database.execute("DELETE FROM certificates WHERE id = :id", {"id": certificate_id})

        for document in certificate.get("documents") or []:
            await StorageService.delete(document["file_path"])

        logger.info("Certificate deleted: %s", certificate["unique_code"])

    @staticmethod
    async def change_status(certificate_id: str, new_status: str) -> dict:
        certificate = await CertificateService.get_certificate(certificate_id, with_relations=False)

        await database.execute(
            "UPDATE certificates SET status = :status, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
            {"id": certificate_id, "status": new_status}
        )

        logger.info("Certificate %s status %s -> %s", certificate["unique_code"], certificate["status"], new_status)
        return await CertificateService.get_certificate(certificate_id)

    # Rendering

    @staticmethod
    def render_context(certificate: dict) -> dict:
        user = certificate.get("user") or {}
        activity = certificate.get("activity") or {}
        return {
            "recipient_name": user.get("name") or "",
            "name": certificate["name"],
            "activity_name": activity.get("name") or "",
            "issue_date": certificate["issue_date"],
            "unique_code": certificate["unique_code"],
        }

    @staticmethod
    async def render_certificate(certificate: dict, fmt: str = "pdf") -> Tuple[bytes, str, str]:
        """Render to (content, media type, extension)"""
        template = None
        if certificate.get("template_id"):
            row = await database.fetch_one(
                "SELECT * FROM certificate_templates WHERE id = :id",
                {"id": str(certificate["template_id"])}
            )
            template = row_to_dict(row)

        return await RenderService.render(template, CertificateService.render_context(certificate), fmt)

    @staticmethod
    def download_filename(certificate: dict, extension: str) -> str:
        return f"certificate-{certificate['unique_code']}.{extension}"

    @staticmethod
    async def generate_document(certificate_id: str, fmt: str = "pdf") -> dict:
        """Render the certificate, store the file and record it as a document"""
        certificate = await CertificateService.get_certificate(certificate_id, with_relations=False)
        content, mime_type, extension = await CertificateService.render_certificate(certificate, fmt)

        file_name = CertificateService.download_filename(certificate, extension)
        file_path = await StorageService.save(f"certificates/{certificate_id}/{file_name}", content, mime_type)

        document_id = str(uuid.uuid4())
        await database.execute(
            """
            INSERT INTO certificate_documents
            (id, certificate_id, document_type, file_name, file_path, mime_type, file_size, uploaded_at, created_at)
            VALUES (:id, :certificate_id, :document_type, :file_name, :file_path, :mime_type, :file_size,
                    CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
            """,
            {
                "id": document_id,
                "certificate_id": certificate_id,
                "document_type": "pdf" if extension == "pdf" else "image",
                "file_name": file_name,
                "file_path": file_path,
                "mime_type": mime_type,
                "file_size": len(content),
            }
        )

        logger.info("Document %s generated for certificate %s", file_name, certificate["unique_code"])
        document = await database.fetch_one("SELECT * FROM certificate_documents WHERE id = :id", {"id": document_id})
        document = row_to_dict(document)
        document["file_url"] = StorageService.public_url(file_path)
        return document

    # Statistics

    @staticmethod
    async def statistics_overview() -> dict:
        rows = await database.fetch_all("SELECT status, COUNT(*) AS total FROM certificates GROUP BY status")
        by_status = {status_name: 0 for status_name in CERTIFICATE_STATUSES}
        for row in rows_to_dicts(rows):
            by_status[row["status"]] = row["total"]

        today = date.today()
        month_start = datetime(today.year, today.month, 1, tzinfo=timezone.utc)
        this_month = await database.fetch_val(
            "SELECT COUNT(*) FROM certificates WHERE issued_at >= :month_start",
            {"month_start": month_start}
        )
        expiring = await database.fetch_val(
            "SELECT COUNT(*) FROM certificates WHERE expiry_date IS NOT NULL AND expiry_date < :today",
            {"today": today}
        )

        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "this_month": this_month or 0,
            "past_expiry_date": expiring or 0,
        }

    @staticmethod
    async def statistics_by_activity() -> List[dict]:
        rows = await database.fetch_all(
            """
            SELECT a.id AS activity_id, a.name AS activity_name, COUNT(c.id) AS total
            FROM activities a
            LEFT JOIN certificates c ON c.activity_id = a.id
            GROUP BY a.id, a.name
            ORDER BY total DESC, a.name
            """
        )
        return rows_to_dicts(rows)


# Create singleton instance
certificate_service = CertificateService()
