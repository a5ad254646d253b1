"""
Template Service
Business logic for certificate template management
"""

import json
import logging
import uuid
from typing import List, Optional

from fastapi import HTTPException, UploadFile, status

from certi.database import database, row_to_dict, rows_to_dicts, pagination
from certi.responses import field_error
from certi.schemas.template import TemplateFields, UpdateTemplateFields
from certi.services.image_optimizer import ImageOptimizer
from certi.services.storage_service import StorageService

logger = logging.getLogger(__name__)

TEMPLATE_SELECT = """
    SELECT t.*,
           (SELECT COUNT(*) FROM certificates c WHERE c.template_id = t.id) AS certificates_count
    FROM certificate_templates t
"""


class TemplateService:
    """Service for template management operations"""

    @staticmethod
    def _present(template: dict) -> dict:
        template["is_active"] = template.get("status") == "active"
        template["file_url"] = StorageService.public_url(template.get("file_path"))
        return template

    @staticmethod
    async def get_template(template_id: str) -> dict:
        template = await database.fetch_one(
            f"{TEMPLATE_SELECT} WHERE t.id = :template_id",
            {"template_id": template_id}
        )

        if not template:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Template not found"
            )

        return TemplateService._present(row_to_dict(template))

    @staticmethod
    async def list_templates(
        page: int = 1,
        per_page: int = 15,
        search: Optional[str] = None,
        activity_type: Optional[str] = None,
        template_status: Optional[str] = None,
    ) -> dict:
        conditions = []
        values = {}

        if search:
            conditions.append("(LOWER(t.name) LIKE :search OR LOWER(COALESCE(t.description, '')) LIKE :search)")
            values["search"] = f"%{search.lower()}%"
        if activity_type:
            conditions.append("t.activity_type = :activity_type")
            values["activity_type"] = activity_type
        if template_status:
            conditions.append("t.status = :status")
            values["status"] = template_status

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        total = await database.fetch_val(f"SELECT COUNT(*) FROM certificate_templates t {where}", values)
        rows = await database.fetch_all(
            f"""
            {TEMPLATE_SELECT} {where}
            ORDER BY t.created_at DESC, t.name
            LIMIT :limit OFFSET :offset
            """,
            {**values, "limit": per_page, "offset": (page - 1) * per_page}
        )

        return {
            "templates": [TemplateService._present(t) for t in rows_to_dicts(rows)],
            "pagination": pagination(page, per_page, total or 0),
        }

    @staticmethod
    async def active_templates(activity_type: Optional[str] = None) -> List[dict]:
        """Active templates for select boxes"""
        values = {"status": "active"}
        where = "WHERE t.status = :status"
        if activity_type:
            where += " AND t.activity_type = :activity_type"
            values["activity_type"] = activity_type
        rows = await database.fetch_all(f"{TEMPLATE_SELECT} {where} ORDER BY t.name", values)
        return [TemplateService._present(t) for t in rows_to_dicts(rows)]

    @staticmethod
    async def _ensure_unique_name(name: str, exclude_id: Optional[str] = None) -> None:
        existing = await database.fetch_one(
            "SELECT id FROM certificate_templates WHERE name = :name",
            {"name": name}
        )
        if existing and str(existing[0]) != str(exclude_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Template '{name}' already exists"
            )

    @staticmethod
    async def _store_upload(upload: UploadFile) -> tuple:
        """Validate, optimize and store an uploaded background. Returns (path, size)"""
        content, extension, mime_type = await StorageService.validate_template_upload(upload)
        try:
            content, extension, mime_type = ImageOptimizer.optimize(content, extension)
        except ValueError as e:
            raise field_error("template_file", str(e))

        path = f"templates/{uuid.uuid4().hex}.{extension}"
        stored = await StorageService.save(path, content, mime_type)
        return stored, len(content)

    @staticmethod
    async def _release_file(file_path: Optional[str], exclude_id: Optional[str] = None) -> None:
        """Delete a stored background unless another template still uses it"""
        if not file_path:
            return
        users = await database.fetch_val(
            "SELECT COUNT(*) FROM certificate_templates WHERE file_path = :file_path AND id != :id",
            {"file_path": file_path, "id": str(exclude_id or "")}
        )
        if not users:
            await StorageService.delete(file_path)

    @staticmethod
    async def create_template(data: TemplateFields, upload: Optional[UploadFile] = None) -> dict:
        """
        Create a new certificate template

        The optional upload (jpg, jpeg, png or pdf) becomes the background.
        Text field coordinates are stored as JSON.
        """
        await TemplateService._ensure_unique_name(data.name)

        file_path, file_size = (None, None)
        if upload is not None and upload.filename:
            file_path, file_size = await TemplateService._store_upload(upload)

        template_id = str(uuid.uuid4())
        text_fields_json = json.dumps([field.model_dump(mode="json") for field in data.text_fields])

        async with database.transaction():
            await database.execute(
                """
                INSERT INTO certificate_templates
                (id, name, description, activity_type, status, file_path, file_size_bytes, text_fields,
                 created_at, updated_at)
                VALUES (:id, :name, :description, :activity_type, :status, :file_path, :file_size_bytes, :text_fields,
                        CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
                """,
                {
                    "id": template_id,
                    "name": data.name,
                    "description": data.description,
                    "activity_type": data.activity_type.value,
                    "status": data.status.value,
                    "file_path": file_path,
                    "file_size_bytes": file_size,
                    "text_fields": text_fields_json,
                }
            )

        logger.info("Template created: %s (%s)", data.name, template_id)
        return await TemplateService.get_template(template_id)

    @staticmethod
    async def update_template(
        template_id: str,
        data: UpdateTemplateFields,
        upload: Optional[UploadFile] = None,
    ) -> dict:
        template = await TemplateService.get_template(template_id)
        fields = data.model_dump(exclude_unset=True, mode="json")

        if fields.get("name") and fields["name"] != template["name"]:
            await TemplateService._ensure_unique_name(fields["name"], exclude_id=template_id)

        old_file = template["file_path"]
        file_path, file_size = old_file, template.get("file_size_bytes")
        if upload is not None and upload.filename:
            file_path, file_size = await TemplateService._store_upload(upload)

        text_fields = template["text_fields"]
        if fields.get("text_fields") is not None:
            text_fields = json.dumps(fields["text_fields"])
        elif not isinstance(text_fields, str):
            text_fields = json.dumps(text_fields or [])

        async with database.transaction():
            await database.execute(
                """
                UPDATE certificate_templates
                SET name = :name, description = :description, activity_type = :activity_type,
                    status = :status, file_path = :file_path, file_size_bytes = :file_size_bytes,
                    text_fields = :text_fields, updated_at = CURRENT_TIMESTAMP
                WHERE id = :id
                """,
                {
                    "id": template_id,
                    "name": fields.get("name") or template["name"],
                    "description": fields["description"] if "description" in fields else template["description"],
                    "activity_type": fields.get("activity_type") or template["activity_type"],
                    "status": fields.get("status") or template["status"],
                    "file_path": file_path,
                    "file_size_bytes": file_size,
                    "text_fields": text_fields,
                }
            )

        if file_path != old_file:
            await TemplateService._release_file(old_file, exclude_id=template_id)

        logger.info("Template updated: %s fields=%s", template_id, sorted(fields))
        return await TemplateService.get_template(template_id)

    @staticmethod
    async def delete_template(template_id: str) -> None:
        template = await TemplateService.get_template(template_id)

        if template["certificates_count"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The template cannot be deleted because it has associated certificates"
            )

        async with database.transaction():
            await database.execute(
                "DELETE FROM certificate_templates WHERE id = :id",
                {"id": template_id}
            )

        await TemplateService._release_file(template["file_path"], exclude_id=template_id)
        logger.info("Template deleted: %s", template["name"])

    @staticmethod
    async def toggle_status(template_id: str, is_active: Optional[bool] = None) -> dict:
        """Activate/deactivate; flips the current status when ``is_active`` is omitted"""
        template = await TemplateService.get_template(template_id)
        active = (not template["is_active"]) if is_active is None else is_active
        new_status = "active" if active else "inactive"

        await database.execute(
            "UPDATE certificate_templates SET status = :status, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
            {"id": template_id, "status": new_status}
        )

        logger.info("Template %s status=%s", template_id, new_status)
        return await TemplateService.get_template(template_id)

    @staticmethod
    async def _copy_name(name: str) -> str:
        candidate = f"{name} (Copy)"
        counter = 2
        while await database.fetch_one(
            "SELECT id FROM certificate_templates WHERE name = :name",
            {"name": candidate}
        ):
            candidate = f"{name} (Copy {counter})"
            counter += 1
        return candidate

    @staticmethod
    async def clone_template(template_id: str, name: Optional[str] = None, description: Optional[str] = None) -> dict:
        """Copy a template; the background file is shared with the original"""
        template = await TemplateService.get_template(template_id)

        if name:
            await TemplateService._ensure_unique_name(name)
        else:
            name = await TemplateService._copy_name(template["name"])

        text_fields = template["text_fields"]
        if not isinstance(text_fields, str):
            text_fields = json.dumps(text_fields or [])

        new_id = str(uuid.uuid4())
        async with database.transaction():
            await database.execute(
                """
                INSERT INTO certificate_templates
                (id, name, description, activity_type, status, file_path, file_size_bytes, text_fields,
                 created_at, updated_at)
                VALUES (:id, :name, :description, :activity_type, :status, :file_path, :file_size_bytes, :text_fields,
                        CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
                """,
                {
                    "id": new_id,
                    "name": name,
                    "description": description if description is not None else template["description"],
                    "activity_type": template["activity_type"],
                    "status": template["status"],
                    "file_path": template["file_path"],
                    "file_size_bytes": template.get("file_size_bytes"),
                    "text_fields": text_fields,
                }
            )

        logger.info("Template %s cloned into %s", template_id, new_id)
        return await TemplateService.get_template(new_id)


# Create singleton instance
template_service = TemplateService()
