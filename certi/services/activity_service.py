"""
Activity Service
Business logic for courses/events certificates are issued against
"""

import logging
import uuid
from typing import List, Optional

from fastapi import HTTPException, status

from certi.database import database, row_to_dict, rows_to_dicts, pagination, as_bool, as_date
from certi.responses import field_error
from certi.schemas.activity import CreateActivityRequest, UpdateActivityRequest

logger = logging.getLogger(__name__)

ACTIVITY_SELECT = """
    SELECT a.*,
           (SELECT COUNT(*) FROM certificates c WHERE c.activity_id = a.id) AS certificates_count
    FROM activities a
"""

NULLABLE_FIELDS = ("description", "duration_hours", "start_date", "end_date")


class ActivityService:
    """Service for activity management operations"""

    @staticmethod
    async def get_activity(activity_id: str) -> dict:
        activity = await database.fetch_one(
            f"{ACTIVITY_SELECT} WHERE a.id = :id",
            {"id": activity_id}
        )
        if not activity:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Activity not found"
            )
        return row_to_dict(activity)

    @staticmethod
    async def list_activities(
        page: int = 1,
        per_page: int = 15,
        search: Optional[str] = None,
        activity_type: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> dict:
        conditions = []
        values = {}

        if search:
            conditions.append("(LOWER(a.name) LIKE :search OR LOWER(COALESCE(a.description, '')) LIKE :search)")
            values["search"] = f"%{search.lower()}%"
        if activity_type:
            conditions.append("a.type = :type")
            values["type"] = activity_type
        if is_active is not None:
            conditions.append("a.is_active = :is_active")
            values["is_active"] = is_active

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        total = await database.fetch_val(f"SELECT COUNT(*) FROM activities a {where}", values)
        rows = await database.fetch_all(
            f"""
            {ACTIVITY_SELECT} {where}
            ORDER BY a.created_at DESC, a.name
            LIMIT :limit OFFSET :offset
            """,
            {**values, "limit": per_page, "offset": (page - 1) * per_page}
        )
        return {"activities": rows_to_dicts(rows), "pagination": pagination(page, per_page, total or 0)}

    @staticmethod
    async def all_activities() -> List[dict]:
        """Unpaginated list for select boxes"""
        rows = await database.fetch_all(f"{ACTIVITY_SELECT} ORDER BY a.name")
        return rows_to_dicts(rows)

    @staticmethod
    async def create_activity(data: CreateActivityRequest) -> dict:
        activity_id = str(uuid.uuid4())
        await database.execute(
            """
            INSERT INTO activities
            (id, name, description, type, duration_hours, start_date, end_date, is_active, created_at, updated_at)
            VALUES (:id, :name, :description, :type, :duration_hours, :start_date, :end_date, :is_active,
                    CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
            """,
            {
                "id": activity_id,
                "name": data.name,
                "description": data.description,
                "type": data.type.value,
                "duration_hours": data.duration_hours,
                "start_date": data.start_date,
                "end_date": data.end_date,
                "is_active": data.is_active,
            }
        )
        logger.info("Activity created: %s (%s)", data.name, activity_id)
        return await ActivityService.get_activity(activity_id)

    @staticmethod
    async def update_activity(activity_id: str, data: UpdateActivityRequest) -> dict:
        activity = await ActivityService.get_activity(activity_id)
        fields = data.model_dump(exclude_unset=True)

        if "type" in fields and fields["type"] is not None:
            fields["type"] = fields["type"].value

        merged = {key: activity[key] for key in ("name", "description", "type", "duration_hours", "start_date", "end_date")}
        merged["is_active"] = as_bool(activity["is_active"])
        # name, type and is_active cannot be cleared; the rest accept an explicit null
        merged.update({
            key: value for key, value in fields.items()
            if value is not None or key in NULLABLE_FIELDS
        })

        start, end = as_date(merged["start_date"]), as_date(merged["end_date"])
        if start and end and end < start:
            raise field_error("end_date", "end_date must be a date after or equal to start_date.")

        await database.execute(
            """
            UPDATE activities
            SET name = :name, description = :description, type = :type, duration_hours = :duration_hours,
                start_date = :start_date, end_date = :end_date, is_active = :is_active,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = :id
            """,
            {**merged, "id": activity_id}
        )
        logger.info("Activity updated: %s", activity_id)
        return await ActivityService.get_activity(activity_id)

    @staticmethod
    async def delete_activity(activity_id: str) -> None:
        activity = await ActivityService.get_activity(activity_id)

        if activity["certificates_count"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The activity cannot be deleted because it has certificates"
            )

        await database.execute("DELETE FROM activities WHERE id = :id", {"id": activity_id})
        logger.info("Activity deleted: %s", activity["name"])

    @staticmethod
    async def toggle_status(activity_id: str, is_active: Optional[bool] = None) -> dict:
        """Set the active flag, or flip it when ``is_active`` is omitted"""
        activity = await ActivityService.get_activity(activity_id)
        new_value = (not as_bool(activity["is_active"])) if is_active is None else is_active

        await database.execute(
            "UPDATE activities SET is_active = :is_active, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
            {"id": activity_id, "is_active": new_value}
        )
        logger.info("Activity %s is_active=%s", activity_id, new_value)
        return await ActivityService.get_activity(activity_id)

    @staticmethod
    async def get_certificates(activity_id: str, page: int = 1, per_page: int = 15) -> dict:
        await ActivityService.get_activity(activity_id)

        total = await database.fetch_val(
            "SELECT COUNT(*) FROM certificates WHERE activity_id = :id",
            {"id": activity_id}
        )
        rows = await database.fetch_all(
            """
            SELECT id, unique_code, name, status, issue_date, issued_at, created_at
            FROM certificates
            WHERE activity_id = :id
            ORDER BY issued_at DESC
            LIMIT :limit OFFSET :offset
            """,
            {"id": activity_id, "limit": per_page, "offset": (page - 1) * per_page}
        )
        return {"certificates": rows_to_dicts(rows), "pagination": pagination(page, per_page, total or 0)}


# Create singleton instance
activity_service = ActivityService()
