"""
Certificate Template Routes
Multipart upload of template backgrounds plus text field layout
"""

import json
from io import BytesIO
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from certi.auth import require_permission
from certi.responses import success_response, created_response, field_error
from certi.schemas.common import ActivityType
from certi.schemas.template import (
    TemplateFields,
    UpdateTemplateFields,
    ToggleTemplateStatusRequest,
    CloneTemplateRequest,
    TemplateResponse,
    TemplateStatus,
)
from certi.services.render_service import render_service
from certi.services.template_service import template_service

router = APIRouter()


def _template(template: dict) -> dict:
    return TemplateResponse.model_validate(template).model_dump()


def _decode_text_fields(text_fields: Optional[str]):
    if text_fields is None or text_fields == "":
        return None
    try:
        value = json.loads(text_fields)
    except json.JSONDecodeError:
        raise field_error("text_fields", "The text fields must be a valid JSON string.")
    if not isinstance(value, list):
        raise field_error("text_fields", "The text fields must be a JSON list.")
    return value


def _form_model(model, values: dict):
    """Validate multipart form values, reporting errors like JSON bodies do"""
    try:
        return model.model_validate({k: v for k, v in values.items() if v is not None})
    except ValidationError as e:
        raise RequestValidationError(
            [{**error, "loc": ("body", *error["loc"])} for error in e.errors(include_url=False)]
        )


@router.get("")
async def list_templates(
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
    search: Optional[str] = Query(None),
    activity_type: Optional[ActivityType] = Query(None),
    status: Optional[TemplateStatus] = Query(None),
    current_user: dict = Depends(require_permission("templates.read"))
):
    result = await template_service.list_templates(
        page,
        per_page,
        search,
        activity_type.value if activity_type else None,
        status.value if status else None,
    )
    return success_response(
        {"templates": [_template(t) for t in result["templates"]], "pagination": result["pagination"]},
        "Templates retrieved successfully"
    )


@router.get("/list")
async def list_active_templates(
    activity_type: Optional[ActivityType] = Query(None),
    current_user: dict = Depends(require_permission("templates.read"))
):
    """Active templates for select boxes"""
    templates = await template_service.active_templates(activity_type.value if activity_type else None)
    return success_response({"templates": [_template(t) for t in templates]}, "Templates retrieved successfully")


@router.get("/{template_id}")
async def get_template(template_id: UUID, current_user: dict = Depends(require_permission("templates.read"))):
    template = await template_service.get_template(str(template_id))
    return success_response({"template": _template(template)}, "Template retrieved successfully")


@router.get("/{template_id}/preview")
async def preview_template(template_id: UUID, current_user: dict = Depends(require_permission("templates.read"))):
    """Render the template with placeholder data as an inline JPEG"""
    template = await template_service.get_template(str(template_id))
    content, media_type, _ = await render_service.render(
        template, render_service.sample_context(template), "jpg"
    )
    return StreamingResponse(
        BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f'inline; filename="template-preview-{template_id}.jpg"'}
    )


@router.post("")
async def create_template(
    name: str = Form(...),
    activity_type: str = Form(...),
    description: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    text_fields: Optional[str] = Form(None),
    template_file: Optional[UploadFile] = File(None),
    current_user: dict = Depends(require_permission("templates.create"))
):
    """
    Create a certificate template

    - **name**: unique template name
    - **activity_type**: course, event or other
    - **text_fields**: JSON list of positioned fields
    - **template_file**: optional jpg, jpeg, png or pdf background (max 5 MB)
    """
    data = _form_model(TemplateFields, {
        "name": name,
        "description": description,
        "activity_type": activity_type,
        "status": status,
        "text_fields": _decode_text_fields(text_fields),
    })
    template = await template_service.create_template(data, template_file)
    return created_response({"template": _template(template)}, "Template created successfully")


@router.api_route("/{template_id}", methods=["PUT", "POST"])
async def update_template(
    template_id: UUID,
    name: Optional[str] = Form(None),
    activity_type: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    text_fields: Optional[str] = Form(None),
    template_file: Optional[UploadFile] = File(None),
    current_user: dict = Depends(require_permission("templates.update"))
):
    """Update template fields; sending ``template_file`` replaces the background"""
    data = _form_model(UpdateTemplateFields, {
        "name": name,
        "description": description,
        "activity_type": activity_type,
        "status": status,
        "text_fields": _decode_text_fields(text_fields),
    })
    template = await template_service.update_template(str(template_id), data, template_file)
    return success_response({"template": _template(template)}, "Template updated successfully")


@router.delete("/{template_id}")
async def delete_template(template_id: UUID, current_user: dict = Depends(require_permission("templates.delete"))):
    await template_service.delete_template(str(template_id))
    return success_response(None, "Template deleted successfully")


@router.patch("/{template_id}/toggle-status")
async def toggle_template_status(
    template_id: UUID,
    request: Optional[ToggleTemplateStatusRequest] = Body(None),
    current_user: dict = Depends(require_permission("templates.update"))
):
    template = await template_service.toggle_status(str(template_id), request.is_active if request else None)
    state = "activated" if template["is_active"] else "deactivated"
    return success_response({"template": _template(template)}, f"Template {state} successfully")


@router.post("/{template_id}/clone")
async def clone_template(
    template_id: UUID,
    request: Optional[CloneTemplateRequest] = Body(None),
    current_user: dict = Depends(require_permission("templates.create"))
):
    template = await template_service.clone_template(
        str(template_id),
        request.name if request else None,
        request.description if request else None,
    )
    return created_response({"template": _template(template)}, "Template cloned successfully")
