"""
API Response Envelope
Every JSON response is {success, message, data|errors}
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(
    data: Any = None,
    message: str = "Operation completed successfully",
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": True, "message": message, "data": data}),
    )


def created_response(data: Any = None, message: str = "Resource created successfully") -> JSONResponse:
    return success_response(data, message, status.HTTP_201_CREATED)


def error_response(
    message: str = "An error occurred",
    status_code: int = status.HTTP_400_BAD_REQUEST,
    errors: Optional[Dict[str, List[str]]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content), headers=headers)


def validation_errors(errors: Dict[str, List[str]], message: str = "Validation errors") -> JSONResponse:
    return error_response(message, status.HTTP_422_UNPROCESSABLE_ENTITY, errors)


def field_error(field: str, message: str, status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY) -> HTTPException:
    """HTTPException rendered by the app handler as a field-keyed validation error"""
    return HTTPException(
        status_code=status_code,
        detail={"message": "Validation errors", "errors": {field: [message]}},
    )
