"""Uniform JSON response envelope."""

from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from workbench.core.exceptions import ValidationError, WorkbenchError


def send_response(
    message: str,
    data: Any = None,
    status_code: int = status.HTTP_200_OK,
    error: Optional[dict] = None,
    request_id: Optional[str] = None,
) -> JSONResponse:
    """Build ``{success, message, data?, error?, request_id?}`` with the given status."""
    content: dict = {
        "success": 200 <= status_code < 300,
        "message": message,
    }
    if data is not None:
        content["data"] = jsonable_encoder(data)
    if error is not None:
        content["error"] = jsonable_encoder(error)
    if request_id is not None:
        content["request_id"] = request_id
    return JSONResponse(status_code=status_code, content=content)


def error_response(exc: WorkbenchError, request_id: Optional[str] = None) -> JSONResponse:
    """Render a domain error into the envelope.

    ``request_id`` lets a client quote the failing request back to the logs.
    """
    error: dict = {"code": exc.code, "message": exc.message}
    if isinstance(exc, ValidationError) and exc.invalid_fields:
        error["invalid_fields"] = exc.invalid_fields
    if exc.data:
        error["data"] = exc.data

    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}

    response = send_response(exc.message, status_code=exc.status_code, error=error, request_id=request_id)
    if headers:
        response.headers.update(headers)
    return response


def serialize_page(page: dict, schema) -> dict:
    """Validate every ORM row of a ``paginate`` result through ``schema``."""
    return {**page, "results": [schema.model_validate(row) for row in page["results"]]}
