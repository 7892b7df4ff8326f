"""JSON response envelope.

Every formatted response has the same shape::

    {"status": 200, "success": true, "data": ..., "message": ..., "code": ...,
     "pagination": {...}, "meta": {...}}

Optional members are omitted when unset.
"""

import json
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from starlette.responses import JSONResponse, Response


class PaginationInfo(BaseModel):
    """Pagination details of a list response."""

    page: int
    limit: int
    total: Optional[int] = None
    page_count: Optional[int] = None
    has_next: Optional[bool] = None
    has_prev: Optional[bool] = None


class ResponseEnvelope(BaseModel):
    """Wire shape of a formatted response."""

    status: int
    success: bool
    data: Any = None
    pagination: Optional[PaginationInfo] = None
    code: Optional[str] = None
    message: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {"status": self.status, "success": self.success, "data": jsonable_encoder(self.data)}
        if self.pagination is not None:
            payload["pagination"] = self.pagination.model_dump(exclude_none=True)
        for name in ("code", "message"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        if self.meta is not None:
            payload["meta"] = jsonable_encoder(self.meta)
        return payload


class ApiResponse:
    """A response envelope a handler can return to control status and metadata.

    ```python
    return ApiResponse.success(user, status=201, message="Created")
    return ApiResponse.error("Not found", status=404, code="NOT_FOUND")
    return ApiResponse.paginated(items, PaginationInfo(page=1, limit=20, total=57))
    ```
    """

    def __init__(self, envelope: ResponseEnvelope):
        self.envelope = envelope

    @property
    def status(self) -> int:
        return self.envelope.status

    @classmethod
    def success(
        cls,
        data: Any = None,
        *,
        status: int = 200,
        message: Optional[str] = None,
        code: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
        pagination: Optional[PaginationInfo] = None,
    ) -> "ApiResponse":
        return cls(ResponseEnvelope(
            status=status,
            success=200 <= status < 300,
            data=data,
            message=message,
            code=code,
            meta=meta,
            pagination=pagination,
        ))

    @classmethod
    def error(
        cls,
        message: str,
        *,
        status: int = 400,
        code: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
        data: Any = None,
    ) -> "ApiResponse":
        return cls(ResponseEnvelope(
            status=status,
            success=False,
            data=data,
            message=message,
            code=code,
            meta=meta,
        ))

    @classmethod
    def paginated(
        cls,
        data: Any,
        pagination: PaginationInfo,
        *,
        status: int = 200,
        message: Optional[str] = None,
        code: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> "ApiResponse":
        return cls.success(data, status=status, message=message, code=code, meta=meta, pagination=pagination)

    def to_dict(self) -> Dict[str, Any]:
        return self.envelope.to_dict()

    def to_response(self) -> JSONResponse:
        return JSONResponse(self.to_dict(), status_code=self.status)

    def __repr__(self) -> str:
        return f"ApiResponse(status={self.status}, success={self.envelope.success})"


def _is_envelope(payload: Any) -> bool:
    return (
        isinstance(payload, dict)
        and isinstance(payload.get("status"), int)
        and isinstance(payload.get("success"), bool)
        and "data" in payload
    )


def _normalize_response(response: Response) -> Response:
    if "application/json" not in response.headers.get("content-type", ""):
        return response

    body = getattr(response, "body", None)
    if not body:
        return response
    try:
        payload = json.loads(body)
    except ValueError:
        return response

    if _is_envelope(payload):
        return response
    if 200 <= response.status_code < 300:
        return ApiResponse.success(payload, status=response.status_code).to_response()

    message = payload if isinstance(payload, str) else None
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("detail")
    return ApiResponse.error(str(message or "Error"), status=response.status_code, data=payload).to_response()


def format_return(result: Any) -> Response:
    """Render a handler result as an enveloped response.

    Responses pass through (plain JSON bodies are wrapped into the
    envelope), ``ApiResponse`` objects render their own envelope, and any
    other value becomes the ``data`` of a 200 success envelope.
    """
    if isinstance(result, Response):
        return _normalize_response(result)
    if isinstance(result, ApiResponse):
        return result.to_response()
    return ApiResponse.success(result).to_response()


def render_plain(result: Any) -> Response:
    """Render a handler result without the envelope."""
    if isinstance(result, Response):
        return result
    if isinstance(result, ApiResponse):
        return result.to_response()
    return JSONResponse(jsonable_encoder(result))
