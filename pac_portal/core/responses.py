import math
from datetime import datetime, timezone
from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, PrivateAttr

from pac_portal.core.errors import AppError

CORS_ALLOW_HEADERS = "Content-Type, Authorization"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, totalPages=math.ceil(total / limit) if limit else 0)


class ResponseEnvelope(BaseModel):
    success: bool
    data: Any = None
    error: str | None = None
    details: Any = None
    message: str | None = None
    pagination: Pagination | None = None
    timestamp: str = Field(default_factory=_now_iso)

    _status_code: int = PrivateAttr(default=status.HTTP_200_OK)

    @property
    def status_code(self) -> int:
        return self._status_code

    def to_payload(self) -> dict:
        payload: dict[str, Any] = {"success": self.success}
        for key in ("data", "error", "details", "message", "pagination"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        payload["timestamp"] = self.timestamp
        return jsonable_encoder(payload)


def success_response(
    data: Any = None,
    message: str | None = None,
    pagination: Pagination | None = None,
    status_code: int = status.HTTP_200_OK,
) -> ResponseEnvelope:
    envelope = ResponseEnvelope(success=True, data=data, message=message, pagination=pagination)
    envelope._status_code = status_code
    return envelope


def error_response(exc: AppError, expose_details: bool = True) -> ResponseEnvelope:
    envelope = ResponseEnvelope(
        success=False,
        error=exc.message,
        details=exc.details if expose_details else None,
    )
    envelope._status_code = exc.status_code
    return envelope


def to_json_response(envelope: ResponseEnvelope) -> JSONResponse:
    return JSONResponse(status_code=envelope.status_code, content=envelope.to_payload())


def options_response(*methods: str) -> Response:
    allowed = ", ".join([*methods, "OPTIONS"])
    return Response(
        status_code=status.HTTP_200_OK,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": allowed,
            "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
        },
    )
