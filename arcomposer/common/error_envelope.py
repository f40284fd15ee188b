"""Error body shared by every composer HTTP endpoint.

Shape: {"error": {"code", "message", "http_status", "resource_kind", "details"}}
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException
from pydantic import BaseModel, Field

INVALID_MESSAGE = "bridge.invalid_message"
BRIDGE_MESSAGE_KIND = "bridge_message"


class ErrorDetail(BaseModel):
    code: str
    message: str
    http_status: int
    resource_kind: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    error: ErrorDetail

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump()


def build_error_envelope(
    code: str,
    message: str,
    status_code: int = 400,
    resource_kind: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorEnvelope:
    detail = ErrorDetail(
        code=code,
        message=message,
        http_status=status_code,
        resource_kind=resource_kind,
        details=dict(details or {}),
    )
    return ErrorEnvelope(error=detail)


def error_response(code: str, message: str, status_code: int = 400, **kwargs: Any) -> HTTPException:
    """HTTPException whose detail is already an envelope body.

    The app's HTTPException handler passes such bodies through untouched.
    """
    envelope = build_error_envelope(code, message, status_code=status_code, **kwargs)
    return HTTPException(status_code=status_code, detail=envelope.to_body())


def invalid_message_error(reason: str, details: Optional[Dict[str, Any]] = None) -> HTTPException:
    return error_response(
        INVALID_MESSAGE,
        f"Invalid bridge message: {reason}",
        resource_kind=BRIDGE_MESSAGE_KIND,
        details=details,
    )
