"""
Outbound response envelope.

Every outcome uses the same shape:
    {success, data?, error?, details?, message?, timestamp}
and carries the fixed CORS header set.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import json

CORS_HEADERS: Dict[str, str] = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "POST,OPTIONS",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class SignupResponse:
    status_code: int
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))

    def to_json(self) -> str:
        return json.dumps(self.body)


def success_response(data: Dict[str, Any], message: Optional[str] = None, status_code: int = 201) -> SignupResponse:
    body: Dict[str, Any] = {"success": True, "data": data}
    if message is not None:
        body["message"] = message
    body["timestamp"] = _timestamp()
    return SignupResponse(status_code, body)


def error_response(status_code: int, error: str, details: Optional[Dict[str, Any]] = None) -> SignupResponse:
    body: Dict[str, Any] = {"success": False, "error": error}
    if details is not None:
        body["details"] = details
    body["timestamp"] = _timestamp()
    return SignupResponse(status_code, body)


__all__ = ["CORS_HEADERS", "SignupResponse", "success_response", "error_response"]
