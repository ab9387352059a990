"""Standardni API envelope: {success, data?, error?, meta: {timestamp, requestId?}}."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def build_meta(request: Request, **extra) -> Dict[str, Any]:
    meta: Dict[str, Any] = {"timestamp": timestamp()}
    rid = request_id(request)
    if rid:
        meta["requestId"] = rid
    meta.update(extra)
    return meta


def envelope(request: Request, data: Any, **meta) -> Dict[str, Any]:
    return {"success": True, "data": data, "meta": build_meta(request, **meta)}


def error_response(request: Request, status_code: int, code: str, message: str,
                   details: Optional[Dict[str, Any]] = None,
                   stack: Optional[str] = None) -> JSONResponse:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    meta = build_meta(request)
    if stack:
        meta["stack"] = stack
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": False, "error": error, "meta": meta}),
    )
