from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.application.exceptions import ValidationError
from app.core.config import settings


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
}


def create_response(status_code: int, body: dict[str, Any]) -> JSONResponse:
    """Every handler answers with the {status, data?, message?, results?} envelope."""
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def error_response(status_code: int, message: str) -> JSONResponse:
    return create_response(status_code, {"status": "error", "message": message})


def internal_error_response(logger: logging.Logger, exc: Exception, context: str) -> JSONResponse:
    logger.exception("%s error", context, extra={"error": str(exc)})
    body: dict[str, Any] = {"status": "error", "message": "Internal server error"}
    if not settings.is_production:
        body["error"] = str(exc)
    return create_response(500, body)


async def read_json_body(request: Request) -> dict[str, Any]:
    body = await request.body()
    if not body:
        return {}
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError("Invalid JSON body") from e
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload
