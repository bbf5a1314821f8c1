from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from app.api.responses import create_response, error_response, internal_error_response, read_json_body
from app.application.exceptions import ValidationError
from app.application.use_cases.services import ServiceCommands
from app.wiring.dependencies import get_service_commands


router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/services")
def list_services(commands: ServiceCommands = Depends(get_service_commands)) -> Response:
    try:
        services = commands.list_active_services()
        return create_response(200, {"status": "success", "results": len(services), "data": services})
    except Exception as e:
        return internal_error_response(logger, e, "Services")


# Admin-only by convention; access control lives in front of this API.
@router.post("/services")
async def create_service(request: Request, commands: ServiceCommands = Depends(get_service_commands)) -> Response:
    try:
        payload = await read_json_body(request)
        service = await run_in_threadpool(commands.create_service, payload)
        return create_response(201, {"status": "success", "data": service, "message": "Service created successfully"})
    except ValidationError as e:
        return error_response(400, str(e))
    except Exception as e:
        return internal_error_response(logger, e, "Services")
