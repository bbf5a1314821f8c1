from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from app.api.responses import create_response, error_response, internal_error_response, read_json_body
from app.application.exceptions import ValidationError
from app.application.use_cases.clients import ClientCommands
from app.wiring.dependencies import get_client_commands


router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/clients")
def list_clients(commands: ClientCommands = Depends(get_client_commands)) -> Response:
    try:
        clients = commands.list_clients()
        return create_response(200, {"status": "success", "results": len(clients), "data": clients})
    except Exception as e:
        return internal_error_response(logger, e, "Clients")


@router.post("/clients")
async def create_client(request: Request, commands: ClientCommands = Depends(get_client_commands)) -> Response:
    try:
        payload = await read_json_body(request)
        client, created = await run_in_threadpool(commands.create_or_reuse_client, payload)
        if not created:
            return create_response(200, {"status": "success", "data": client, "message": "Client already exists"})
        return create_response(201, {"status": "success", "data": client, "message": "Client created successfully"})
    except ValidationError as e:
        return error_response(400, str(e))
    except Exception as e:
        return internal_error_response(logger, e, "Clients")
