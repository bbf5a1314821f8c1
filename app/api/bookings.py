from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from app.api.responses import create_response, error_response, internal_error_response, read_json_body
from app.application.exceptions import ValidationError
from app.application.use_cases.bookings import BookingCommands
from app.wiring.dependencies import get_booking_commands


router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/bookings")
def list_bookings(commands: BookingCommands = Depends(get_booking_commands)) -> Response:
    try:
        bookings = commands.list_bookings()
        return create_response(200, {"status": "success", "results": len(bookings), "data": bookings})
    except Exception as e:
        return internal_error_response(logger, e, "Bookings")


@router.post("/bookings")
async def create_booking(request: Request, commands: BookingCommands = Depends(get_booking_commands)) -> Response:
    try:
        payload = await read_json_body(request)
        booking = await run_in_threadpool(commands.create_booking, payload)
        return create_response(
            201,
            {"status": "success", "data": booking, "message": "Booking created successfully"},
        )
    except ValidationError as e:
        return error_response(400, str(e))
    except Exception as e:
        return internal_error_response(logger, e, "Bookings")
