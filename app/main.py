import logging

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.bookings import router as bookings_router
from app.api.clients import router as clients_router
from app.api.dashboard import router as dashboard_router
from app.api.responses import CORS_HEADERS, error_response
from app.api.services import router as services_router
from app.core.config import settings

class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("booking_id", "reference", "client_id", "service", "path", "status", "fault_kind", "reason", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

app = FastAPI(title="Recovery Office Bookings API", version="1.0.0")

app.include_router(bookings_router, tags=["bookings"])
app.include_router(clients_router, tags=["clients"])
app.include_router(services_router, tags=["services"])
app.include_router(dashboard_router, tags=["dashboard"])


@app.middleware("http")
async def cors(request: Request, call_next) -> Response:
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code == 405:
        return error_response(405, "Method not allowed")
    if exc.status_code == 404:
        return error_response(404, "Endpoint not found")
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
    return error_response(400, f"Invalid request parameters: {fields}")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
