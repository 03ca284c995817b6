import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from notifier import transport
from notifier.config import configure_logging, load_provider_configs, settings
from notifier.dispatcher import DispatchResult, dispatch_event
from notifier.errors import NotifierError
from notifier.events import Event
from notifier.providers.factory import build_providers
from notifier.schemas import DispatchSummary, FailedDelivery

API_VERSION = "0.1.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    transport.set_default_timeout(settings.request_timeout)
    app.state.providers = build_providers(load_provider_configs(settings))
    yield


app = FastAPI(
    title="event-notifier",
    description="Forward controller events to chat, incident and source-control providers.",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)


# --- Exception Handlers ---


def error_response(status_code: int, message: str, details=None) -> JSONResponse:
    error = {"code": status_code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return error_response(exc.status_code, exc.detail)


@app.exception_handler(RequestValidationError)
async def event_validation_handler(request: Request, exc: RequestValidationError):
    # loc is ("body", <field>, ...); report the field path in the event's JSON names
    fields = [
        {"field": ".".join(str(part) for part in err["loc"][1:]), "message": str(err["msg"])}
        for err in exc.errors()
    ]
    return error_response(422, "Validation error", fields)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, "Internal server error")


# --- Routes ---


def failed_delivery(result: DispatchResult) -> FailedDelivery:
    if isinstance(result.error, NotifierError):
        info = result.error.to_dict()
        return FailedDelivery(
            provider=result.name,
            error=info["message"],
            code=info["error"],
            details=info["details"],
        )
    # unexpected provider bugs are logged by the dispatcher, not echoed to callers
    return FailedDelivery(provider=result.name, error="Internal error", code="INTERNAL_ERROR")


@app.post("/events", status_code=202, summary="Receive an event and forward it")
async def receive_event(event: Event, request: Request):
    providers = getattr(request.app.state, "providers", {})
    if not providers:
        raise HTTPException(status_code=503, detail="No providers configured")

    results = await dispatch_event(event, providers)
    summary = DispatchSummary(
        delivered=[r.name for r in results if r.ok],
        failed=[failed_delivery(r) for r in results if not r.ok],
    )
    return {"data": summary.model_dump()}


@app.get("/health", summary="Health check")
async def health_ping(request: Request):
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": API_VERSION,
        "providers": len(getattr(request.app.state, "providers", {})),
    }
