"""FastAPI application serving the patient room page and conference API."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles

from .core.config import settings
from .core.errors import FALLBACK_MESSAGE, PatientRoomError, ValidationError, describe_error, status_for
from .core.logs import configure_logging, log_action
from .schemas.conference import ConferenceResponse, ErrorResponse
from .services.conference import extract_conference_config, open_patient_room
from .services.i18n import LOCALES_DIR, resolve_language, translations
from .services.templating import STATIC_DIR, render_index

logger = logging.getLogger(__name__)

NO_STORE = "no-store, max-age=0"


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Validate the TrueConf settings before accepting traffic."""

    configure_logging(settings.log_level)
    if settings.allow_self_signed:
        logger.warning("ALLOW_SELF_SIGNED=true: TLS certificate validation is disabled. Use only in development.")
    settings.assert_configured()
    yield


class NoStoreStaticFiles(StaticFiles):
    """Static files that browsers must always revalidate."""

    def file_response(self, *args: Any, **kwargs: Any) -> Response:
        response = super().file_response(*args, **kwargs)
        response.headers["Cache-Control"] = NO_STORE
        return response


app = FastAPI(title="Patient Room API", version="0.1.0", lifespan=lifespan)

if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.mount("/locales", StaticFiles(directory=LOCALES_DIR, check_dir=False), name="locales")
app.mount("/static", NoStoreStaticFiles(directory=STATIC_DIR), name="static")


@app.get("/", response_class=HTMLResponse, tags=["page"])
@app.get("/en", response_class=HTMLResponse, tags=["page"], include_in_schema=False)
@app.get("/ru", response_class=HTMLResponse, tags=["page"], include_in_schema=False)
async def index(request: Request) -> Response:
    """Serve the localized page with the runtime config injected."""

    lang = resolve_language(request.url.path, request.query_params.get("lang"), translations)
    try:
        html = render_index(lang, translations, settings)
    except OSError as exc:
        logger.exception("HTML generation error: %s", exc)
        return PlainTextResponse("Server Error", status_code=500)

    return HTMLResponse(content=html, headers={"Content-Language": lang, "Cache-Control": NO_STORE})


@app.get("/api/health", tags=["meta"])
async def health() -> dict[str, str]:
    """Liveness check."""

    return {"status": "ok"}


@app.head("/api/health", tags=["meta"])
async def health_head() -> Response:
    """Allow HEAD for uptime monitors that only need the status code."""

    return Response(status_code=200)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise ValidationError("Provide a conference object") from exc


@app.post(
    "/api/conference",
    response_model=ConferenceResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["conference"],
)
async def create_conference(request: Request) -> Response:
    """Create and start a conference, then return its join clients."""

    try:
        payload = await _read_json(request)
        log_action(logger, "http:/api/conference:received", body=payload)
        config = extract_conference_config(payload)
        result = await open_patient_room(config, settings)
    except PatientRoomError as exc:
        status_code = status_for(exc)
        message = describe_error(exc)
        log_action(logger, "conference:flow:error", logging.ERROR, status=status_code, message=message)
        return JSONResponse({"message": message}, status_code=status_code)
    except Exception as exc:  # noqa: BLE001 - single fallback path for the browser
        logger.exception("Unexpected conference flow failure: %s", exc)
        return JSONResponse({"message": str(exc) or FALLBACK_MESSAGE}, status_code=500)

    log_action(
        logger,
        "http:/api/conference:success",
        conference_id=result.conference_id,
        client_count=len(result.clients),
    )
    response = ConferenceResponse(clients=result.clients, conference_id=result.conference_id)
    return JSONResponse(response.model_dump(by_alias=True))
