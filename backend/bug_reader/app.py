from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from .client import AnalysisClient
from .config import Settings
from .errors import BugReaderError
from .images import normalize_image, validate_image_upload
from .render import build_templates, page_context
from .session import AnalysisSession, SessionStore

logger = logging.getLogger(__name__)

APP_TITLE = "L10n LVM Bug Reader"
SESSION_COOKIE = "bug_reader_session"
SESSIONLESS_PATHS = {"/healthz", "/favicon.ico"}


def _session(request: Request) -> AnalysisSession:
    # resolved once per request by attach_session
    return request.state.session


def create_app(
    settings: Optional[Settings] = None,
    analysis_client: Optional[Any] = None,
) -> FastAPI:
    """
    Build the web app. Without an injected client a real Gemini client is
    created, which fails with ConfigurationError when no API key is set.
    """
    settings = settings or Settings.from_env()
    if analysis_client is None:
        analysis_client = AnalysisClient.from_settings(settings)

    app = FastAPI(title=APP_TITLE)
    app.state.settings = settings
    app.state.sessions = SessionStore(
        analysis_client,
        max_sessions=settings.max_sessions,
        idle_ttl=settings.session_ttl_minutes * 60,
    )
    templates = build_templates()

    # --- CORS: allow a separately served dev frontend ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def attach_session(request: Request, call_next):
        if request.url.path in SESSIONLESS_PATHS:
            return await call_next(request)

        sessions: SessionStore = request.app.state.sessions
        session_id = request.cookies.get(SESSION_COOKIE)
        session = sessions.get(session_id)
        created = session is None
        if created:
            session_id, session = sessions.create()
            logger.debug("new session %s", session_id[:8])
        request.state.session_id = session_id
        request.state.session = session

        response = await call_next(request)
        if created:
            response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
        return response

    @app.exception_handler(BugReaderError)
    async def bug_reader_error_handler(request: Request, exc: BugReaderError) -> JSONResponse:
        logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    # =========================
    # Page
    # =========================
    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request) -> HTMLResponse:
        context = page_context(request, _session(request))
        return templates.TemplateResponse(request, "index.html", context)

    # =========================
    # State machine endpoints
    # =========================
    @app.get("/api/state")
    async def get_state(request: Request) -> Dict[str, Any]:
        return _session(request).snapshot()

    @app.post("/api/image")
    async def upload_image(request: Request, image: UploadFile = File(...)) -> Dict[str, Any]:
        session = _session(request)
        # Reject non-images before reading the body
        validate_image_upload(image.content_type, image.filename)

        token = session.begin_image_load()
        data = await image.read()
        record = normalize_image(
            data,
            image.content_type,
            image.filename,
            max_bytes=settings.max_image_bytes,
        )
        applied = session.complete_image_load(token, record)
        return {"applied": applied, "state": session.snapshot()}

    @app.post("/api/analyze")
    async def analyze(request: Request) -> Dict[str, Any]:
        session = _session(request)
        started = await session.analyze()
        if not started:
            logger.info("analyze ignored in phase %s", session.phase.value)
        return {"started": started, "state": session.snapshot()}

    @app.post("/api/error/dismiss")
    async def dismiss_error(request: Request) -> Dict[str, Any]:
        session = _session(request)
        session.dismiss_error()
        return session.snapshot()

    @app.post("/api/reset")
    async def reset(request: Request) -> Dict[str, Any]:
        session = _session(request)
        session.reset()
        return session.snapshot()

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    return app
