"""
Resume Checker API
===================
HTTP layer for resume analysis, the resume-coach chat, the dashboard, the
resume builder wizard and auth.

Collaborators (LLM provider, Supabase store, auth provider, metrics) are built
in the lifespan and kept on app.state. create_app() accepts prebuilt ones so
tests can inject fakes.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import AuthProvider, create_auth_provider
from .config import Settings, load_settings
from .exceptions import StoreError
from .metrics import MetricsCollector
from .providers import Provider, build_provider
from .routes import router
from .store import ResumeStore, create_store

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# ── Request logging ───────────────────────────────────────────────
async def log_requests(request: Request, call_next):
    start = datetime.now()
    path = request.url.path
    method = request.method
    try:
        response = await call_next(request)
        dt = (datetime.now() - start).total_seconds()
        logger.info(f"{method} {path} -> {response.status_code} ({dt:.2f}s)")
        return response
    except Exception as e:
        logger.error(f"{method} {path} ERROR: {e}")
        raise


# ── Error bodies: {"error": ...} everywhere ───────────────────────
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail},
                        headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=422, content={"error": "Invalid request", "details": details})


async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"{request.method} {request.url.path} store failure: {exc}")
    return JSONResponse(status_code=502, content={"error": "Database request failed"})


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[Provider] = None,
    store: Optional[ResumeStore] = None,
    auth: Optional[AuthProvider] = None,
) -> FastAPI:
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.metrics = MetricsCollector()

        # 1. LLM provider
        app.state.provider = provider if provider is not None else build_provider(settings)

        # 2. Supabase store
        if store is not None:
            app.state.store = store
        else:
            try:
                app.state.store = create_store(settings)
            except Exception as e:
                logger.error(f"❌ Supabase client failed: {e}")
                app.state.store = None

        # 3. Auth
        client = app.state.store.client if app.state.store else None
        app.state.auth = auth if auth is not None else create_auth_provider(settings, client)

        logger.info(
            "✅ Resume Checker ready "
            f"(llm={app.state.provider.name if app.state.provider else 'none'}, "
            f"supabase={'on' if app.state.store else 'off'}, auth={app.state.auth.name})"
        )
        yield

    app = FastAPI(
        title="Resume Checker API",
        version="1.0.0",
        lifespan=lifespan,
    )

    # ── CORS ───────────────────────────────────────────────────────
    allow_all = settings.allowed_origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=not allow_all,  # credentials + '*' is rejected by browsers
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StoreError, store_error_handler)

    app.include_router(router)
    return app


app = create_app()


def run():
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
