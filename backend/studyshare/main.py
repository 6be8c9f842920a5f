# studyshare/main.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studyshare.config import Settings, settings
from studyshare.core.db import init_db, close_db
from studyshare.core.errors import StudyShareError, ValidationFailure
from studyshare.services import build_services

from studyshare.api.routers import auth, resources, ratings, favorites, tags, stats

logger = logging.getLogger("uvicorn.error")

def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StudyShareError)
    async def studyshare_error_handler(request: Request, exc: StudyShareError):
        body = {"message": exc.message, "code": exc.code}
        if isinstance(exc, ValidationFailure) and exc.errors:
            body["errors"] = exc.errors
        if exc.status_code >= 500:
            logger.error("[API] %s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Invalid request", "code": ValidationFailure.code, "errors": errors},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("[API] Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error"},
        )

def create_app(app_settings: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        app_settings: Override the module-level settings (tests pass their own
            upload directory and feature flags here)
    """
    cfg = app_settings or settings
    app = FastAPI(title=cfg.APP_NAME)
    app.state.settings = cfg
    app.state.services = build_services(cfg)

    # CORS (with Cookie)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def on_startup():
        await init_db(generate_schemas=cfg.generate_schemas)
        logger.info("[Startup] %s ready (env=%s, uploads=%s)", cfg.APP_NAME, cfg.env, cfg.upload_dir)

    @app.on_event("shutdown")
    async def on_shutdown():
        await close_db()

    _register_exception_handlers(app)

    # REST
    app.include_router(auth.router, prefix="/api")
    app.include_router(resources.router, prefix="/api")
    app.include_router(ratings.router, prefix="/api")
    app.include_router(favorites.router, prefix="/api")
    app.include_router(tags.router, prefix="/api")
    app.include_router(stats.router, prefix="/api")

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    return app

app = create_app()
