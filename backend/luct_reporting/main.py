"""LUCT Faculty Reporting: FastAPI application entry point."""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from luct_reporting import __version__
from luct_reporting.config import Settings, settings as default_settings
from luct_reporting.database import create_db_engine, create_session_factory, init_db
from luct_reporting.errors import ReportingError
from luct_reporting.middleware.rate_limit import configure_limiter
from luct_reporting.routers import auth, classes, courses, enrollment, reports, users

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ReportingError)
    async def reporting_error_handler(request: Request, exc: ReportingError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Invalid request",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around its own engine and session factory."""
    app_settings = app_settings or default_settings

    logging.basicConfig(
        level=app_settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = create_db_engine(app_settings.DATABASE_URL)
    init_db(engine)

    app = FastAPI(
        title="LUCT Faculty Reporting",
        description="Lecture reports, principal review, student ratings and program-leader exports.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = app_settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    # Rate limiting
    app.state.limiter = configure_limiter(app_settings)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    cors_origins = [o.strip() for o in app_settings.ALLOWED_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    # Routers
    app.include_router(auth.router)
    app.include_router(reports.router)
    app.include_router(courses.router)
    app.include_router(classes.router)
    app.include_router(enrollment.router)
    app.include_router(users.router)

    @app.get("/api/health")
    def health():
        return {"status": "OK", "message": "LUCT Reporting API is running", "version": __version__}

    @app.on_event("shutdown")
    def on_shutdown():
        engine.dispose()
        logger.info("Database engine disposed")

    logger.info("LUCT Reporting API ready (database: %s)", engine.url.render_as_string(hide_password=True))
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("luct_reporting.main:create_app", factory=True, host="0.0.0.0", port=5000, reload=True)
