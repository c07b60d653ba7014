"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

import workbench.models  # noqa: F401  (register tables on Base.metadata)
from workbench import __version__
from workbench.api.routes import register_routes
from workbench.core.config import Settings, settings as default_settings
from workbench.core.exceptions import InternalError, ValidationError, WorkbenchError
from workbench.core.middleware import setup_middleware
from workbench.core.responses import error_response, send_response
from workbench.db.base import Base
from workbench.db.seeds.seed_super_admin import run_seed_if_needed
from workbench.db.session import create_db_engine, create_session_factory
from workbench.services.auth_service import AuthService
from workbench.services.email_service import EmailService
from workbench.services.resource_service import ResourceRegistry
from workbench.services.token_service import TokenService

logger = logging.getLogger("workbench")

HTTP_ERROR_CODES = {
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}
LOCATION_PREFIXES = ("body", "query", "path", "header", "cookie")


def _invalid_fields(exc: RequestValidationError) -> list:
    fields = []
    for error in exc.errors():
        loc = list(error.get("loc", ()))
        if loc and loc[0] in LOCATION_PREFIXES and len(loc) > 1:
            loc = loc[1:]
        fields.append({
            "field": ".".join(str(part) for part in loc),
            "message": error.get("msg", "Invalid value"),
        })
    return fields


def _render_error(request: Request, exc: WorkbenchError):
    request.state.error_code = exc.code
    return error_response(exc, request_id=getattr(request.state, "request_id", None))


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(WorkbenchError)
    async def workbench_exception_handler(request: Request, exc: WorkbenchError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        elif exc.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
            logger.warning(
                "%s %s rejected: %s diagnostic=%s",
                request.method, request.url.path, exc.code, exc.diagnostic,
            )
        return _render_error(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _render_error(request, ValidationError(invalid_fields=_invalid_fields(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        request.state.error_code = code
        response = send_response(
            message,
            status_code=exc.status_code,
            error={"code": code, "message": message},
            request_id=getattr(request.state, "request_id", None),
        )
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _render_error(request, InternalError("Internal server error"))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around an explicit Settings instance."""
    settings = settings or default_settings

    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    engine = create_db_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
    session_factory = create_session_factory(engine)
    registry = ResourceRegistry(settings.HTTP_METHOD_ACTIONS)
    token_service = TokenService(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        logger.info("Starting %s (%s)", settings.APP_NAME, settings.ENV)
        Base.metadata.create_all(bind=engine)
        if settings.SEED_ON_STARTUP:
            run_seed_if_needed(session_factory, registry, settings)
        yield
        engine.dispose()
        logger.info("Shutting down %s", settings.APP_NAME)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Role-based access control core",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.registry = registry
    app.state.token_service = token_service
    app.state.auth_service = AuthService(token_service)
    app.state.email_service = EmailService(settings)

    setup_middleware(app, settings)
    register_exception_handlers(app)
    register_routes(app, registry, settings)

    @app.get("/")
    def root():
        return {"name": settings.APP_NAME, "version": __version__, "docs": "/docs"}

    @app.get(f"{settings.API_PREFIX}/health")
    def health():
        """Quick health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()
