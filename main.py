"""
FastAPI application for the DynamoDB session store service.

Run with ``uvicorn main:app``. The lifespan connects the session store,
provisioning the DynamoDB table on first start.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import Settings, get_settings, validate_startup
from errors.exceptions import resource_not_found, validation_error
from errors.handlers import register_exception_handlers
from health.service import HealthCheckService
from middleware.request_id import RequestIDMiddleware
from middleware.session import SessionMiddleware
from session.dynamodb_store import DynamoDBSessionStore
from telemetry.service import initialize_telemetry

logger = logging.getLogger(__name__)


def _log_readiness(error: Optional[BaseException]) -> None:
    if error is None:
        logger.info("Session store ready")
    else:
        logger.error("Session store provisioning failed", exc_info=error)


def create_app(settings: Optional[Settings] = None, store: Optional[Any] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Application settings; loaded from the environment if omitted
        store: Session store to use; a DynamoDBSessionStore built from
            settings if omitted. Must provide connect() and disconnect().

    Returns:
        The configured FastAPI application
    """
    if settings is None:
        settings = get_settings()
    if store is None:
        store = DynamoDBSessionStore.from_settings(settings, on_ready=_log_readiness)

    health_check_service = HealthCheckService(session_store=store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        initialize_telemetry(settings)
        validate_startup(settings)
        logger.info("Starting session store service", extra={
            "extra_data": {
                "environment": settings.environment.value,
                "table": settings.session_table_name,
            }
        })
        await store.connect()
        try:
            yield
        finally:
            await store.disconnect()
            logger.info("Session store service stopped")

    app = FastAPI(title="Session Store API", version="1.0.0", lifespan=lifespan)
    app.state.session_store = store

    register_exception_handlers(app)

    # Added first so it runs inside RequestIDMiddleware and logs carry the id
    app.add_middleware(
        SessionMiddleware,
        store=store,
        cookie_name=settings.session_cookie_name,
        max_age=settings.session_ttl_seconds,
        rolling=settings.session_rolling,
        https_only=settings.session_cookie_secure,
        same_site=settings.session_cookie_samesite,
    )
    app.add_middleware(RequestIDMiddleware)

    @app.get("/session")
    async def read_session(request: Request):
        """Return the current session payload."""
        if not request.session:
            raise resource_not_found("No active session")
        return request.session

    @app.put("/session")
    async def update_session(request: Request, values: dict[str, Any] = Body(...)):
        """Merge values into the current session, starting one if needed."""
        if not values:
            raise validation_error("Session update must contain at least one key")
        request.session.update(values)
        return request.session

    @app.delete("/session")
    async def clear_session(request: Request):
        """End the current session."""
        request.session.clear()
        return {"status": "cleared"}

    @app.get("/health")
    async def health_basic():
        return await health_check_service.check_health()

    @app.get("/health/live")
    async def health_live():
        return await health_check_service.check_liveness()

    @app.get("/health/ready")
    async def health_ready():
        result = await health_check_service.check_readiness()
        status_code = 200 if result.is_healthy else 503
        return JSONResponse(status_code=status_code, content=result.to_dict())

    return app


app = create_app()
