"""FastAPI application entry point."""

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from secretdrop.api.routes import drop_router, health_router, secrets_router
from secretdrop.core.config import Settings, get_settings
from secretdrop.core.errors import SecretDropError
from secretdrop.core.logging import configure_logging, structured_log
from secretdrop.core.telemetry import init_telemetry, instrument_fastapi
from secretdrop.services.expiry import ExpiryScheduler
from secretdrop.services.secret_store import SecretStore
from secretdrop.services.store_factory import build_secret_store


def create_app(settings: Optional[Settings] = None, store: Optional[SecretStore] = None) -> FastAPI:
    """Build the app. A store passed in is used as-is instead of the configured backend."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup: logging, telemetry, store and expiry sweeper."""
        configure_logging(settings.log_level)
        init_telemetry(service_name=settings.service_name, project_id=settings.gcp_project_id)
        secret_store = store if store is not None else build_secret_store(settings)
        scheduler = ExpiryScheduler(secret_store, settings.sweep_interval_seconds)
        app.state.secret_store = secret_store
        app.state.expiry_scheduler = scheduler
        scheduler.start()
        structured_log(
            "INFO",
            "Secret service started",
            operation="app.startup",
            metadata={"backend": secret_store.backend_name},
        )
        try:
            yield
        finally:
            await scheduler.stop()
            secret_store.close()

    app = FastAPI(
        title="secretdrop",
        description="One-time secret sharing: store a payload, redeem its key exactly once",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.include_router(health_router)
    app.include_router(drop_router)
    app.include_router(secrets_router)

    instrument_fastapi(app)

    @app.exception_handler(SecretDropError)
    async def secret_error_handler(request: Request, exc: SecretDropError) -> JSONResponse:
        """Map custom exceptions to JSON response."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.error_code,
                "message": exc.message,
                "details": exc.details,
            },
            headers={"Cache-Control": "no-store"},
        )

    @app.get("/")
    async def root() -> dict:
        """Service info."""
        return {"service": settings.service_name, "docs": "/docs"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8080")))
