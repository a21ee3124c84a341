"""API route modules."""

from secretdrop.api.routes.drop import router as drop_router
from secretdrop.api.routes.health import router as health_router
from secretdrop.api.routes.secrets import router as secrets_router

__all__ = ["drop_router", "health_router", "secrets_router"]
