"""API routers."""

from reapply.routers.applications import router as applications_router
from reapply.routers.auth import router as auth_router
from reapply.routers.pipeline import router as pipeline_router

__all__ = ["applications_router", "auth_router", "pipeline_router"]
