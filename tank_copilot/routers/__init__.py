"""HTTP routers."""

from .analytics_router import router as analytics_router

__all__ = ["analytics_router"]
