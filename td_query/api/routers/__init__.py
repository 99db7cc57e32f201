"""API router package for endpoint composition."""

from .health import api_create_health_router
from .query import api_create_query_router

__all__ = ["api_create_health_router", "api_create_query_router"]
