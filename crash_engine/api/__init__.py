"""
FastAPI route modules for the crash engine.
"""

from crash_engine.api.crash_routes import router as crash_router
from crash_engine.api.diagnostics_routes import router as diagnostics_router

__all__ = ["crash_router", "diagnostics_router"]
