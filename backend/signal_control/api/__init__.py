"""
API Routes Package

This module exports the FastAPI routers for the Adaptive Signal Control System.
"""

from .report_routes import router as report_router

__all__ = [
    "report_router",
]
