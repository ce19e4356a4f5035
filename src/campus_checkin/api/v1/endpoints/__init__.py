# src/campus_checkin/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .attendance import router as attendance_router
from .events import router as events_router

__all__ = [
    "attendance_router",
    "events_router",
]
