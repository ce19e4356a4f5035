# src/campus_checkin/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import attendance_router, events_router

__all__ = [
    "attendance_router",
    "events_router",
]
