# src/campus_checkin/models/__init__.py
"""SQLAlchemy models for the Campus Check-in service."""

from .attendance import AttendanceLog, AttendanceMethod
from .club import Club, ClubMember, ClubMemberRole
from .event import Event, Registration
from .profile import Profile, UserRole

__all__ = [
    "AttendanceLog", "AttendanceMethod",
    "Club", "ClubMember", "ClubMemberRole",
    "Event", "Registration",
    "Profile", "UserRole",
]
