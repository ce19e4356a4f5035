# src/campus_checkin/models/attendance.py
"""SQLAlchemy model for persisted attendance records."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from campus_checkin.db.session import Base
from campus_checkin.db.time import utcnow


class AttendanceMethod(str, enum.Enum):
    """How an attendance record came to be."""

    SELF_SCAN = "self-scan"
    STAFF_SCAN = "staff-scan"
    MANUAL = "manual"


class AttendanceLog(Base):
    """One successful check-in. Created once, never updated."""

    __tablename__ = "attendance_logs"
    # At most one record per (event, attendee).
    __table_args__ = (UniqueConstraint("event_id", "profile_id", name="uq_attendance_event_profile"),)

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id: Mapped[str] = mapped_column(Text, ForeignKey("events.id"), nullable=False, index=True)
    profile_id: Mapped[str] = mapped_column(Text, ForeignKey("profiles.user_id"), nullable=False)
    method: Mapped[AttendanceMethod] = mapped_column(
        Enum(
            AttendanceMethod,
            values_callable=lambda methods: [m.value for m in methods],
            name="attendance_method",
        ),
        nullable=False,
    )
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
