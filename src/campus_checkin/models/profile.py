# src/campus_checkin/models/profile.py
"""SQLAlchemy model for user profiles."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Text
from sqlalchemy.orm import Mapped, mapped_column

from campus_checkin.db.session import Base
from campus_checkin.db.time import utcnow


class UserRole(str, enum.Enum):
    """College-wide role of a profile."""

    ATTENDEE = "attendee"
    CLUB_ADMIN = "club_admin"
    COLLEGE_ADMIN = "college_admin"


class Profile(Base):
    """Person who can attend events or administer clubs."""

    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # University seat number, shown next to names in attendance lists.
    usn: Mapped[str] = mapped_column(Text, nullable=False, default="")
    branch: Mapped[str] = mapped_column(Text, nullable=False, default="")
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=lambda roles: [r.value for r in roles], name="user_role"),
        nullable=False,
        default=UserRole.ATTENDEE,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def is_college_admin(self) -> bool:
        return self.role == UserRole.COLLEGE_ADMIN
