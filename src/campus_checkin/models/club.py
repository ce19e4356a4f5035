# src/campus_checkin/models/club.py
"""SQLAlchemy models for clubs and their memberships."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from campus_checkin.db.session import Base
from campus_checkin.db.time import utcnow


class ClubMemberRole(str, enum.Enum):
    MEMBER = "member"
    ADMIN = "admin"


class Club(Base):
    """Student club that owns events."""

    __tablename__ = "clubs"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[str] = mapped_column(Text, ForeignKey("profiles.user_id"), nullable=False)


class ClubMember(Base):
    """Join table mapping profiles into clubs with a per-club role."""

    __tablename__ = "club_members"
    __table_args__ = (UniqueConstraint("club_id", "profile_id", name="uq_club_member"),)

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    club_id: Mapped[str] = mapped_column(Text, ForeignKey("clubs.id"), nullable=False, index=True)
    profile_id: Mapped[str] = mapped_column(Text, ForeignKey("profiles.user_id"), nullable=False)
    role: Mapped[ClubMemberRole] = mapped_column(
        Enum(
            ClubMemberRole,
            values_callable=lambda roles: [r.value for r in roles],
            name="club_member_role",
        ),
        nullable=False,
        default=ClubMemberRole.MEMBER,
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
