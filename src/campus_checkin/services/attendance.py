"""Attendance recording workflow.

Turns validated scans and admin entries into ``attendance_logs`` rows,
enforcing one record per (event, attendee) and club-admin authorization.
"""

from __future__ import annotations

import logging

from campus_checkin.core.errors import (
    AuthorizationError,
    CheckInError,
    DuplicateAttendanceError,
    EventNotFoundError,
    ProfileNotFoundError,
    StorageError,
    UniqueViolationError,
)
from campus_checkin.models import (
    AttendanceLog,
    AttendanceMethod,
    ClubMember,
    ClubMemberRole,
    Event,
    Profile,
    Registration,
    UserRole,
)
from campus_checkin.schemas.attendance import (
    AttendanceResult,
    AttendanceStats,
    RecentAttendee,
    ValidationDetails,
)
from campus_checkin.services.store import SqlRecordStore
from campus_checkin.services.validator import TokenValidator

RECENT_ATTENDEES_LIMIT = 10

logger = logging.getLogger(__name__)


def attendance_method(scanner_id: str, attendee_id: str) -> AttendanceMethod:
    """Self-scan when attendees scan for themselves, staff-scan otherwise."""
    if scanner_id == attendee_id:
        return AttendanceMethod.SELF_SCAN
    return AttendanceMethod.STAFF_SCAN


class AttendanceRecorder:
    """Persists attendance for QR scans and manual admin entries."""

    def __init__(
        self,
        store: SqlRecordStore,
        validator: TokenValidator,
    ) -> None:
        self.store = store
        self.validator = validator

    async def get_event(self, event_id: str) -> Event:
        event = await self.store.first(Event, Event.id == event_id)
        if event is None:
            raise EventNotFoundError()
        return event

    async def _require_profile(self, profile_id: str) -> Profile:
        profile = await self.store.first(Profile, Profile.user_id == profile_id)
        if profile is None:
            raise ProfileNotFoundError()
        return profile

    async def is_event_admin(self, event: Event, actor_id: str, actor_role: UserRole) -> bool:
        """Return True for college admins and admins of the event's club."""
        if actor_role == UserRole.COLLEGE_ADMIN:
            return True
        membership = await self.store.first(
            ClubMember,
            ClubMember.club_id == event.club_id,
            ClubMember.profile_id == actor_id,
            ClubMember.role == ClubMemberRole.ADMIN,
        )
        return membership is not None

    async def ensure_event_admin(self, event: Event, actor_id: str, actor_role: UserRole) -> None:
        if not await self.is_event_admin(event, actor_id, actor_role):
            logger.info("Denied attendance management on event %s to %s", event.id, actor_id)
            raise AuthorizationError()

    async def _persist(
        self,
        event: Event,
        attendee_id: str,
        method: AttendanceMethod,
        validation_details: ValidationDetails | None = None,
    ) -> AttendanceResult:
        if await self.has_attended(event.id, attendee_id):
            raise DuplicateAttendanceError()
        try:
            row = await self.store.insert(
                AttendanceLog,
                event_id=event.id,
                profile_id=attendee_id,
                method=method,
            )
        except UniqueViolationError as err:
            # A concurrent check-in won the race between the check and the insert.
            raise DuplicateAttendanceError() from err

        logger.info(
            "Logged %s attendance for profile %s at event %s", method.value, attendee_id, event.id
        )
        return AttendanceResult(
            success=True,
            event_id=event.id,
            event_title=event.title,
            attendance_id=row.id,
            method=method,
            validation_details=validation_details,
        )

    async def record(
        self,
        event_id: str,
        attendee_id: str,
        scanner_id: str,
        scanner_role: UserRole,
        validation_details: ValidationDetails | None = None,
    ) -> AttendanceResult:
        """Record attendance for an already validated scan.

        Raises:
            EventNotFoundError: If the event does not exist.
            AuthorizationError: If a staff scan is made by a non-admin.
            ProfileNotFoundError: If a staff scan targets an unknown profile.
            DuplicateAttendanceError: If the attendee is already logged.
            StorageError: If the record store fails.
        """
        event = await self.get_event(event_id)
        method = attendance_method(scanner_id, attendee_id)
        if method is AttendanceMethod.STAFF_SCAN:
            await self.ensure_event_admin(event, scanner_id, scanner_role)
            await self._require_profile(attendee_id)
        return await self._persist(event, attendee_id, method, validation_details)

    async def process_scan(
        self,
        raw: str,
        scanner: Profile,
        attendee_id: str | None = None,
    ) -> AttendanceResult:
        """Validate a scanned QR payload and record attendance.

        Invalid tokens produce ``success=False`` with the validator's message
        and stage flags; nothing is written in that case. The signature is
        checked before the token's event id is used to query the store.
        """
        details = ValidationDetails()
        try:
            token = self.validator.authenticate(raw, details)
        except CheckInError as err:
            return AttendanceResult(
                success=False,
                error=err.message,
                error_code=err.code,
                validation_details=details,
            )

        event = await self.get_event(token.event_id)
        attendee_id = attendee_id or scanner.user_id
        method = attendance_method(scanner.user_id, attendee_id)
        if method is AttendanceMethod.STAFF_SCAN:
            await self.ensure_event_admin(event, scanner.user_id, scanner.role)
            await self._require_profile(attendee_id)

        validation = self.validator.validate(raw, event.start_time, event.end_time)
        if not validation.is_valid:
            return AttendanceResult(
                success=False,
                event_id=event.id,
                event_title=event.title,
                error=validation.error,
                error_code=validation.error_code,
                validation_details=validation.details,
            )

        try:
            return await self._persist(event, attendee_id, method, validation.details)
        except StorageError:
            # Nothing was recorded, so the user's retry must not look like a replay.
            if not token.is_legacy:
                self.validator.replay_guard.discard(token.replay_key)
            raise

    async def log_manual(self, event_id: str, attendee_id: str, admin: Profile) -> AttendanceResult:
        """Record attendance picked from the directory by an event admin.

        Skips QR validation entirely. Authorization is checked before the
        duplicate check, and both before anything is written.
        """
        event = await self.get_event(event_id)
        await self.ensure_event_admin(event, admin.user_id, admin.role)
        await self._require_profile(attendee_id)
        return await self._persist(event, attendee_id, AttendanceMethod.MANUAL)

    async def has_attended(self, event_id: str, attendee_id: str) -> bool:
        existing = await self.store.first(
            AttendanceLog,
            AttendanceLog.event_id == event_id,
            AttendanceLog.profile_id == attendee_id,
        )
        return existing is not None

    async def get_stats(self, event_id: str) -> AttendanceStats:
        """Summarize registrations and check-ins for an event."""
        total_registered = await self.store.count(Registration, Registration.event_id == event_id)
        logs = await self.store.select(
            AttendanceLog,
            AttendanceLog.event_id == event_id,
            order_by=(AttendanceLog.timestamp.desc(),),
        )
        total_attended = len(logs)
        rate = (total_attended / total_registered) * 100 if total_registered else 0.0

        recent = logs[:RECENT_ATTENDEES_LIMIT]
        profiles: dict[str, Profile] = {}
        if recent:
            ids = {log.profile_id for log in recent}
            rows = await self.store.select(Profile, Profile.user_id.in_(ids))
            profiles = {profile.user_id: profile for profile in rows}

        recent_attendees = []
        for log in recent:
            profile = profiles.get(log.profile_id)
            recent_attendees.append(
                RecentAttendee(
                    id=log.id,
                    name=profile.name if profile else "Unknown",
                    usn=profile.usn if profile else "Unknown",
                    timestamp=log.timestamp,
                    method=log.method,
                )
            )

        return AttendanceStats(
            total_registered=total_registered,
            total_attended=total_attended,
            attendance_rate=round(rate, 2),
            recent_attendees=recent_attendees,
        )

    async def list_logs(self, event_id: str, admin: Profile) -> list[AttendanceLog]:
        """Return every attendance record for an event, newest first."""
        event = await self.get_event(event_id)
        await self.ensure_event_admin(event, admin.user_id, admin.role)
        return await self.store.select(
            AttendanceLog,
            AttendanceLog.event_id == event.id,
            order_by=(AttendanceLog.timestamp.desc(),),
        )
