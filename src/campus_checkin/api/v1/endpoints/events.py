"""Event check-in code endpoints."""

from fastapi import APIRouter, HTTPException, status

from campus_checkin.core.errors import CheckInError
from campus_checkin.models import Club
from campus_checkin.schemas.event import EventQRCodeResponse

from ..dependencies import CurrentUserDep, RecorderDep, TokenGeneratorDep
from ..errors import to_http_exception

router = APIRouter(prefix="/events", tags=["events"])


@router.post("/{event_id}/qr", response_model=EventQRCodeResponse)
async def generate_event_qr(
    event_id: str,
    current_user: CurrentUserDep,
    recorder: RecorderDep,
    generator: TokenGeneratorDep,
) -> EventQRCodeResponse:
    """Issue a fresh signed check-in QR code for an event.

    Earlier codes for the same event keep working until they age out.
    """
    try:
        event = await recorder.get_event(event_id)
        await recorder.ensure_event_admin(event, current_user.user_id, current_user.role)
        club = await recorder.store.first(Club, Club.id == event.club_id)
    except CheckInError as err:
        raise to_http_exception(err) from err

    try:
        generated = generator.generate(
            event.id,
            event.title,
            club.name if club else "",
            event.location,
            event.start_time,
            event.end_time,
        )
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(err)) from err

    metadata = generated.token.metadata
    return EventQRCodeResponse(
        token=generated.token,
        payload=generated.payload,
        image=generated.image,
        valid_from=metadata.valid_from,
        valid_until=metadata.valid_until,
    )
