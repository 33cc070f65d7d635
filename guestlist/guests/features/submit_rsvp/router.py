from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from guestlist.errors import GuestlistError, InvalidTokenError
from guestlist.guests.dtos import RsvpStatus, RsvpSubmissionDTO
from guestlist.guests.repository.write_models import RsvpWriteModel, SqlRsvpWriteModel
from guestlist.guests.schemas import PlusOneGuest, RsvpGuestResponse
from guestlist.guests.urls import RSVP_SUBMIT_URL
from guestlist.render_config import LoggingRenderConfigSink
from guestlist.routers.errors import to_http_exception

router = APIRouter()


class RsvpSubmit(BaseModel):
    token: str | None = None
    rsvp_status: RsvpStatus
    party_size: int = Field(default=1, ge=1)
    dietary_notes: str | None = None
    plus_one_guests: list[PlusOneGuest] = []
    meal_option_id: str | None = None
    photo_opt_out: bool | None = None


class RsvpSubmitResponse(BaseModel):
    message: str
    guest: RsvpGuestResponse


def get_rsvp_write_model() -> RsvpWriteModel:
    """Dependency to get RSVP write model instance."""
    return SqlRsvpWriteModel(render_config_sink=LoggingRenderConfigSink())


@router.post(RSVP_SUBMIT_URL, response_model=RsvpSubmitResponse)
async def submit_rsvp(
    rsvp_data: RsvpSubmit,
    write_model: RsvpWriteModel = Depends(get_rsvp_write_model),
) -> RsvpSubmitResponse:
    """
    Submit or change the RSVP for the guest holding the token.
    Resubmitting is always allowed while the link is valid.
    """
    if not rsvp_data.token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=InvalidTokenError.code)

    submission = RsvpSubmissionDTO(
        status=rsvp_data.rsvp_status,
        party_size=rsvp_data.party_size,
        dietary_notes=rsvp_data.dietary_notes,
        plus_one_guests=[p.to_dto() for p in rsvp_data.plus_one_guests],
        meal_option_id=rsvp_data.meal_option_id,
        photo_opt_out=rsvp_data.photo_opt_out,
    )
    try:
        response_dto = await write_model.submit_rsvp(token=rsvp_data.token, submission=submission)
    except GuestlistError as e:
        raise to_http_exception(e)

    return RsvpSubmitResponse(
        message=response_dto.message,
        guest=RsvpGuestResponse.from_dto(response_dto.guest),
    )
