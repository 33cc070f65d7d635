from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from guestlist.errors import GuestlistError, InvalidTokenError
from guestlist.guests.repository.read_models import RsvpReadModel, SqlRsvpReadModel
from guestlist.guests.schemas import RsvpGuestResponse
from guestlist.guests.urls import RSVP_VIEW_URL
from guestlist.routers.errors import to_http_exception

router = APIRouter()


class MealOptionResponse(BaseModel):
    id: str
    name: str
    description: str | None = None


class MealConfigResponse(BaseModel):
    enabled: bool
    options: list[MealOptionResponse]


class TableAssignmentResponse(BaseModel):
    table_id: UUID
    table_name: str
    seat_number: int | None = None
    table_notes: str | None = None


class RsvpViewResponse(BaseModel):
    guest: RsvpGuestResponse
    wedding_id: UUID
    meal_config: MealConfigResponse | None = None
    table: TableAssignmentResponse | None = None


def get_rsvp_read_model() -> RsvpReadModel:
    """Dependency to get RSVP read model instance."""
    return SqlRsvpReadModel()


@router.get(RSVP_VIEW_URL, response_model=RsvpViewResponse)
async def view_rsvp(
    token: str | None = None,
    read_model: RsvpReadModel = Depends(get_rsvp_read_model),
) -> RsvpViewResponse:
    """
    Everything the RSVP form needs for the guest holding `token`.
    Unknown and expired links are indistinguishable.
    """
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=InvalidTokenError.code)

    try:
        view = await read_model.view_rsvp(token)
    except GuestlistError as e:
        raise to_http_exception(e)

    meal_config = None
    if view.meal_config is not None:
        meal_config = MealConfigResponse(
            enabled=view.meal_config.enabled,
            options=[
                MealOptionResponse(id=o.id, name=o.name, description=o.description)
                for o in view.meal_config.options
            ],
        )

    table = None
    if view.table is not None:
        table = TableAssignmentResponse(
            table_id=view.table.table_id,
            table_name=view.table.table_name,
            seat_number=view.table.seat_number,
            table_notes=view.table.table_notes,
        )

    return RsvpViewResponse(
        guest=RsvpGuestResponse.from_dto(view.guest),
        wedding_id=view.wedding_id,
        meal_config=meal_config,
        table=table,
    )
