"""Pydantic response/request models shared by the RSVP routers."""

from uuid import UUID

from pydantic import BaseModel

from guestlist.guests.dtos import PlusOneGuestDTO, RsvpGuestViewDTO, RsvpStatus


class PlusOneGuest(BaseModel):
    name: str
    dietary_notes: str | None = None
    meal_option_id: str | None = None

    def to_dto(self) -> PlusOneGuestDTO:
        return PlusOneGuestDTO(
            name=self.name,
            dietary_notes=self.dietary_notes,
            meal_option_id=self.meal_option_id,
        )


class EventRsvpResponse(BaseModel):
    status: RsvpStatus
    dietary_notes: str | None = None
    meal_option_id: str | None = None


class RsvpGuestResponse(BaseModel):
    """The guest's own record as shown on the RSVP page. Never includes credential fields."""

    id: UUID
    name: str
    email: str
    party_size: int
    rsvp_status: RsvpStatus
    plus_one_allowance: int
    plus_one_guests: list[PlusOneGuest] = []
    meal_option_id: str | None = None
    dietary_notes: str | None = None
    photo_opt_out: bool = False
    event_rsvps: dict[str, EventRsvpResponse] = {}

    @classmethod
    def from_dto(cls, guest: RsvpGuestViewDTO) -> "RsvpGuestResponse":
        return cls(
            id=guest.id,
            name=guest.name,
            email=guest.email,
            party_size=guest.party_size,
            rsvp_status=guest.rsvp_status,
            plus_one_allowance=guest.plus_one_allowance,
            plus_one_guests=[PlusOneGuest(**p.to_dict()) for p in guest.plus_one_guests],
            meal_option_id=guest.meal_option_id,
            dietary_notes=guest.dietary_notes,
            photo_opt_out=guest.photo_opt_out,
            event_rsvps={
                event_id: EventRsvpResponse(**rsvp.to_dict())
                for event_id, rsvp in guest.event_rsvps.items()
            },
        )
