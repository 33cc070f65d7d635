import abc
from functools import partial
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.config.database import async_session_manager
from guestlist.errors import InvalidTokenError
from guestlist.guests.dtos import (
    EventRsvpDTO,
    GuestDTO,
    MealSummaryDTO,
    RsvpGuestViewDTO,
    RsvpStatus,
    RsvpSummaryDTO,
    RsvpViewDTO,
)
from guestlist.guests.repository.directory import find_guest_by_token
from guestlist.guests.repository.orm_models import Guest
from guestlist.guests.rsvp import check_rsvp_open
from guestlist.seating.repository.read_models import get_guest_table_assignment
from guestlist.tokens import TokenCodec
from guestlist.weddings.repository.read_models import (
    SqlWeddingConfigReadModel,
    WeddingConfigReadModel,
)


def summarize(guests: list[tuple[RsvpStatus, int]]) -> RsvpSummaryDTO:
    """Count (status, party size) pairs. Only attending guests add to the party total."""
    counts = {status: 0 for status in RsvpStatus}
    total_party_size = 0
    for status, party_size in guests:
        counts[status] += 1
        if status == RsvpStatus.ATTENDING:
            total_party_size += party_size
    return RsvpSummaryDTO(
        total=len(guests),
        attending=counts[RsvpStatus.ATTENDING],
        not_attending=counts[RsvpStatus.NOT_ATTENDING],
        pending=counts[RsvpStatus.PENDING],
        total_party_size=total_party_size,
    )


def summarize_meals(guests: list[GuestDTO]) -> MealSummaryDTO:
    counts: dict[str, int] = {}
    no_selection = 0
    dietary_notes: list[str] = []

    for guest in guests:
        if guest.rsvp_status != RsvpStatus.ATTENDING:
            continue
        people = [(guest.meal_option_id, guest.dietary_notes)] + [
            (plus_one.meal_option_id, plus_one.dietary_notes) for plus_one in guest.plus_one_guests
        ]
        for meal_option_id, notes in people:
            if meal_option_id:
                counts[meal_option_id] = counts.get(meal_option_id, 0) + 1
            else:
                no_selection += 1
            if notes and notes.strip():
                dietary_notes.append(notes.strip())

    return MealSummaryDTO(counts=counts, no_selection=no_selection, dietary_notes=dietary_notes)


def is_invited(guest: GuestDTO, event_id: str) -> bool:
    # No explicit invitations means the guest is invited to every event.
    return not guest.invited_event_ids or event_id in guest.invited_event_ids


def event_status(guest: GuestDTO, event_id: str) -> RsvpStatus:
    rsvp: EventRsvpDTO | None = guest.event_rsvps.get(event_id)
    return rsvp.status if rsvp is not None else guest.rsvp_status


class RsvpReadModel(abc.ABC):
    @abc.abstractmethod
    async def view_rsvp(self, token: str) -> RsvpViewDTO:
        """
        Guest-facing view of their own RSVP.
        Raises the same token, wedding and feature errors as submitting one.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def summary(self, wedding_id: UUID) -> RsvpSummaryDTO:
        raise NotImplementedError

    @abc.abstractmethod
    async def meal_summary(self, wedding_id: UUID) -> MealSummaryDTO:
        raise NotImplementedError

    @abc.abstractmethod
    async def event_summary(self, wedding_id: UUID, event_id: str) -> RsvpSummaryDTO:
        raise NotImplementedError


class SqlRsvpReadModel(RsvpReadModel):
    """SQL implementation of RSVP read model."""

    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(
        self,
        session_overwrite: AsyncSession | None = None,
        codec: TokenCodec | None = None,
        wedding_config_read_model: WeddingConfigReadModel | None = None,
    ) -> None:
        self._session_overwrite = session_overwrite
        self._codec = codec or TokenCodec()
        self._wedding_config_read_model = wedding_config_read_model or SqlWeddingConfigReadModel(
            session_overwrite=session_overwrite
        )

    async def view_rsvp(self, token: str) -> RsvpViewDTO:
        async with self.async_session_manager(session_overwrite=self._session_overwrite) as session:
            guest = await find_guest_by_token(session, self._codec, token)
            if guest is None:
                raise InvalidTokenError()

            config = check_rsvp_open(
                await self._wedding_config_read_model.get_config(guest.wedding_id)
            )
            table = await get_guest_table_assignment(session, guest.uuid)
            await session.flush()

            return RsvpViewDTO(
                guest=RsvpGuestViewDTO.from_guest(guest),
                wedding_id=guest.wedding_id,
                meal_config=config.meal_config if config.meal_config.enabled else None,
                table=table,
            )

    async def summary(self, wedding_id: UUID) -> RsvpSummaryDTO:
        async with self.async_session_manager(session_overwrite=self._session_overwrite) as session:
            result = await session.execute(
                select(Guest.rsvp_status, Guest.party_size).where(Guest.wedding_id == wedding_id)
            )
            return summarize([(RsvpStatus(status), size) for status, size in result.all()])

    async def meal_summary(self, wedding_id: UUID) -> MealSummaryDTO:
        async with self.async_session_manager(session_overwrite=self._session_overwrite) as session:
            return summarize_meals(await self._guests(session, wedding_id))

    async def event_summary(self, wedding_id: UUID, event_id: str) -> RsvpSummaryDTO:
        async with self.async_session_manager(session_overwrite=self._session_overwrite) as session:
            guests = await self._guests(session, wedding_id)
            return summarize(
                [
                    (event_status(guest, event_id), guest.party_size)
                    for guest in guests
                    if is_invited(guest, event_id)
                ]
            )

    async def _guests(self, session: AsyncSession, wedding_id: UUID) -> list[GuestDTO]:
        result = await session.execute(select(Guest).where(Guest.wedding_id == wedding_id))
        return [GuestDTO.from_guest(guest) for guest in result.scalars().all()]
