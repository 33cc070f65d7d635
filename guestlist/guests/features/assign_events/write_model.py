"""Which guests are invited to which sub-events of a wedding.

Membership rows in event_guest_assignments are the forward index; Guest.invited_event_ids is
the reverse index and is rewritten in the same transaction so the two never disagree.
"""

import abc
import logging
from functools import partial
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.config.database import async_session_manager
from guestlist.errors import EventNotFoundError, GuestNotFoundError
from guestlist.guests.dtos import (
    EventAssignmentErrorDTO,
    EventAssignmentResultDTO,
    GuestDTO,
)
from guestlist.guests.repository.orm_models import EventGuestAssignment, Guest
from guestlist.weddings.repository.read_models import (
    SqlWeddingConfigReadModel,
    WeddingConfigReadModel,
)

logger = logging.getLogger(__name__)


class EventAssignmentIndex(abc.ABC):
    @abc.abstractmethod
    async def assign(
        self, wedding_id: UUID, guest_ids: list[UUID], event_ids: list[str]
    ) -> EventAssignmentResultDTO:
        """Invite guests to events. Re-inviting is a no-op."""
        raise NotImplementedError

    @abc.abstractmethod
    async def unassign(
        self, wedding_id: UUID, guest_ids: list[UUID], event_ids: list[str]
    ) -> EventAssignmentResultDTO:
        raise NotImplementedError

    @abc.abstractmethod
    async def guests_for_event(self, wedding_id: UUID, event_id: str) -> list[GuestDTO]:
        """Guests invited to the event. A guest with no explicit invitations is invited to all."""
        raise NotImplementedError


class SqlEventAssignmentIndex(EventAssignmentIndex):
    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(
        self,
        session_overwrite: AsyncSession | None = None,
        wedding_config_read_model: WeddingConfigReadModel | None = None,
    ) -> None:
        self.session_overwrite = session_overwrite
        self.wedding_config_read_model = wedding_config_read_model or SqlWeddingConfigReadModel(
            session_overwrite=session_overwrite
        )

    async def assign(
        self, wedding_id: UUID, guest_ids: list[UUID], event_ids: list[str]
    ) -> EventAssignmentResultDTO:
        errors: list[EventAssignmentErrorDTO] = []
        event_ids = await self._known_events(wedding_id, event_ids, errors)

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            guests = await self._guests(session, wedding_id, guest_ids, errors)
            existing = await self._memberships(session, list(guests))

            created = 0
            for guest_id, guest in guests.items():
                for event_id in event_ids:
                    if (guest_id, event_id) in existing:
                        continue
                    session.add(
                        EventGuestAssignment(
                            wedding_id=wedding_id, guest_id=guest_id, event_id=event_id
                        )
                    )
                    existing.add((guest_id, event_id))
                    created += 1
                guest.invited_event_ids = list(
                    dict.fromkeys([*(guest.invited_event_ids or []), *event_ids])
                )

            await session.flush()
            logger.info(
                "Invited %d guests to %d events (%d new memberships, %d errors)",
                len(guests),
                len(event_ids),
                created,
                len(errors),
            )
            return EventAssignmentResultDTO(changed=created, guest_ids=list(guests), errors=errors)

    async def unassign(
        self, wedding_id: UUID, guest_ids: list[UUID], event_ids: list[str]
    ) -> EventAssignmentResultDTO:
        errors: list[EventAssignmentErrorDTO] = []

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            guests = await self._guests(session, wedding_id, guest_ids, errors)
            removed = 0
            if guests and event_ids:
                result = await session.execute(
                    delete(EventGuestAssignment).where(
                        EventGuestAssignment.wedding_id == wedding_id,
                        EventGuestAssignment.guest_id.in_(list(guests)),
                        EventGuestAssignment.event_id.in_(event_ids),
                    )
                )
                removed = result.rowcount or 0

            dropped = set(event_ids)
            for guest in guests.values():
                guest.invited_event_ids = [
                    event_id
                    for event_id in guest.invited_event_ids or []
                    if event_id not in dropped
                ]

            await session.flush()
            logger.info("Removed %d event memberships for %d guests", removed, len(guests))
            return EventAssignmentResultDTO(changed=removed, guest_ids=list(guests), errors=errors)

    async def guests_for_event(self, wedding_id: UUID, event_id: str) -> list[GuestDTO]:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            members = await session.execute(
                select(EventGuestAssignment.guest_id).where(
                    EventGuestAssignment.wedding_id == wedding_id,
                    EventGuestAssignment.event_id == event_id,
                )
            )
            member_ids = set(members.scalars().all())

            result = await session.execute(
                select(Guest).where(Guest.wedding_id == wedding_id).order_by(Guest.name)
            )
            return [
                GuestDTO.from_guest(guest)
                for guest in result.scalars().all()
                if not guest.invited_event_ids or guest.uuid in member_ids
            ]

    async def _known_events(
        self, wedding_id: UUID, event_ids: list[str], errors: list[EventAssignmentErrorDTO]
    ) -> list[str]:
        """Drop event ids the wedding does not define.

        Weddings without an event list accept any id.
        """
        event_ids = list(dict.fromkeys(event_ids))
        config = await self.wedding_config_read_model.get_config(wedding_id)
        if config is None or not config.events:
            return event_ids

        defined = {event.id for event in config.events}
        known = []
        for event_id in event_ids:
            if event_id in defined:
                known.append(event_id)
            else:
                errors.append(
                    EventAssignmentErrorDTO(error=EventNotFoundError.code, event_id=event_id)
                )
        return known

    async def _guests(
        self,
        session: AsyncSession,
        wedding_id: UUID,
        guest_ids: list[UUID],
        errors: list[EventAssignmentErrorDTO],
    ) -> dict[UUID, Guest]:
        if not guest_ids:
            return {}
        result = await session.execute(
            select(Guest)
            .where(Guest.wedding_id == wedding_id, Guest.uuid.in_(guest_ids))
            .with_for_update()
        )
        found = {guest.uuid: guest for guest in result.scalars().all()}

        guests: dict[UUID, Guest] = {}
        for guest_id in dict.fromkeys(guest_ids):
            if guest_id in found:
                guests[guest_id] = found[guest_id]
            else:
                errors.append(
                    EventAssignmentErrorDTO(error=GuestNotFoundError.code, guest_id=guest_id)
                )
        return guests

    async def _memberships(
        self, session: AsyncSession, guest_ids: list[UUID]
    ) -> set[tuple[UUID, str]]:
        if not guest_ids:
            return set()
        result = await session.execute(
            select(EventGuestAssignment.guest_id, EventGuestAssignment.event_id).where(
                EventGuestAssignment.guest_id.in_(guest_ids)
            )
        )
        return {(guest_id, event_id) for guest_id, event_id in result.all()}
