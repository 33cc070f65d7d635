"""RSVP write models - apply guest responses. Return DTOs, never ORM models."""

import logging
from abc import ABC, abstractmethod
from functools import partial
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.config.database import async_session_manager
from guestlist.errors import GuestNotFoundError, InvalidTokenError
from guestlist.guests.dtos import (
    EventRsvpDTO,
    RsvpGuestViewDTO,
    RsvpResponseDTO,
    RsvpStatus,
    RsvpSubmissionDTO,
)
from guestlist.guests.repository.directory import find_guest_by_token
from guestlist.guests.repository.orm_models import Guest
from guestlist.guests.rsvp import (
    check_meal_options,
    check_plus_one_limit,
    check_rsvp_open,
    confirmation_message,
    derive_overall_status,
    reconcile_party_size,
)
from guestlist.render_config import RenderConfigSink, publish_seating_config
from guestlist.tokens import TokenCodec
from guestlist.weddings.repository.read_models import (
    SqlWeddingConfigReadModel,
    WeddingConfigReadModel,
)

logger = logging.getLogger(__name__)


class RsvpWriteModel(ABC):
    @abstractmethod
    async def submit_rsvp(self, token: str, submission: RsvpSubmissionDTO) -> RsvpResponseDTO:
        """
        Apply a guest's response, authenticated by their RSVP credential.

        Raises:
            InvalidTokenError: unknown or expired credential.
            WeddingNotFoundError: the wedding is gone or not active.
            FeatureDisabledError: RSVP is switched off for the wedding.
            PlusOneLimitExceededError: more plus-ones than the guest's allowance.
            InvalidMealOptionError: a meal id the wedding does not offer.
        """
        raise NotImplementedError

    @abstractmethod
    async def update_event_rsvp(
        self, guest_id: UUID, patch: dict[str, EventRsvpDTO]
    ) -> RsvpGuestViewDTO:
        """
        Merge per-event answers into the guest's existing ones and recompute the
        overall status from the merged map.
        """
        raise NotImplementedError


class SqlRsvpWriteModel(RsvpWriteModel):
    """Write operations for RSVP. Returns DTOs, never ORM models."""

    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(
        self,
        session_overwrite: AsyncSession | None = None,
        codec: TokenCodec | None = None,
        wedding_config_read_model: WeddingConfigReadModel | None = None,
        render_config_sink: RenderConfigSink | None = None,
    ) -> None:
        self._session_overwrite = session_overwrite
        self._codec = codec or TokenCodec()
        self._wedding_config_read_model = wedding_config_read_model or SqlWeddingConfigReadModel(
            session_overwrite=session_overwrite
        )
        self._render_config_sink = render_config_sink

    async def submit_rsvp(self, token: str, submission: RsvpSubmissionDTO) -> RsvpResponseDTO:
        async with self.async_session_manager(session_overwrite=self._session_overwrite) as session:
            guest = await find_guest_by_token(session, self._codec, token, for_update=True)
            if guest is None:
                raise InvalidTokenError()

            config = check_rsvp_open(
                await self._wedding_config_read_model.get_config(guest.wedding_id)
            )

            plus_ones = list(submission.plus_one_guests)
            attending = submission.status == RsvpStatus.ATTENDING
            check_plus_one_limit(guest.plus_one_allowance, plus_ones)
            if attending:
                check_meal_options(config.meal_config, submission.meal_option_id, plus_ones)

            guest.rsvp_status = submission.status
            if attending:
                guest.party_size = reconcile_party_size(submission.party_size, len(plus_ones))
                guest.plus_one_guests = [plus_one.to_dict() for plus_one in plus_ones]
                guest.meal_option_id = submission.meal_option_id
            else:
                guest.party_size = max(submission.party_size, 1)
                guest.plus_one_guests = []
                guest.meal_option_id = None
            if submission.dietary_notes is not None:
                guest.dietary_notes = submission.dietary_notes
            if submission.photo_opt_out is not None:
                guest.photo_opt_out = submission.photo_opt_out
            guest.rsvp_submitted_at = self._codec.now()

            await session.flush()
            logger.info("Applied RSVP %s for guest %s", submission.status.value, guest.uuid)

            await publish_seating_config(session, self._render_config_sink, guest.wedding_id)
            return RsvpResponseDTO(
                message=confirmation_message(submission.status),
                guest=RsvpGuestViewDTO.from_guest(guest),
            )

    async def update_event_rsvp(
        self, guest_id: UUID, patch: dict[str, EventRsvpDTO]
    ) -> RsvpGuestViewDTO:
        async with self.async_session_manager(session_overwrite=self._session_overwrite) as session:
            result = await session.execute(
                select(Guest).where(Guest.uuid == guest_id).with_for_update()
            )
            guest = result.scalar_one_or_none()
            if guest is None:
                raise GuestNotFoundError()

            merged = {
                event_id: EventRsvpDTO.from_dict(rsvp)
                for event_id, rsvp in (guest.event_rsvps or {}).items()
            }
            merged.update(patch)

            guest.event_rsvps = {event_id: rsvp.to_dict() for event_id, rsvp in merged.items()}
            guest.rsvp_status = derive_overall_status(merged)
            guest.rsvp_submitted_at = self._codec.now()

            await session.flush()
            logger.info(
                "Applied %d event RSVPs for guest %s, overall %s",
                len(patch),
                guest_id,
                RsvpStatus(guest.rsvp_status).value,
            )

            await publish_seating_config(session, self._render_config_sink, guest.wedding_id)
            return RsvpGuestViewDTO.from_guest(guest)
