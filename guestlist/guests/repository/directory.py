"""Guest directory - guest records, their RSVP credentials and bulk CSV import.

Returns DTOs, never ORM models. A raw credential only leaves this module inside an
IssuedGuestDTO, right after it is minted.
"""

import abc
import logging
from datetime import datetime
from functools import partial
from uuid import UUID

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.config.database import async_session_manager
from guestlist.errors import (
    GuestAlreadyExistsError,
    GuestlistError,
    GuestNotFoundError,
    InvalidEmailError,
    MissingFieldError,
    PlusOneLimitExceededError,
    ValidationError,
)
from guestlist.guests.dtos import (
    CsvGuestRow,
    CsvImportRowResult,
    GuestCreateDTO,
    GuestDTO,
    GuestUpdateDTO,
    IssuedGuestDTO,
    RsvpStatus,
)
from guestlist.guests.repository.orm_models import EventGuestAssignment, Guest
from guestlist.guests.rsvp import check_meal_options
from guestlist.render_config import RenderConfigSink, publish_seating_config
from guestlist.seating.repository.orm_models import SeatingAssignment
from guestlist.tokens import IssuedToken, TokenCodec
from guestlist.weddings.repository.read_models import (
    SqlWeddingConfigReadModel,
    WeddingConfigReadModel,
)

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)


def validate_email(email: str | None) -> str:
    email = (email or "").strip()
    if not email:
        raise MissingFieldError("email")
    try:
        _email_adapter.validate_python(email)
    except PydanticValidationError as e:
        raise InvalidEmailError(email) from e
    return email


def validate_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise MissingFieldError("name")
    return name


def validate_counts(party_size: int | None, plus_one_allowance: int | None) -> None:
    if party_size is not None and party_size < 1:
        raise ValidationError("Party size must be at least 1")
    if plus_one_allowance is not None and plus_one_allowance < 0:
        raise ValidationError("Plus-one allowance cannot be negative")


async def find_guest_by_token(
    session: AsyncSession, codec: TokenCodec, token: str | None, for_update: bool = False
) -> Guest | None:
    """Resolve a raw credential to its guest.

    Unknown and expired credentials both yield None. Touches the last-used timestamp at
    most once per codec.touch_interval.
    """
    if not token:
        return None
    digest = codec.hash(token)
    stmt = select(Guest).where(Guest.rsvp_token_hash == digest)
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    guest = result.scalar_one_or_none()
    if guest is None or not codec.verify(token, guest.rsvp_token_hash):
        return None
    if codec.is_expired(guest.rsvp_token_expires_at):
        return None
    if codec.should_refresh_last_used(guest.rsvp_token_last_used_at):
        guest.rsvp_token_last_used_at = codec.now()
    return guest


class GuestDirectory(abc.ABC):
    @abc.abstractmethod
    async def create_guest(self, wedding_id: UUID, data: GuestCreateDTO) -> IssuedGuestDTO:
        """Create a guest and mint their first RSVP credential.

        Raises:
            GuestAlreadyExistsError: the wedding already has this email (case-insensitive).
            EventExpiredError: the wedding date is past its grace window.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def update_guest(self, guest_id: UUID, patch: GuestUpdateDTO) -> GuestDTO:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete_guest(self, guest_id: UUID) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    async def get_guest(self, guest_id: UUID) -> GuestDTO | None:
        raise NotImplementedError

    @abc.abstractmethod
    async def get_guest_by_email(self, wedding_id: UUID, email: str) -> GuestDTO | None:
        raise NotImplementedError

    @abc.abstractmethod
    async def get_guest_by_token(self, token: str) -> GuestDTO | None:
        raise NotImplementedError

    @abc.abstractmethod
    async def list_guests(self, wedding_id: UUID) -> list[GuestDTO]:
        raise NotImplementedError

    @abc.abstractmethod
    async def regenerate_token(self, guest_id: UUID) -> IssuedGuestDTO:
        raise NotImplementedError

    @abc.abstractmethod
    async def import_guests_from_csv(
        self, wedding_id: UUID, rows: list[CsvGuestRow]
    ) -> list[CsvImportRowResult]:
        raise NotImplementedError

    @abc.abstractmethod
    async def cleanup_expired_tokens(self) -> int:
        raise NotImplementedError


class SqlGuestDirectory(GuestDirectory):
    """SQL implementation of the guest directory."""

    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(
        self,
        session_overwrite: AsyncSession | None = None,
        codec: TokenCodec | None = None,
        wedding_config_read_model: WeddingConfigReadModel | None = None,
        render_config_sink: RenderConfigSink | None = None,
    ) -> None:
        self.session_overwrite = session_overwrite
        self.codec = codec or TokenCodec()
        self.wedding_config_read_model = wedding_config_read_model or SqlWeddingConfigReadModel(
            session_overwrite=session_overwrite
        )
        self.render_config_sink = render_config_sink

    async def create_guest(self, wedding_id: UUID, data: GuestCreateDTO) -> IssuedGuestDTO:
        name = validate_name(data.name)
        email = validate_email(data.email)
        validate_counts(data.party_size, data.plus_one_allowance)
        token = self.codec.mint(await self._event_date(wedding_id))

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            guest = await self._insert_guest(session, wedding_id, name, email, data, token)
            logger.info("Created guest %s for wedding %s", guest.uuid, wedding_id)
            return IssuedGuestDTO(guest=GuestDTO.from_guest(guest), raw_token=token.raw)

    async def update_guest(self, guest_id: UUID, patch: GuestUpdateDTO) -> GuestDTO:
        validate_counts(patch.party_size, patch.plus_one_allowance)
        name = validate_name(patch.name) if patch.name is not None else None
        email = validate_email(patch.email) if patch.email is not None else None

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            guest = await self._get_guest(session, guest_id)
            if guest is None:
                raise GuestNotFoundError()

            # Check everything before touching the row so a rejected patch changes nothing.
            if email is not None:
                existing = await self._find_by_email(session, guest.wedding_id, email)
                if existing is not None and existing.uuid != guest.uuid:
                    raise GuestAlreadyExistsError(email)
            plus_one_count = len(guest.plus_one_guests or [])
            if patch.plus_one_allowance is not None and plus_one_count > patch.plus_one_allowance:
                raise PlusOneLimitExceededError(patch.plus_one_allowance, plus_one_count)
            if (
                patch.party_size is not None
                and guest.rsvp_status == RsvpStatus.ATTENDING
                and patch.party_size < 1 + plus_one_count
            ):
                raise ValidationError(
                    f"Party size must cover the guest and {plus_one_count} plus-ones"
                )
            if patch.meal_option_id:
                config = await self.wedding_config_read_model.get_config(guest.wedding_id)
                if config is not None:
                    check_meal_options(config.meal_config, patch.meal_option_id, [])

            if name is not None:
                guest.name = name
            if email is not None:
                guest.email = email
            if patch.party_size is not None:
                guest.party_size = patch.party_size
            if patch.plus_one_allowance is not None:
                guest.plus_one_allowance = patch.plus_one_allowance
            if patch.dietary_notes is not None:
                guest.dietary_notes = patch.dietary_notes
            if patch.meal_option_id is not None:
                guest.meal_option_id = patch.meal_option_id
            if patch.photo_opt_out is not None:
                guest.photo_opt_out = patch.photo_opt_out
            if patch.tag_ids is not None:
                guest.tag_ids = [str(tag_id) for tag_id in dict.fromkeys(patch.tag_ids)]

            await session.flush()
            logger.info("Updated guest %s", guest_id)
            return GuestDTO.from_guest(guest)

    async def delete_guest(self, guest_id: UUID) -> bool:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            guest = await self._get_guest(session, guest_id)
            if guest is None:
                return False

            wedding_id = guest.wedding_id
            await session.execute(
                delete(EventGuestAssignment).where(EventGuestAssignment.guest_id == guest_id)
            )
            await session.execute(
                delete(SeatingAssignment).where(SeatingAssignment.guest_id == guest_id)
            )
            await session.delete(guest)
            await session.flush()
            logger.info("Deleted guest %s", guest_id)

            await publish_seating_config(session, self.render_config_sink, wedding_id)
            return True

    async def get_guest(self, guest_id: UUID) -> GuestDTO | None:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            guest = await self._get_guest(session, guest_id)
            return GuestDTO.from_guest(guest) if guest else None

    async def get_guest_by_email(self, wedding_id: UUID, email: str) -> GuestDTO | None:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            guest = await self._find_by_email(session, wedding_id, email)
            return GuestDTO.from_guest(guest) if guest else None

    async def get_guest_by_token(self, token: str) -> GuestDTO | None:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            guest = await find_guest_by_token(session, self.codec, token)
            if guest is None:
                return None
            await session.flush()
            return GuestDTO.from_guest(guest)

    async def list_guests(self, wedding_id: UUID) -> list[GuestDTO]:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                select(Guest).where(Guest.wedding_id == wedding_id).order_by(Guest.name)
            )
            return [GuestDTO.from_guest(guest) for guest in result.scalars().all()]

    async def regenerate_token(self, guest_id: UUID) -> IssuedGuestDTO:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            guest = await self._get_guest(session, guest_id)
            if guest is None:
                raise GuestNotFoundError()

            token = self.codec.mint(await self._event_date(guest.wedding_id))
            self._apply_token(guest, token)
            await session.flush()
            logger.info("Regenerated RSVP token for guest %s", guest_id)
            return IssuedGuestDTO(guest=GuestDTO.from_guest(guest), raw_token=token.raw)

    async def import_guests_from_csv(
        self, wedding_id: UUID, rows: list[CsvGuestRow]
    ) -> list[CsvImportRowResult]:
        """Import rows one by one; a bad row is reported and the batch carries on."""
        results: list[CsvImportRowResult] = []
        event_date = await self._event_date(wedding_id)

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            for row_number, row in enumerate(rows, start=1):
                row_name = row.name or ""
                row_email = row.email or ""
                try:
                    name = validate_name(row.name)
                    email = validate_email(row.email)
                    party_size = row.party_size if row.party_size is not None else 1
                    validate_counts(party_size, None)
                    token = self.codec.mint(event_date)
                    guest = await self._insert_guest(
                        session,
                        wedding_id,
                        name,
                        email,
                        GuestCreateDTO(name=name, email=email, party_size=party_size),
                        token,
                    )
                except GuestlistError as e:
                    results.append(
                        CsvImportRowResult(
                            row=row_number,
                            name=row_name,
                            email=row_email,
                            success=False,
                            error=str(e),
                            error_code=e.code,
                        )
                    )
                    continue

                results.append(
                    CsvImportRowResult(
                        row=row_number,
                        name=row_name,
                        email=row_email,
                        success=True,
                        guest=IssuedGuestDTO(guest=GuestDTO.from_guest(guest), raw_token=token.raw),
                    )
                )

        imported = sum(1 for r in results if r.success)
        logger.info(
            "CSV import for wedding %s: %d imported, %d skipped",
            wedding_id,
            imported,
            len(results) - imported,
        )
        return results

    async def cleanup_expired_tokens(self) -> int:
        """Clear the digest of every expired credential. Guest rows are kept."""
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                select(Guest).where(
                    Guest.rsvp_token_hash.is_not(None),
                    Guest.rsvp_token_expires_at.is_not(None),
                    Guest.rsvp_token_expires_at < self.codec.now(),
                )
            )
            expired = result.scalars().all()
            for guest in expired:
                guest.rsvp_token_hash = None
                guest.rsvp_token_expires_at = None
            await session.flush()

            cleared = len(expired)
            logger.info("Cleared %d expired RSVP tokens", cleared)
            return cleared

    async def _event_date(self, wedding_id: UUID) -> datetime | None:
        config = await self.wedding_config_read_model.get_config(wedding_id)
        return config.event_date if config else None

    async def _insert_guest(
        self,
        session: AsyncSession,
        wedding_id: UUID,
        name: str,
        email: str,
        data: GuestCreateDTO,
        token: IssuedToken,
    ) -> Guest:
        if await self._find_by_email(session, wedding_id, email) is not None:
            raise GuestAlreadyExistsError(email)

        guest = Guest(
            wedding_id=wedding_id,
            name=name,
            email=email,
            party_size=data.party_size,
            rsvp_status=RsvpStatus.PENDING,
            dietary_notes=data.dietary_notes,
            plus_one_allowance=data.plus_one_allowance,
            plus_one_guests=[],
            tag_ids=[str(tag_id) for tag_id in data.tag_ids],
            event_rsvps={},
            invited_event_ids=[],
            photo_opt_out=False,
        )
        self._apply_token(guest, token)
        try:
            # A refused insert only rolls back its own savepoint.
            async with session.begin_nested():
                session.add(guest)
                await session.flush()
        except IntegrityError as e:
            # Lost a race against a concurrent insert of the same email.
            raise GuestAlreadyExistsError(email) from e
        return guest

    @staticmethod
    def _apply_token(guest: Guest, token: IssuedToken) -> None:
        guest.rsvp_token_hash = token.digest
        guest.rsvp_token_created_at = token.created_at
        guest.rsvp_token_expires_at = token.expires_at
        guest.rsvp_token_last_used_at = None

    async def _get_guest(self, session: AsyncSession, guest_id: UUID) -> Guest | None:
        result = await session.execute(select(Guest).where(Guest.uuid == guest_id))
        return result.scalar_one_or_none()

    async def _find_by_email(
        self, session: AsyncSession, wedding_id: UUID, email: str
    ) -> Guest | None:
        result = await session.execute(
            select(Guest).where(
                Guest.wedding_id == wedding_id,
                func.lower(Guest.email) == email.strip().lower(),
            )
        )
        return result.scalar_one_or_none()
