import abc
import logging
from functools import partial
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.config.database import async_session_manager
from guestlist.errors import MissingFieldError, TagAlreadyExistsError, TagNotFoundError
from guestlist.guests.dtos import GuestTagDTO, TagCreateDTO, TagUpdateDTO
from guestlist.guests.repository.orm_models import Guest, GuestTag

logger = logging.getLogger(__name__)

DEFAULT_TAG_COLORS = [
    "#8fac8b",  # sage
    "#c9826b",  # terracotta
    "#7c9eb2",  # dusty blue
    "#b8a9c9",  # lavender
    "#d4a574",  # warm tan
    "#9cb8a8",  # seafoam
]


def default_color(index: int) -> str:
    return DEFAULT_TAG_COLORS[index % len(DEFAULT_TAG_COLORS)]


def to_dto(tag: GuestTag) -> GuestTagDTO:
    return GuestTagDTO(
        id=tag.uuid,
        wedding_id=tag.wedding_id,
        name=tag.name,
        color=tag.color,
        created_at=tag.created_at,
    )


class TagDirectory(abc.ABC):
    @abc.abstractmethod
    async def create_tag(self, wedding_id: UUID, data: TagCreateDTO) -> GuestTagDTO:
        raise NotImplementedError

    @abc.abstractmethod
    async def update_tag(self, wedding_id: UUID, tag_id: UUID, patch: TagUpdateDTO) -> GuestTagDTO:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete_tag(self, wedding_id: UUID, tag_id: UUID) -> bool:
        """Delete the tag and strip it from every guest that carries it."""
        raise NotImplementedError

    @abc.abstractmethod
    async def list_tags(self, wedding_id: UUID) -> list[GuestTagDTO]:
        raise NotImplementedError


class SqlTagDirectory(TagDirectory):
    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def create_tag(self, wedding_id: UUID, data: TagCreateDTO) -> GuestTagDTO:
        name = (data.name or "").strip()
        if not name:
            raise MissingFieldError("name")

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            if await self._find_by_name(session, wedding_id, name) is not None:
                raise TagAlreadyExistsError(name)

            count = await session.execute(
                select(func.count(GuestTag.uuid)).where(GuestTag.wedding_id == wedding_id)
            )
            tag = GuestTag(
                wedding_id=wedding_id,
                name=name,
                color=data.color or default_color(count.scalar_one()),
            )
            session.add(tag)
            try:
                await session.flush()
            except IntegrityError as e:
                raise TagAlreadyExistsError(name) from e
            logger.info("Created tag %s for wedding %s", tag.uuid, wedding_id)
            return to_dto(tag)

    async def update_tag(self, wedding_id: UUID, tag_id: UUID, patch: TagUpdateDTO) -> GuestTagDTO:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            tag = await self._get_tag(session, wedding_id, tag_id)
            if tag is None:
                raise TagNotFoundError()

            if patch.name is not None:
                name = patch.name.strip()
                if not name:
                    raise MissingFieldError("name")
                existing = await self._find_by_name(session, wedding_id, name)
                if existing is not None and existing.uuid != tag.uuid:
                    raise TagAlreadyExistsError(name)
                tag.name = name
            if patch.color is not None:
                tag.color = patch.color

            await session.flush()
            logger.info("Updated tag %s", tag_id)
            return to_dto(tag)

    async def delete_tag(self, wedding_id: UUID, tag_id: UUID) -> bool:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            tag = await self._get_tag(session, wedding_id, tag_id)
            if tag is None:
                return False

            stale = str(tag_id)
            result = await session.execute(select(Guest).where(Guest.wedding_id == wedding_id))
            untagged = 0
            for guest in result.scalars().all():
                if stale in (guest.tag_ids or []):
                    guest.tag_ids = [t for t in guest.tag_ids if t != stale]
                    untagged += 1

            await session.delete(tag)
            await session.flush()
            logger.info("Deleted tag %s, removed from %d guests", tag_id, untagged)
            return True

    async def list_tags(self, wedding_id: UUID) -> list[GuestTagDTO]:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                select(GuestTag)
                .where(GuestTag.wedding_id == wedding_id)
                .order_by(GuestTag.created_at, GuestTag.name)
            )
            return [to_dto(tag) for tag in result.scalars().all()]

    async def _get_tag(
        self, session: AsyncSession, wedding_id: UUID, tag_id: UUID
    ) -> GuestTag | None:
        result = await session.execute(
            select(GuestTag).where(GuestTag.uuid == tag_id, GuestTag.wedding_id == wedding_id)
        )
        return result.scalar_one_or_none()

    async def _find_by_name(
        self, session: AsyncSession, wedding_id: UUID, name: str
    ) -> GuestTag | None:
        result = await session.execute(
            select(GuestTag).where(
                GuestTag.wedding_id == wedding_id,
                func.lower(GuestTag.name) == name.strip().lower(),
            )
        )
        return result.scalar_one_or_none()
