import abc
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.config.database import async_session_manager
from guestlist.weddings.dtos import (
    MealConfigDTO,
    MealOptionDTO,
    WeddingConfigDTO,
    WeddingEventDTO,
    WeddingStatus,
)
from guestlist.weddings.repository.orm_models import Wedding


def parse_event_date(value: str | None) -> datetime | None:
    """Parse an ISO date or datetime; dates without a time are midnight UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def wedding_to_config(wedding: Wedding) -> WeddingConfigDTO:
    meal_config = wedding.meal_config or {}
    event_details = wedding.event_details or {}
    return WeddingConfigDTO(
        wedding_id=wedding.uuid,
        status=WeddingStatus(wedding.status),
        features=dict(wedding.features or {}),
        meal_config=MealConfigDTO(
            enabled=bool(meal_config.get("enabled", False)),
            options=[
                MealOptionDTO(
                    id=option["id"],
                    name=option.get("name", ""),
                    description=option.get("description"),
                )
                for option in meal_config.get("options", [])
            ],
        ),
        event_date=parse_event_date(event_details.get("date")),
        events=[
            WeddingEventDTO(
                id=event["id"],
                name=event.get("name", ""),
                date=parse_event_date(event.get("date")),
            )
            for event in event_details.get("events", [])
        ],
    )


class WeddingConfigReadModel(abc.ABC):
    @abc.abstractmethod
    async def get_config(self, wedding_id: UUID) -> WeddingConfigDTO | None:
        """Return the wedding's configuration, or None if there is no such wedding."""
        raise NotImplementedError


class SqlWeddingConfigReadModel(WeddingConfigReadModel):
    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def get_config(self, wedding_id: UUID) -> WeddingConfigDTO | None:
        async with async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(select(Wedding).where(Wedding.uuid == wedding_id))
            wedding = result.scalar_one_or_none()
            if wedding is None:
                return None
            return wedding_to_config(wedding)
