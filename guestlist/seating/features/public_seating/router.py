from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from guestlist.errors import FeatureDisabledError, WeddingNotFoundError
from guestlist.routers.errors import to_http_exception
from guestlist.seating.repository.read_models import SeatingReadModel, SqlSeatingReadModel
from guestlist.seating.urls import PUBLIC_SEATING_URL
from guestlist.weddings.dtos import Feature
from guestlist.weddings.repository.read_models import (
    SqlWeddingConfigReadModel,
    WeddingConfigReadModel,
)

router = APIRouter()


class PublicTableResponse(BaseModel):
    """One table as shown on the public site: occupancy only, never who sits there."""

    id: UUID
    name: str
    capacity: int
    order: int
    guest_count: int
    notes: str | None = None


class PublicSeatingResponse(BaseModel):
    tables: list[PublicTableResponse]


def get_seating_read_model() -> SeatingReadModel:
    return SqlSeatingReadModel()


def get_wedding_config_read_model() -> WeddingConfigReadModel:
    return SqlWeddingConfigReadModel()


@router.get(PUBLIC_SEATING_URL, response_model=PublicSeatingResponse)
async def public_seating(
    wedding_id: UUID,
    read_model: SeatingReadModel = Depends(get_seating_read_model),
    wedding_config_read_model: WeddingConfigReadModel = Depends(get_wedding_config_read_model),
) -> PublicSeatingResponse:
    config = await wedding_config_read_model.get_config(wedding_id)
    if config is None or not config.is_active:
        raise to_http_exception(WeddingNotFoundError())
    if not config.feature_enabled(Feature.SEATING_CHART):
        raise to_http_exception(FeatureDisabledError(Feature.SEATING_CHART.value))

    seating = await read_model.seating_config(wedding_id)
    return PublicSeatingResponse(
        tables=[
            PublicTableResponse(
                id=table.id,
                name=table.name,
                capacity=table.capacity,
                order=table.order,
                guest_count=table.guest_count,
                notes=table.notes,
            )
            for table in seating.tables
        ]
    )
