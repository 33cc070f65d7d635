from uuid import UUID, uuid4

import pytest

from guestlist.seating.dtos import (
    GuestTableAssignmentDTO,
    PublicTableDTO,
    SeatingConfigDTO,
    SeatingOverviewDTO,
    SeatingSummaryDTO,
    UnassignedGuestDTO,
)
from guestlist.seating.features.public_seating.router import (
    get_seating_read_model,
    get_wedding_config_read_model,
)
from guestlist.seating.repository.read_models import SeatingReadModel
from guestlist.weddings.dtos import WeddingConfigDTO, WeddingStatus
from guestlist.weddings.repository.read_models import WeddingConfigReadModel

WEDDING_ID = uuid4()


class InMemorySeatingReadModel(SeatingReadModel):
    def __init__(self, configs: dict[UUID, SeatingConfigDTO] | None = None) -> None:
        self.configs = configs or {}

    async def seating_config(self, wedding_id: UUID) -> SeatingConfigDTO:
        return self.configs.get(wedding_id, SeatingConfigDTO())

    async def seating_overview(self, wedding_id: UUID) -> SeatingOverviewDTO:
        return SeatingOverviewDTO(
            tables=[],
            unassigned_guests=[],
            summary=SeatingSummaryDTO(0, 0, 0, 0),
        )

    async def unassigned_guests(self, wedding_id: UUID) -> list[UnassignedGuestDTO]:
        return []

    async def guest_table_assignment(self, guest_id: UUID) -> GuestTableAssignmentDTO | None:
        return None


class InMemoryWeddingConfigReadModel(WeddingConfigReadModel):
    def __init__(self, configs: dict[UUID, WeddingConfigDTO] | None = None) -> None:
        self.configs = configs or {}

    async def get_config(self, wedding_id: UUID) -> WeddingConfigDTO | None:
        return self.configs.get(wedding_id)


@pytest.fixture
def seating_read_model():
    return InMemorySeatingReadModel(
        {
            WEDDING_ID: SeatingConfigDTO(
                tables=[
                    PublicTableDTO(
                        id=uuid4(), name="Family", capacity=8, order=1, guest_count=5, notes=None
                    ),
                    PublicTableDTO(
                        id=uuid4(), name="Friends", capacity=6, order=2, guest_count=0
                    ),
                ]
            )
        }
    )


def _overrides(seating_read_model, **config):
    wedding_config = WeddingConfigDTO(
        wedding_id=WEDDING_ID,
        status=config.get("status", WeddingStatus.ACTIVE),
        features=config.get("features", {"RSVP": True, "SEATING_CHART": True}),
    )
    wedding_configs = InMemoryWeddingConfigReadModel({WEDDING_ID: wedding_config})
    return {
        get_seating_read_model: lambda: seating_read_model,
        get_wedding_config_read_model: lambda: wedding_configs,
    }


@pytest.mark.asyncio
async def test_public_seating(client_factory, seating_read_model):
    async with client_factory(_overrides(seating_read_model)) as client:
        response = await client.get(f"/weddings/{WEDDING_ID}/seating")

    assert response.status_code == 200
    tables = response.json()["tables"]
    assert [table["name"] for table in tables] == ["Family", "Friends"]
    assert tables[0]["guest_count"] == 5
    assert set(tables[0]) == {"id", "name", "capacity", "order", "guest_count", "notes"}


@pytest.mark.asyncio
async def test_public_seating_disabled(client_factory, seating_read_model):
    overrides = _overrides(seating_read_model, features={"RSVP": True})

    async with client_factory(overrides) as client:
        response = await client.get(f"/weddings/{WEDDING_ID}/seating")

    assert response.status_code == 403
    assert response.json()["detail"] == "FEATURE_DISABLED"


@pytest.mark.asyncio
async def test_public_seating_draft_wedding(client_factory, seating_read_model):
    overrides = _overrides(seating_read_model, status=WeddingStatus.DRAFT)

    async with client_factory(overrides) as client:
        response = await client.get(f"/weddings/{WEDDING_ID}/seating")

    assert response.status_code == 404
    assert response.json()["detail"] == "WEDDING_NOT_FOUND"


@pytest.mark.asyncio
async def test_public_seating_unknown_wedding(client_factory, seating_read_model):
    async with client_factory(_overrides(seating_read_model)) as client:
        response = await client.get(f"/weddings/{uuid4()}/seating")

    assert response.status_code == 404
