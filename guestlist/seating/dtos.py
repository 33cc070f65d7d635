from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from guestlist.seating.repository.orm_models import SeatingTable


@dataclass(frozen=True)
class SeatingTableDTO:
    id: UUID
    wedding_id: UUID
    name: str
    capacity: int
    order: int
    notes: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_table(cls, table: "SeatingTable") -> "SeatingTableDTO":
        return cls(
            id=table.uuid,
            wedding_id=table.wedding_id,
            name=table.name,
            capacity=table.capacity,
            order=table.order,
            notes=table.notes,
            created_at=table.created_at,
        )


@dataclass(frozen=True)
class TableCreateDTO:
    name: str
    capacity: int
    notes: str | None = None


@dataclass(frozen=True)
class TableUpdateDTO:
    """Partial update; None leaves the field unchanged."""

    name: str | None = None
    capacity: int | None = None
    notes: str | None = None


@dataclass(frozen=True)
class AssignmentErrorDTO:
    guest_id: UUID
    error: str


@dataclass(frozen=True)
class AssignmentResultDTO:
    """Per-guest outcome of a batch assignment; partial success is normal."""

    assigned: list[UUID] = field(default_factory=list)
    errors: list[AssignmentErrorDTO] = field(default_factory=list)


@dataclass(frozen=True)
class PublicTableDTO:
    id: UUID
    name: str
    capacity: int
    order: int
    guest_count: int
    notes: str | None = None


@dataclass(frozen=True)
class SeatingConfigDTO:
    """Public seating summary. Carries table metadata and occupant counts, never guest identity."""

    tables: list[PublicTableDTO] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "tables": [
                {**asdict(table), "id": str(table.id)}
                for table in self.tables
            ]
        }


@dataclass(frozen=True)
class SeatedGuestDTO:
    id: UUID
    name: str
    seat_number: int | None = None


@dataclass(frozen=True)
class UnassignedGuestDTO:
    id: UUID
    name: str


@dataclass(frozen=True)
class TableOverviewDTO:
    table: SeatingTableDTO
    guests: list[SeatedGuestDTO]
    available_seats: int


@dataclass(frozen=True)
class SeatingSummaryDTO:
    total_tables: int
    total_capacity: int
    total_assigned: int
    total_unassigned: int


@dataclass(frozen=True)
class SeatingOverviewDTO:
    """Admin-facing overview; the only seating view that names guests."""

    tables: list[TableOverviewDTO]
    unassigned_guests: list[UnassignedGuestDTO]
    summary: SeatingSummaryDTO


@dataclass(frozen=True)
class GuestTableAssignmentDTO:
    table_id: UUID
    table_name: str
    seat_number: int | None = None
    table_notes: str | None = None
