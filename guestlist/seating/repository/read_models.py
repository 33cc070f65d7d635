import abc
from collections import defaultdict
from functools import partial
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.config.database import async_session_manager
from guestlist.guests.dtos import RsvpStatus
from guestlist.guests.repository.orm_models import Guest
from guestlist.seating.dtos import (
    GuestTableAssignmentDTO,
    PublicTableDTO,
    SeatedGuestDTO,
    SeatingConfigDTO,
    SeatingOverviewDTO,
    SeatingSummaryDTO,
    SeatingTableDTO,
    TableOverviewDTO,
    UnassignedGuestDTO,
)
from guestlist.seating.repository.orm_models import SeatingAssignment, SeatingTable


async def get_tables_for_wedding(session: AsyncSession, wedding_id: UUID) -> list[SeatingTable]:
    result = await session.execute(
        select(SeatingTable)
        .where(SeatingTable.wedding_id == wedding_id)
        .order_by(SeatingTable.order, SeatingTable.created_at)
    )
    return list(result.scalars().all())


async def get_occupant_counts(session: AsyncSession, table_ids: list[UUID]) -> dict[UUID, int]:
    if not table_ids:
        return {}
    result = await session.execute(
        select(SeatingAssignment.table_id, func.count(SeatingAssignment.uuid))
        .where(SeatingAssignment.table_id.in_(table_ids))
        .group_by(SeatingAssignment.table_id)
    )
    return {table_id: count for table_id, count in result.all()}


async def build_seating_config(session: AsyncSession, wedding_id: UUID) -> SeatingConfigDTO:
    """Public seating summary: table metadata and guest counts only, no names."""
    tables = await get_tables_for_wedding(session, wedding_id)
    counts = await get_occupant_counts(session, [table.uuid for table in tables])
    return SeatingConfigDTO(
        tables=[
            PublicTableDTO(
                id=table.uuid,
                name=table.name,
                capacity=table.capacity,
                order=table.order,
                notes=table.notes,
                guest_count=counts.get(table.uuid, 0),
            )
            for table in tables
        ]
    )


async def get_guest_table_assignment(
    session: AsyncSession, guest_id: UUID
) -> GuestTableAssignmentDTO | None:
    result = await session.execute(
        select(SeatingAssignment, SeatingTable)
        .join(SeatingTable, SeatingAssignment.table_id == SeatingTable.uuid)
        .where(SeatingAssignment.guest_id == guest_id)
    )
    row = result.first()
    if row is None:
        return None
    assignment, table = row
    return GuestTableAssignmentDTO(
        table_id=table.uuid,
        table_name=table.name,
        seat_number=assignment.seat_number,
        table_notes=table.notes,
    )


async def get_unassigned_guests(
    session: AsyncSession, wedding_id: UUID
) -> list[UnassignedGuestDTO]:
    """Attending guests without a table, by name."""
    result = await session.execute(
        select(Guest.uuid, Guest.name)
        .outerjoin(SeatingAssignment, SeatingAssignment.guest_id == Guest.uuid)
        .where(
            Guest.wedding_id == wedding_id,
            Guest.rsvp_status == RsvpStatus.ATTENDING,
            SeatingAssignment.uuid.is_(None),
        )
        .order_by(Guest.name)
    )
    return [UnassignedGuestDTO(id=guest_id, name=name) for guest_id, name in result.all()]


class SeatingReadModel(abc.ABC):
    @abc.abstractmethod
    async def seating_config(self, wedding_id: UUID) -> SeatingConfigDTO:
        """Public, redacted view: no guest names."""
        raise NotImplementedError

    @abc.abstractmethod
    async def seating_overview(self, wedding_id: UUID) -> SeatingOverviewDTO:
        raise NotImplementedError

    @abc.abstractmethod
    async def unassigned_guests(self, wedding_id: UUID) -> list[UnassignedGuestDTO]:
        raise NotImplementedError

    @abc.abstractmethod
    async def guest_table_assignment(self, guest_id: UUID) -> GuestTableAssignmentDTO | None:
        raise NotImplementedError


class SqlSeatingReadModel(SeatingReadModel):
    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def seating_config(self, wedding_id: UUID) -> SeatingConfigDTO:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            return await build_seating_config(session, wedding_id)

    async def seating_overview(self, wedding_id: UUID) -> SeatingOverviewDTO:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            tables = await get_tables_for_wedding(session, wedding_id)
            unassigned = await get_unassigned_guests(session, wedding_id)

            seated: dict[UUID, list[SeatedGuestDTO]] = defaultdict(list)
            if tables:
                result = await session.execute(
                    select(
                        SeatingAssignment.table_id,
                        Guest.uuid,
                        Guest.name,
                        SeatingAssignment.seat_number,
                    )
                    .join(Guest, SeatingAssignment.guest_id == Guest.uuid)
                    .where(SeatingAssignment.table_id.in_([table.uuid for table in tables]))
                    .order_by(Guest.name)
                )
                for table_id, guest_id, name, seat_number in result.all():
                    seated[table_id].append(
                        SeatedGuestDTO(id=guest_id, name=name, seat_number=seat_number)
                    )

            overview = [
                TableOverviewDTO(
                    table=SeatingTableDTO.from_table(table),
                    guests=seated[table.uuid],
                    available_seats=table.capacity - len(seated[table.uuid]),
                )
                for table in tables
            ]
            return SeatingOverviewDTO(
                tables=overview,
                unassigned_guests=unassigned,
                summary=SeatingSummaryDTO(
                    total_tables=len(tables),
                    total_capacity=sum(table.capacity for table in tables),
                    total_assigned=sum(len(item.guests) for item in overview),
                    total_unassigned=len(unassigned),
                ),
            )

    async def unassigned_guests(self, wedding_id: UUID) -> list[UnassignedGuestDTO]:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            return await get_unassigned_guests(session, wedding_id)

    async def guest_table_assignment(self, guest_id: UUID) -> GuestTableAssignmentDTO | None:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            return await get_guest_table_assignment(session, guest_id)
