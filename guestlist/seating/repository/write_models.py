"""Seating allocator - tables and guest-to-table assignments.

Capacity is checked against the table row locked FOR UPDATE in the same transaction as the
inserts, so concurrent batches against one table cannot overfill it.
"""

import abc
import logging
from functools import partial
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from guestlist.config.database import async_session_manager
from guestlist.errors import (
    GuestNotFoundError,
    MissingFieldError,
    TableCapacityExceededError,
    TableNotFoundError,
    ValidationError,
)
from guestlist.guests.repository.orm_models import Guest
from guestlist.render_config import RenderConfigSink, publish_seating_config
from guestlist.seating.dtos import (
    AssignmentErrorDTO,
    AssignmentResultDTO,
    SeatingTableDTO,
    TableCreateDTO,
    TableUpdateDTO,
)
from guestlist.seating.repository.orm_models import SeatingAssignment, SeatingTable

logger = logging.getLogger(__name__)


def validate_capacity(capacity: int) -> int:
    if capacity < 1:
        raise ValidationError("Capacity must be at least 1")
    return capacity


def validate_table_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise MissingFieldError("name")
    return name


class SeatingAllocator(abc.ABC):
    @abc.abstractmethod
    async def create_table(self, wedding_id: UUID, data: TableCreateDTO) -> SeatingTableDTO:
        raise NotImplementedError

    @abc.abstractmethod
    async def update_table(
        self, wedding_id: UUID, table_id: UUID, patch: TableUpdateDTO
    ) -> SeatingTableDTO:
        """
        Raises:
            TableNotFoundError: no such table in this wedding.
            TableCapacityExceededError: new capacity is below the seated occupants.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def delete_table(self, wedding_id: UUID, table_id: UUID) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    async def reorder_tables(
        self, wedding_id: UUID, ordered_ids: list[UUID]
    ) -> list[SeatingTableDTO]:
        raise NotImplementedError

    @abc.abstractmethod
    async def assign_guests_to_table(
        self,
        wedding_id: UUID,
        table_id: UUID,
        guest_ids: list[UUID],
        seat_numbers: dict[UUID, int] | None = None,
    ) -> AssignmentResultDTO:
        """Seat guests one by one; failures are reported per guest, never for the whole batch.

        `seat_numbers` optionally pins guests to a seat between 1 and the table capacity.
        A seat already held by someone else at the table is reported as a validation error.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def unassign_guests(self, wedding_id: UUID, guest_ids: list[UUID]) -> int:
        raise NotImplementedError


class SqlSeatingAllocator(SeatingAllocator):
    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(
        self,
        session_overwrite: AsyncSession | None = None,
        render_config_sink: RenderConfigSink | None = None,
    ) -> None:
        self.session_overwrite = session_overwrite
        self.render_config_sink = render_config_sink

    async def create_table(self, wedding_id: UUID, data: TableCreateDTO) -> SeatingTableDTO:
        name = validate_table_name(data.name)
        capacity = validate_capacity(data.capacity)

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                select(func.max(SeatingTable.order)).where(SeatingTable.wedding_id == wedding_id)
            )
            max_order = result.scalar_one_or_none() or 0

            table = SeatingTable(
                wedding_id=wedding_id,
                name=name,
                capacity=capacity,
                notes=data.notes.strip() if data.notes else None,
                order=max_order + 1,
            )
            session.add(table)
            await session.flush()
            logger.info(
                "Created table %s for wedding %s (capacity %d)", table.uuid, wedding_id, capacity
            )

            await publish_seating_config(session, self.render_config_sink, wedding_id)
            return SeatingTableDTO.from_table(table)

    async def update_table(
        self, wedding_id: UUID, table_id: UUID, patch: TableUpdateDTO
    ) -> SeatingTableDTO:
        name = validate_table_name(patch.name) if patch.name is not None else None

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            table = await self._get_table(session, wedding_id, table_id, for_update=True)
            if table is None:
                raise TableNotFoundError()

            if patch.capacity is not None:
                validate_capacity(patch.capacity)
                occupants = await self._count_occupants(session, table_id)
                if patch.capacity < occupants:
                    raise TableCapacityExceededError(
                        f"{occupants} guests are seated, capacity cannot drop to {patch.capacity}"
                    )
                table.capacity = patch.capacity
            if name is not None:
                table.name = name
            if patch.notes is not None:
                table.notes = patch.notes.strip() or None

            await session.flush()
            logger.info("Updated table %s", table_id)

            await publish_seating_config(session, self.render_config_sink, wedding_id)
            return SeatingTableDTO.from_table(table)

    async def delete_table(self, wedding_id: UUID, table_id: UUID) -> bool:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            table = await self._get_table(session, wedding_id, table_id)
            if table is None:
                return False

            removed = await session.execute(
                delete(SeatingAssignment).where(SeatingAssignment.table_id == table_id)
            )
            await session.delete(table)
            await session.flush()
            logger.info("Deleted table %s, unseated %d guests", table_id, removed.rowcount or 0)

            await publish_seating_config(session, self.render_config_sink, wedding_id)
            return True

    async def reorder_tables(
        self, wedding_id: UUID, ordered_ids: list[UUID]
    ) -> list[SeatingTableDTO]:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                select(SeatingTable).where(SeatingTable.wedding_id == wedding_id)
            )
            tables = {table.uuid: table for table in result.scalars().all()}
            if any(table_id not in tables for table_id in ordered_ids):
                raise TableNotFoundError()

            for position, table_id in enumerate(ordered_ids, start=1):
                tables[table_id].order = position

            await session.flush()
            logger.info("Reordered %d tables for wedding %s", len(ordered_ids), wedding_id)

            await publish_seating_config(session, self.render_config_sink, wedding_id)
            return [
                SeatingTableDTO.from_table(table)
                for table in sorted(tables.values(), key=lambda t: t.order)
            ]

    async def assign_guests_to_table(
        self,
        wedding_id: UUID,
        table_id: UUID,
        guest_ids: list[UUID],
        seat_numbers: dict[UUID, int] | None = None,
    ) -> AssignmentResultDTO:
        seat_numbers = seat_numbers or {}
        assigned: list[UUID] = []
        errors: list[AssignmentErrorDTO] = []

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            table = await self._get_table(session, wedding_id, table_id, for_update=True)
            if table is None:
                raise TableNotFoundError()

            seated = await self._table_assignments(session, table_id)
            known = await self._wedding_guest_ids(session, wedding_id, guest_ids)

            for guest_id in guest_ids:
                seat_number = seat_numbers.get(guest_id)
                if seat_number is not None and not self._seat_available(
                    table, seated, guest_id, seat_number
                ):
                    errors.append(
                        AssignmentErrorDTO(guest_id=guest_id, error=ValidationError.code)
                    )
                    continue
                if guest_id in seated:
                    # Already seated here; keeps their place without using capacity.
                    if seat_number is not None:
                        seated[guest_id].seat_number = seat_number
                        await session.flush()
                    assigned.append(guest_id)
                    continue
                if len(seated) >= table.capacity:
                    errors.append(
                        AssignmentErrorDTO(guest_id=guest_id, error=TableCapacityExceededError.code)
                    )
                    continue
                if guest_id not in known:
                    errors.append(
                        AssignmentErrorDTO(guest_id=guest_id, error=GuestNotFoundError.code)
                    )
                    continue

                await session.execute(
                    delete(SeatingAssignment).where(SeatingAssignment.guest_id == guest_id)
                )
                assignment = SeatingAssignment(
                    guest_id=guest_id, table_id=table_id, seat_number=seat_number
                )
                session.add(assignment)
                await session.flush()
                seated[guest_id] = assignment
                assigned.append(guest_id)

            logger.info(
                "Assigned %d guests to table %s (%d errors)", len(assigned), table_id, len(errors)
            )

            await publish_seating_config(session, self.render_config_sink, wedding_id)
            return AssignmentResultDTO(assigned=assigned, errors=errors)

    async def unassign_guests(self, wedding_id: UUID, guest_ids: list[UUID]) -> int:
        if not guest_ids:
            return 0

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                select(SeatingAssignment)
                .join(Guest, SeatingAssignment.guest_id == Guest.uuid)
                .where(Guest.wedding_id == wedding_id, SeatingAssignment.guest_id.in_(guest_ids))
            )
            assignments = result.scalars().all()
            for assignment in assignments:
                await session.delete(assignment)
            await session.flush()

            count = len(assignments)
            logger.info("Unassigned %d guests from their tables", count)

            await publish_seating_config(session, self.render_config_sink, wedding_id)
            return count

    async def _get_table(
        self, session: AsyncSession, wedding_id: UUID, table_id: UUID, for_update: bool = False
    ) -> SeatingTable | None:
        stmt = select(SeatingTable).where(
            SeatingTable.uuid == table_id, SeatingTable.wedding_id == wedding_id
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def _count_occupants(self, session: AsyncSession, table_id: UUID) -> int:
        result = await session.execute(
            select(func.count(SeatingAssignment.uuid)).where(SeatingAssignment.table_id == table_id)
        )
        return result.scalar_one()

    async def _wedding_guest_ids(
        self, session: AsyncSession, wedding_id: UUID, guest_ids: list[UUID]
    ) -> set[UUID]:
        if not guest_ids:
            return set()
        result = await session.execute(
            select(Guest.uuid).where(Guest.wedding_id == wedding_id, Guest.uuid.in_(guest_ids))
        )
        return set(result.scalars().all())

    async def _table_assignments(
        self, session: AsyncSession, table_id: UUID
    ) -> dict[UUID, SeatingAssignment]:
        result = await session.execute(
            select(SeatingAssignment).where(SeatingAssignment.table_id == table_id)
        )
        return {assignment.guest_id: assignment for assignment in result.scalars().all()}

    @staticmethod
    def _seat_available(
        table: SeatingTable,
        seated: dict[UUID, SeatingAssignment],
        guest_id: UUID,
        seat_number: int,
    ) -> bool:
        if not 1 <= seat_number <= table.capacity:
            return False
        return all(
            assignment.seat_number != seat_number
            for other_id, assignment in seated.items()
            if other_id != guest_id
        )
