"""Tests for SqlSeatingAllocator and SqlSeatingReadModel."""

from dataclasses import fields
from uuid import uuid4

import pytest

from guestlist.errors import (
    MissingFieldError,
    TableCapacityExceededError,
    TableNotFoundError,
    ValidationError,
)
from guestlist.guests.dtos import GuestCreateDTO, RsvpStatus
from guestlist.guests.repository.directory import SqlGuestDirectory
from guestlist.guests.repository.orm_models import Guest
from guestlist.render_config import RenderConfigSink
from guestlist.seating.dtos import PublicTableDTO, TableCreateDTO, TableUpdateDTO
from guestlist.seating.repository.read_models import SqlSeatingReadModel
from guestlist.seating.repository.write_models import SqlSeatingAllocator


class RecordingSink(RenderConfigSink):
    def __init__(self):
        self.published = []

    async def publish_seating(self, wedding_id, config):
        self.published.append(config)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def allocator(db_session, sink):
    return SqlSeatingAllocator(session_overwrite=db_session, render_config_sink=sink)


@pytest.fixture
def read_model(db_session):
    return SqlSeatingReadModel(session_overwrite=db_session)


@pytest.fixture
def add_guests(db_session):
    directory = SqlGuestDirectory(session_overwrite=db_session)

    async def _add_guests(wedding, *names, status=RsvpStatus.ATTENDING):
        ids = []
        for name in names:
            issued = await directory.create_guest(
                wedding.uuid, GuestCreateDTO(name=name, email=f"{name.lower()}@example.com")
            )
            guest = await db_session.get(Guest, issued.guest.id)
            guest.rsvp_status = status
            ids.append(issued.guest.id)
        await db_session.flush()
        return ids

    return _add_guests


async def test_create_table_appends_order(allocator, make_wedding):
    wedding = await make_wedding()

    first = await allocator.create_table(wedding.uuid, TableCreateDTO(name="One", capacity=8))
    second = await allocator.create_table(wedding.uuid, TableCreateDTO(name="Two", capacity=6))

    assert first.order == 1
    assert second.order == 2


@pytest.mark.parametrize(
    "data, error",
    [
        (TableCreateDTO(name="", capacity=8), MissingFieldError),
        (TableCreateDTO(name="One", capacity=0), ValidationError),
    ],
)
async def test_create_table_validation(allocator, make_wedding, data, error):
    wedding = await make_wedding()

    with pytest.raises(error):
        await allocator.create_table(wedding.uuid, data)


async def test_capacity_two_seats_exactly_two_of_three(
    allocator, read_model, make_wedding, add_guests
):
    wedding = await make_wedding()
    table = await allocator.create_table(wedding.uuid, TableCreateDTO(name="One", capacity=2))
    ann, ben, cat = await add_guests(wedding, "Ann", "Ben", "Cat")

    result = await allocator.assign_guests_to_table(wedding.uuid, table.id, [ann, ben, cat])

    assert result.assigned == [ann, ben]
    assert len(result.errors) == 1
    assert result.errors[0].guest_id == cat
    assert result.errors[0].error == "TABLE_CAPACITY_EXCEEDED"
    config = await read_model.seating_config(wedding.uuid)
    assert config.tables[0].guest_count == 2


async def test_assign_reports_guest_of_other_wedding(allocator, make_wedding, add_guests):
    wedding = await make_wedding()
    other = await make_wedding()
    table = await allocator.create_table(wedding.uuid, TableCreateDTO(name="One", capacity=4))
    (stranger,) = await add_guests(other, "Stranger")
    missing = uuid4()

    result = await allocator.assign_guests_to_table(wedding.uuid, table.id, [stranger, missing])

    assert result.assigned == []
    assert [error.error for error in result.errors] == ["GUEST_NOT_FOUND", "GUEST_NOT_FOUND"]


async def test_assign_to_unknown_table(allocator, make_wedding, add_guests):
    wedding = await make_wedding()
    (ann,) = await add_guests(wedding, "Ann")

    with pytest.raises(TableNotFoundError):
        await allocator.assign_guests_to_table(wedding.uuid, uuid4(), [ann])


async def test_assign_moves_guest_between_tables(allocator, read_model, make_wedding, add_guests):
    wedding = await make_wedding()
    one = await allocator.create_table(wedding.uuid, TableCreateDTO(name="One", capacity=2))
    two = await allocator.create_table(wedding.uuid, TableCreateDTO(name="Two", capacity=2))
    (ann,) = await add_guests(wedding, "Ann")
    await allocator.assign_guests_to_table(wedding.uuid, one.id, [ann])

    await allocator.assign_guests_to_table(wedding.uuid, two.id, [ann])

    seat = await read_model.guest_table_assignment(ann)
    assert seat.table_id == two.id
    config = await read_model.seating_config(wedding.uuid)
    counts = {table.id: table.guest_count for table in config.tables}
    assert counts == {one.id: 0, two.id: 1}


async def test_reassigning_same_table_uses_no_capacity(allocator, make_wedding, add_guests):
    wedding = await make_wedding()
    table = await allocator.create_table(wedding.uuid, TableCreateDTO(name="One", capacity=1))
    (ann,) = await add_guests(wedding, "Ann")
    await allocator.assign_guests_to_table(wedding.uuid, table.id, [ann])

    result = await allocator.assign_guests_to_table(wedding.uuid, table.id, [ann])

    assert result.assigned == [ann]
    assert result.errors == []


async def test_assign_with_seat_numbers(allocator, read_model, make_wedding, add_guests):
    wedding = await make_wedding()
    table = await allocator.create_table(wedding.uuid, TableCreateDTO(name="One", capacity=4))
    ann, ben, cat, dan = await add_guests(wedding, "Ann", "Ben", "Cat", "Dan")

    result = await allocator.assign_guests_to_table(
        wedding.uuid,
        table.id,
        [ann, ben, cat, dan],
        seat_numbers={ann: 1, ben: 1, cat: 5, dan: 2},
    )

    assert result.assigned == [ann, dan]
    assert [(error.guest_id, error.error) for error in result.errors] == [
        (ben, "VALIDATION_ERROR"),
        (cat, "VALIDATION_ERROR"),
    ]
    assert (await read_model.guest_table_assignment(ann)).seat_number == 1
    assert (await read_model.guest_table_assignment(dan)).seat_number == 2

    overview = await read_model.seating_overview(wedding.uuid)
    seats = {guest.name: guest.seat_number for guest in overview.tables[0].guests}
    assert seats == {"Ann": 1, "Dan": 2}


async def test_reassign_same_table_changes_seat_number(
    allocator, read_model, make_wedding, add_guests
):
    wedding = await make_wedding()
    table = await allocator.create_table(wedding.uuid, TableCreateDTO(name="One", capacity=2))
    (ann,) = await add_guests(wedding, "Ann")
    await allocator.assign_guests_to_table(wedding.uuid, table.id, [ann], seat_numbers={ann: 1})

    result = await allocator.assign_guests_to_table(
        wedding.uuid, table.id, [ann], seat_numbers={ann: 2}
    )

    assert result.assigned == [ann]
    assert (await read_model.guest_table_assignment(ann)).seat_number == 2


async def test_update_table_capacity_below_occupants(allocator, make_wedding, add_guests):
    wedding = await make_wedding()
    table = await allocator.create_table(wedding.uuid, TableCreateDTO(name="One", capacity=4))
    guests = await add_guests(wedding, "Ann", "Ben", "Cat")
    await allocator.assign_guests_to_table(wedding.uuid, table.id, guests)

    with pytest.raises(TableCapacityExceededError):
        await allocator.update_table(wedding.uuid, table.id, TableUpdateDTO(capacity=2))

    updated = await allocator.update_table(
        wedding.uuid, table.id, TableUpdateDTO(name="Head table", capacity=3, notes="Near stage")
    )
    assert updated.name == "Head table"
    assert updated.capacity == 3
    assert updated.notes == "Near stage"


async def test_update_table_of_other_wedding(allocator, make_wedding):
    wedding = await make_wedding()
    other = await make_wedding()
    table = await allocator.create_table(other.uuid, TableCreateDTO(name="One", capacity=4))

    with pytest.raises(TableNotFoundError):
        await allocator.update_table(wedding.uuid, table.id, TableUpdateDTO(capacity=2))


async def test_delete_table_unseats_guests(allocator, read_model, make_wedding, add_guests):
    wedding = await make_wedding()
    table = await allocator.create_table(wedding.uuid, TableCreateDTO(name="One", capacity=4))
    ann, ben = await add_guests(wedding, "Ann", "Ben")
    await allocator.assign_guests_to_table(wedding.uuid, table.id, [ann, ben])
    assert await read_model.unassigned_guests(wedding.uuid) == []

    assert await allocator.delete_table(wedding.uuid, table.id) is True

    unassigned = await read_model.unassigned_guests(wedding.uuid)
    assert [guest.name for guest in unassigned] == ["Ann", "Ben"]
    assert await read_model.guest_table_assignment(ann) is None
    assert await allocator.delete_table(wedding.uuid, table.id) is False


async def test_unassigned_guests_only_attending(read_model, make_wedding, add_guests):
    wedding = await make_wedding()
    await add_guests(wedding, "Zoe", "Adam")
    await add_guests(wedding, "Pending", status=RsvpStatus.PENDING)

    unassigned = await read_model.unassigned_guests(wedding.uuid)

    assert [guest.name for guest in unassigned] == ["Adam", "Zoe"]


async def test_reorder_tables(allocator, read_model, make_wedding):
    wedding = await make_wedding()
    one = await allocator.create_table(wedding.uuid, TableCreateDTO(name="One", capacity=2))
    two = await allocator.create_table(wedding.uuid, TableCreateDTO(name="Two", capacity=2))
    three = await allocator.create_table(wedding.uuid, TableCreateDTO(name="Three", capacity=2))

    reordered = await allocator.reorder_tables(wedding.uuid, [three.id, one.id, two.id])

    assert [table.name for table in reordered] == ["Three", "One", "Two"]
    assert [table.order for table in reordered] == [1, 2, 3]
    config = await read_model.seating_config(wedding.uuid)
    assert [table.name for table in config.tables] == ["Three", "One", "Two"]


async def test_reorder_rejects_foreign_table(allocator, make_wedding):
    wedding = await make_wedding()
    other = await make_wedding()
    mine = await allocator.create_table(wedding.uuid, TableCreateDTO(name="Mine", capacity=2))
    theirs = await allocator.create_table(other.uuid, TableCreateDTO(name="Theirs", capacity=2))

    with pytest.raises(TableNotFoundError):
        await allocator.reorder_tables(wedding.uuid, [theirs.id, mine.id])


async def test_unassign_guests(allocator, read_model, make_wedding, add_guests):
    wedding = await make_wedding()
    table = await allocator.create_table(wedding.uuid, TableCreateDTO(name="One", capacity=4))
    ann, ben = await add_guests(wedding, "Ann", "Ben")
    await allocator.assign_guests_to_table(wedding.uuid, table.id, [ann, ben])

    assert await allocator.unassign_guests(wedding.uuid, [ann, uuid4()]) == 1
    assert await allocator.unassign_guests(wedding.uuid, [ann]) == 0
    assert await allocator.unassign_guests(wedding.uuid, []) == 0

    unassigned = await read_model.unassigned_guests(wedding.uuid)
    assert [guest.name for guest in unassigned] == ["Ann"]


async def test_public_config_never_names_guests(
    allocator, read_model, make_wedding, add_guests, sink
):
    wedding = await make_wedding()
    table = await allocator.create_table(wedding.uuid, TableCreateDTO(name="One", capacity=4))
    ann, ben = await add_guests(wedding, "Ann", "Ben")
    await allocator.assign_guests_to_table(wedding.uuid, table.id, [ann, ben])

    config = await read_model.seating_config(wedding.uuid)

    assert {field.name for field in fields(PublicTableDTO)} == {
        "id",
        "name",
        "capacity",
        "order",
        "guest_count",
        "notes",
    }
    payload = config.to_dict()
    assert payload["tables"][0]["guest_count"] == 2
    assert "Ann" not in str(payload)
    assert "Ben" not in str(payload)
    assert sink.published[-1] == config


async def test_seating_overview(allocator, read_model, make_wedding, add_guests):
    wedding = await make_wedding()
    table = await allocator.create_table(wedding.uuid, TableCreateDTO(name="One", capacity=4))
    await allocator.create_table(wedding.uuid, TableCreateDTO(name="Two", capacity=6))
    zoe, adam, _ = await add_guests(wedding, "Zoe", "Adam", "Mia")
    await allocator.assign_guests_to_table(wedding.uuid, table.id, [zoe, adam])

    overview = await read_model.seating_overview(wedding.uuid)

    assert [guest.name for guest in overview.tables[0].guests] == ["Adam", "Zoe"]
    assert overview.tables[0].available_seats == 2
    assert overview.tables[1].guests == []
    assert [guest.name for guest in overview.unassigned_guests] == ["Mia"]
    assert overview.summary.total_tables == 2
    assert overview.summary.total_capacity == 10
    assert overview.summary.total_assigned == 2
    assert overview.summary.total_unassigned == 1
