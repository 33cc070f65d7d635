"""Tests for SqlTagDirectory."""

from uuid import uuid4

import pytest

from guestlist.errors import MissingFieldError, TagAlreadyExistsError, TagNotFoundError
from guestlist.guests.dtos import GuestCreateDTO, GuestUpdateDTO, TagCreateDTO, TagUpdateDTO
from guestlist.guests.features.manage_tags.write_model import DEFAULT_TAG_COLORS, SqlTagDirectory
from guestlist.guests.repository.directory import SqlGuestDirectory


@pytest.fixture
def tags(db_session):
    return SqlTagDirectory(session_overwrite=db_session)


async def test_create_tag_default_colors_cycle(tags, make_wedding):
    wedding = await make_wedding()

    first = await tags.create_tag(wedding.uuid, TagCreateDTO(name="Family"))
    second = await tags.create_tag(wedding.uuid, TagCreateDTO(name="Friends"))
    custom = await tags.create_tag(wedding.uuid, TagCreateDTO(name="Work", color="#000000"))

    assert first.color == DEFAULT_TAG_COLORS[0]
    assert second.color == DEFAULT_TAG_COLORS[1]
    assert custom.color == "#000000"


async def test_create_tag_duplicate_name_ignores_case(tags, make_wedding):
    wedding = await make_wedding()
    await tags.create_tag(wedding.uuid, TagCreateDTO(name="Family"))

    with pytest.raises(TagAlreadyExistsError) as exc_info:
        await tags.create_tag(wedding.uuid, TagCreateDTO(name=" FAMILY "))

    assert exc_info.value.code == "TAG_ALREADY_EXISTS"


async def test_create_tag_requires_name(tags, make_wedding):
    wedding = await make_wedding()

    with pytest.raises(MissingFieldError):
        await tags.create_tag(wedding.uuid, TagCreateDTO(name="  "))


async def test_update_tag_rename_conflict(tags, make_wedding):
    wedding = await make_wedding()
    await tags.create_tag(wedding.uuid, TagCreateDTO(name="Family"))
    friends = await tags.create_tag(wedding.uuid, TagCreateDTO(name="Friends"))

    with pytest.raises(TagAlreadyExistsError):
        await tags.update_tag(wedding.uuid, friends.id, TagUpdateDTO(name="family"))

    renamed = await tags.update_tag(
        wedding.uuid, friends.id, TagUpdateDTO(name="Old friends", color="#123456")
    )
    assert renamed.name == "Old friends"
    assert renamed.color == "#123456"


async def test_update_tag_of_other_wedding(tags, make_wedding):
    wedding = await make_wedding()
    other = await make_wedding()
    tag = await tags.create_tag(other.uuid, TagCreateDTO(name="Family"))

    with pytest.raises(TagNotFoundError):
        await tags.update_tag(wedding.uuid, tag.id, TagUpdateDTO(name="Mine"))


async def test_delete_tag_strips_it_from_guests(tags, make_wedding, db_session):
    wedding = await make_wedding()
    directory = SqlGuestDirectory(session_overwrite=db_session)
    family = await tags.create_tag(wedding.uuid, TagCreateDTO(name="Family"))
    friends = await tags.create_tag(wedding.uuid, TagCreateDTO(name="Friends"))
    issued = await directory.create_guest(
        wedding.uuid, GuestCreateDTO(name="Ann", email="ann@example.com")
    )
    await directory.update_guest(issued.guest.id, GuestUpdateDTO(tag_ids=[family.id, friends.id]))

    assert await tags.delete_tag(wedding.uuid, family.id) is True

    guest = await directory.get_guest(issued.guest.id)
    assert guest.tag_ids == [friends.id]
    assert [tag.name for tag in await tags.list_tags(wedding.uuid)] == ["Friends"]
    assert await tags.delete_tag(wedding.uuid, uuid4()) is False


async def test_list_tags_scoped_to_wedding(tags, make_wedding):
    wedding = await make_wedding()
    other = await make_wedding()
    await tags.create_tag(wedding.uuid, TagCreateDTO(name="Family"))
    await tags.create_tag(other.uuid, TagCreateDTO(name="Family"))

    listed = await tags.list_tags(wedding.uuid)

    assert len(listed) == 1
    assert listed[0].wedding_id == wedding.uuid
