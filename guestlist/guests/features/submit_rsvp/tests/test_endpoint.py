import pytest

from guestlist.guests.dtos import RsvpStatus
from guestlist.guests.features.submit_rsvp.router import get_rsvp_write_model
from guestlist.guests.rsvp import ATTENDING_MESSAGE, DECLINED_MESSAGE
from guestlist.guests.tests.inmemory_models import (
    InMemoryRsvpReadModel,
    InMemoryRsvpWriteModel,
    create_test_guest,
)

TOKEN = "test-token-12345"


@pytest.fixture
def read_model():
    guest = create_test_guest(name="John Doe", email="john@example.com", plus_one_allowance=1)
    return InMemoryRsvpReadModel(guests={TOKEN: guest})


@pytest.fixture
def write_model(read_model):
    return InMemoryRsvpWriteModel(read_model=read_model)


@pytest.fixture
def overrides(write_model):
    return {get_rsvp_write_model: lambda: write_model}


@pytest.mark.asyncio
async def test_submit_rsvp_attending(client_factory, overrides, write_model):
    payload = {
        "token": TOKEN,
        "rsvp_status": "attending",
        "party_size": 1,
        "dietary_notes": "No nuts",
        "plus_one_guests": [{"name": "Jane Doe", "meal_option_id": "veg"}],
        "meal_option_id": "beef",
    }

    async with client_factory(overrides) as client:
        response = await client.post("/rsvp/submit", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == ATTENDING_MESSAGE
    assert data["guest"]["rsvp_status"] == "attending"
    assert data["guest"]["party_size"] == 2
    assert data["guest"]["plus_one_guests"][0]["name"] == "Jane Doe"
    assert data["guest"]["dietary_notes"] == "No nuts"

    token, submission = write_model.submissions[0]
    assert token == TOKEN
    assert submission.status == RsvpStatus.ATTENDING
    assert submission.photo_opt_out is None


@pytest.mark.asyncio
async def test_submit_rsvp_declined(client_factory, overrides):
    async with client_factory(overrides) as client:
        response = await client.post(
            "/rsvp/submit", json={"token": TOKEN, "rsvp_status": "not_attending"}
        )

    assert response.status_code == 200
    assert response.json()["message"] == DECLINED_MESSAGE
    assert response.json()["guest"]["plus_one_guests"] == []


@pytest.mark.asyncio
async def test_submit_rsvp_too_many_plus_ones(client_factory, overrides, read_model):
    payload = {
        "token": TOKEN,
        "rsvp_status": "attending",
        "plus_one_guests": [{"name": "One"}, {"name": "Two"}],
    }

    async with client_factory(overrides) as client:
        response = await client.post("/rsvp/submit", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"] == "PLUS_ONE_LIMIT_EXCEEDED"
    assert read_model.guests[TOKEN].rsvp_status == RsvpStatus.PENDING


@pytest.mark.asyncio
async def test_submit_rsvp_invalid_meal(client_factory, overrides):
    payload = {"token": TOKEN, "rsvp_status": "attending", "meal_option_id": "lobster"}

    async with client_factory(overrides) as client:
        response = await client.post("/rsvp/submit", json=payload)

    assert response.status_code == 400
    assert response.json()["detail"] == "INVALID_MEAL_OPTION"


@pytest.mark.asyncio
async def test_submit_rsvp_unknown_token(client_factory, overrides):
    async with client_factory(overrides) as client:
        response = await client.post(
            "/rsvp/submit", json={"token": "nope", "rsvp_status": "attending"}
        )

    assert response.status_code == 404
    assert response.json()["detail"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_submit_rsvp_missing_token(client_factory, overrides):
    async with client_factory(overrides) as client:
        response = await client.post("/rsvp/submit", json={"rsvp_status": "attending"})

    assert response.status_code == 400
    assert response.json()["detail"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_submit_rsvp_rejects_bad_payload(client_factory, overrides):
    async with client_factory(overrides) as client:
        response = await client.post(
            "/rsvp/submit", json={"token": TOKEN, "rsvp_status": "maybe", "party_size": 0}
        )

    assert response.status_code == 422
