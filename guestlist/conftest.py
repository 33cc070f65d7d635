import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from contextlib import asynccontextmanager  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from guestlist.guests.repository import orm_models as guest_models  # noqa: E402,F401
from guestlist.main import app  # noqa: E402
from guestlist.models.base import BaseModel  # noqa: E402
from guestlist.seating.repository import orm_models as seating_models  # noqa: E402,F401
from guestlist.weddings.dtos import WeddingStatus  # noqa: E402
from guestlist.weddings.repository.orm_models import Wedding  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_session():
    """A session on a fresh in-memory database with every table created."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def make_wedding(db_session: AsyncSession):
    """Insert a wedding. Active, RSVP and seating on, two meal options, dated 60 days out."""

    async def _make_wedding(
        status: WeddingStatus = WeddingStatus.ACTIVE,
        features: dict | None = None,
        meal_config: dict | None = None,
        event_details: dict | None = None,
        slug: str | None = None,
    ) -> Wedding:
        wedding = Wedding(
            slug=slug or f"wedding-{os.urandom(4).hex()}",
            partner_names="Alex & Sam",
            status=status,
            features=features if features is not None else {"RSVP": True, "SEATING_CHART": True},
            meal_config=(
                meal_config
                if meal_config is not None
                else {
                    "enabled": True,
                    "options": [
                        {"id": "beef", "name": "Beef"},
                        {"id": "veg", "name": "Vegetarian"},
                    ],
                }
            ),
            event_details=(
                event_details
                if event_details is not None
                else {"date": (datetime.now(UTC) + timedelta(days=60)).isoformat()}
            ),
        )
        db_session.add(wedding)
        await db_session.flush()
        return wedding

    return _make_wedding


@pytest.fixture
def client_factory():
    """Build an HTTP client against the app with the given dependency overrides."""

    @asynccontextmanager
    async def _client_factory(overrides: dict | None = None):
        app.dependency_overrides.update(overrides or {})
        try:
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client
        finally:
            app.dependency_overrides.clear()

    return _client_factory
