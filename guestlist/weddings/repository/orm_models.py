from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from guestlist.config.table_names import TableNames
from guestlist.models.base import Base, TimeStamp
from guestlist.weddings.dtos import WeddingStatus


class Wedding(Base, TimeStamp):
    __tablename__ = TableNames.WEDDINGS.value

    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    partner_names: Mapped[str] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        Enum(
            WeddingStatus,
            name="wedding_status_enum",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=WeddingStatus.DRAFT,
        nullable=False,
    )
    # {"RSVP": true, "SEATING_CHART": false}
    features: Mapped[dict] = mapped_column(default=dict, nullable=False)
    # {"enabled": true, "options": [{"id": ..., "name": ..., "description": ...}]}
    meal_config: Mapped[dict] = mapped_column(default=dict, nullable=False)
    # {"date": "2026-09-12T15:00:00+00:00", "events": [{"id": ..., "name": ..., "date": ...}]}
    event_details: Mapped[dict] = mapped_column(default=dict, nullable=False)

    def __repr__(self) -> str:
        return f"<Wedding {self.slug}>"
