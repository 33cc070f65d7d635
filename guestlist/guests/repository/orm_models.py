from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from guestlist.config.table_names import TableNames
from guestlist.guests.dtos import RsvpStatus
from guestlist.models.base import Base, TimeStamp, utcnow


class Guest(Base, TimeStamp):
    __tablename__ = TableNames.GUESTS.value

    wedding_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.WEDDINGS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    party_size: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    rsvp_status: Mapped[str] = mapped_column(
        Enum(RsvpStatus, name="rsvp_status_enum", values_callable=lambda x: [e.value for e in x]),
        default=RsvpStatus.PENDING,
        nullable=False,
        index=True,
    )
    dietary_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # RSVP credential (digest only; the raw value is never stored)
    rsvp_token_hash: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True, index=True
    )
    rsvp_token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    rsvp_token_created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    rsvp_token_last_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    tag_ids: Mapped[list] = mapped_column(default=list, nullable=False)

    plus_one_allowance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    plus_one_guests: Mapped[list] = mapped_column(default=list, nullable=False)
    meal_option_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # event id -> {"status", "dietary_notes", "meal_option_id"}
    event_rsvps: Mapped[dict] = mapped_column(default=dict, nullable=False)
    # Denormalised from event_guest_assignments; empty means invited to every event.
    invited_event_ids: Mapped[list] = mapped_column(default=list, nullable=False)

    photo_opt_out: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    rsvp_submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Guest {self.name} - {self.rsvp_status}>"


class EventGuestAssignment(Base):
    __tablename__ = TableNames.EVENT_GUEST_ASSIGNMENTS.value
    __table_args__ = (UniqueConstraint("guest_id", "event_id", name="uq_event_guest"),)

    wedding_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.WEDDINGS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    guest_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.GUESTS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<EventGuestAssignment guest={self.guest_id} event={self.event_id}>"


class GuestTag(Base, TimeStamp):
    __tablename__ = TableNames.GUEST_TAGS.value

    wedding_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.WEDDINGS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(16), nullable=False)

    def __repr__(self) -> str:
        return f"<GuestTag {self.name}>"


# One guest per email per wedding, compared case-insensitively.
Index("uq_guests_wedding_email", Guest.wedding_id, func.lower(Guest.email), unique=True)
Index("uq_guest_tags_wedding_name", GuestTag.wedding_id, func.lower(GuestTag.name), unique=True)
