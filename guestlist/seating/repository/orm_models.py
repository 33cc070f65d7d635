from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from guestlist.config.table_names import TableNames
from guestlist.models.base import Base, TimeStamp, utcnow


class SeatingTable(Base, TimeStamp):
    __tablename__ = TableNames.SEATING_TABLES.value
    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_seating_tables_capacity"),
    )

    wedding_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.WEDDINGS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<SeatingTable {self.name} ({self.capacity})>"


class SeatingAssignment(Base):
    __tablename__ = TableNames.SEATING_ASSIGNMENTS.value

    # Unique: a guest sits at one table at most.
    guest_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.GUESTS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    table_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.SEATING_TABLES.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    seat_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<SeatingAssignment guest={self.guest_id} table={self.table_id}>"
