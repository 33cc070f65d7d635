from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from guestlist.seating.dtos import GuestTableAssignmentDTO
from guestlist.weddings.dtos import MealConfigDTO

if TYPE_CHECKING:
    from guestlist.guests.repository.orm_models import Guest


class RsvpStatus(str, Enum):
    PENDING = "pending"
    ATTENDING = "attending"
    NOT_ATTENDING = "not_attending"


@dataclass(frozen=True)
class PlusOneGuestDTO:
    name: str
    dietary_notes: str | None = None
    meal_option_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "dietary_notes": self.dietary_notes,
            "meal_option_id": self.meal_option_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlusOneGuestDTO":
        return cls(
            name=data.get("name", ""),
            dietary_notes=data.get("dietary_notes"),
            meal_option_id=data.get("meal_option_id"),
        )


@dataclass(frozen=True)
class EventRsvpDTO:
    """A guest's answer for one sub-event of the wedding."""

    status: RsvpStatus
    dietary_notes: str | None = None
    meal_option_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "dietary_notes": self.dietary_notes,
            "meal_option_id": self.meal_option_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EventRsvpDTO":
        return cls(
            status=RsvpStatus(data.get("status", RsvpStatus.PENDING.value)),
            dietary_notes=data.get("dietary_notes"),
            meal_option_id=data.get("meal_option_id"),
        )


@dataclass(frozen=True)
class GuestDTO:
    """DTO for guest data. Never carries the raw RSVP credential."""

    id: UUID
    wedding_id: UUID
    name: str
    email: str
    party_size: int = 1
    rsvp_status: RsvpStatus = RsvpStatus.PENDING
    plus_one_allowance: int = 0
    plus_one_guests: list[PlusOneGuestDTO] = field(default_factory=list)
    meal_option_id: str | None = None
    dietary_notes: str | None = None
    photo_opt_out: bool = False
    tag_ids: list[UUID] = field(default_factory=list)
    # Empty means invited to every event.
    invited_event_ids: list[str] = field(default_factory=list)
    event_rsvps: dict[str, EventRsvpDTO] = field(default_factory=dict)
    has_token: bool = False
    token_expires_at: datetime | None = None
    token_created_at: datetime | None = None
    token_last_used_at: datetime | None = None
    rsvp_submitted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_guest(cls, guest: "Guest") -> "GuestDTO":
        """Create GuestDTO from Guest ORM model."""
        return cls(
            id=guest.uuid,
            wedding_id=guest.wedding_id,
            name=guest.name,
            email=guest.email,
            party_size=guest.party_size,
            rsvp_status=RsvpStatus(guest.rsvp_status),
            plus_one_allowance=guest.plus_one_allowance,
            plus_one_guests=[PlusOneGuestDTO.from_dict(p) for p in guest.plus_one_guests or []],
            meal_option_id=guest.meal_option_id,
            dietary_notes=guest.dietary_notes,
            photo_opt_out=guest.photo_opt_out,
            tag_ids=[UUID(str(tag_id)) for tag_id in guest.tag_ids or []],
            invited_event_ids=list(guest.invited_event_ids or []),
            event_rsvps={
                event_id: EventRsvpDTO.from_dict(rsvp)
                for event_id, rsvp in (guest.event_rsvps or {}).items()
            },
            has_token=guest.rsvp_token_hash is not None,
            token_expires_at=guest.rsvp_token_expires_at,
            token_created_at=guest.rsvp_token_created_at,
            token_last_used_at=guest.rsvp_token_last_used_at,
            rsvp_submitted_at=guest.rsvp_submitted_at,
            created_at=guest.created_at,
            updated_at=guest.updated_at,
        )


@dataclass(frozen=True)
class IssuedGuestDTO:
    """A guest together with a freshly minted raw credential.

    The raw token only ever exists in this object; hand it to invitation delivery and drop it.
    """

    guest: GuestDTO
    raw_token: str


@dataclass(frozen=True)
class GuestCreateDTO:
    name: str
    email: str
    party_size: int = 1
    plus_one_allowance: int = 0
    dietary_notes: str | None = None
    tag_ids: list[UUID] = field(default_factory=list)


@dataclass(frozen=True)
class GuestUpdateDTO:
    """Partial update; fields left as None are not touched. Token fields are never updatable."""

    name: str | None = None
    email: str | None = None
    party_size: int | None = None
    plus_one_allowance: int | None = None
    dietary_notes: str | None = None
    meal_option_id: str | None = None
    photo_opt_out: bool | None = None
    tag_ids: list[UUID] | None = None


@dataclass(frozen=True)
class CsvGuestRow:
    name: str | None
    email: str | None
    party_size: int | None = None


@dataclass(frozen=True)
class CsvImportRowResult:
    row: int
    name: str
    email: str
    success: bool
    guest: IssuedGuestDTO | None = None
    error: str | None = None
    error_code: str | None = None


@dataclass(frozen=True)
class RsvpSubmissionDTO:
    """What a guest sends with their credential.

    None keeps the stored dietary notes or photo choice.
    """

    status: RsvpStatus
    party_size: int = 1
    dietary_notes: str | None = None
    plus_one_guests: list[PlusOneGuestDTO] = field(default_factory=list)
    meal_option_id: str | None = None
    photo_opt_out: bool | None = None


@dataclass(frozen=True)
class RsvpGuestViewDTO:
    """The slice of a guest record the guest themselves may see."""

    id: UUID
    name: str
    email: str
    party_size: int
    rsvp_status: RsvpStatus
    plus_one_allowance: int
    plus_one_guests: list[PlusOneGuestDTO]
    meal_option_id: str | None = None
    dietary_notes: str | None = None
    photo_opt_out: bool = False
    event_rsvps: dict[str, EventRsvpDTO] = field(default_factory=dict)

    @classmethod
    def from_guest(cls, guest: "Guest") -> "RsvpGuestViewDTO":
        dto = GuestDTO.from_guest(guest)
        return cls(
            id=dto.id,
            name=dto.name,
            email=dto.email,
            party_size=dto.party_size,
            rsvp_status=dto.rsvp_status,
            plus_one_allowance=dto.plus_one_allowance,
            plus_one_guests=dto.plus_one_guests,
            meal_option_id=dto.meal_option_id,
            dietary_notes=dto.dietary_notes,
            photo_opt_out=dto.photo_opt_out,
            event_rsvps=dto.event_rsvps,
        )


@dataclass(frozen=True)
class RsvpViewDTO:
    guest: RsvpGuestViewDTO
    wedding_id: UUID
    # Only present when the wedding offers meal selection.
    meal_config: MealConfigDTO | None = None
    table: GuestTableAssignmentDTO | None = None


@dataclass(frozen=True)
class RsvpResponseDTO:
    message: str
    guest: RsvpGuestViewDTO


@dataclass(frozen=True)
class RsvpSummaryDTO:
    total: int = 0
    attending: int = 0
    not_attending: int = 0
    pending: int = 0
    total_party_size: int = 0


@dataclass(frozen=True)
class MealSummaryDTO:
    # option id -> number of attending people (primaries and plus-ones) who chose it
    counts: dict[str, int] = field(default_factory=dict)
    no_selection: int = 0
    dietary_notes: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class EventAssignmentErrorDTO:
    error: str
    guest_id: UUID | None = None
    event_id: str | None = None


@dataclass(frozen=True)
class EventAssignmentResultDTO:
    """Outcome of a batch (un)assignment.

    `changed` counts memberships actually created or removed.
    """

    changed: int = 0
    guest_ids: list[UUID] = field(default_factory=list)
    errors: list[EventAssignmentErrorDTO] = field(default_factory=list)


@dataclass(frozen=True)
class GuestTagDTO:
    id: UUID
    wedding_id: UUID
    name: str
    color: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class TagCreateDTO:
    name: str
    color: str | None = None


@dataclass(frozen=True)
class TagUpdateDTO:
    name: str | None = None
    color: str | None = None
