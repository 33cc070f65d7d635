from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID


class Feature(str, Enum):
    RSVP = "RSVP"
    SEATING_CHART = "SEATING_CHART"


class WeddingStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class MealOptionDTO:
    id: str
    name: str
    description: str | None = None


@dataclass(frozen=True)
class MealConfigDTO:
    enabled: bool = False
    options: list[MealOptionDTO] = field(default_factory=list)

    @property
    def option_ids(self) -> set[str]:
        return {option.id for option in self.options}


@dataclass(frozen=True)
class WeddingEventDTO:
    id: str
    name: str
    date: datetime | None = None


@dataclass(frozen=True)
class WeddingConfigDTO:
    """Read-only view of the wedding settings the guest core validates against."""

    wedding_id: UUID
    status: WeddingStatus = WeddingStatus.ACTIVE
    features: dict[str, bool] = field(default_factory=dict)
    meal_config: MealConfigDTO = field(default_factory=MealConfigDTO)
    event_date: datetime | None = None
    events: list[WeddingEventDTO] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status == WeddingStatus.ACTIVE

    def feature_enabled(self, feature: Feature) -> bool:
        return bool(self.features.get(feature.value, False))
