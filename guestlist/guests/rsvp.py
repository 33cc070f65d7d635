"""Pure RSVP rules shared by the single-response and per-event submission paths."""

from collections.abc import Iterable, Mapping

from guestlist.errors import (
    FeatureDisabledError,
    InvalidMealOptionError,
    PlusOneLimitExceededError,
    WeddingNotFoundError,
)
from guestlist.guests.dtos import EventRsvpDTO, PlusOneGuestDTO, RsvpStatus
from guestlist.weddings.dtos import Feature, MealConfigDTO, WeddingConfigDTO

ATTENDING_MESSAGE = "Thank you! We can't wait to celebrate with you."
DECLINED_MESSAGE = "Thank you for letting us know. We'll miss you!"


def derive_overall_status(event_rsvps: Mapping[str, EventRsvpDTO]) -> RsvpStatus:
    """Aggregate per-event answers into one status.

    Attending if any event is attending, not attending only if every event was declined,
    pending otherwise (including when there are no answers at all).
    """
    statuses = [rsvp.status for rsvp in event_rsvps.values()]
    if any(status == RsvpStatus.ATTENDING for status in statuses):
        return RsvpStatus.ATTENDING
    if statuses and all(status == RsvpStatus.NOT_ATTENDING for status in statuses):
        return RsvpStatus.NOT_ATTENDING
    return RsvpStatus.PENDING


def check_rsvp_open(config: WeddingConfigDTO | None) -> WeddingConfigDTO:
    """Guests only reach an active wedding that has RSVP switched on."""
    if config is None or not config.is_active:
        raise WeddingNotFoundError()
    if not config.feature_enabled(Feature.RSVP):
        raise FeatureDisabledError(Feature.RSVP.value)
    return config


def reconcile_party_size(submitted: int, plus_one_count: int) -> int:
    # Never fewer seats than the primary guest plus their listed plus-ones.
    return max(submitted, 1 + plus_one_count)


def check_plus_one_limit(allowance: int, plus_ones: list[PlusOneGuestDTO]) -> None:
    if len(plus_ones) > allowance:
        raise PlusOneLimitExceededError(allowance, len(plus_ones))


def check_meal_options(
    meal_config: MealConfigDTO,
    meal_option_id: str | None,
    plus_ones: Iterable[PlusOneGuestDTO],
) -> None:
    if not meal_config.enabled:
        return
    valid = meal_config.option_ids
    for option_id in [meal_option_id, *(p.meal_option_id for p in plus_ones)]:
        if option_id and option_id not in valid:
            raise InvalidMealOptionError(option_id)


def confirmation_message(status: RsvpStatus) -> str:
    return ATTENDING_MESSAGE if status == RsvpStatus.ATTENDING else DECLINED_MESSAGE
