from fastapi import HTTPException, status

from guestlist.errors import (
    ConflictError,
    EventExpiredError,
    ExpiredError,
    FeatureDisabledError,
    GuestlistError,
    LimitExceededError,
    NotFoundError,
    ValidationError,
)

# First match wins; subclasses must precede their bases.
_STATUS_CODES: list[tuple[type[GuestlistError], int]] = [
    (EventExpiredError, status.HTTP_410_GONE),
    (ExpiredError, status.HTTP_404_NOT_FOUND),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (FeatureDisabledError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (LimitExceededError, status.HTTP_400_BAD_REQUEST),
]


def status_code_for(error: GuestlistError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def to_http_exception(error: GuestlistError) -> HTTPException:
    """Surface only the stable error code; messages may carry guest data."""
    return HTTPException(status_code=status_code_for(error), detail=error.code)
