"""Domain errors.

Every error carries a stable ``code`` that callers (routers, CLI) surface verbatim.
"""


class GuestlistError(Exception):
    code = "ERROR"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)


class ValidationError(GuestlistError):
    code = "VALIDATION_ERROR"


class NotFoundError(GuestlistError):
    code = "NOT_FOUND"


class ConflictError(GuestlistError):
    code = "CONFLICT"


class LimitExceededError(GuestlistError):
    code = "LIMIT_EXCEEDED"


class ExpiredError(GuestlistError):
    code = "EXPIRED"


class CredentialError(NotFoundError):
    """A presented credential matched nothing usable.

    Subclasses NotFoundError so it is reported exactly like a missing record.
    """

    code = "INVALID_TOKEN"


class FeatureDisabledError(GuestlistError):
    code = "FEATURE_DISABLED"

    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(f"Feature '{feature}' is disabled for this wedding")


class MissingFieldError(ValidationError):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field.capitalize()} is required")


class InvalidEmailError(ValidationError):
    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("Invalid email format")


class InvalidMealOptionError(ValidationError):
    code = "INVALID_MEAL_OPTION"

    def __init__(self, meal_option_id: str) -> None:
        self.meal_option_id = meal_option_id
        super().__init__(f"Meal option '{meal_option_id}' is not offered")


class GuestAlreadyExistsError(ConflictError):
    """Raised when a wedding already has a guest with the same email."""

    code = "GUEST_ALREADY_EXISTS"

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"A guest with email '{email}' already exists")


class TagAlreadyExistsError(ConflictError):
    code = "TAG_ALREADY_EXISTS"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"A tag named '{name}' already exists")


class GuestNotFoundError(NotFoundError):
    code = "GUEST_NOT_FOUND"


class TableNotFoundError(NotFoundError):
    code = "TABLE_NOT_FOUND"


class TagNotFoundError(NotFoundError):
    code = "TAG_NOT_FOUND"


class WeddingNotFoundError(NotFoundError):
    code = "WEDDING_NOT_FOUND"


class EventNotFoundError(NotFoundError):
    code = "EVENT_NOT_FOUND"


class InvalidTokenError(CredentialError):
    code = "INVALID_TOKEN"


class EventExpiredError(ExpiredError):
    """The event is already past its grace window; no credential may be issued for it."""

    code = "EVENT_EXPIRED"


class PlusOneLimitExceededError(LimitExceededError):
    code = "PLUS_ONE_LIMIT_EXCEEDED"

    def __init__(self, allowance: int, requested: int) -> None:
        self.allowance = allowance
        self.requested = requested
        super().__init__(f"{requested} plus-ones requested, {allowance} allowed")


class TableCapacityExceededError(LimitExceededError):
    code = "TABLE_CAPACITY_EXCEEDED"
