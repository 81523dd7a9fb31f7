"""Domain errors raised by the workflow and evaluation services.

Every error carries the HTTP status the API layer answers with, so routers
never have to classify failures themselves.
"""


class PortalError(Exception):
    """Base class for errors surfaced to callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """Caller supplied malformed input. Nothing was written."""

    status_code = 400


class InvalidStatusError(ValidationError):
    def __init__(self, value: object, allowed: list[str]):
        super().__init__(f"Invalid status {value!r}. Allowed: {', '.join(allowed)}")
        self.value = value


class InvalidScoreError(ValidationError):
    def __init__(self, value: object, low: int, high: int):
        super().__init__(f"Score must be an integer between {low} and {high}, got {value!r}")
        self.value = value


class MissingFieldError(ValidationError):
    def __init__(self, field: str):
        super().__init__(f"{field} is required")
        self.field = field


class NotFoundError(PortalError):
    status_code = 404


class ConflictError(PortalError):
    status_code = 409


class PersistenceFailure(PortalError):
    """The store transaction could not commit; its effects were rolled back."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
