"""
sessions/errors.py -- Failure taxonomy for the session store.

The API layer maps each class to one HTTP status:
  ValidationError -> 400, InvalidId -> 400, NotFound -> 404, StoreError -> 500.

StoreError.message is safe to show to callers; the underlying driver error is
chained as __cause__ and only ever logged.
"""


class SessionError(Exception):
    """Base class for every session store failure."""

    message = "PRG session request failed"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(SessionError):
    """The candidate record breaks one or more field constraints."""

    message = "Validation failed"

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.message}: {'; '.join(self.errors)}"


class InvalidId(SessionError):
    message = "Invalid session ID"


class NotFound(SessionError):
    message = "PRG session not found"


class StoreError(SessionError):
    """Any other persistence failure (connection lost, write rejected, ...)."""

    message = "Failed to process PRG session request"
