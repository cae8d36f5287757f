"""
Domain Errors

Terminal failures raised by the domain services. Each carries a
machine-readable ``reason`` code. The HTTP boundary translates the classes
to status codes (see shared.infrastructure.exception_handler); nothing in
the domain retries them.
"""


class DomainError(Exception):
    """Base class for errors surfaced to the boundary layer verbatim."""

    reason = "error"
    default_message = "Request failed."

    def __init__(self, message: str | None = None, *, reason: str | None = None):
        self.message = message or self.default_message
        if reason is not None:
            self.reason = reason
        super().__init__(self.message)


class ValidationError(DomainError):
    """Malformed or illogical input. The caller must change the request."""

    BAD_RANGE = "bad-range"
    INVERTED_DATES = "inverted-dates"
    UNKNOWN_PROPERTY = "unknown-property"
    OVER_CAPACITY = "over-capacity"

    reason = BAD_RANGE
    default_message = "Invalid request."


class ConflictError(DomainError):
    """The requested dates overlap an existing reservation."""

    OVERLAP = "overlap"

    reason = OVERLAP
    default_message = "The property is already booked for the requested dates."


class ForbiddenError(DomainError):
    reason = "forbidden"
    default_message = "You are not allowed to manage this reservation."


class NotFoundError(DomainError):
    reason = "not-found"
    default_message = "Reservation not found."


class StorageUnavailable(DomainError):
    """
    Transient store failure (connection loss, timeout, serialization failure)

    Operations are atomic, so the caller may safely retry.
    """

    reason = "storage-unavailable"
    default_message = "Storage is temporarily unavailable, please retry."
