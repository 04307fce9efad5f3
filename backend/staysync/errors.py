"""Error taxonomy shared by the calendar engine, services and API layer.

Every error carries the HTTP status the API reports it with and whether the
caller may retry the same operation unchanged. Parse problems in a calendar
feed have no error type: malformed entries are dropped, never raised.
"""

from fastapi import status


class StaySyncError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    retryable: bool = False

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(StaySyncError):
    """A request is well-formed but not acceptable (missing feed URL, illegal transition)."""


class InvalidRangeError(StaySyncError):
    """A caller-supplied range whose end is not after its start."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class NotFoundError(StaySyncError):
    status_code = status.HTTP_404_NOT_FOUND


class BookingConflictError(StaySyncError):
    """The proposed range overlaps a blocking booking.

    The message never identifies the booking that blocked, since it may
    belong to another guest.
    """

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, detail: str = "The selected dates are no longer available") -> None:
        super().__init__(detail)


class FeedTransportError(StaySyncError):
    """Fetching the calendar feed failed or timed out."""

    status_code = status.HTTP_502_BAD_GATEWAY
    retryable = True

    def __init__(self, detail: str, upstream_status: int | None = None) -> None:
        super().__init__(detail)
        self.upstream_status = upstream_status


class StoreTransactionError(StaySyncError):
    """A batch write could not be committed; nothing was applied."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
