
class BookingError(RuntimeError):
    """Base class for failures scoped to a single booking attempt."""
    pass


class ValidationError(BookingError):
    """Raised when a step is advanced while a required draft field is missing."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Missing required field: {field}")


class InvalidTransition(BookingError):
    """Raised when a navigation call is not allowed from the current step."""
    pass


class SearchFailure(BookingError):
    """Raised when the stylist search collaborator is unreachable or fails."""
    pass


class SubmissionFailure(BookingError):
    """Raised when appointment creation fails; the user stays on the confirm step."""
    pass


class GeolocationUnavailable(BookingError):
    """Raised by location providers; callers fall back to the default coordinate."""
    pass


class SessionNotFound(BookingError):
    """Raised when no booking workflow exists for a session id."""
    pass


class MarketplaceUpstreamError(RuntimeError):
    """Raised when the marketplace API fails (timeouts, network errors, bad status)."""
    pass


class MarketplaceContractError(RuntimeError):
    """Raised when the marketplace API answers with a payload we cannot map."""
    pass
