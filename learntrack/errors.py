"""Domain error taxonomy shared by the tracking services.

Services raise these; ``main.py`` translates them into HTTP responses.
"""


class TrackingError(Exception):
    """Base class for every error surfaced to clients."""

    status_code = 500
    code = "internal"
    # Message shown to clients instead of the internal detail, if set
    public_message: str | None = None

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        body: dict = {
            "detail": self.public_message or self.message,
            "code": self.code,
        }
        if self.field is not None:
            body["errors"] = [{"field": self.field, "message": self.message}]
        return body


class Unauthenticated(TrackingError):
    status_code = 401
    code = "unauthenticated"


class NotFound(TrackingError):
    status_code = 404
    code = "not_found"


class InvalidArgument(TrackingError):
    status_code = 400
    code = "invalid_argument"


class Inconsistent(TrackingError):
    """Catalog data contradicts itself (a content-authoring bug)."""

    status_code = 500
    code = "inconsistent"
    public_message = "Something went wrong, please try again later."


class Unavailable(TrackingError):
    """A collaborator call timed out or could not be reached."""

    status_code = 503
    code = "unavailable"
    public_message = "Service temporarily unavailable, please try again."
