"""Domain errors and failure typing."""


class HazardWatchError(Exception):
    """Base class for hazard engine failures."""

    error_code = "HAZARD_WATCH_ERROR"


class ValidationError(HazardWatchError):
    """Raised for malformed coordinates, radii, buffers or categories."""

    error_code = "VALIDATION_ERROR"


class NotFoundError(HazardWatchError):
    """Raised when a hazard id is unknown or already tombstoned."""

    error_code = "NOT_FOUND"


class AlreadyDeletedError(HazardWatchError):
    """Raised when a hazard is deleted twice."""

    error_code = "ALREADY_DELETED"


class OwnershipError(HazardWatchError):
    """Raised when someone other than the reporter edits a hazard."""

    error_code = "FORBIDDEN"
