class InvariantViolation(Exception):
    """Raised when a state carries duplicate students, duplicate job titles or blank job titles."""

    pass


class RosterEditError(ValueError):
    """Raised when a roster edit is rejected (invalid value)."""

    pass


class DuplicateRosterEntryError(RosterEditError):
    """Raised when adding a student or job title that is already on the roster."""

    pass


class UnknownRosterEntryError(RosterEditError):
    """Raised when removing a student or job title that is not on the roster."""

    pass


class PersistenceError(Exception):
    """Raised when state could not be read from or written to the database."""

    pass


# Mapping of custom exceptions to HTTP status codes
CUSTOM_ERRORS = {
    InvariantViolation: 422,
    RosterEditError: 400,
    DuplicateRosterEntryError: 409,
    UnknownRosterEntryError: 404,
    PersistenceError: 503,
}
