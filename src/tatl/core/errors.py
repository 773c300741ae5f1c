"""Error taxonomy for the functional core.

Every error the core raises is a TatlError and carries a user-facing message.
Anything else escaping the core is a bug.
"""


class TatlError(Exception):
    """Base class for user-facing core errors."""

    pass


class FormatError(TatlError):
    """Input text could not be parsed."""

    pass


class SemanticError(TatlError):
    """Input parsed but violates a domain rule."""

    pass


class ConflictError(TatlError):
    """Requested change contradicts existing state."""

    pass


# Durations


class InvalidDurationFormat(FormatError):
    pass


class DurationOutOfOrder(SemanticError):
    pass


class DuplicateDurationUnit(SemanticError):
    pass


# Dates


class UnrecognizedDateFormat(FormatError):
    pass


class InvalidCalendarDate(SemanticError):
    pass


class AmbiguousOrInvalidLocalTime(SemanticError):
    pass


# Filters


class FilterTokenError(FormatError):
    """A filter argument could not be parsed. Keeps the offending token."""

    def __init__(self, token: str, reason: str):
        self.token = token
        self.reason = reason
        super().__init__(f"Invalid filter token '{token}': {reason}")


class AssignmentError(SemanticError):
    pass


# Sessions


class InvalidInterval(SemanticError):
    pass


class NoOverlappingSession(ConflictError):
    pass


class ConflictingOpenSession(ConflictError):
    pass
