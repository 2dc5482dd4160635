"""
Domain exceptions shared by the scoring core.

Every service raises one of these; controllers translate them to HTTP
responses. Only TransientStorageError is worth retrying.
"""


class TipovackaError(Exception):
    """Base exception for core errors."""
    pass


class NotFoundError(TipovackaError):
    """Referenced event/pick/participant does not exist or is soft-deleted."""
    pass


class ValidationError(TipovackaError):
    """Structurally valid input that breaks a business rule."""
    pass


class BettingClosedError(TipovackaError):
    """Raised when the event deadline has passed."""
    pass


class AlreadyEvaluatedError(TipovackaError):
    """Raised when an event has already been scored."""
    pass


class ConflictError(TipovackaError):
    """Raised when a concurrent writer won a race we cannot absorb."""
    pass


class ResultMissingError(TipovackaError):
    """Raised when evaluating an event without its actual result."""
    pass


class NotLinkedError(TipovackaError):
    """Raised when an event is not linked to a live league."""
    pass


class TransientStorageError(TipovackaError):
    """Lock-wait or transaction timeout. The caller may retry with backoff."""
    pass


class AuthError(TipovackaError):
    """Caller is not a member of the league or not an admin."""
    pass


# Código HTTP con el que los controllers exponen cada error
STATUS_CODES: dict[type, int] = {
    NotFoundError: 404,
    ValidationError: 400,
    BettingClosedError: 403,
    AlreadyEvaluatedError: 409,
    ConflictError: 409,
    ResultMissingError: 400,
    NotLinkedError: 400,
    TransientStorageError: 503,
    AuthError: 403,
}


def status_code_for(error: TipovackaError) -> int:
    for kind in type(error).__mro__:
        if kind in STATUS_CODES:
            return STATUS_CODES[kind]
    return 500
