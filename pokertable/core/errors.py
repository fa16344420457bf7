"""
Engine error kinds.

Every error is recoverable: the engine functions raise before touching the
state they were given, so the caller still holds the exact prior state.
"""


class TableError(Exception):
    """Base class for every rejection raised by the table engine."""

    code = "TABLE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class IllegalActionError(TableError):
    """Wrong turn, checking into a bet, raising too small or beyond the stack."""

    code = "ILLEGAL_ACTION"


class InsufficientCardsError(TableError):
    """The deck cannot supply the requested number of cards."""

    code = "INSUFFICIENT_CARDS"


class InvalidSeatError(TableError):
    """Join on a full table or by someone already seated; leave when not seated."""

    code = "INVALID_SEAT"


class InvalidPhaseError(TableError):
    """Operation not allowed in the current phase (e.g. next hand before showdown)."""

    code = "INVALID_PHASE"
