"""
Error classes for the simulation core.

**Conceptual**: Every failure in the simulation is local. An invalid request
(bad quantity, unknown order id, closing something that was never filled) is
rejected and reported to the caller, and the ledger is left exactly as it was.
Nothing here is fatal to the running simulation, and nothing needs a retry
because there is no I/O behind these operations.

The hierarchy is rooted at SimulationError so a presentation layer can catch
one type. Each concrete error also inherits the closest builtin (ValueError,
LookupError) so generic callers keep working.
"""


class SimulationError(Exception):
    """Base class for all errors raised by the simulation core."""
    pass


class InvalidInputError(SimulationError, ValueError):
    """
    Raised when an operation receives malformed arguments.

    Examples: non-positive or non-integer quantity, a price string that does
    not parse, an unknown side/kind, a non-positive mid price.
    """
    pass


class NotFoundError(SimulationError, LookupError):
    """Raised when an order id (or product id) does not exist."""
    pass


class InvalidStateError(SimulationError):
    """
    Raised when an operation is not allowed in the object's current state.

    Examples: closing a limit order that never filled, closing a position
    twice, restarting a clock that has been stopped.
    """
    pass
