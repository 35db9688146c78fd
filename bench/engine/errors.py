"""Engine error taxonomy.

Every engine error is a ValueError: the engines only ever fail on malformed
input, and callers that already guard engine calls with ``except ValueError``
keep working.
"""


class EngineError(ValueError):
    """Base class for pricing and settlement failures."""


class InvalidAmountError(EngineError):
    def __init__(self, amount, reason: str = "Must be a finite positive number.") -> None:
        self.amount = amount
        super().__init__(f"Invalid amount: {amount}. {reason}")


class DegeneratePoolError(EngineError):
    def __init__(self, message: str = "Pool has no reserves; probability is undefined.") -> None:
        super().__init__(message)


class InvalidProbabilityError(EngineError):
    def __init__(self, probability, context: str = "probability") -> None:
        self.probability = probability
        super().__init__(f"Invalid {context}: {probability}. Must be between 0 and 1.")


class InvalidSideError(EngineError):
    def __init__(self, side) -> None:
        self.side = side
        super().__init__(f"Invalid side: {side!r}. Must be 'yes' or 'no'.")


class InvalidPoolError(EngineError):
    """Raised when a pool record violates its invariants."""


class InvalidPositionError(EngineError):
    """Raised when a position cannot take part in a settlement run."""


class MarketStateError(EngineError):
    def __init__(self, market_id: str, status: str, action: str) -> None:
        self.market_id = market_id
        self.status = status
        super().__init__(f"Market {market_id} is '{status}'; cannot {action}")
