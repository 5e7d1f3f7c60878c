"""Exception hierarchy. Validation errors carry the specific reason in the message."""


class SignalDeskError(Exception):
    """Base class for all signal_desk errors."""


class ValidationError(SignalDeskError):
    """Malformed parameters or an unresolvable input (e.g. entry date)."""


class InsufficientHistoryError(ValidationError):
    """Not enough candles for the requested computation."""

    def __init__(self, needed: int, available: int, what: str = "computation"):
        self.needed = needed
        self.available = available
        super().__init__(f"insufficient history for {what}: need {needed} candles, have {available}")


class DataError(SignalDeskError):
    """Candle data violates ordering/shape requirements."""


class ProviderError(SignalDeskError):
    """Upstream collaborator failed (candles, valuation, calendar)."""
