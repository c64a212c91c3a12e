"""
Pipeline exceptions.

Routers translate these into HTTP responses; calculation code never catches them.
Routing-provider failures are NOT errors — they become fallback routes.
"""


class QuoteError(Exception):
    """Base class for quote pipeline errors."""


class QuoteRecordNotFound(QuoteError):
    """No persisted record for this session — the customer must start over."""

    redirect_stage = "inventory"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"No quote data found for session {session_id}")


class StageNotReady(QuoteError):
    """A stage was asked to run (or continue) before its inputs exist."""

    def __init__(self, stage: str, missing: list):
        self.stage = stage
        self.missing = list(missing)
        super().__init__(
            f"Stage '{stage}' is not ready. Missing: {', '.join(self.missing)}"
        )


class QuoteLocked(QuoteError):
    """The customer accepted the quote; the record is read-only."""

    def __init__(self, quote_reference: str = None):
        self.quote_reference = quote_reference
        label = f"Quote {quote_reference}" if quote_reference else "Quote"
        super().__init__(f"{label} has been accepted and is read-only")


class EstimationMethodLocked(QuoteError):
    """inventory/volume choice can only change during the inventory stage."""

    def __init__(self, current: str):
        self.current = current
        super().__init__(f"Estimation method is fixed to '{current}' after the inventory stage")


class EmailDeliveryError(QuoteError):
    """Outbound quote email could not be handed to the email relay."""
