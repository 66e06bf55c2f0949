"""
Error taxonomy for the Cash Audit Engine.
"""


class AuditEngineError(Exception):
    """Base class for engine errors."""


class ValidationError(AuditEngineError, ValueError):
    """
    Input rejected before any state is committed.

    Raised for missing financial inputs, malformed import payloads and
    incomplete questionnaires. The message is safe to show to the user.
    """


class CollaboratorError(AuditEngineError):
    """The external text-generation service failed or returned junk."""


class ReconciliationDiscrepancy(AuditEngineError):
    """Adjusted book and adjusted bank balances do not converge."""

    def __init__(self, adjusted_book: float, adjusted_bank: float):
        self.adjusted_book = adjusted_book
        self.adjusted_bank = adjusted_bank
        self.difference = adjusted_book - adjusted_bank
        super().__init__(
            f"Adjusted book balance {adjusted_book:,.2f} does not equal "
            f"adjusted bank balance {adjusted_bank:,.2f} "
            f"(difference {self.difference:,.2f})"
        )
