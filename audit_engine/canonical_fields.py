"""
Canonical field definitions for the Cash Audit Engine.

This module is the single source of truth for all column names used throughout
the engine, rules, metrics, and web layer. Raw import keys (camelCase JSON)
should NEVER be referenced outside of mappings.py.
"""
from enum import Enum
from typing import Tuple, FrozenSet


class CanonicalField(str, Enum):
    """
    Canonical column names for ledger and bank statement frames.

    Inheriting from str makes these usable as dictionary keys and
    compatible with pandas DataFrame column operations.
    """

    # ==================== Record Identity ====================
    ID = "id"
    """Record identifier, unique within its own source"""

    REF_NUMBER = "ref_number"
    """Reference / voucher / cheque number"""

    # ==================== Record Detail ====================
    DATE = "date"
    """Transaction or statement date"""

    DESCRIPTION = "description"
    """Free-text description"""

    AMOUNT = "amount"
    """Non-negative transaction amount"""

    DIRECTION = "direction"
    """Debit/Credit (ledger) or CR/DB (bank)"""

    # ==================== Reconciliation ====================
    IS_RECONCILED = "is_reconciled"
    """Set by the matcher when a counterpart is found"""


class LedgerDirection(str, Enum):
    """Company-perspective direction of a ledger transaction."""
    DEBIT = "Debit"    # Inflow (receipt)
    CREDIT = "Credit"  # Outflow (disbursement)


class BankDirection(str, Enum):
    """Bank-perspective direction of a statement item."""
    CREDIT = "CR"  # Deposit
    DEBIT = "DB"   # Withdrawal


# Ledger direction -> bank direction it must match
MATCHING_DIRECTION = {
    LedgerDirection.DEBIT.value: BankDirection.CREDIT.value,
    LedgerDirection.CREDIT.value: BankDirection.DEBIT.value,
}


# ==================== Field Groups ====================

RECORD_FIELDS: Tuple[CanonicalField, ...] = (
    CanonicalField.ID,
    CanonicalField.DATE,
    CanonicalField.DESCRIPTION,
    CanonicalField.AMOUNT,
    CanonicalField.DIRECTION,
    CanonicalField.REF_NUMBER,
    CanonicalField.IS_RECONCILED,
)
"""Column order shared by ledger and bank frames"""

REQUIRED_RECORD_FIELDS: FrozenSet[CanonicalField] = frozenset({
    CanonicalField.ID,
    CanonicalField.DATE,
    CanonicalField.DESCRIPTION,
    CanonicalField.AMOUNT,
    CanonicalField.DIRECTION,
})
"""Minimum fields an imported ledger or bank record must provide"""

AMOUNT_FIELDS: FrozenSet[CanonicalField] = frozenset({
    CanonicalField.AMOUNT,
})

DATE_FIELDS: FrozenSet[CanonicalField] = frozenset({
    CanonicalField.DATE,
})

TEXT_FIELDS: FrozenSet[CanonicalField] = frozenset({
    CanonicalField.ID,
    CanonicalField.DESCRIPTION,
    CanonicalField.DIRECTION,
    CanonicalField.REF_NUMBER,
})


def get_field_names(fields) -> Tuple[str, ...]:
    """
    Convert an iterable of CanonicalField enums to a tuple of string names.

    Example:
        >>> names = get_field_names(RECORD_FIELDS)
        >>> df[list(names)]
    """
    return tuple(f.value for f in fields)
