"""
Bank reconciliation - match book entries to bank statement items and derive
the adjusted balances of both views.

Matching is a single greedy pass in ledger order: each ledger entry takes the
first still-unmatched bank item (in statement order) with exactly the same
amount and the opposite-perspective direction. Everything left over is
partitioned into the four classic reconciling-item categories.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging
import pandas as pd

from config import config as app_config
from .canonical_fields import (
    CanonicalField,
    LedgerDirection,
    BankDirection,
    MATCHING_DIRECTION,
)
from .errors import ReconciliationDiscrepancy
from .findings import FindingsLedger
from .rules import RuleContext, RuleRegistry, default_registry
from .schemas import frame_to_records

logger = logging.getLogger(__name__)

AMOUNT = CanonicalField.AMOUNT.value
DIRECTION = CanonicalField.DIRECTION.value
DESCRIPTION = CanonicalField.DESCRIPTION.value
ID = CanonicalField.ID.value
IS_RECONCILED = CanonicalField.IS_RECONCILED.value


# ==================== Balance Derivation ====================

def is_opening_balance(description: Any, markers: Optional[List[str]] = None) -> bool:
    """True when a ledger description marks the opening balance entry."""
    if markers is None:
        markers = app_config.reconciliation.opening_balance_markers
    text = str(description or "").lower()
    return any(marker in text for marker in markers)


def find_opening_position(ledger: pd.DataFrame) -> Optional[int]:
    """Position of the first opening balance entry, or None."""
    for pos, description in enumerate(ledger[DESCRIPTION].tolist()):
        if is_opening_balance(description):
            return pos
    return None


def _sum(df: pd.DataFrame) -> float:
    if df.empty:
        return 0.0
    return float(df[AMOUNT].sum())


def derive_ending_book_balance(ledger: pd.DataFrame) -> float:
    """
    Ending balance per book.

    opening + debits - credits, where the opening entry is the base and is
    excluded from both sums. Without an opening entry the base is zero.
    """
    if ledger.empty:
        return 0.0

    opening_pos = find_opening_position(ledger)
    if opening_pos is None:
        opening = 0.0
        movements = ledger
    else:
        opening = float(ledger[AMOUNT].iloc[opening_pos])
        movements = ledger.drop(index=ledger.index[opening_pos])

    debits = _sum(movements[movements[DIRECTION] == LedgerDirection.DEBIT.value])
    credits = _sum(movements[movements[DIRECTION] == LedgerDirection.CREDIT.value])
    return opening + debits - credits


def derive_ending_bank_balance(bank: pd.DataFrame) -> float:
    """Ending balance per bank: deposits less withdrawals over the whole statement."""
    if bank.empty:
        return 0.0
    deposits = _sum(bank[bank[DIRECTION] == BankDirection.CREDIT.value])
    withdrawals = _sum(bank[bank[DIRECTION] == BankDirection.DEBIT.value])
    return deposits - withdrawals


# ==================== Result ====================

@dataclass
class ReconciliationResult:
    """
    Output of a reconciliation run.

    The four item frames are disjoint subsets of the input rows, in their
    input order. `ledger` and `bank` are copies of the inputs with
    `is_reconciled` set on matched rows.
    """
    ending_book_balance: float
    ending_bank_balance: float
    adjusted_book_balance: float
    adjusted_bank_balance: float
    outstanding_checks: pd.DataFrame
    deposits_in_transit: pd.DataFrame
    bank_charges: pd.DataFrame
    unknown_diffs: pd.DataFrame
    matched_pairs: Dict[str, str] = field(default_factory=dict)
    ledger: Optional[pd.DataFrame] = None
    bank: Optional[pd.DataFrame] = None

    @property
    def discrepancy(self) -> float:
        return self.adjusted_book_balance - self.adjusted_bank_balance

    @property
    def is_balanced(self) -> bool:
        return abs(self.discrepancy) <= app_config.reconciliation.balance_tolerance

    def assert_balanced(self) -> None:
        """Raise ReconciliationDiscrepancy when the two views do not converge."""
        if not self.is_balanced:
            raise ReconciliationDiscrepancy(self.adjusted_book_balance, self.adjusted_bank_balance)

    def totals(self) -> Dict[str, float]:
        return {
            "outstanding_checks": _sum(self.outstanding_checks),
            "deposits_in_transit": _sum(self.deposits_in_transit),
            "bank_charges": _sum(self.bank_charges),
            "unknown_diffs": _sum(self.unknown_diffs),
        }

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe view for the web layer."""
        return {
            "ending_book_balance": self.ending_book_balance,
            "ending_bank_balance": self.ending_bank_balance,
            "adjusted_book_balance": self.adjusted_book_balance,
            "adjusted_bank_balance": self.adjusted_bank_balance,
            "discrepancy": self.discrepancy,
            "is_balanced": self.is_balanced,
            "totals": self.totals(),
            "matched_pairs": dict(self.matched_pairs),
            "outstanding_checks": frame_to_records(self.outstanding_checks),
            "deposits_in_transit": frame_to_records(self.deposits_in_transit),
            "bank_charges": frame_to_records(self.bank_charges),
            "unknown_diffs": frame_to_records(self.unknown_diffs),
        }


# ==================== Matching ====================

def match_transactions(ledger: pd.DataFrame, bank: pd.DataFrame) -> Dict[int, int]:
    """
    Greedy amount-and-direction match.

    Returns:
        Mapping of ledger row position -> bank row position, in ledger order
    """
    bank_amounts = bank[AMOUNT].tolist()
    bank_directions = bank[DIRECTION].tolist()
    taken = set()
    pairs: Dict[int, int] = {}

    for l_pos, (amount, direction) in enumerate(zip(ledger[AMOUNT].tolist(), ledger[DIRECTION].tolist())):
        target = MATCHING_DIRECTION.get(direction)
        if target is None:
            continue

        for b_pos, (b_amount, b_direction) in enumerate(zip(bank_amounts, bank_directions)):
            if b_pos in taken:
                continue
            if b_direction == target and b_amount == amount:
                taken.add(b_pos)
                pairs[l_pos] = b_pos
                break

    return pairs


def reconcile(
    ledger: pd.DataFrame,
    bank: pd.DataFrame,
    findings: Optional[FindingsLedger] = None,
    registry: Optional[RuleRegistry] = None,
    bank_ending_balance: Optional[float] = None,
    strict: Optional[bool] = None,
) -> ReconciliationResult:
    """
    Reconcile book entries against the bank statement.

    Args:
        ledger: Canonical ledger frame (company perspective)
        bank: Canonical bank statement frame (bank perspective)
        findings: Optional findings ledger; when given, reconciliation rules
            are evaluated and their findings inserted (deduplicated by id)
        registry: Rule registry to evaluate (defaults to the global registry)
        bank_ending_balance: Ending balance printed on the statement. When
            omitted it is derived from the statement items.
        strict: Raise ReconciliationDiscrepancy instead of logging a warning
            when the adjusted balances differ

    Returns:
        ReconciliationResult
    """
    if strict is None:
        strict = app_config.reconciliation.strict

    logger.info(f"[RECON] Starting reconciliation: {len(ledger)} book entries, {len(bank)} bank items")

    ledger = ledger.reset_index(drop=True).copy()
    bank = bank.reset_index(drop=True).copy()

    pairs = match_transactions(ledger, bank)

    ledger_matched = ledger.index.isin(list(pairs.keys()))
    bank_matched = bank.index.isin(list(pairs.values()))
    ledger[IS_RECONCILED] = ledger_matched
    bank[IS_RECONCILED] = bank_matched

    unmatched_ledger = ledger[~ledger_matched]
    unmatched_bank = bank[~bank_matched]

    outstanding_checks = unmatched_ledger[unmatched_ledger[DIRECTION] == LedgerDirection.CREDIT.value].copy()
    deposits_in_transit = unmatched_ledger[unmatched_ledger[DIRECTION] == LedgerDirection.DEBIT.value].copy()
    bank_charges = unmatched_bank[unmatched_bank[DIRECTION] == BankDirection.DEBIT.value].copy()
    unknown_diffs = unmatched_bank[unmatched_bank[DIRECTION] == BankDirection.CREDIT.value].copy()

    ending_book = derive_ending_book_balance(ledger)
    adjusted_book = ending_book - _sum(bank_charges) + _sum(unknown_diffs)

    if bank_ending_balance is None:
        ending_bank = derive_ending_bank_balance(bank)
    else:
        ending_bank = float(bank_ending_balance)
    adjusted_bank = ending_bank + _sum(deposits_in_transit) - _sum(outstanding_checks)

    result = ReconciliationResult(
        ending_book_balance=ending_book,
        ending_bank_balance=ending_bank,
        adjusted_book_balance=adjusted_book,
        adjusted_bank_balance=adjusted_bank,
        outstanding_checks=outstanding_checks,
        deposits_in_transit=deposits_in_transit,
        bank_charges=bank_charges,
        unknown_diffs=unknown_diffs,
        matched_pairs={
            ledger[ID].iloc[l_pos]: bank[ID].iloc[b_pos] for l_pos, b_pos in pairs.items()
        },
        ledger=ledger,
        bank=bank,
    )

    stats = {
        'matched': len(pairs),
        'outstanding_checks': len(outstanding_checks),
        'deposits_in_transit': len(deposits_in_transit),
        'bank_charges': len(bank_charges),
        'unknown_diffs': len(unknown_diffs),
    }
    logger.info(f"[RECON] Reconciliation complete: {stats}")

    if not result.is_balanced:
        logger.warning(
            f"[RECON] Adjusted balances differ: book={adjusted_book:,.2f} "
            f"bank={adjusted_bank:,.2f} (difference {result.discrepancy:,.2f})"
        )
        if strict:
            result.assert_balanced()

    if findings is not None:
        context = RuleContext(ledger=ledger, bank=bank, reconciliation=result)
        for finding in (registry or default_registry).evaluate_all(context):
            findings.add(finding)

    return result
