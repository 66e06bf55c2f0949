"""
Lead schedule for Cash & Cash Equivalents.

Reconciles the client's book balance to the audited balance through the
adjustments proposed by the findings.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, Optional
import pandas as pd

from config import config as app_config
from .findings import AdjustmentDirection, Finding
from .reconcile import derive_ending_book_balance


@dataclass(frozen=True)
class LeadSchedule:
    book_balance: float
    adj_debit: float
    adj_credit: float
    audited_balance: float
    prior_year_balance: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def sum_adjustments(findings: Iterable[Finding]) -> Dict[str, float]:
    """Split amount-bearing findings into debit and credit adjustment totals."""
    adj_debit = 0.0
    adj_credit = 0.0
    for finding in findings:
        if finding.amount <= 0:
            continue
        if finding.adjustment == AdjustmentDirection.DEBIT:
            adj_debit += finding.amount
        else:
            adj_credit += finding.amount
    return {"adj_debit": adj_debit, "adj_credit": adj_credit}


def build_lead_schedule(
    ledger: pd.DataFrame,
    findings: Iterable[Finding],
    prior_year_balance: Optional[float] = None
) -> LeadSchedule:
    """
    Build the lead schedule from the current ledger and findings.

    Recomputed from scratch on every call; neither input is modified.

    Args:
        ledger: Canonical ledger frame
        findings: Findings (typically FindingsLedger.list())
        prior_year_balance: Audited balance of the prior year, shown side by
            side; defaults to the configured figure

    Returns:
        LeadSchedule with audited = book + adj_debit - adj_credit
    """
    if prior_year_balance is None:
        prior_year_balance = app_config.lead_schedule.prior_year_balance

    book = derive_ending_book_balance(ledger)
    adjustments = sum_adjustments(findings)

    return LeadSchedule(
        book_balance=book,
        adj_debit=adjustments["adj_debit"],
        adj_credit=adjustments["adj_credit"],
        audited_balance=book + adjustments["adj_debit"] - adjustments["adj_credit"],
        prior_year_balance=float(prior_year_balance),
    )


def opinion_summary_record(schedule: LeadSchedule) -> Dict[str, Any]:
    """Summary record appended to the findings sent for opinion drafting."""
    return {
        "id": "SUMMARY",
        "title": "Ringkasan Angka Audit",
        "description": (
            f"Saldo Buku: {schedule.book_balance:.0f}, "
            f"Penyesuaian: -{schedule.adj_credit:.0f} +{schedule.adj_debit:.0f}, "
            f"Saldo Audit: {schedule.audited_balance:.0f}"
        ),
        "severity": "High",
        "amount": 0,
        "recommendation": "",
    }
