"""
Audit Engine - Core cash audit calculation modules.
"""
from .errors import AuditEngineError, ValidationError, CollaboratorError, ReconciliationDiscrepancy
from .io import DataSourceLoader, JsonSourceLoader, load_json_sources
from .materiality import MaterialityConfig, compute_materiality
from .reconcile import (
    ReconciliationResult,
    reconcile,
    derive_ending_book_balance,
    derive_ending_bank_balance,
)
from .cash_count import CashCountResult, evaluate_cash_count
from .findings import Finding, FindingsLedger, Severity, AdjustmentDirection
from .rules import RuleContext, Rule, RuleRegistry, UnrecordedBankChargesRule
from .lead_schedule import LeadSchedule, build_lead_schedule
from .metrics import calculate_finding_kpis
from .icq import ICQQuestion, default_questionnaire
from .canonical_fields import CanonicalField, LedgerDirection, BankDirection
from .session import AuditSession

__all__ = [
    "AuditEngineError",
    "ValidationError",
    "CollaboratorError",
    "ReconciliationDiscrepancy",
    "DataSourceLoader",
    "JsonSourceLoader",
    "load_json_sources",
    "MaterialityConfig",
    "compute_materiality",
    "ReconciliationResult",
    "reconcile",
    "derive_ending_book_balance",
    "derive_ending_bank_balance",
    "CashCountResult",
    "evaluate_cash_count",
    "Finding",
    "FindingsLedger",
    "Severity",
    "AdjustmentDirection",
    "RuleContext",
    "Rule",
    "RuleRegistry",
    "UnrecordedBankChargesRule",
    "LeadSchedule",
    "build_lead_schedule",
    "calculate_finding_kpis",
    "ICQQuestion",
    "default_questionnaire",
    "CanonicalField",
    "LedgerDirection",
    "BankDirection",
    "AuditSession",
]
