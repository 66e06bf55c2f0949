"""
Rule framework and rule implementations.
Plugin-style rules that turn reconciliation output into findings.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, TYPE_CHECKING
from dataclasses import dataclass
import pandas as pd

from .canonical_fields import CanonicalField
from .findings import AdjustmentDirection, Finding, FindingSource, Severity

if TYPE_CHECKING:
    from .reconcile import ReconciliationResult


@dataclass
class RuleContext:
    """
    Context object passed to rules.

    Holds the imported sources together with the reconciliation output so
    rules never need to re-run matching.
    """
    ledger: pd.DataFrame
    bank: pd.DataFrame
    reconciliation: "ReconciliationResult"


class Rule(ABC):
    """
    Abstract base class for finding rules.

    Each rule has a unique ID, name, and evaluation logic.
    Rules are deterministic and emit findings with fixed identifiers so that
    re-running them is absorbed by the findings ledger.
    """

    @property
    @abstractmethod
    def rule_id(self) -> str:
        """Unique identifier for this rule."""
        pass

    @property
    @abstractmethod
    def rule_name(self) -> str:
        """Human-readable name for this rule."""
        pass

    @abstractmethod
    def evaluate(self, context: RuleContext) -> List[Finding]:
        """Evaluate rule against context and return findings."""
        pass


class UnrecordedBankChargesRule(Rule):
    """Bank-side deductions missing from the book need an adjusting entry."""

    def __init__(self, finding_id: str):
        self.finding_id = finding_id

    @property
    def rule_id(self) -> str:
        return "UNRECORDED_BANK_CHARGES"

    @property
    def rule_name(self) -> str:
        return "Unrecorded Bank Charges"

    def evaluate(self, context: RuleContext) -> List[Finding]:
        charges = context.reconciliation.bank_charges
        if charges.empty:
            return []

        total = float(charges[CanonicalField.AMOUNT.value].sum())
        return [Finding(
            finding_id=self.finding_id,
            title="Biaya Bank Belum Dicatat",
            description=f"Terdapat biaya administrasi bank sebesar {total:,.0f} yang belum dijurnal.",
            severity=Severity.LOW,
            amount=total,
            recommendation="Lakukan jurnal penyesuaian untuk biaya bank.",
            adjustment=AdjustmentDirection.CREDIT,
            source=FindingSource.RECONCILIATION,
        )]


class RuleRegistry:
    """
    Central registry for finding rules.

    Adding a new rule:
    1. Create a Rule subclass
    2. Register it here
    3. No other code changes needed
    """

    def __init__(self):
        self._rules: List[Rule] = []

    def register(self, rule: Rule):
        """Register a rule."""
        self._rules.append(rule)

    def get_all_rules(self) -> List[Rule]:
        """Get all registered rules."""
        return self._rules.copy()

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        """Get rule by ID."""
        for rule in self._rules:
            if rule.rule_id == rule_id:
                return rule
        return None

    def evaluate_all(self, context: RuleContext) -> List[Finding]:
        """Evaluate all registered rules and aggregate findings."""
        all_findings = []
        for rule in self._rules:
            all_findings.extend(rule.evaluate(context))
        return all_findings


def build_default_registry() -> RuleRegistry:
    from config import config as app_config

    registry = RuleRegistry()
    registry.register(UnrecordedBankChargesRule(app_config.reconciliation.bank_charge_finding_id))
    return registry


default_registry = build_default_registry()
