"""
Audit session: explicit container for one engagement's inputs and outputs.

Everything the workflow needs between steps lives here rather than in
process-wide state. Derived results (materiality, reconciliation, lead
schedule) are recomputed from the session inputs on demand. A failed
validation leaves the session untouched.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
import logging
import uuid
import pandas as pd

from config import config as app_config
from .cash_count import CashCountResult, cash_count_finding, evaluate_cash_count
from .errors import ValidationError
from .findings import Finding, FindingSource, FindingsLedger, findings_from_anomalies
from .icq import ICQQuestion, answer_question, default_questionnaire, ensure_complete
from .io import Payload, load_json_sources
from .lead_schedule import LeadSchedule, build_lead_schedule, opinion_summary_record
from .materiality import MaterialityConfig, compute_materiality
from .metrics import calculate_finding_kpis
from .reconcile import ReconciliationResult, reconcile
from .schemas import create_empty_record_frame

logger = logging.getLogger(__name__)


@dataclass
class AuditSession:
    """State of a single cash audit engagement."""
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    company_name: str = field(default_factory=lambda: app_config.company_name)
    ledger: pd.DataFrame = field(default_factory=create_empty_record_frame)
    bank: pd.DataFrame = field(default_factory=create_empty_record_frame)
    questionnaire: List[ICQQuestion] = field(default_factory=default_questionnaire)
    financials: Dict[str, float] = field(default_factory=dict)
    materiality: Optional[MaterialityConfig] = None
    reconciliation: Optional[ReconciliationResult] = None
    cash_count: Optional[CashCountResult] = None
    risk_assessment: str = ""
    anomalies: List[Dict[str, str]] = field(default_factory=list)
    opinion: str = ""
    findings: FindingsLedger = field(default_factory=FindingsLedger)

    @property
    def has_data(self) -> bool:
        return not self.ledger.empty

    # ==================== Phase I: risk assessment ====================

    def import_data(self, ledger_payload: Payload, bank_payload: Payload,
                    company_name: Optional[str] = None) -> Dict[str, int]:
        """
        Replace the ledger and bank statement with validated imports.

        Raises:
            ValidationError: Blank company name or invalid payloads
        """
        if company_name is not None and not company_name.strip():
            raise ValidationError("Company name is required.")

        sources = load_json_sources(
            ledger_payload, bank_payload,
            app_config.ledger_source, app_config.bank_source
        )

        self.ledger = sources[app_config.ledger_source.name]
        self.bank = sources[app_config.bank_source.name]
        self.reconciliation = None
        if company_name is not None:
            self.company_name = company_name.strip()

        logger.info(
            f"[SESSION] {self.session_id}: imported {len(self.ledger)} ledger / "
            f"{len(self.bank)} bank records for {self.company_name}"
        )
        return {"ledger": len(self.ledger), "bank_statement": len(self.bank)}

    def load_demo(self) -> Dict[str, int]:
        """Load the demo engagement and its pre-filled financials."""
        from data_provider import (
            COMPANY_NAME, get_demo_bank_statement, get_demo_financials, get_demo_ledger
        )

        counts = self.import_data(get_demo_ledger(), get_demo_bank_statement(), COMPANY_NAME)
        self.financials = get_demo_financials()
        return counts

    def compute_materiality(self, total_assets: Any, total_revenue: Any, net_income: Any) -> MaterialityConfig:
        self.materiality = compute_materiality(total_assets, total_revenue, net_income)
        self.financials = {
            "total_assets": self.materiality.total_assets,
            "total_revenue": self.materiality.total_revenue,
            "net_income": self.materiality.net_income,
        }
        return self.materiality

    def answer_icq(self, question_id: str, answer: str) -> List[ICQQuestion]:
        self.questionnaire = answer_question(self.questionnaire, question_id, answer)
        return self.questionnaire

    def run_risk_analysis(self, client) -> str:
        """
        Control-risk narrative from the completed questionnaire.

        Raises:
            ValidationError: Questionnaire incomplete
        """
        ensure_complete(self.questionnaire)
        self.risk_assessment = client.analyze_internal_controls(self.questionnaire)
        return self.risk_assessment

    # ==================== Phase II: substantive tests ====================

    def run_reconciliation(self, bank_ending_balance: Optional[float] = None) -> ReconciliationResult:
        self.reconciliation = reconcile(
            self.ledger, self.bank,
            findings=self.findings,
            bank_ending_balance=bank_ending_balance,
        )
        return self.reconciliation

    def count_cash(self, counts: Mapping[Any, Any], fund_limit: Optional[float] = None,
                   record_finding: bool = False) -> CashCountResult:
        self.cash_count = evaluate_cash_count(counts, fund_limit)
        if record_finding:
            finding = cash_count_finding(self.cash_count)
            if finding is not None:
                self.findings.add(finding)
        return self.cash_count

    def detect_anomalies(self, client) -> List[Dict[str, str]]:
        return self.record_anomalies(client.detect_anomalies(self.ledger))

    def record_anomalies(self, anomalies: List[Dict[str, str]]) -> List[Dict[str, str]]:
        """Store an anomaly list and its summary finding."""
        self.anomalies = anomalies
        for finding in findings_from_anomalies(anomalies):
            self.findings.add(finding)
        return self.anomalies

    def add_finding(self, finding: Union[Finding, Dict[str, Any]]) -> bool:
        """Manual finding entry; duplicate ids are ignored."""
        if not isinstance(finding, Finding):
            finding = Finding.from_dict(finding, source=FindingSource.MANUAL)
        return self.findings.add(finding)

    # ==================== Phase III: reporting ====================

    def lead_schedule(self, prior_year_balance: Optional[float] = None) -> LeadSchedule:
        return build_lead_schedule(self.ledger, self.findings.list(), prior_year_balance)

    def finding_kpis(self) -> Dict[str, Any]:
        return calculate_finding_kpis(self.findings.list())

    def opinion_inputs(self) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        """Findings and lead-schedule summary sent for opinion drafting."""
        summary = opinion_summary_record(self.lead_schedule())
        findings = [
            {**f.to_dict(), "id": f.finding_id} for f in self.findings.list()
        ]
        return findings, summary

    def draft_opinion(self, client) -> str:
        findings, summary = self.opinion_inputs()
        self.opinion = client.generate_audit_opinion(findings, summary)
        return self.opinion
