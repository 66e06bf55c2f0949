"""
Lead schedule tests.
"""
from audit_engine.findings import AdjustmentDirection, Finding, FindingsLedger
from audit_engine.lead_schedule import build_lead_schedule, opinion_summary_record
from audit_engine.reconcile import reconcile


class TestLeadSchedule:

    def test_no_findings(self, ledger):
        schedule = build_lead_schedule(ledger, [])

        assert schedule.book_balance == 549_000_001
        assert schedule.adj_debit == 0
        assert schedule.adj_credit == 0
        assert schedule.audited_balance == 549_000_001
        assert schedule.prior_year_balance == 480_000_000

    def test_after_reconciliation(self, ledger, bank, findings):
        reconcile(ledger, bank, findings=findings)
        schedule = build_lead_schedule(ledger, findings.list())

        assert schedule.adj_credit == 250_000
        assert schedule.audited_balance == 548_750_001

    def test_debit_and_credit_adjustments(self, ledger):
        findings = FindingsLedger([
            Finding("F-A", "Biaya Bank Belum Dicatat", "", "Low", amount=250_000),
            Finding("F-B", "Jasa Giro Belum Dicatat", "", "Low", amount=1_250_000),
            Finding("F-C", "Koreksi", "", "Medium", amount=1_000,
                    adjustment=AdjustmentDirection.DEBIT),
        ])
        schedule = build_lead_schedule(ledger, findings.list())

        assert schedule.adj_debit == 1_251_000
        assert schedule.adj_credit == 250_000
        assert schedule.audited_balance == 549_000_001 + 1_251_000 - 250_000

    def test_zero_amount_findings_ignored(self, ledger):
        findings = [Finding("F-AI-02", "Potensi Anomali", "", "High", amount=0)]
        schedule = build_lead_schedule(ledger, findings)
        assert schedule.adj_credit == 0
        assert schedule.adj_debit == 0

    def test_recomputed_each_call(self, ledger, findings):
        first = build_lead_schedule(ledger, findings.list())
        findings.add(Finding("F-X", "Selisih", "", "Low", amount=1))
        second = build_lead_schedule(ledger, findings.list())

        assert first.adj_credit == 0
        assert second.adj_credit == 1

    def test_prior_year_override(self, ledger):
        schedule = build_lead_schedule(ledger, [], prior_year_balance=1_000)
        assert schedule.prior_year_balance == 1_000

    def test_opinion_summary_record(self, ledger):
        schedule = build_lead_schedule(ledger, [
            Finding("F-A", "Biaya Bank", "", "Low", amount=250_000),
        ])
        record = opinion_summary_record(schedule)

        assert record["id"] == "SUMMARY"
        assert "Saldo Buku: 549000001" in record["description"]
        assert "Saldo Audit: 548750001" in record["description"]
