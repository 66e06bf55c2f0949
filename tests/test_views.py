"""
HTTP API tests through the Flask test client.
"""
import io
import json
import threading

import pytest

from data_provider import get_demo_bank_statement, get_demo_ledger


class StubClient:

    def analyze_internal_controls(self, questions):
        return "Control Risk: Low"

    def detect_anomalies(self, ledger):
        return [{"id": "L-009", "issue": "Nominal ganjil"}]

    def generate_audit_opinion(self, findings, summary):
        return "Opini Wajar"


@pytest.fixture
def stub_ai(monkeypatch):
    monkeypatch.setattr("web.views.get_ai_client", lambda: StubClient())


@pytest.fixture
def demo_client(client):
    assert client.post('/api/import/demo').status_code == 200
    return client


class TestImport:

    def test_index_starts_empty(self, client):
        data = client.get('/').get_json()
        assert data["has_data"] is False

    def test_demo_import(self, client):
        data = client.post('/api/import/demo').get_json()

        assert data["imported"] == {"ledger": 9, "bank_statement": 8}
        assert data["has_data"] is True
        assert client.get('/').get_json()["ledger_count"] == 9

    def test_json_body_import(self, client):
        response = client.post('/api/import', json={
            "company_name": "PT Contoh",
            "ledger": get_demo_ledger(),
            "bank": get_demo_bank_statement(),
        })
        assert response.status_code == 200
        assert response.get_json()["company_name"] == "PT Contoh"

    def test_file_upload_import(self, client):
        response = client.post('/api/import', data={
            "company_name": "PT Upload",
            "ledger_file": (io.BytesIO(json.dumps(get_demo_ledger()).encode()), "gl.json"),
            "bank_file": (io.BytesIO(json.dumps(get_demo_bank_statement()).encode()), "bank.json"),
        }, content_type='multipart/form-data')

        assert response.status_code == 200
        assert response.get_json()["bank_count"] == 8

    def test_non_json_upload_rejected(self, client):
        response = client.post('/api/import', data={
            "company_name": "PT Upload",
            "ledger_file": (io.BytesIO(b"[]"), "gl.xlsx"),
            "bank_file": (io.BytesIO(b"[]"), "bank.json"),
        }, content_type='multipart/form-data')
        assert response.status_code == 400

    def test_invalid_records_rejected(self, client):
        ledger = get_demo_ledger()
        ledger[1]["amount"] = -1
        response = client.post('/api/import', json={
            "company_name": "PT Contoh", "ledger": ledger, "bank": get_demo_bank_statement(),
        })

        assert response.status_code == 400
        assert "negative amount" in response.get_json()["error"]

    def test_template_download(self, client):
        response = client.get('/api/template')
        assert response.status_code == 200
        assert response.get_data(as_text=True).startswith("CONTOH FORMAT GL:")


class TestPhaseOne:

    def test_materiality(self, client):
        response = client.post('/api/materiality', json={
            "total_assets": 50_000_000_000, "total_revenue": 120_000_000_000, "net_income": 8_500_000_000,
        })
        assert response.get_json()["materiality"]["performance_materiality"] == pytest.approx(450_000_000)

    def test_materiality_missing_inputs(self, client):
        assert client.post('/api/materiality', json={}).status_code == 400

    def test_icq_answer_and_risk_analysis(self, client, stub_ai):
        assert client.post('/api/risk-analysis').status_code == 400

        for qid in ("Q1", "Q2", "Q3", "Q4", "Q5"):
            assert client.post(f'/api/icq/{qid}', json={"answer": "Yes"}).status_code == 200

        data = client.post('/api/risk-analysis').get_json()
        assert data["analysis"] == "Control Risk: Low"
        assert data["indicator"]["level"] == "Low"

    def test_icq_bad_answer(self, client):
        assert client.post('/api/icq/Q1', json={"answer": "Mungkin"}).status_code == 400


class TestPhaseTwo:

    def test_reconcile_requires_data(self, client):
        assert client.post('/api/reconcile').status_code == 400

    def test_reconcile(self, demo_client):
        data = demo_client.post('/api/reconcile', json={}).get_json()

        assert data["reconciliation"]["adjusted_book_balance"] == 550_000_001
        assert data["reconciliation"]["is_balanced"] is True
        assert [f["finding_id"] for f in data["findings"]] == ["F-AUTO-01"]

    def test_strict_discrepancy_conflict(self, demo_client, monkeypatch):
        from config import config
        monkeypatch.setattr(config.reconciliation, "strict", True)

        response = demo_client.post('/api/reconcile', json={"bank_ending_balance": 1})
        assert response.status_code == 409

    def test_cash_count(self, client):
        response = client.post('/api/cash-count', json={
            "counts": {"100000": 45, "20000": 10}, "record_finding": True,
        })
        data = response.get_json()["cash_count"]

        assert data["classification"] == "shortage"
        assert data["magnitude"] == 300_000
        findings = client.get('/api/findings').get_json()["findings"]
        assert findings[0]["finding_id"] == "F-CASH-01"

    def test_cash_count_defaults(self, client):
        data = client.get('/api/cash-count/defaults').get_json()
        assert data["fund_limit"] == 5_000_000
        assert data["counts"] == {"100000": 0, "50000": 0, "20000": 0, "10000": 0}

    def test_anomalies(self, demo_client, stub_ai):
        data = demo_client.post('/api/anomalies').get_json()
        assert data["anomalies"][0]["id"] == "L-009"
        assert data["findings"][0]["finding_id"] == "F-AI-02"

    def test_manual_findings(self, client):
        payload = {"id": "F-MAN-01", "title": "Cek Kadaluarsa", "severity": "Medium", "amount": 10}

        assert client.post('/api/findings', json=payload).status_code == 201
        assert client.post('/api/findings', json=payload).status_code == 200

        data = client.get('/api/findings').get_json()
        assert data["kpis"]["total_findings"] == 1
        assert data["chart"][1] == {"name": "Medium Risk", "count": 1}

    def test_invalid_finding(self, client):
        response = client.post('/api/findings', json={"id": "F-1", "title": "x", "severity": "Severe"})
        assert response.status_code == 400


class TestPhaseThree:

    def test_lead_schedule(self, demo_client):
        demo_client.post('/api/reconcile')
        data = demo_client.get('/api/lead-schedule?prior_year_balance=1000').get_json()

        schedule = data["lead_schedule"]
        assert schedule["book_balance"] == 549_000_001
        assert schedule["audited_balance"] == 548_750_001
        assert schedule["prior_year_balance"] == 1000

    def test_lead_schedule_bad_prior_year(self, client):
        assert client.get('/api/lead-schedule?prior_year_balance=abc').status_code == 400

    def test_opinion(self, demo_client, stub_ai):
        assert demo_client.post('/api/opinion').get_json()["opinion"] == "Opini Wajar"

    def test_opinion_without_ai_key_falls_back(self, demo_client):
        data = demo_client.post('/api/opinion').get_json()
        assert data["opinion"] == "Gagal membuat opini karena error koneksi."

    def test_export(self, client):
        data = client.post('/api/export').get_json()
        assert data["filename"] == "Laporan_Audit_Kas_Final.pdf"


class TestConcurrentRequests:

    def test_reconcile_during_anomaly_call_keeps_both_findings(self, app, demo_client, monkeypatch):
        call_started = threading.Event()
        release_call = threading.Event()

        class BlockingClient(StubClient):
            def detect_anomalies(self, ledger):
                call_started.set()
                release_call.wait(timeout=10)
                return super().detect_anomalies(ledger)

        monkeypatch.setattr("web.views.get_ai_client", lambda: BlockingClient())

        second = app.test_client()
        second.set_cookie("session", demo_client.get_cookie("session").value)

        responses = []
        worker = threading.Thread(target=lambda: responses.append(demo_client.post('/api/anomalies')))
        worker.start()
        try:
            assert call_started.wait(timeout=10)
            assert second.post('/api/reconcile').status_code == 200
        finally:
            release_call.set()
            worker.join(timeout=10)

        assert responses[0].status_code == 200
        ids = [f["finding_id"] for f in second.get('/api/findings').get_json()["findings"]]
        assert sorted(ids) == ["F-AI-02", "F-AUTO-01"]

        schedule = second.get('/api/lead-schedule').get_json()["lead_schedule"]
        assert schedule["adj_credit"] == 250_000

    def test_failed_request_leaves_session_unchanged(self, demo_client):
        demo_client.post('/api/reconcile')
        assert demo_client.post('/api/findings', json={"id": "F-1", "title": "x", "severity": "Bad"}).status_code == 400

        ids = [f["finding_id"] for f in demo_client.get('/api/findings').get_json()["findings"]]
        assert ids == ["F-AUTO-01"]


class TestNonFiniteInput:

    @pytest.mark.parametrize("amount", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_finding_amount_rejected(self, demo_client, amount):
        body = '{"id": "M-1", "title": "Koreksi", "severity": "Low", "amount": %s}' % amount
        response = demo_client.post('/api/findings', data=body, content_type='application/json')

        assert response.status_code == 400
        schedule = demo_client.get('/api/lead-schedule').get_json()["lead_schedule"]
        assert schedule["audited_balance"] == 549_000_001

    def test_non_finite_prior_year_rejected(self, client):
        assert client.get('/api/lead-schedule?prior_year_balance=inf').status_code == 400

    def test_non_finite_fund_limit_rejected(self, client):
        response = client.post('/api/cash-count', data='{"counts": {"100000": 1}, "fund_limit": NaN}',
                               content_type='application/json')
        assert response.status_code == 400
