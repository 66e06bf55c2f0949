"""
Flask views for the Cash Audit application.

JSON endpoints that drive the three workflow phases. Each browser gets its
own AuditSession, kept in the application cache under the Flask session id.
Requests for the same session are serialized by a per-session lock held
from reload to write-back; calls to the AI service run outside that lock.
"""
from contextlib import contextmanager
from flask import Blueprint, Response, current_app, jsonify, request, session
from werkzeug.utils import secure_filename
from typing import Dict, Iterator
import logging
import math
import os
import threading
import uuid

from ai_service import get_ai_client
from audit_engine import AuditSession, ReconciliationDiscrepancy, ValidationError
from audit_engine.cash_count import default_counts
from audit_engine.icq import control_risk_indicator, ensure_complete
from audit_engine.io import export_template
from audit_engine.metrics import severity_chart_data
from config import config
from data_provider import MOCK_BANK_STATEMENT, MOCK_LEDGER

logger = logging.getLogger(__name__)
bp = Blueprint('main', __name__)

SESSION_KEY = 'audit_session_id'

_session_locks: Dict[str, threading.Lock] = {}
_session_locks_guard = threading.Lock()


def _cache_key(session_id: str) -> str:
    return f"audit-session:{session_id}"


def _session_timeout() -> int:
    return int(os.getenv('SESSION_IDLE_TIMEOUT_MINUTES', '30')) * 60


def _session_lock(session_id: str) -> threading.Lock:
    with _session_locks_guard:
        return _session_locks.setdefault(session_id, threading.Lock())


def _current_session_id() -> str:
    session_id = session.get(SESSION_KEY)
    if not session_id:
        session_id = str(uuid.uuid4())
        session[SESSION_KEY] = session_id
    return session_id


@contextmanager
def audit_session_transaction() -> Iterator[AuditSession]:
    """
    Current browser's audit session, loaded and stored under its lock.

    The cached copy is replaced only when the block completes; a block that
    raises leaves the stored session as it was.
    """
    from app import cache

    session_id = _current_session_id()
    with _session_lock(session_id):
        audit = cache.get(_cache_key(session_id))
        if audit is None:
            audit = AuditSession(session_id=session_id)
            logger.info(f"[SESSION] Started audit session {session_id}")

        yield audit

        cache.set(_cache_key(session_id), audit, timeout=_session_timeout())


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _optional_float(value, name: str):
    if value is None or value == '':
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be a finite number")
    return number


def _require_data(audit: AuditSession) -> None:
    if not audit.has_data:
        raise ValidationError('No ledger data imported yet. Import data in phase I first.')


def _findings_payload(audit: AuditSession) -> list:
    return [f.to_dict() for f in audit.findings.list()]


def _session_overview(audit: AuditSession) -> dict:
    return {
        'session_id': audit.session_id,
        'company_name': audit.company_name,
        'has_data': audit.has_data,
        'ledger_count': len(audit.ledger),
        'bank_count': len(audit.bank),
        'financials': audit.financials,
        'materiality': audit.materiality.to_dict() if audit.materiality else None,
        'findings_count': len(audit.findings),
    }


@bp.errorhandler(ValidationError)
def handle_validation_error(error):
    logger.warning(f"[VALIDATION] {error}")
    return jsonify({'error': str(error)}), 400


@bp.errorhandler(ReconciliationDiscrepancy)
def handle_discrepancy(error):
    logger.warning(f"[RECON] {error}")
    return jsonify({'error': str(error), 'difference': error.difference}), 409


# ==================== Phase I: risk assessment ====================

@bp.route('/')
def index():
    """Current session overview."""
    with audit_session_transaction() as audit:
        overview = _session_overview(audit)
    return jsonify(overview)


@bp.route('/api/import/demo', methods=['POST'])
def import_demo():
    """Load the demo engagement."""
    with audit_session_transaction() as audit:
        counts = audit.load_demo()
        overview = _session_overview(audit)
    return jsonify({'imported': counts, **overview})


@bp.route('/api/import', methods=['POST'])
def import_data():
    """
    Import a ledger and a bank statement.

    Accepts either two uploaded JSON files (`ledger_file`, `bank_file`) with a
    `company_name` form field, or a JSON body with `ledger`, `bank` and
    `company_name`.
    """
    if request.files:
        ledger_file = request.files.get('ledger_file')
        bank_file = request.files.get('bank_file')
        company_name = request.form.get('company_name', '')

        if not ledger_file or not bank_file or ledger_file.filename == '' or bank_file.filename == '':
            raise ValidationError('Please provide both the ledger and bank statement JSON files.')

        for upload in (ledger_file, bank_file):
            filename = secure_filename(upload.filename)
            if not filename.lower().endswith('.json'):
                raise ValidationError(f"'{upload.filename}' is not a .json file")

        ledger_payload, bank_payload = ledger_file.read(), bank_file.read()
    else:
        data = _json_body()
        if 'ledger' not in data or 'bank' not in data:
            raise ValidationError("JSON body must contain 'ledger' and 'bank' arrays.")
        ledger_payload, bank_payload = data['ledger'], data['bank']
        company_name = data.get('company_name', '')

    with audit_session_transaction() as audit:
        counts = audit.import_data(ledger_payload, bank_payload, company_name)
        overview = _session_overview(audit)
    return jsonify({'imported': counts, **overview})


@bp.route('/api/template')
def download_template():
    """Import template text built from the demo records."""
    text = export_template(MOCK_LEDGER, MOCK_BANK_STATEMENT)
    return Response(
        text,
        mimetype='text/plain',
        headers={'Content-Disposition': 'attachment; filename=template_data_audit.txt'}
    )


@bp.route('/api/materiality', methods=['GET', 'POST'])
def materiality():
    data = _json_body() if request.method == 'POST' else None
    with audit_session_transaction() as audit:
        if data is not None:
            audit.compute_materiality(
                data.get('total_assets', 0),
                data.get('total_revenue', 0),
                data.get('net_income', 0),
            )
        result = audit.materiality.to_dict() if audit.materiality else None
    return jsonify({'materiality': result})


@bp.route('/api/icq')
def icq():
    with audit_session_transaction() as audit:
        questions = [q.to_dict() for q in audit.questionnaire]
    return jsonify({'questions': questions})


@bp.route('/api/icq/<question_id>', methods=['POST'])
def answer_icq(question_id: str):
    data = _json_body()
    with audit_session_transaction() as audit:
        questions = [q.to_dict() for q in audit.answer_icq(question_id, data.get('answer'))]
    return jsonify({'questions': questions})


@bp.route('/api/risk-analysis', methods=['POST'])
def risk_analysis():
    with audit_session_transaction() as audit:
        ensure_complete(audit.questionnaire)
        questions = list(audit.questionnaire)

    text = get_ai_client().analyze_internal_controls(questions)

    with audit_session_transaction() as audit:
        audit.risk_assessment = text
        indicator = control_risk_indicator(audit.questionnaire)
    return jsonify({'analysis': text, 'indicator': indicator})


# ==================== Phase II: substantive tests ====================

@bp.route('/api/reconcile', methods=['POST'])
def run_reconciliation():
    data = _json_body()
    bank_ending_balance = _optional_float(data.get('bank_ending_balance'), 'bank_ending_balance')

    with audit_session_transaction() as audit:
        _require_data(audit)
        result = audit.run_reconciliation(bank_ending_balance=bank_ending_balance)
        payload = {
            'reconciliation': result.to_dict(),
            'findings': _findings_payload(audit),
        }
    return jsonify(payload)


@bp.route('/api/cash-count/defaults')
def cash_count_defaults():
    return jsonify({
        'fund_limit': config.cash_count.fund_limit,
        'counts': {str(k): v for k, v in default_counts().items()},
    })


@bp.route('/api/cash-count', methods=['POST'])
def cash_count():
    data = _json_body()
    counts = data.get('counts')
    if not isinstance(counts, dict):
        raise ValidationError("'counts' must be an object of denomination -> quantity")
    fund_limit = _optional_float(data.get('fund_limit'), 'fund_limit')

    with audit_session_transaction() as audit:
        result = audit.count_cash(
            counts,
            fund_limit=fund_limit,
            record_finding=bool(data.get('record_finding', False)),
        )
    return jsonify({'cash_count': result.to_dict()})


@bp.route('/api/anomalies', methods=['POST'])
def detect_anomalies():
    with audit_session_transaction() as audit:
        _require_data(audit)
        ledger = audit.ledger

    anomalies = get_ai_client().detect_anomalies(ledger)

    # Reload: other requests may have added findings during the AI call
    with audit_session_transaction() as audit:
        audit.record_anomalies(anomalies)
        findings = _findings_payload(audit)
    return jsonify({'anomalies': anomalies, 'findings': findings})


@bp.route('/api/findings', methods=['GET', 'POST'])
def findings():
    if request.method == 'POST':
        data = _json_body()
        with audit_session_transaction() as audit:
            added = audit.add_finding(data)
            payload = {'added': added, 'findings': _findings_payload(audit)}
        return jsonify(payload), 201 if added else 200

    with audit_session_transaction() as audit:
        current = audit.findings.list()
        kpis = audit.finding_kpis()
    return jsonify({
        'findings': [f.to_dict() for f in current],
        'kpis': kpis,
        'chart': severity_chart_data(current),
    })


# ==================== Phase III: reporting ====================

@bp.route('/api/lead-schedule')
def lead_schedule():
    prior_year = _optional_float(request.args.get('prior_year_balance'), 'prior_year_balance')
    with audit_session_transaction() as audit:
        schedule = audit.lead_schedule(prior_year)
        company_name = audit.company_name
    return jsonify({'company_name': company_name, 'lead_schedule': schedule.to_dict()})


@bp.route('/api/opinion', methods=['POST'])
def opinion():
    with audit_session_transaction() as audit:
        findings_context, summary = audit.opinion_inputs()

    text = get_ai_client().generate_audit_opinion(findings_context, summary)

    with audit_session_transaction() as audit:
        audit.opinion = text
    return jsonify({'opinion': text})


@bp.route('/api/export', methods=['POST'])
def export_report():
    """Simulated download; report rendering is not part of this service."""
    filename = 'Laporan_Audit_Kas_Final.pdf'
    current_app.logger.info(f"[EXPORT] Simulated export of {filename}")
    return jsonify({
        'filename': filename,
        'message': f"Simulasi: File '{filename}' sedang diunduh...",
    })
