"""
Data provider for the Cash Audit application.
Demo engagement data (mock in-memory records in the import JSON shape).
"""

from copy import deepcopy

# ============================================================================
# MOCK DATA STORAGE
# ============================================================================

COMPANY_NAME = "PT Manufaktur Maju Tbk"

# General ledger, company perspective: Debit = receipt, Credit = disbursement
MOCK_LEDGER = [
    {"id": "L-001", "date": "2023-12-01", "description": "Saldo Awal", "amount": 500000000, "type": "Debit", "refNumber": "SA", "isReconciled": False},
    {"id": "L-002", "date": "2023-12-05", "description": "Penerimaan Piutang Customer A", "amount": 125000000, "type": "Debit", "refNumber": "CR-001", "isReconciled": False},
    {"id": "L-003", "date": "2023-12-10", "description": "Pembayaran Vendor Bahan Baku", "amount": 75000000, "type": "Credit", "refNumber": "CK-101", "isReconciled": False},
    {"id": "L-004", "date": "2023-12-15", "description": "Pembayaran Gaji Operasional", "amount": 45000000, "type": "Credit", "refNumber": "CK-102", "isReconciled": False},
    {"id": "L-005", "date": "2023-12-20", "description": "Penerimaan Penjualan Tunai", "amount": 30000000, "type": "Debit", "refNumber": "CR-002", "isReconciled": False},
    {"id": "L-006", "date": "2023-12-28", "description": "Pembayaran Listrik & Air", "amount": 15000000, "type": "Credit", "refNumber": "CK-103", "isReconciled": False},
    # Deposit in transit
    {"id": "L-007", "date": "2023-12-30", "description": "Penerimaan Pelunasan Piutang B", "amount": 55000000, "type": "Debit", "refNumber": "CR-003", "isReconciled": False},
    # Outstanding check
    {"id": "L-008", "date": "2023-12-31", "description": "Pembayaran Bonus Tahunan", "amount": 25000000, "type": "Credit", "refNumber": "CK-104", "isReconciled": False},
    {"id": "L-009", "date": "2023-12-25", "description": "Koreksi Pencatatan (Suspicious)", "amount": 999999, "type": "Credit", "refNumber": "JV-99", "isReconciled": False},
]

# Bank statement, bank perspective: CR = deposit, DB = withdrawal
MOCK_BANK_STATEMENT = [
    {"id": "B-001", "date": "2023-12-01", "description": "SALDO AWAL", "amount": 500000000, "type": "CR", "refNumber": "", "isReconciled": False},
    {"id": "B-002", "date": "2023-12-06", "description": "TRF DARI CUSTOMER A", "amount": 125000000, "type": "CR", "refNumber": "REF-123", "isReconciled": False},
    {"id": "B-003", "date": "2023-12-12", "description": "CLRG CHQ CK-101", "amount": 75000000, "type": "DB", "refNumber": "CK-101", "isReconciled": False},
    {"id": "B-004", "date": "2023-12-16", "description": "CLRG CHQ CK-102", "amount": 45000000, "type": "DB", "refNumber": "CK-102", "isReconciled": False},
    {"id": "B-005", "date": "2023-12-21", "description": "SETORAN TUNAI", "amount": 30000000, "type": "CR", "refNumber": "REF-456", "isReconciled": False},
    {"id": "B-006", "date": "2023-12-29", "description": "CLRG CHQ CK-103", "amount": 15000000, "type": "DB", "refNumber": "CK-103", "isReconciled": False},
    # Unrecorded in book
    {"id": "B-007", "date": "2023-12-31", "description": "BIAYA ADM BANK", "amount": 250000, "type": "DB", "refNumber": "ADM", "isReconciled": False},
    {"id": "B-008", "date": "2023-12-31", "description": "JASA GIRO", "amount": 1250000, "type": "CR", "refNumber": "INT", "isReconciled": False},
]

# Pre-filled client financials for the demo engagement
DEMO_FINANCIALS = {
    "total_assets": 50000000000,
    "total_revenue": 120000000000,
    "net_income": 8500000000,
}


def get_demo_ledger():
    """Copy of the demo general ledger."""
    return deepcopy(MOCK_LEDGER)


def get_demo_bank_statement():
    """Copy of the demo bank statement."""
    return deepcopy(MOCK_BANK_STATEMENT)


def get_demo_financials():
    return dict(DEMO_FINANCIALS)
