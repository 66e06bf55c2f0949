"""
KPI and metrics calculation.
"""
from typing import Any, Dict, Iterable

from .findings import Finding, Severity
from .lead_schedule import sum_adjustments


def calculate_finding_kpis(findings: Iterable[Finding]) -> Dict[str, Any]:
    """
    Calculate KPIs from the current findings.

    Args:
        findings: Findings in any order

    Returns:
        Dictionary with KPI values; severity counts feed the risk chart
    """
    findings = list(findings)

    if not findings:
        return {
            "total_findings": 0,
            "high_severity_count": 0,
            "medium_severity_count": 0,
            "low_severity_count": 0,
            "cash_impacting_count": 0,
            "total_impact": 0.0,
            "adj_debit": 0.0,
            "adj_credit": 0.0,
        }

    by_severity = {level: 0 for level in Severity}
    for finding in findings:
        by_severity[finding.severity] += 1

    adjustments = sum_adjustments(findings)

    return {
        "total_findings": len(findings),
        "high_severity_count": by_severity[Severity.HIGH],
        "medium_severity_count": by_severity[Severity.MEDIUM],
        "low_severity_count": by_severity[Severity.LOW],
        "cash_impacting_count": sum(1 for f in findings if f.is_cash_impacting),
        "total_impact": float(sum(f.amount for f in findings)),
        "adj_debit": adjustments["adj_debit"],
        "adj_credit": adjustments["adj_credit"],
    }


def severity_chart_data(findings: Iterable[Finding]) -> list:
    """Rows for the findings-by-risk bar chart."""
    kpis = calculate_finding_kpis(findings)
    return [
        {"name": "High Risk", "count": kpis["high_severity_count"]},
        {"name": "Medium Risk", "count": kpis["medium_severity_count"]},
        {"name": "Low Risk", "count": kpis["low_severity_count"]},
    ]
