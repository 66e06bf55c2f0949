"""
Internal Control Questionnaire (ICQ) for the cash cycle.
"""
from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, List, Optional

from .errors import ValidationError

ANSWERS = ("Yes", "No", "N/A")
RISK_WEIGHTS = {"High": 3, "Medium": 2, "Low": 1}


@dataclass(frozen=True)
class ICQQuestion:
    question_id: str
    question: str
    risk_weight: str
    answer: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_prompt_dict(self) -> Dict[str, Any]:
        """Shape sent to the risk analysis call."""
        return {
            "id": self.question_id,
            "question": self.question,
            "answer": self.answer,
            "riskWeight": self.risk_weight,
        }


def default_questionnaire() -> List[ICQQuestion]:
    """Unanswered cash-cycle questionnaire."""
    return [
        ICQQuestion("Q1", "Apakah fungsi penerimaan kas dipisahkan dari fungsi pencatatan akuntansi?", "High"),
        ICQQuestion("Q2", "Apakah semua penerimaan kas disetorkan ke bank secara harian (intact)?", "High"),
        ICQQuestion("Q3", "Apakah rekonsiliasi bank dibuat setiap bulan oleh pegawai yang independen?", "Medium"),
        ICQQuestion("Q4", "Apakah pengeluaran cek di atas nominal tertentu memerlukan dua tanda tangan?", "Medium"),
        ICQQuestion("Q5", "Apakah kas kecil (petty cash) menggunakan sistem imprest fund?", "Low"),
    ]


def answer_question(questions: List[ICQQuestion], question_id: str, answer: str) -> List[ICQQuestion]:
    """
    Return a new questionnaire with one answer set.

    Raises:
        ValidationError: Unknown question id or answer outside Yes/No/N/A
    """
    if answer not in ANSWERS:
        raise ValidationError(f"Answer must be one of {list(ANSWERS)}, got {answer!r}")
    if not any(q.question_id == question_id for q in questions):
        raise ValidationError(f"Unknown question '{question_id}'")
    return [replace(q, answer=answer) if q.question_id == question_id else q for q in questions]


def unanswered(questions: List[ICQQuestion]) -> List[str]:
    return [q.question_id for q in questions if q.answer is None]


def ensure_complete(questions: List[ICQQuestion]) -> None:
    """Raise ValidationError when any question is still unanswered."""
    missing = unanswered(questions)
    if missing:
        raise ValidationError(f"Please answer all questionnaire items (missing: {', '.join(missing)}).")


def control_risk_indicator(questions: List[ICQQuestion]) -> Dict[str, Any]:
    """
    Weighted share of control weaknesses ("No" answers).

    N/A answers are left out of the denominator.
    """
    applicable = [q for q in questions if q.answer in ("Yes", "No")]
    total_weight = sum(RISK_WEIGHTS.get(q.risk_weight, 1) for q in applicable)
    weak = [q for q in applicable if q.answer == "No"]
    weak_weight = sum(RISK_WEIGHTS.get(q.risk_weight, 1) for q in weak)
    score = weak_weight / total_weight if total_weight else 0.0

    if any(q.risk_weight == "High" for q in weak) or score >= 0.5:
        level = "High"
    elif score > 0:
        level = "Medium"
    else:
        level = "Low"

    return {
        "level": level,
        "score": score,
        "weaknesses": [q.question_id for q in weak],
    }
