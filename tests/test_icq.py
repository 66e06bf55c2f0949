"""
Internal control questionnaire tests.
"""
import pytest

from audit_engine.errors import ValidationError
from audit_engine.icq import (
    answer_question,
    control_risk_indicator,
    default_questionnaire,
    ensure_complete,
    unanswered,
)


def _answer_all(answers):
    questions = default_questionnaire()
    for qid, answer in answers.items():
        questions = answer_question(questions, qid, answer)
    return questions


class TestQuestionnaire:

    def test_default_questions_unanswered(self):
        questions = default_questionnaire()

        assert [q.question_id for q in questions] == ["Q1", "Q2", "Q3", "Q4", "Q5"]
        assert [q.risk_weight for q in questions] == ["High", "High", "Medium", "Medium", "Low"]
        assert unanswered(questions) == ["Q1", "Q2", "Q3", "Q4", "Q5"]

    def test_answer_returns_new_list(self):
        original = default_questionnaire()
        updated = answer_question(original, "Q3", "No")

        assert original[2].answer is None
        assert updated[2].answer == "No"

    def test_invalid_answer_rejected(self):
        with pytest.raises(ValidationError):
            answer_question(default_questionnaire(), "Q1", "Maybe")

    def test_unknown_question_rejected(self):
        with pytest.raises(ValidationError):
            answer_question(default_questionnaire(), "Q9", "Yes")

    def test_ensure_complete(self):
        with pytest.raises(ValidationError, match="Q5"):
            ensure_complete(_answer_all({"Q1": "Yes", "Q2": "Yes", "Q3": "Yes", "Q4": "Yes"}))

        ensure_complete(_answer_all({q: "N/A" for q in ("Q1", "Q2", "Q3", "Q4", "Q5")}))


class TestControlRiskIndicator:

    def test_all_yes_is_low(self):
        questions = _answer_all({q: "Yes" for q in ("Q1", "Q2", "Q3", "Q4", "Q5")})
        assert control_risk_indicator(questions) == {"level": "Low", "score": 0.0, "weaknesses": []}

    def test_high_weight_weakness_is_high(self):
        questions = _answer_all({"Q1": "No", "Q2": "Yes", "Q3": "Yes", "Q4": "Yes", "Q5": "Yes"})
        indicator = control_risk_indicator(questions)

        assert indicator["level"] == "High"
        assert indicator["weaknesses"] == ["Q1"]

    def test_low_weight_weakness_is_medium(self):
        questions = _answer_all({"Q1": "Yes", "Q2": "Yes", "Q3": "Yes", "Q4": "Yes", "Q5": "No"})
        indicator = control_risk_indicator(questions)

        assert indicator["level"] == "Medium"
        assert indicator["score"] == pytest.approx(1 / 11)

    def test_not_applicable_excluded(self):
        questions = _answer_all({"Q1": "N/A", "Q2": "N/A", "Q3": "N/A", "Q4": "N/A", "Q5": "N/A"})
        assert control_risk_indicator(questions)["score"] == 0.0
