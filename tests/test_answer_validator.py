from datetime import datetime, timezone

import pytest

from live_quiz.core.answer_validator import answers_match, normalize_answer, validate_answer
from live_quiz.core.errors import ValidationError

NOW = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def test_normalize_collapses_whitespace_and_case():
    assert normalize_answer("  New   York ") == "new york"
    assert answers_match("PARIS", "paris")
    assert answers_match(" paris\t", "Paris")
    assert not answers_match("Pariss", "Paris")


def test_validate_answer_keeps_case_and_trims_value():
    submission = validate_answer(
        {"participant_id": "p1", "question_id": "q1", "value": "  Paris  ", "elapsed_seconds": 4},
        NOW,
    )
    assert submission.value == "Paris"
    assert submission.elapsed_seconds == 4.0
    assert submission.submitted_at == NOW


def test_numeric_values_are_accepted_as_text():
    submission = validate_answer({"participant_id": "p1", "question_id": "q2", "value": 42}, NOW)
    assert submission.value == "42"


def test_missing_elapsed_uses_fallback():
    submission = validate_answer(
        {"participant_id": "p1", "question_id": "q1", "value": "x"},
        NOW,
        fallback_elapsed=lambda participant_id: 12.5 if participant_id == "p1" else 0.0,
    )
    assert submission.elapsed_seconds == 12.5


def test_missing_elapsed_without_fallback_is_zero():
    submission = validate_answer({"participant_id": "p1", "question_id": "q1", "value": "x"}, NOW)
    assert submission.elapsed_seconds == 0.0


@pytest.mark.parametrize(
    "payload",
    [
        {"question_id": "q1", "value": "x"},
        {"participant_id": "  ", "question_id": "q1", "value": "x"},
        {"participant_id": "p1", "value": "x"},
        {"participant_id": "p1", "question_id": "q1"},
        {"participant_id": "p1", "question_id": "q1", "value": "   "},
        {"participant_id": "p1", "question_id": "q1", "value": True},
        {"participant_id": "p1", "question_id": "q1", "value": ["a"]},
        {"participant_id": "p1", "question_id": "q1", "value": "x", "elapsed_seconds": -1},
        {"participant_id": "p1", "question_id": "q1", "value": "x", "elapsed_seconds": "fast"},
        {"participant_id": "p1", "question_id": "q1", "value": "x", "elapsed_seconds": float("nan")},
    ],
)
def test_malformed_payloads_are_rejected(payload):
    with pytest.raises(ValidationError):
        validate_answer(payload, NOW)


def test_non_mapping_payload_is_rejected():
    with pytest.raises(ValidationError):
        validate_answer(["p1", "q1", "x"], NOW)
