"""Normalization and validation of incoming answer payloads."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
import math
from typing import Any

from live_quiz.core.errors import ValidationError
from live_quiz.core.models import AnswerSubmission


def normalize_answer(value: str) -> str:
    """Case-fold and collapse internal whitespace so answers compare exactly."""
    return " ".join(value.split()).casefold()


def answers_match(submitted: str, correct: str) -> bool:
    return normalize_answer(submitted) == normalize_answer(correct)


def _require_identifier(payload: Mapping[str, Any], key: str) -> str:
    raw = payload.get(key)
    if isinstance(raw, bool) or not isinstance(raw, (str, int)):
        raise ValidationError(f"'{key}' is required.")
    value = str(raw).strip()
    if not value:
        raise ValidationError(f"'{key}' cannot be empty.")
    return value


def _coerce_value(raw: Any) -> str:
    if isinstance(raw, bool) or raw is None:
        raise ValidationError("'value' is required.")
    if isinstance(raw, (int, float)):
        raw = str(raw)
    if not isinstance(raw, str):
        raise ValidationError("'value' must be text.")
    value = " ".join(raw.split())
    if not value:
        raise ValidationError("'value' cannot be empty.")
    return value


def _coerce_elapsed(raw: Any) -> float | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValidationError("'elapsed_seconds' must be a number.")
    elapsed = float(raw)
    if math.isnan(elapsed) or math.isinf(elapsed) or elapsed < 0:
        raise ValidationError("'elapsed_seconds' must be a non-negative number.")
    return elapsed


def validate_answer(
    payload: Mapping[str, Any],
    submitted_at: datetime,
    fallback_elapsed: Callable[[str], float] | None = None,
) -> AnswerSubmission:
    """Turn a raw payload into an :class:`AnswerSubmission`.

    ``payload`` needs ``participant_id``, ``question_id`` and ``value``;
    ``elapsed_seconds`` is optional; when it is missing ``fallback_elapsed``
    is called with the participant id to derive it (0 without a fallback).
    Whitespace in the value is collapsed but case is preserved so the stored
    record shows what the participant typed.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("Answer payload must be an object.")

    participant_id = _require_identifier(payload, "participant_id")
    question_id = _require_identifier(payload, "question_id")
    value = _coerce_value(payload.get("value"))
    elapsed = _coerce_elapsed(payload.get("elapsed_seconds"))
    if elapsed is None:
        elapsed = max(0.0, float(fallback_elapsed(participant_id))) if fallback_elapsed else 0.0

    return AnswerSubmission(
        participant_id=participant_id,
        question_id=question_id,
        value=value,
        submitted_at=submitted_at,
        elapsed_seconds=elapsed,
    )
