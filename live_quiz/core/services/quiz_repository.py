"""Service holding the immutable quiz definition of a session."""

from __future__ import annotations

from live_quiz.core.errors import UnknownQuestion
from live_quiz.core.models import QuizQuestion


class QuizRepository:
    """Ordered, validated question set with lookup by question id."""

    def __init__(self, questions: list[QuizQuestion] | tuple[QuizQuestion, ...]) -> None:
        if not questions:
            raise ValueError("Quiz must contain at least one question.")

        prepared = [self._prepare_question(q) for q in questions]
        ids = [q.question_id for q in prepared]
        duplicates = sorted({qid for qid in ids if ids.count(qid) > 1})
        if duplicates:
            raise ValueError(f"Duplicate question ids: {', '.join(duplicates)}")

        self._questions: tuple[QuizQuestion, ...] = tuple(prepared)
        self._by_id: dict[str, QuizQuestion] = {q.question_id: q for q in prepared}

    def get_questions(self) -> list[QuizQuestion]:
        return list(self._questions)

    def get_question_ids(self) -> tuple[str, ...]:
        return tuple(q.question_id for q in self._questions)

    def get_question_count(self) -> int:
        return len(self._questions)

    def has_question(self, question_id: str) -> bool:
        return question_id in self._by_id

    def get_question(self, question_id: str) -> QuizQuestion:
        question = self._by_id.get(question_id)
        if question is None:
            raise UnknownQuestion(f"Question '{question_id}' is not part of this session.")
        return question

    def _prepare_question(self, question: QuizQuestion) -> QuizQuestion:
        """Validate and normalize a question before storage."""
        question_id = str(question.question_id).strip()
        if not question_id:
            raise ValueError("Question id cannot be empty.")
        if not question.correct_answer or not str(question.correct_answer).strip():
            raise ValueError(f"Question '{question_id}' has no correct answer.")
        if question.points < 0:
            raise ValueError(f"Question '{question_id}' cannot award negative points.")

        return QuizQuestion(
            question_id=question_id,
            text=question.text.strip(),
            correct_answer=str(question.correct_answer),
            options=tuple(option.strip() for option in question.options),
            points=int(question.points),
        )
