"""Utilities for importing quizzes from a human-friendly text file.

File format (repeat blocks separated by blank lines or '---'):

    ID: capital            (optional; defaults to q1, q2, ...)
    Q: Question text. Additional lines until the next marker are treated as
       part of the question.
    A: First option text   (options A-F are optional)
    B: Second option text
    CORRECT: A             (letter of the correct option, or ...)
    ANSWER: Paris          (... the literal answer for free-text questions)
    POINTS: 2              (optional; defaults to 1)

Example:

    Q: What is the capital of France?
    A: Paris
    B: Rome
    CORRECT: A

    Q: What is six times seven?
    ANSWER: 42
    POINTS: 2
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from live_quiz.constants.session_constants import DEFAULT_QUESTION_POINTS
from live_quiz.core.models import QuizQuestion


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


@dataclass(slots=True)
class ImportedQuiz:
    """Container for imported quiz metadata and questions."""

    source_path: Path
    quiz_id: str
    questions: list[QuizQuestion]


_OPTION_ORDER = ["A", "B", "C", "D", "E", "F"]


def load_quiz_from_file(file_path: Path) -> ImportedQuiz:
    text = file_path.read_text(encoding="utf-8")
    questions = _parse_quiz_text(text)
    if not questions:
        raise QuizImportError("Quiz file did not contain any questions.")
    return ImportedQuiz(source_path=file_path, quiz_id=file_path.stem, questions=questions)


def _parse_quiz_text(text: str) -> list[QuizQuestion]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            # Blank line encountered after content - finalize current block
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    questions: list[QuizQuestion] = []
    seen_ids: set[str] = set()
    for position, block in enumerate(blocks, start=1):
        question = _parse_block(block, default_id=f"q{position}")
        if question.question_id in seen_ids:
            raise QuizImportError(f"Duplicate question id '{question.question_id}'.")
        seen_ids.add(question.question_id)
        questions.append(question)
    return questions


def _parse_block(block: str, default_id: str) -> QuizQuestion:
    question_id = default_id
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    literal_answer: str | None = None
    points = DEFAULT_QUESTION_POINTS
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("ID:"):
            question_id = line.split(":", 1)[1].strip()
            if not question_id:
                raise QuizImportError("ID cannot be empty.")
            current_section = None
            continue

        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if upper.startswith("ANSWER:"):
            literal_answer = line.split(":", 1)[1].strip()
            current_section = None
            continue

        if upper.startswith("POINTS:"):
            raw_value = line.split(":", 1)[1].strip()
            try:
                points = int(raw_value)
            except ValueError as exc:
                raise QuizImportError("POINTS must be a whole number.") from exc
            if points < 0:
                raise QuizImportError("POINTS cannot be negative.")
            current_section = None
            continue

        if len(line) > 2 and line[0].upper() in _OPTION_ORDER and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in _OPTION_ORDER:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(
                f"Encountered text outside of a known section: '{line}'."
            )

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError("Question text missing (Q: ...)")

    present = [letter for letter in _OPTION_ORDER if letter in options]
    if present != _OPTION_ORDER[: len(present)]:
        raise QuizImportError("Options must be lettered consecutively starting at A.")
    option_list = [options[letter].strip() for letter in present]
    if any(not opt for opt in option_list):
        raise QuizImportError("Option text cannot be empty.")

    if correct_letter is not None and literal_answer is not None:
        raise QuizImportError("Use either CORRECT or ANSWER, not both.")
    if correct_letter is not None:
        if correct_letter not in present:
            raise QuizImportError(f"CORRECT must name one of the options ({', '.join(present) or 'none defined'}).")
        correct_answer = option_list[present.index(correct_letter)]
    elif literal_answer:
        correct_answer = literal_answer
    else:
        raise QuizImportError(f"Question '{question_id}' has no CORRECT or ANSWER line.")

    return QuizQuestion(
        question_id=question_id,
        text=question_text,
        correct_answer=correct_answer,
        options=tuple(option_list),
        points=points,
    )
