"""Utilities for writing final session results for an external store."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from threading import Lock

from live_quiz.core.models import SessionSnapshot, SessionStatus

logger = logging.getLogger(__name__)

_CSV_COLUMNS = (
    "rank",
    "participant_id",
    "display_name",
    "points",
    "percentage",
    "correct",
    "total",
    "question_count",
    "average_time",
)


def save_results_json(file_path: Path, snapshot: SessionSnapshot) -> Path:
    """Persist the full snapshot document as JSON."""
    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    document = json.dumps(snapshot.to_document(), indent=2, ensure_ascii=False)
    file_path.write_text(document + "\n", encoding="utf-8")
    return file_path


def save_leaderboard_csv(file_path: Path, snapshot: SessionSnapshot) -> Path:
    """Persist the ranked leaderboard as CSV, one row per participant."""
    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with file_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=_CSV_COLUMNS)
        writer.writeheader()
        for row in snapshot.leaderboard:
            document = row.to_document()
            if document["average_time"] is not None:
                document["average_time"] = f"{document['average_time']:.2f}"
            writer.writerow(document)
    return file_path


class ResultsWriter:
    """Snapshot listener that writes results once a session completes."""

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = output_dir
        self._written: set[str] = set()
        self._lock = Lock()

    def __call__(self, snapshot: SessionSnapshot) -> None:
        if snapshot.status is not SessionStatus.COMPLETED:
            return
        # Completion can be observed by the ticker and a request thread at once.
        with self._lock:
            if snapshot.session_id in self._written:
                return
            self._written.add(snapshot.session_id)
        base = self._output_dir / snapshot.session_id
        json_path = save_results_json(base.with_suffix(".json"), snapshot)
        save_leaderboard_csv(base.with_suffix(".csv"), snapshot)
        logger.info("Wrote results for session %s to %s", snapshot.session_id, json_path.parent)
