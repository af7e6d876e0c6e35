"""Application entry point for the live quiz session server."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
import sys
import time

from live_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT, TICK_INTERVAL_SECONDS
from live_quiz.core.quiz_importer import QuizImportError, load_quiz_from_file
from live_quiz.core.results_exporter import ResultsWriter
from live_quiz.core.session_registry import SessionRegistry
from live_quiz.core.settings import SessionSettings
from live_quiz.server.api_server import start_api_server
from live_quiz.utils.logging_config import configure_logging


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run live quiz sessions over HTTP.")
    parser.add_argument("--quiz", type=Path, help="Quiz file to launch a session for at startup.")
    parser.add_argument("--time-limit", type=int, default=None, help="Session time limit in seconds (0 for none).")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--results-dir", type=Path, help="Write final results here when a session completes.")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Initialize logging, start the API server, and drive the session ticker."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logger = configure_logging(args.log_level)
    logger.info("Starting live quiz server...")

    settings = SessionSettings()
    if args.time_limit is not None:
        settings = replace(settings, time_limit_seconds=args.time_limit or None)

    listeners = [ResultsWriter(args.results_dir)] if args.results_dir else []
    registry = SessionRegistry(default_settings=settings, listeners=listeners)

    if args.quiz:
        try:
            imported = load_quiz_from_file(args.quiz)
        except (OSError, QuizImportError) as exc:
            logger.error("Could not load quiz %s: %s", args.quiz, exc)
            sys.exit(1)
        controller = registry.create_session(imported.questions, quiz_id=imported.quiz_id)
        logger.info("Session %s ready for quiz %s", controller.session_id, imported.quiz_id)

    start_api_server(registry, host=args.host, port=args.port, log_level=args.log_level.lower())

    try:
        while True:
            time.sleep(TICK_INTERVAL_SECONDS)
            registry.tick_all()
    except KeyboardInterrupt:
        logger.info("Shutting down.")


if __name__ == "__main__":
    main()
