"""FastAPI server that exposes the session engine over HTTP."""

from __future__ import annotations

from dataclasses import replace
import logging
from threading import Thread

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field, PositiveInt
import uvicorn

from live_quiz.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION
from live_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from live_quiz.constants.session_constants import DEFAULT_QUESTION_POINTS, DEFAULT_TIME_LIMIT_SECONDS
from live_quiz.core.errors import (
    SessionError,
    SessionNotFound,
    UnknownParticipant,
    UnknownQuestion,
    ValidationError,
)
from live_quiz.core.markdown_renderer import renderer
from live_quiz.core.models import QuizQuestion
from live_quiz.core.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

_NOT_FOUND_ERRORS = (SessionNotFound, UnknownParticipant, UnknownQuestion)


class QuestionPayload(BaseModel):
    """Payload schema for one question of a quiz definition."""

    question_id: str = Field(min_length=1)
    text: str
    correct_answer: str = Field(min_length=1)
    options: list[str] = Field(default_factory=list)
    points: int = Field(default=DEFAULT_QUESTION_POINTS, ge=0)


class CreateSessionPayload(BaseModel):
    """Payload schema for launching a session. ``null`` time limit means no limit."""

    quiz_id: str = ""
    questions: list[QuestionPayload] = Field(min_length=1)
    time_limit_seconds: PositiveInt | None = DEFAULT_TIME_LIMIT_SECONDS


class JoinPayload(BaseModel):
    """Payload schema for the join flow. Identity is trusted as supplied."""

    participant_id: str = Field(min_length=1)
    display_name: str = ""


class AnswerPayload(BaseModel):
    """Payload schema for submitted answers."""

    participant_id: str
    question_id: str
    value: str | int | float
    elapsed_seconds: float | None = None


def _http_error(exc: SessionError) -> HTTPException:
    if isinstance(exc, ValidationError):
        status_code = 422
    elif isinstance(exc, _NOT_FOUND_ERRORS):
        status_code = 404
    else:
        status_code = 409
    return HTTPException(status_code=status_code, detail=exc.message)


def _get_registry_dependency(registry: SessionRegistry):
    def dependency() -> SessionRegistry:
        return registry

    return dependency


def create_api_app(registry: SessionRegistry) -> FastAPI:
    """Create a FastAPI application wired to the provided session registry."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, description=APP_ABOUT_TEXT)
    registry_dep = _get_registry_dependency(registry)

    @app.post("/sessions", status_code=201)
    def create_session(
        payload: CreateSessionPayload,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, object]:
        questions = [
            QuizQuestion(
                question_id=q.question_id,
                text=q.text,
                correct_answer=q.correct_answer,
                options=tuple(q.options),
                points=q.points,
            )
            for q in payload.questions
        ]
        settings = replace(sessions.default_settings, time_limit_seconds=payload.time_limit_seconds)
        try:
            controller = sessions.create_session(questions, quiz_id=payload.quiz_id, settings=settings)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return controller.snapshot().to_document()

    @app.get("/sessions")
    def list_sessions(sessions: SessionRegistry = Depends(registry_dep)) -> list[dict[str, object]]:
        return [
            {
                "session_id": controller.session_id,
                "quiz_id": controller.quiz_id,
                "status": controller.status.value,
            }
            for controller in sessions.list_sessions()
        ]

    @app.get("/sessions/{session_id}")
    def get_snapshot(session_id: str, sessions: SessionRegistry = Depends(registry_dep)) -> dict[str, object]:
        try:
            controller = sessions.get(session_id)
        except SessionError as exc:
            raise _http_error(exc) from exc
        return controller.snapshot().to_document()

    @app.get("/sessions/{session_id}/questions")
    def get_questions(session_id: str, sessions: SessionRegistry = Depends(registry_dep)) -> list[dict[str, object]]:
        try:
            controller = sessions.get(session_id)
        except SessionError as exc:
            raise _http_error(exc) from exc
        return [renderer.question_view(question) for question in controller.get_questions()]

    @app.post("/sessions/{session_id}/join", status_code=201)
    def join_session(
        session_id: str,
        payload: JoinPayload,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, object]:
        try:
            participant = sessions.get(session_id).join(payload.participant_id, payload.display_name)
        except SessionError as exc:
            raise _http_error(exc) from exc
        return participant.to_document()

    @app.post("/sessions/{session_id}/start")
    def start_session(session_id: str, sessions: SessionRegistry = Depends(registry_dep)) -> dict[str, object]:
        try:
            snapshot = sessions.get(session_id).start()
        except SessionError as exc:
            raise _http_error(exc) from exc
        return snapshot.to_document()

    @app.post("/sessions/{session_id}/end")
    def end_session(session_id: str, sessions: SessionRegistry = Depends(registry_dep)) -> dict[str, object]:
        try:
            snapshot = sessions.get(session_id).end()
        except SessionError as exc:
            raise _http_error(exc) from exc
        return snapshot.to_document()

    @app.post("/sessions/{session_id}/tick")
    def tick_session(session_id: str, sessions: SessionRegistry = Depends(registry_dep)) -> dict[str, object]:
        try:
            snapshot = sessions.get(session_id).tick()
        except SessionError as exc:
            raise _http_error(exc) from exc
        return snapshot.to_document()

    @app.post("/sessions/{session_id}/answers", status_code=201)
    def submit_answer(
        session_id: str,
        payload: AnswerPayload,
        sessions: SessionRegistry = Depends(registry_dep),
    ) -> dict[str, object]:
        try:
            record = sessions.get(session_id).submit_payload(payload.model_dump())
        except SessionError as exc:
            raise _http_error(exc) from exc
        return record.to_document()

    @app.post("/sessions/{session_id}/archive")
    def archive_session(session_id: str, sessions: SessionRegistry = Depends(registry_dep)) -> dict[str, object]:
        try:
            snapshot = sessions.archive(session_id)
        except SessionError as exc:
            raise _http_error(exc) from exc
        return snapshot.to_document()

    return app


def start_api_server(
    registry: SessionRegistry,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    log_level: str = "info",
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(registry)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level)
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="LiveQuizApiServer", daemon=True)
    thread.start()
    logger.info("API server listening on %s:%d", host, port)
    return thread
