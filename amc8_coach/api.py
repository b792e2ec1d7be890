"""HTTP API for driving the AMC 8 coach from a browser UI."""

from __future__ import annotations

from contextlib import asynccontextmanager
from functools import lru_cache
import logging
from time import perf_counter
from typing import Annotated, Any, Callable, Dict, List, Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from pydantic import Field

from .llm_client import get_llm_runner
from .models.schemas import AnswerMode, CamelModel, Difficulty, Question, StudyRecommendation, Topic
from .models.state import UserStats
from .observability.context import set_request_id, reset_request_id
from .observability.logging_setup import configure_logging
from .orchestration.controller import CoachController, NoActiveQuestionError
from .orchestration.mock_exam import MockPhase


@asynccontextmanager
async def _app_lifespan(_: FastAPI):
    configure_logging()
    logging.getLogger("amc8.api").info(
        "api_startup",
        extra={"event": "api_startup", "online": _controller().online},
    )
    yield


app = FastAPI(
    title="AMC 8 Coach API",
    description="Practice, mock exams and study advice for AMC 8 preparation",
    version="1.0.0",
    lifespan=_app_lifespan,
)

_http_logger = logging.getLogger("amc8.http")

OptionIndex = Annotated[int, Field(ge=0, le=4)]


class QuestionRequest(CamelModel):
    topic: Topic = Topic.MIXED
    difficulty: Difficulty = Difficulty.COMPETITION
    diagnostic: bool = False


class QuestionResponse(CamelModel):
    question: Question
    diagnostic_step: Optional[int] = None
    warnings: List[str] = Field(default_factory=list)


class AnswerRequest(CamelModel):
    option_index: OptionIndex


class AnswerResponse(CamelModel):
    question_id: str
    correct: bool
    correct_option_index: int
    explanation: str
    diagnostic_completed: bool
    stats: UserStats
    warnings: List[str] = Field(default_factory=list)


class MockStartResponse(CamelModel):
    questions: List[Question]
    remaining_seconds: int


class MockSubmitRequest(CamelModel):
    answers: Dict[str, OptionIndex] = Field(default_factory=dict)
    elapsed_seconds: int = Field(default=0, ge=0)


class ReviewItem(CamelModel):
    question: Question
    selected: Optional[int] = None
    correct: bool


class MockSubmitResponse(CamelModel):
    score: int
    question_count: int
    unanswered: List[str]
    remaining_seconds: int
    review: List[ReviewItem]
    stats: UserStats


class AdviceRequest(CamelModel):
    force: bool = False


class AdviceResponse(CamelModel):
    refreshed: bool
    advice: Optional[StudyRecommendation] = None
    warnings: List[str] = Field(default_factory=list)


@lru_cache(maxsize=1)
def _cached_llm_runner():
    return get_llm_runner()


@lru_cache(maxsize=1)
def _controller() -> CoachController:
    controller = CoachController(llm_run=_cached_llm_runner())
    controller.load()
    return controller


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


@app.middleware("http")
async def _request_logging(request: Request, call_next: Callable[..., Any]):
    request_id = request.headers.get("x-request-id") or uuid4().hex
    token = set_request_id(request_id)
    started = perf_counter()
    try:
        try:
            response = await call_next(request)
        except Exception:
            _http_logger.exception(
                "request_failed",
                extra={
                    "event": "request_failed",
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": 500,
                    "duration_ms": round((perf_counter() - started) * 1000, 2),
                },
            )
            raise

        response.headers["x-request-id"] = request_id
        _http_logger.info(
            "request_completed",
            extra={
                "event": "request_completed",
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round((perf_counter() - started) * 1000, 2),
            },
        )
        return response
    finally:
        reset_request_id(token)


@app.get("/v1/stats", response_model=UserStats)
async def get_stats() -> UserStats:
    return _controller().stats


@app.post("/v1/practice/question", response_model=QuestionResponse)
async def practice_question(req: QuestionRequest) -> QuestionResponse:
    controller = _controller()
    if req.diagnostic:
        resuming = (
            controller.quiz_active
            and controller.mode is AnswerMode.DIAGNOSTIC
            and controller.diagnostic_index > 0
        )
        if resuming:
            question = await controller.next_question()
        else:
            question = await controller.start_diagnostic()
    else:
        question = await controller.start_practice(req.topic, req.difficulty)

    if question is None:
        raise HTTPException(
            status_code=409,
            detail="Question request was superseded by a newer one.",
        )
    return QuestionResponse(
        question=question,
        diagnostic_step=controller.diagnostic_index + 1 if req.diagnostic else None,
        warnings=controller.drain_warnings(),
    )


@app.post("/v1/practice/answer", response_model=AnswerResponse)
async def practice_answer(req: AnswerRequest) -> AnswerResponse:
    controller = _controller()
    try:
        outcome = controller.submit_answer(req.option_index)
    except NoActiveQuestionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    await controller.refresh_advice()
    return AnswerResponse(
        question_id=outcome.question.id,
        correct=outcome.correct,
        correct_option_index=outcome.question.correct_option_index,
        explanation=outcome.question.explanation,
        diagnostic_completed=controller.stats.diagnostic_completed,
        stats=controller.stats,
        warnings=controller.drain_warnings(),
    )


@app.post("/v1/mock/start", response_model=MockStartResponse)
async def mock_start() -> MockStartResponse:
    controller = _controller()
    if controller.mock.phase is MockPhase.SUBMITTED:
        controller.exit_mock()
    if not await controller.start_mock():
        raise HTTPException(status_code=409, detail="A mock exam is already in progress.")
    return MockStartResponse(
        questions=controller.mock.questions,
        remaining_seconds=controller.mock.remaining_seconds,
    )


@app.post("/v1/mock/submit", response_model=MockSubmitResponse)
async def mock_submit(req: MockSubmitRequest) -> MockSubmitResponse:
    controller = _controller()
    session = controller.mock
    if session.phase is not MockPhase.IN_PROGRESS:
        raise HTTPException(status_code=409, detail="No mock exam is in progress.")

    known = {q.id for q in session.questions}
    unknown = sorted(set(req.answers) - known)
    if unknown:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown question id(s): {', '.join(unknown)}",
        )
    for question_id, option_index in req.answers.items():
        session.answer(question_id, option_index)
    for _ in range(min(req.elapsed_seconds, session.remaining_seconds)):
        session.tick()

    unanswered = session.unanswered_ids()
    controller.submit_mock()
    await controller.refresh_advice()
    return MockSubmitResponse(
        score=session.score,
        question_count=len(session.questions),
        unanswered=unanswered,
        remaining_seconds=session.remaining_seconds,
        review=[
            ReviewItem(question=row.question, selected=row.selected, correct=row.correct)
            for row in session.review()
        ],
        stats=controller.stats,
    )


@app.post("/v1/advice", response_model=AdviceResponse)
async def advice(req: AdviceRequest) -> AdviceResponse:
    controller = _controller()
    refreshed = await controller.refresh_advice(force=req.force)
    return AdviceResponse(
        refreshed=refreshed is not None,
        advice=controller.stats.study_advice,
        warnings=controller.drain_warnings(),
    )


@app.delete("/v1/mistakes/{question_id}", response_model=UserStats)
async def delete_mistake(question_id: str) -> UserStats:
    controller = _controller()
    if not controller.remove_mistake(question_id):
        raise HTTPException(status_code=404, detail=f"No logged mistake with id {question_id}.")
    return controller.stats


@app.post("/v1/reset", response_model=UserStats)
async def reset() -> UserStats:
    return _controller().reset()
