"""CoachController: owns the live ``UserStats`` and sequences every action.

Practice, diagnostic and mock flows all funnel answer events through the
pure reducers in ``models.progress`` and persist the result right away.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..agents.advisor import analyze, run_advisor
from ..agents.question_author import author_question
from ..agents.question_bank import QuestionStore, default_store
from ..agents.selector import select_question
from ..config import get_settings
from ..llm_client import LLMRun
from ..models.progress import (
    apply_answer,
    complete_diagnostic,
    remove_mistake,
    with_advice,
)
from ..models.schemas import (
    CONCRETE_TOPICS,
    AnswerMode,
    Difficulty,
    Question,
    StudyRecommendation,
    Topic,
)
from ..models.state import UserStats, initial_stats
from .mock_exam import MockExamSession
from .state_store import StateStore

ADVICE_REFRESH_EVERY = 5
DIAGNOSTIC_DIFFICULTY = Difficulty.MEDIUM

_logger = logging.getLogger("amc8.controller")
_progress_logger = logging.getLogger("amc8.progress")


class NoActiveQuestionError(RuntimeError):
    """An answer was submitted while no question is on screen."""


@dataclass(frozen=True)
class AnswerOutcome:
    question: Question
    selected: int
    correct: bool
    mode: AnswerMode
    diagnostic_finished: bool = False


class CoachController:
    def __init__(
        self,
        state_store: Optional[StateStore] = None,
        question_store: Optional[QuestionStore] = None,
        llm_run: Optional[LLMRun] = None,
        rng: Optional[random.Random] = None,
        question_latency: Optional[float] = None,
        mock_latency: Optional[float] = None,
        advice_latency: Optional[float] = None,
    ) -> None:
        self._state_store = state_store or StateStore()
        self._question_store = question_store or default_store()
        self._llm_run = llm_run
        self._rng = rng
        self._question_latency = question_latency
        self._mock_latency = mock_latency
        self._advice_latency = advice_latency

        self.stats: UserStats = initial_stats()
        self.mode = AnswerMode.PRACTICE
        self.topic = Topic.MIXED
        self.difficulty = Difficulty.COMPETITION
        self.quiz_active = False
        self.current_question: Optional[Question] = None
        self.diagnostic_index = 0
        self.mock = self._new_mock_session()
        self.warnings: List[str] = []

        self._generation = 0
        self._advice_in_flight = False
        # Bumped by reset; results computed against an older epoch are dropped.
        self._epoch = 0

    @property
    def online(self) -> bool:
        return self._llm_run is not None

    @property
    def advice_in_flight(self) -> bool:
        return self._advice_in_flight

    def _new_mock_session(self) -> MockExamSession:
        return MockExamSession(
            store=self._question_store, rng=self._rng, latency=self._mock_latency
        )

    def drain_warnings(self) -> List[str]:
        drained, self.warnings = self.warnings, []
        return drained

    # ── Persistence ─────────────────────────────────────────────────
    def load(self) -> UserStats:
        self.stats = self._state_store.load()
        _logger.info(
            "stats_loaded",
            extra={
                "event": "stats_loaded",
                "total": self.stats.total,
                "diagnostic_completed": self.stats.diagnostic_completed,
            },
        )
        return self.stats

    def save(self) -> bool:
        return self._state_store.save(self.stats)

    def _commit(self, stats: UserStats) -> UserStats:
        self.stats = stats
        self.save()
        return stats

    # ── Question flow ───────────────────────────────────────────────
    async def _fetch_question(self, topic: Topic, difficulty: Difficulty) -> Question:
        if self._llm_run is None:
            return await select_question(
                topic,
                difficulty,
                store=self._question_store,
                rng=self._rng,
                latency=self._question_latency,
            )
        return await asyncio.to_thread(
            author_question, topic, difficulty, self._llm_run, self.warnings
        )

    def _request_target(self) -> Tuple[Topic, Difficulty]:
        if self.mode is AnswerMode.DIAGNOSTIC:
            return CONCRETE_TOPICS[self.diagnostic_index], DIAGNOSTIC_DIFFICULTY
        return self.topic, self.difficulty

    async def next_question(self) -> Optional[Question]:
        """Fetch the next question; None when the result went stale meanwhile."""
        if not self.quiz_active:
            _logger.warning(
                "question_without_quiz",
                extra={"event": "question_without_quiz"},
            )
            return None
        self._generation += 1
        token = self._generation
        self.current_question = None
        topic, difficulty = self._request_target()

        question = await self._fetch_question(topic, difficulty)
        if token != self._generation or not self.quiz_active:
            _logger.info(
                "stale_question_discarded",
                extra={
                    "event": "stale_question_discarded",
                    "question_id": question.id,
                    "token": token,
                    "generation": self._generation,
                },
            )
            return None
        self.current_question = question
        return question

    async def start_practice(
        self,
        topic: Topic = Topic.MIXED,
        difficulty: Difficulty = Difficulty.COMPETITION,
    ) -> Optional[Question]:
        self.mode = AnswerMode.PRACTICE
        self.topic = topic
        self.diagnostic_index = 0
        self.difficulty = difficulty
        self.quiz_active = True
        return await self.next_question()

    async def start_diagnostic(self) -> Optional[Question]:
        """One Medium question per concrete topic, in topic order."""
        self.mode = AnswerMode.DIAGNOSTIC
        self.diagnostic_index = 0
        self.quiz_active = True
        return await self.next_question()

    def skip_diagnostic(self) -> UserStats:
        self.exit_quiz()
        return self._commit(complete_diagnostic(self.stats))

    def exit_quiz(self) -> None:
        # Bumping the generation invalidates any fetch still in flight.
        self._generation += 1
        self.quiz_active = False
        self.current_question = None
        self.mode = AnswerMode.PRACTICE
        self.diagnostic_index = 0

    def submit_answer(self, option_index: int) -> AnswerOutcome:
        question = self.current_question
        if question is None:
            raise NoActiveQuestionError("No question is waiting for an answer.")
        if not 0 <= option_index < len(question.options):
            raise ValueError(f"Option index {option_index} is out of range.")

        mode = self.mode
        is_correct = question.is_correct(option_index)
        stats = apply_answer(self.stats, question, is_correct, mode=mode)
        self.current_question = None

        finished = False
        if mode is AnswerMode.DIAGNOSTIC:
            self.diagnostic_index += 1
            if self.diagnostic_index >= len(CONCRETE_TOPICS):
                stats = complete_diagnostic(stats)
                finished = True
                self.exit_quiz()

        self._commit(stats)
        _progress_logger.info(
            "answer_recorded",
            extra={
                "event": "answer_recorded",
                "question_id": question.id,
                "mode": mode.value,
                "correct": is_correct,
                "total": stats.total,
                "streak": stats.streak,
                "xp": stats.xp,
            },
        )
        return AnswerOutcome(
            question=question,
            selected=option_index,
            correct=is_correct,
            mode=mode,
            diagnostic_finished=finished,
        )

    # ── Study advice ────────────────────────────────────────────────
    def should_refresh_advice(self) -> bool:
        if self._advice_in_flight or not self.stats.diagnostic_completed:
            return False
        return (
            self.stats.total % ADVICE_REFRESH_EVERY == 0
            or self.stats.study_advice is None
        )

    async def refresh_advice(self, force: bool = False) -> Optional[StudyRecommendation]:
        """Recompute advice when due; ``force`` skips the trigger but not the in-flight guard."""
        if self._advice_in_flight:
            _logger.info(
                "advice_refresh_skipped",
                extra={"event": "advice_refresh_skipped", "reason": "in_flight"},
            )
            return None
        if not force and not self.should_refresh_advice():
            return None

        epoch = self._epoch
        self._advice_in_flight = True
        try:
            delay = (
                get_settings().advice_latency
                if self._advice_latency is None
                else self._advice_latency
            )
            await asyncio.sleep(delay)
            snapshot = self.stats
            if self._llm_run is None:
                advice = analyze(snapshot)
            else:
                advice = await asyncio.to_thread(
                    run_advisor, snapshot, False, self._llm_run, self.warnings
                )
            if epoch != self._epoch:
                _logger.info(
                    "stale_advice_discarded",
                    extra={"event": "stale_advice_discarded", "epoch": epoch},
                )
                return None
            self._commit(with_advice(self.stats, advice))
        finally:
            self._advice_in_flight = False
        _logger.info(
            "advice_refreshed",
            extra={"event": "advice_refreshed", "total": self.stats.total},
        )
        return advice

    # ── Mock exam ───────────────────────────────────────────────────
    async def start_mock(self) -> bool:
        self.exit_quiz()
        return await self.mock.start()

    def submit_mock(self) -> UserStats:
        updated = self.mock.submit(self.stats)
        if updated is not self.stats:
            self._commit(updated)
        return self.stats

    def exit_mock(self) -> bool:
        return self.mock.exit()

    # ── Mistakes and reset ──────────────────────────────────────────
    def remove_mistake(self, question_id: str) -> bool:
        updated = remove_mistake(self.stats, question_id)
        if updated is self.stats:
            return False
        self._commit(updated)
        return True

    def reset(self) -> UserStats:
        self._epoch += 1
        self.exit_quiz()
        self.mock = self._new_mock_session()
        self._state_store.clear()
        _logger.info("stats_reset", extra={"event": "stats_reset"})
        return self._commit(initial_stats())
