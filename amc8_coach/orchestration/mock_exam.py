"""Timed 25-question mock exam session.

NOT_STARTED -> IN_PROGRESS -> SUBMITTED -> (exit) NOT_STARTED

Calls made in the wrong phase are logged and ignored; the session never
raises for an out-of-order transition. The countdown only moves on
``tick()`` and reaching zero does not submit on its own.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from ..agents.question_bank import QuestionStore
from ..agents.selector import generate_mock_test
from ..config import MOCK_TOTAL_SECONDS
from ..models.progress import apply_mock_submission
from ..models.schemas import Question
from ..models.state import UserStats

_logger = logging.getLogger("amc8.mock")


class MockPhase(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class ReviewRow:
    question: Question
    selected: Optional[int]
    correct: bool


class MockExamSession:
    def __init__(
        self,
        store: Optional[QuestionStore] = None,
        rng: Optional[random.Random] = None,
        latency: Optional[float] = None,
    ) -> None:
        self._store = store
        self._rng = rng
        self._latency = latency
        self.phase = MockPhase.NOT_STARTED
        self.questions: List[Question] = []
        self.answers: Dict[str, int] = {}
        self.remaining_seconds = MOCK_TOTAL_SECONDS

    def _reject(self, action: str) -> None:
        _logger.warning(
            "mock_invalid_transition",
            extra={
                "event": "mock_invalid_transition",
                "action": action,
                "phase": self.phase.value,
            },
        )

    # ── Transitions ─────────────────────────────────────────────────
    async def start(self) -> bool:
        if self.phase is not MockPhase.NOT_STARTED:
            self._reject("start")
            return False
        questions = await generate_mock_test(
            store=self._store, rng=self._rng, latency=self._latency
        )
        # The session may have been started by a concurrent caller meanwhile.
        if self.phase is not MockPhase.NOT_STARTED:
            self._reject("start")
            return False
        self.questions = questions
        self.answers = {}
        self.remaining_seconds = MOCK_TOTAL_SECONDS
        self.phase = MockPhase.IN_PROGRESS
        _logger.info(
            "mock_started",
            extra={"event": "mock_started", "question_count": len(questions)},
        )
        return True

    def answer(self, question_id: str, option_index: int) -> bool:
        if self.phase is not MockPhase.IN_PROGRESS:
            self._reject("answer")
            return False
        if not any(q.id == question_id for q in self.questions):
            _logger.warning(
                "mock_unknown_question",
                extra={"event": "mock_unknown_question", "question_id": question_id},
            )
            return False
        self.answers[question_id] = option_index
        return True

    def tick(self) -> int:
        if self.phase is not MockPhase.IN_PROGRESS:
            self._reject("tick")
            return self.remaining_seconds
        self.remaining_seconds = max(0, self.remaining_seconds - 1)
        return self.remaining_seconds

    def submit(self, stats: UserStats) -> UserStats:
        """Score the exam into ``stats``; returns ``stats`` unchanged when rejected."""
        if self.phase is not MockPhase.IN_PROGRESS:
            self._reject("submit")
            return stats
        updated = apply_mock_submission(stats, self.questions, self.answers)
        self.phase = MockPhase.SUBMITTED
        _logger.info(
            "mock_submitted",
            extra={
                "event": "mock_submitted",
                "score": self.score,
                "answered": self.answered_count,
                "question_count": len(self.questions),
                "remaining_seconds": self.remaining_seconds,
            },
        )
        return updated

    def exit(self) -> bool:
        if self.phase is not MockPhase.SUBMITTED:
            self._reject("exit")
            return False
        self.questions = []
        self.answers = {}
        self.remaining_seconds = MOCK_TOTAL_SECONDS
        self.phase = MockPhase.NOT_STARTED
        return True

    # ── Read-only helpers ───────────────────────────────────────────
    @property
    def time_expired(self) -> bool:
        return self.phase is MockPhase.IN_PROGRESS and self.remaining_seconds == 0

    @property
    def answered_count(self) -> int:
        return sum(1 for q in self.questions if q.id in self.answers)

    def unanswered_ids(self) -> List[str]:
        return [q.id for q in self.questions if q.id not in self.answers]

    @property
    def score(self) -> int:
        return sum(1 for q in self.questions if q.is_correct(self.answers.get(q.id)))

    def review(self) -> List[ReviewRow]:
        if self.phase is not MockPhase.SUBMITTED:
            return []
        return [
            ReviewRow(
                question=q,
                selected=self.answers.get(q.id),
                correct=q.is_correct(self.answers.get(q.id)),
            )
            for q in self.questions
        ]
