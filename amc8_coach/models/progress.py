"""Pure reducers that turn answer events into a new ``UserStats`` value.

None of these functions mutate their input; each returns a fresh copy.
Persisting the result is the caller's job.
"""

from __future__ import annotations

import time
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from uuid import uuid4

from .schemas import AnswerMode, Attempt, Difficulty, Question, StudyRecommendation, Topic
from .state import UserStats, clamp_mastery


XP_BY_DIFFICULTY: Dict[Difficulty, int] = {
    Difficulty.EASY: 10,
    Difficulty.MEDIUM: 20,
    Difficulty.HARD: 35,
    Difficulty.COMPETITION: 50,
}
XP_CONSOLATION = 1

# (correct, incorrect) mastery deltas
MASTERY_STEPS: Dict[AnswerMode, Tuple[int, int]] = {
    AnswerMode.PRACTICE: (5, -2),
    AnswerMode.DIAGNOSTIC: (30, 10),
}
MOCK_MASTERY_STEP: Tuple[int, int] = (3, -1)
MOCK_XP_PER_CORRECT = 20
MOCK_COMPLETION_BONUS = 50


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_attempt(question: Question, correct: bool, timestamp: int) -> Attempt:
    return Attempt(
        id=uuid4().hex,
        timestamp=timestamp,
        topic=question.topic,
        difficulty=question.difficulty,
        correct=correct,
    )


def is_logged_mistake(mistakes: Iterable[Question], question: Question) -> bool:
    """Match on id OR problem text.

    Two different questions sharing the same wording count as one entry.
    """
    return any(
        m.id == question.id or m.problem_text == question.problem_text
        for m in mistakes
    )


def _step_mastery(mastery: Dict[Topic, int], topic: Topic, delta: int) -> None:
    if topic not in mastery:
        # Mixed is not a scored bucket.
        return
    mastery[topic] = clamp_mastery(mastery[topic] + delta)


def xp_for_answer(question: Question, is_correct: bool) -> int:
    if not is_correct:
        return XP_CONSOLATION
    return XP_BY_DIFFICULTY[question.difficulty]


def apply_answer(
    stats: UserStats,
    question: Question,
    is_correct: bool,
    mode: AnswerMode = AnswerMode.PRACTICE,
    timestamp: Optional[int] = None,
) -> UserStats:
    """Apply a single answered question."""
    up, down = MASTERY_STEPS[mode]
    mastery = dict(stats.mastery_by_topic)
    _step_mastery(mastery, question.topic, up if is_correct else down)

    mistakes = stats.mistakes
    if not is_correct and not is_logged_mistake(stats.mistakes, question):
        mistakes = [question.model_copy(deep=True), *stats.mistakes]

    attempt = _new_attempt(
        question, is_correct, _now_ms() if timestamp is None else timestamp
    )
    return stats.model_copy(
        update={
            "correct": stats.correct + (1 if is_correct else 0),
            "total": stats.total + 1,
            "streak": stats.streak + 1 if is_correct else 0,
            "xp": stats.xp + xp_for_answer(question, is_correct),
            "mastery_by_topic": mastery,
            "history": [*stats.history, attempt],
            "mistakes": list(mistakes),
        }
    )


def apply_mock_submission(
    stats: UserStats,
    questions: Sequence[Question],
    answers: Mapping[str, int],
    timestamp: Optional[int] = None,
) -> UserStats:
    """Score a whole mock exam in one pass.

    ``answers`` maps question id to the selected option index and may be
    partial; a missing entry counts as incorrect.
    """
    stamp = _now_ms() if timestamp is None else timestamp
    up, down = MOCK_MASTERY_STEP
    mastery = dict(stats.mastery_by_topic)
    mistakes: List[Question] = list(stats.mistakes)
    attempts: List[Attempt] = []
    streak = stats.streak
    correct_count = 0

    for question in questions:
        is_correct = question.is_correct(answers.get(question.id))
        if is_correct:
            correct_count += 1
            streak += 1
        else:
            streak = 0
            if not is_logged_mistake(mistakes, question):
                mistakes.append(question.model_copy(deep=True))
        _step_mastery(mastery, question.topic, up if is_correct else down)
        attempts.append(_new_attempt(question, is_correct, stamp))

    return stats.model_copy(
        update={
            "correct": stats.correct + correct_count,
            "total": stats.total + len(questions),
            "streak": streak,
            "xp": stats.xp
            + correct_count * MOCK_XP_PER_CORRECT
            + MOCK_COMPLETION_BONUS,
            "mastery_by_topic": mastery,
            "history": [*stats.history, *attempts],
            "mistakes": mistakes,
            "diagnostic_completed": True,
        }
    )


def remove_mistake(stats: UserStats, question_id: str) -> UserStats:
    remaining = [m for m in stats.mistakes if m.id != question_id]
    if len(remaining) == len(stats.mistakes):
        return stats
    return stats.model_copy(update={"mistakes": remaining})


def complete_diagnostic(stats: UserStats) -> UserStats:
    if stats.diagnostic_completed:
        return stats
    return stats.model_copy(update={"diagnostic_completed": True})


def with_advice(stats: UserStats, advice: StudyRecommendation) -> UserStats:
    return stats.model_copy(update={"study_advice": advice})
