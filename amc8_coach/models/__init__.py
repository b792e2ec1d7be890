"""Pydantic data models and pure progress reducers."""

from .schemas import (
    CONCRETE_TOPICS,
    AnswerMode,
    Attempt,
    Difficulty,
    Question,
    StudyRecommendation,
    Topic,
)
from .state import UserStats, initial_stats
from .progress import apply_answer, apply_mock_submission, remove_mistake

__all__ = [
    "CONCRETE_TOPICS",
    "AnswerMode",
    "Attempt",
    "Difficulty",
    "Question",
    "StudyRecommendation",
    "Topic",
    "UserStats",
    "initial_stats",
    "apply_answer",
    "apply_mock_submission",
    "remove_mistake",
]
