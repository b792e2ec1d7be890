"""Pydantic schemas for questions, attempts and study recommendations."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# ── Enumerations ────────────────────────────────────────────────────
class Topic(str, Enum):
    MIXED = "Mixed Practice"
    ALGEBRA = "Algebra"
    GEOMETRY = "Geometry"
    NUMBER_THEORY = "Number Theory"
    COUNTING_PROBABILITY = "Counting & Probability"
    LOGIC = "Logic & Word Problems"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"
    COMPETITION = "Any Difficulty"


class AnswerMode(str, Enum):
    PRACTICE = "practice"
    DIAGNOSTIC = "diagnostic"


# Scored topics in tie-break order. Mixed is a selection wildcard only.
CONCRETE_TOPICS: Tuple[Topic, ...] = (
    Topic.ALGEBRA,
    Topic.GEOMETRY,
    Topic.NUMBER_THEORY,
    Topic.COUNTING_PROBABILITY,
    Topic.LOGIC,
)

OPTION_LABELS = ("A", "B", "C", "D", "E")


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON keys; both accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ── Question ────────────────────────────────────────────────────────
class Question(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    year: int
    question_number: int = Field(..., ge=1)
    problem_text: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=5, max_length=5)
    correct_option_index: int = Field(..., ge=0, le=4, description="0-based index")
    explanation: str = ""
    hint: str = ""
    topic: Topic
    difficulty: Difficulty

    @model_validator(mode="after")
    def _validate_correct_index(self) -> "Question":
        if self.correct_option_index >= len(self.options):
            raise ValueError("correct_option_index must be a valid index into options")
        return self

    def is_correct(self, option_index: Optional[int]) -> bool:
        return option_index is not None and option_index == self.correct_option_index

    @property
    def correct_label(self) -> str:
        return OPTION_LABELS[self.correct_option_index]


# ── Attempt ─────────────────────────────────────────────────────────
class Attempt(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: int = Field(..., description="Epoch milliseconds")
    topic: Topic
    difficulty: Difficulty
    correct: bool


# ── Study recommendation ───────────────────────────────────────────
class StudyRecommendation(CamelModel):
    focus_areas: List[Topic] = Field(default_factory=list)
    strength_areas: List[Topic] = Field(default_factory=list)
    advice: str
    next_milestone: str
