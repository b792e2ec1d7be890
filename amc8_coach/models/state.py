"""Persistent learner state across sessions."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field, computed_field, field_validator

from .schemas import (
    CONCRETE_TOPICS,
    Attempt,
    CamelModel,
    Question,
    StudyRecommendation,
    Topic,
)

MASTERY_MIN = 0
MASTERY_MAX = 100
XP_PER_LEVEL = 100


def clamp_mastery(value: int) -> int:
    return max(MASTERY_MIN, min(MASTERY_MAX, int(value)))


def level_for_xp(xp: int) -> int:
    return xp // XP_PER_LEVEL + 1


def empty_mastery() -> Dict[Topic, int]:
    return {topic: 0 for topic in CONCRETE_TOPICS}


class UserStats(CamelModel):
    correct: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    xp: int = Field(default=0, ge=0)
    mastery_by_topic: Dict[Topic, int] = Field(default_factory=empty_mastery)
    history: List[Attempt] = Field(default_factory=list)
    mistakes: List[Question] = Field(default_factory=list)
    diagnostic_completed: bool = False
    study_advice: Optional[StudyRecommendation] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def level(self) -> int:
        return level_for_xp(self.xp)

    @field_validator("mastery_by_topic", mode="before")
    @classmethod
    def _normalize_mastery(cls, value: Any) -> Dict[Topic, int]:
        """Fill every concrete topic, clamp scores, drop Mixed and unknown keys."""
        normalized = empty_mastery()
        if not isinstance(value, dict):
            return normalized
        for raw_key, raw_score in value.items():
            try:
                topic = Topic(raw_key)
            except ValueError:
                continue
            if topic not in normalized:
                continue
            try:
                normalized[topic] = clamp_mastery(raw_score)
            except (TypeError, ValueError):
                continue
        return normalized

    @field_validator("mistakes", mode="before")
    @classmethod
    def _default_mistakes(cls, value: Any) -> Any:
        # Older snapshots predate the mistake log.
        return [] if value is None else value

    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0

    def to_snapshot(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def initial_stats() -> UserStats:
    """Return the first-run (and full reset) value."""
    return UserStats()
