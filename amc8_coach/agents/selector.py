"""Question selection: tiered fallback filtering and mock exam assembly."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Dict, List, Optional, Tuple

from ..config import get_settings
from ..models.schemas import Difficulty, Question, Topic
from .question_bank import QuestionStore, default_store

MOCK_COMPOSITION: Tuple[Tuple[Difficulty, int], ...] = (
    (Difficulty.EASY, 10),
    (Difficulty.MEDIUM, 10),
    (Difficulty.HARD, 5),
)
MOCK_QUESTION_COUNT = sum(count for _, count in MOCK_COMPOSITION)

_logger = logging.getLogger("amc8.selector")


def candidates_for(
    store: QuestionStore, topic: Topic, difficulty: Difficulty
) -> Tuple[List[Question], int]:
    """Return (candidates, tier); tier 1 is an exact match, 3 is the whole store."""
    topic_filter = None if topic == Topic.MIXED else topic
    difficulty_filter = None if difficulty == Difficulty.COMPETITION else difficulty

    candidates = store.matching(topic_filter, difficulty_filter)
    if candidates:
        return candidates, 1

    if topic_filter is not None:
        candidates = store.matching(topic_filter, None)
        if candidates:
            return candidates, 2

    return list(store.questions), 3


def pick_question(
    topic: Topic,
    difficulty: Difficulty,
    store: Optional[QuestionStore] = None,
    rng: Optional[random.Random] = None,
) -> Question:
    store = store or default_store()
    rng = rng or random.SystemRandom()
    candidates, tier = candidates_for(store, topic, difficulty)
    if tier > 1:
        _logger.info(
            "selector_fallback",
            extra={
                "event": "selector_fallback",
                "topic": topic.value,
                "difficulty": difficulty.value,
                "tier": tier,
                "candidates": len(candidates),
            },
        )
    return rng.choice(candidates).model_copy(deep=True)


def build_mock_test(
    store: Optional[QuestionStore] = None,
    rng: Optional[random.Random] = None,
) -> List[Question]:
    """10 Easy, 10 Medium, 5 Hard, in ascending difficulty blocks.

    A tier short of its quota contributes everything it has.
    """
    store = store or default_store()
    rng = rng or random.SystemRandom()

    exam: List[Question] = []
    shortfall: Dict[str, int] = {}
    for difficulty, quota in MOCK_COMPOSITION:
        pool = store.matching(difficulty=difficulty)
        rng.shuffle(pool)
        picked = pool[:quota]
        if len(picked) < quota:
            shortfall[difficulty.value] = quota - len(picked)
        exam.extend(q.model_copy(deep=True) for q in picked)

    if shortfall:
        _logger.warning(
            "mock_test_short",
            extra={
                "event": "mock_test_short",
                "question_count": len(exam),
                "shortfall": shortfall,
            },
        )
    return exam


async def select_question(
    topic: Topic,
    difficulty: Difficulty,
    store: Optional[QuestionStore] = None,
    rng: Optional[random.Random] = None,
    latency: Optional[float] = None,
) -> Question:
    delay = get_settings().question_latency if latency is None else latency
    await asyncio.sleep(delay)
    return pick_question(topic, difficulty, store=store, rng=rng)


async def generate_mock_test(
    store: Optional[QuestionStore] = None,
    rng: Optional[random.Random] = None,
    latency: Optional[float] = None,
) -> List[Question]:
    delay = get_settings().mock_latency if latency is None else latency
    await asyncio.sleep(delay)
    return build_mock_test(store=store, rng=rng)
