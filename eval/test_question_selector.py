"""Question selection tiers and mock exam composition."""

from __future__ import annotations

import asyncio
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from amc8_coach.agents.question_bank import (
    QuestionStore,
    QuestionStoreEmptyError,
    default_store,
)
from amc8_coach.agents.selector import (
    MOCK_QUESTION_COUNT,
    build_mock_test,
    candidates_for,
    generate_mock_test,
    select_question,
)
from amc8_coach.models.schemas import CONCRETE_TOPICS, Difficulty, Question, Topic


def _q(qid: str, topic: Topic, difficulty: Difficulty, text: str = "") -> Question:
    return Question(
        id=qid,
        year=2020,
        question_number=1,
        problem_text=text or f"Problem {qid}",
        options=["1", "2", "3", "4", "5"],
        correct_option_index=0,
        topic=topic,
        difficulty=difficulty,
    )


def _sparse_store() -> QuestionStore:
    # Geometry has no Hard problem; Logic is absent entirely.
    return QuestionStore(
        [
            _q("alg-e", Topic.ALGEBRA, Difficulty.EASY),
            _q("alg-h", Topic.ALGEBRA, Difficulty.HARD),
            _q("geo-e", Topic.GEOMETRY, Difficulty.EASY),
            _q("geo-m", Topic.GEOMETRY, Difficulty.MEDIUM),
        ]
    )


def test_empty_store_is_rejected():
    with pytest.raises(QuestionStoreEmptyError):
        QuestionStore([])


def test_duplicate_ids_are_rejected():
    q = _q("dup", Topic.ALGEBRA, Difficulty.EASY)
    with pytest.raises(ValueError):
        QuestionStore([q, q])


def test_default_bank_covers_every_topic_and_tier():
    store = default_store()
    for topic in CONCRETE_TOPICS:
        assert store.matching(topic=topic), topic
    assert len(store.matching(difficulty=Difficulty.EASY)) >= 10
    assert len(store.matching(difficulty=Difficulty.MEDIUM)) >= 10
    assert len(store.matching(difficulty=Difficulty.HARD)) >= 5
    assert all(q.difficulty is not Difficulty.COMPETITION for q in store)


def test_exact_match_is_tier_one():
    candidates, tier = candidates_for(_sparse_store(), Topic.ALGEBRA, Difficulty.HARD)
    assert tier == 1
    assert [q.id for q in candidates] == ["alg-h"]


def test_wildcards_match_everything_in_tier_one():
    store = _sparse_store()
    candidates, tier = candidates_for(store, Topic.MIXED, Difficulty.COMPETITION)
    assert tier == 1
    assert len(candidates) == len(store)

    candidates, tier = candidates_for(store, Topic.MIXED, Difficulty.MEDIUM)
    assert tier == 1
    assert [q.id for q in candidates] == ["geo-m"]


def test_missing_difficulty_falls_back_to_topic():
    candidates, tier = candidates_for(_sparse_store(), Topic.GEOMETRY, Difficulty.HARD)
    assert tier == 2
    assert {q.id for q in candidates} == {"geo-e", "geo-m"}


def test_missing_topic_falls_back_to_whole_store():
    store = _sparse_store()
    candidates, tier = candidates_for(store, Topic.LOGIC, Difficulty.EASY)
    assert tier == 3
    assert len(candidates) == len(store)


def test_select_question_respects_filters_when_available():
    store = default_store()
    rng = random.Random(7)
    for topic in CONCRETE_TOPICS:
        for difficulty in (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.COMPETITION):
            question = asyncio.run(
                select_question(topic, difficulty, store=store, rng=rng, latency=0)
            )
            assert question.topic == topic
            if difficulty is not Difficulty.COMPETITION and store.matching(topic, difficulty):
                assert question.difficulty == difficulty


def test_select_question_returns_independent_copy():
    store = _sparse_store()
    question = asyncio.run(
        select_question(Topic.ALGEBRA, Difficulty.EASY, store=store, latency=0)
    )
    assert question == store.get("alg-e")
    assert question is not store.get("alg-e")


def test_mock_test_from_bank_has_exact_composition_and_order():
    exam = asyncio.run(generate_mock_test(rng=random.Random(3), latency=0))
    assert len(exam) == MOCK_QUESTION_COUNT == 25
    assert [q.difficulty for q in exam] == (
        [Difficulty.EASY] * 10 + [Difficulty.MEDIUM] * 10 + [Difficulty.HARD] * 5
    )
    assert len({q.id for q in exam}) == 25


def test_short_tiers_contribute_what_they_have():
    exam = build_mock_test(store=_sparse_store(), rng=random.Random(1))
    difficulties = [q.difficulty for q in exam]
    assert difficulties == [
        Difficulty.EASY,
        Difficulty.EASY,
        Difficulty.MEDIUM,
        Difficulty.HARD,
    ]
