"""Reducer behaviour for single answers and mock exam submissions."""

from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from amc8_coach.models.progress import (
    apply_answer,
    apply_mock_submission,
    remove_mistake,
)
from amc8_coach.models.schemas import (
    CONCRETE_TOPICS,
    AnswerMode,
    Difficulty,
    Question,
    Topic,
)
from amc8_coach.models.state import UserStats, initial_stats


def _q(
    qid: str,
    topic: Topic = Topic.ALGEBRA,
    difficulty: Difficulty = Difficulty.EASY,
    text: str = "",
    answer: int = 0,
) -> Question:
    return Question(
        id=qid,
        year=2021,
        question_number=3,
        problem_text=text or f"Problem {qid}",
        options=["1", "2", "3", "4", "5"],
        correct_option_index=answer,
        topic=topic,
        difficulty=difficulty,
    )


# ── Question invariants ─────────────────────────────────────────────
def test_question_requires_five_options():
    with pytest.raises(ValidationError):
        Question(
            id="bad",
            year=2020,
            question_number=1,
            problem_text="x",
            options=["1", "2", "3", "4"],
            correct_option_index=0,
            topic=Topic.ALGEBRA,
            difficulty=Difficulty.EASY,
        )


def test_question_rejects_out_of_range_answer_index():
    with pytest.raises(ValidationError):
        _q("bad", answer=5)


# ── Single-answer reducer ───────────────────────────────────────────
def test_first_easy_correct_answer():
    stats = apply_answer(initial_stats(), _q("e1"), True)
    assert stats.xp == 10
    assert stats.level == 1
    assert stats.total == 1
    assert stats.correct == 1
    assert stats.streak == 1
    assert stats.mastery_by_topic[Topic.ALGEBRA] == 5
    assert len(stats.history) == 1
    assert stats.history[0].correct is True


@pytest.mark.parametrize(
    "difficulty, xp",
    [
        (Difficulty.EASY, 10),
        (Difficulty.MEDIUM, 20),
        (Difficulty.HARD, 35),
        (Difficulty.COMPETITION, 50),
    ],
)
def test_xp_by_difficulty(difficulty, xp):
    stats = apply_answer(initial_stats(), _q("x", difficulty=difficulty), True)
    assert stats.xp == xp


def test_incorrect_answer_earns_consolation_xp_and_resets_streak():
    stats = initial_stats().model_copy(update={"streak": 7})
    stats = apply_answer(stats, _q("w"), False)
    assert stats.streak == 0
    assert stats.xp == 1
    assert stats.correct == 0
    assert stats.total == 1


def test_reducer_does_not_mutate_input():
    before = initial_stats()
    after = apply_answer(before, _q("w"), False)
    assert before.total == 0
    assert before.mistakes == []
    assert before.history == []
    assert after is not before


def test_mastery_clamps_at_upper_bound():
    mastery = {t: 0 for t in CONCRETE_TOPICS}
    mastery[Topic.ALGEBRA] = 95
    stats = UserStats(mastery_by_topic=mastery)
    for i in range(2):
        stats = apply_answer(stats, _q(f"a{i}"), True)
    assert stats.mastery_by_topic[Topic.ALGEBRA] == 100


def test_mastery_clamps_at_lower_bound():
    stats = initial_stats()
    stats = apply_answer(stats, _q("g", topic=Topic.GEOMETRY), False)
    assert stats.mastery_by_topic[Topic.GEOMETRY] == 0


def test_diagnostic_steps_reward_attempts_either_way():
    stats = apply_answer(initial_stats(), _q("d1"), True, mode=AnswerMode.DIAGNOSTIC)
    stats = apply_answer(
        stats, _q("d2", topic=Topic.GEOMETRY), False, mode=AnswerMode.DIAGNOSTIC
    )
    assert stats.mastery_by_topic[Topic.ALGEBRA] == 30
    assert stats.mastery_by_topic[Topic.GEOMETRY] == 10


def test_mixed_topic_question_changes_no_mastery():
    stats = apply_answer(initial_stats(), _q("m", topic=Topic.MIXED), True)
    assert all(v == 0 for v in stats.mastery_by_topic.values())
    assert Topic.MIXED not in stats.mastery_by_topic


def test_mistakes_are_logged_once_per_question():
    question = _q("w")
    stats = apply_answer(initial_stats(), question, False)
    stats = apply_answer(stats, question, False)
    assert [m.id for m in stats.mistakes] == ["w"]


def test_mistake_uniqueness_also_matches_problem_text():
    stats = apply_answer(initial_stats(), _q("a", text="Same words"), False)
    stats = apply_answer(stats, _q("b", text="Same words"), False)
    assert [m.id for m in stats.mistakes] == ["a"]


def test_new_practice_mistakes_go_first():
    stats = apply_answer(initial_stats(), _q("first"), False)
    stats = apply_answer(stats, _q("second"), False)
    assert [m.id for m in stats.mistakes] == ["second", "first"]


def test_random_sequences_keep_invariants():
    rng = random.Random(42)
    stats = initial_stats()
    for i in range(300):
        topic = rng.choice(CONCRETE_TOPICS)
        difficulty = rng.choice(list(Difficulty))
        mode = rng.choice(list(AnswerMode))
        correct = rng.random() < 0.5
        prev_streak = stats.streak
        stats = apply_answer(stats, _q(f"r{i % 17}", topic, difficulty), correct, mode=mode)
        assert all(0 <= v <= 100 for v in stats.mastery_by_topic.values())
        assert stats.level == stats.xp // 100 + 1
        assert stats.streak == (prev_streak + 1 if correct else 0)
    assert len({m.id for m in stats.mistakes}) == len(stats.mistakes) <= 17


# ── Mock submission reducer ─────────────────────────────────────────
def _exam():
    tiers = [Difficulty.EASY] * 10 + [Difficulty.MEDIUM] * 10 + [Difficulty.HARD] * 5
    return [
        _q(f"m{i}", CONCRETE_TOPICS[i % 5], difficulty, answer=i % 5)
        for i, difficulty in enumerate(tiers)
    ]


def test_mock_submission_with_fifteen_correct():
    exam = _exam()
    answers = {q.id: q.correct_option_index for q in exam[:15]}
    answers.update({q.id: (q.correct_option_index + 1) % 5 for q in exam[15:20]})

    stats = apply_mock_submission(initial_stats(), exam, answers)
    assert stats.xp == 15 * 20 + 50
    assert stats.correct == 15
    assert stats.total == 25
    assert stats.diagnostic_completed is True
    assert len(stats.history) == 25
    assert len({a.timestamp for a in stats.history}) == 1
    assert [m.id for m in stats.mistakes] == [q.id for q in exam[15:]]


def test_mock_mastery_steps_and_clamp():
    exam = [_q("a1"), _q("a2"), _q("g1", topic=Topic.GEOMETRY)]
    answers = {"a1": 0, "a2": 0, "g1": 3}
    stats = apply_mock_submission(initial_stats(), exam, answers)
    assert stats.mastery_by_topic[Topic.ALGEBRA] == 6
    assert stats.mastery_by_topic[Topic.GEOMETRY] == 0


def test_mock_streak_follows_exam_order():
    exam = [_q("a"), _q("b"), _q("c")]
    stats = initial_stats().model_copy(update={"streak": 4})
    stats = apply_mock_submission(stats, exam, {"a": 0, "c": 0})
    assert stats.streak == 1

    stats = apply_mock_submission(initial_stats(), exam, {"a": 0, "b": 0, "c": 0})
    assert stats.streak == 3


def test_mock_mistakes_append_after_existing():
    stats = apply_answer(initial_stats(), _q("old"), False)
    stats = apply_mock_submission(stats, [_q("old"), _q("new")], {})
    assert [m.id for m in stats.mistakes] == ["old", "new"]


def test_remove_mistake():
    stats = apply_answer(initial_stats(), _q("w"), False)
    assert remove_mistake(stats, "w").mistakes == []
    assert remove_mistake(stats, "missing") is stats
