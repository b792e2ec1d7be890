"""Online question author and advisor, with their fallback values."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from amc8_coach.agents.advisor import (
    FALLBACK_RECOMMENDATION,
    analyze,
    build_prompt as build_advice_prompt,
    parse_recommendation,
    run_advisor,
)
from amc8_coach.agents.question_author import (
    FALLBACK_QUESTION,
    author_question,
    build_prompt as build_question_prompt,
    parse_question,
)
from amc8_coach.config import Settings
from amc8_coach.llm_client import extract_response_text, get_llm_runner, run_stage
from amc8_coach.models.schemas import Difficulty, Topic
from amc8_coach.models.state import initial_stats
from amc8_coach.util.jsonio import extract_json


_GOOD_QUESTION = {
    "problemText": "How many positive divisors does 36 have?",
    "options": ["6", "7", "8", "9", "12"],
    "correctOptionIndex": 3,
    "explanation": "36 = 2^2 * 3^2 so it has 3 * 3 = 9 divisors.",
    "hint": "Factor 36 into primes.",
    "year": 2023,
    "questionNumber": 9,
    "topic": "Number Theory",
    "difficulty": "Medium",
}


def _runner_returning(text: str):
    calls = []

    def run(agent_name: str, system_prompt: str, user_prompt: str) -> str:
        calls.append((agent_name, user_prompt))
        return text

    run.calls = calls
    return run


def _failing_runner(agent_name: str, system_prompt: str, user_prompt: str) -> str:
    raise RuntimeError("upstream timed out")


# ── JSON extraction ─────────────────────────────────────────────────
def test_extract_json_tolerates_fences_and_prose():
    raw = "Sure!\n```json\n{\"advice\": \"ok\"}\n```"
    assert extract_json(raw) == {"advice": "ok"}


def test_extract_json_rejects_non_objects():
    with pytest.raises(ValueError):
        extract_json("no json here")


def test_extract_response_text_reads_chat_choices():
    response = {"choices": [{"message": {"content": "{\"a\": 1}"}}]}
    assert extract_response_text(response) == "{\"a\": 1}"
    with pytest.raises(ValueError):
        extract_response_text({"choices": []})


# ── Question author ─────────────────────────────────────────────────
def test_author_question_parses_valid_payload():
    run = _runner_returning(json.dumps(_GOOD_QUESTION))
    question = author_question(Topic.NUMBER_THEORY, Difficulty.MEDIUM, run)
    assert question.correct_option_index == 3
    assert question.topic is Topic.NUMBER_THEORY
    assert question.difficulty is Difficulty.MEDIUM
    assert question.id.startswith("ai-")
    assert run.calls[0][0] == "QuestionAuthor"


def test_mixed_request_takes_reported_topic():
    question = parse_question(json.dumps(_GOOD_QUESTION), Topic.MIXED, Difficulty.COMPETITION)
    assert question.topic is Topic.NUMBER_THEORY
    assert question.difficulty is Difficulty.MEDIUM


def test_unreported_difficulty_keeps_requested_level():
    payload = dict(_GOOD_QUESTION, difficulty="tricky")
    question = parse_question(json.dumps(payload), Topic.ALGEBRA, Difficulty.COMPETITION)
    assert question.difficulty is Difficulty.COMPETITION
    assert question.topic is Topic.ALGEBRA


def test_question_prompt_lists_topics_for_mixed():
    prompt = build_question_prompt(Topic.MIXED, Difficulty.HARD)
    assert "Counting & Probability" in prompt
    assert "16-25" in prompt


@pytest.mark.parametrize(
    "runner",
    [
        _failing_runner,
        _runner_returning("I cannot help with that."),
        _runner_returning(json.dumps(dict(_GOOD_QUESTION, correctOptionIndex=7))),
        _runner_returning(json.dumps(dict(_GOOD_QUESTION, options=["1", "2"]))),
    ],
)
def test_author_question_falls_back(runner):
    warnings = []
    question = author_question(Topic.GEOMETRY, Difficulty.MEDIUM, runner, warnings)
    assert question == FALLBACK_QUESTION
    assert question is not FALLBACK_QUESTION
    assert len(warnings) == 1
    assert warnings[0].startswith("QuestionAuthor failed online")


def test_fallback_question_is_well_formed():
    assert FALLBACK_QUESTION.options[FALLBACK_QUESTION.correct_option_index] == "108"


# ── Advisor ─────────────────────────────────────────────────────────
def test_run_advisor_offline_uses_rules():
    stats = initial_stats()
    assert run_advisor(stats, offline=True) == analyze(stats)
    assert run_advisor(stats, offline=False, llm_run=None) == analyze(stats)


def test_run_advisor_online_parses_and_filters_topics():
    payload = {
        "focusAreas": ["Geometry", "Astronomy"],
        "strengthAreas": ["Algebra"],
        "advice": "Draw more diagrams.",
        "nextMilestone": "Solve 25 Problems",
    }
    run = _runner_returning(json.dumps(payload))
    advice = run_advisor(initial_stats(), llm_run=run)
    assert advice.focus_areas == [Topic.GEOMETRY]
    assert advice.strength_areas == [Topic.ALGEBRA]
    assert advice.advice == "Draw more diagrams."


def test_run_advisor_falls_back_on_failure():
    warnings = []
    advice = run_advisor(initial_stats(), llm_run=_failing_runner, warnings=warnings)
    assert advice == FALLBACK_RECOMMENDATION
    assert "StudyAdvisor" in warnings[0]


def test_parse_recommendation_requires_advice():
    with pytest.raises(ValueError):
        parse_recommendation(json.dumps({"focusAreas": []}))


def test_advice_prompt_reports_trend():
    prompt = build_advice_prompt(initial_stats())
    assert "Trend: Stable" in prompt
    assert "Total problems solved: 0" in prompt


# ── Stage runner and client setup ───────────────────────────────────
def test_run_stage_reports_fallback_use():
    assert run_stage("S", lambda: 1, lambda: 2) == (1, False)

    def boom():
        raise ValueError("bad")

    assert run_stage("S", boom, lambda: 2) == (2, True)


def test_no_credentials_means_offline(tmp_path):
    settings = Settings(
        state_dir=tmp_path,
        question_latency=0,
        mock_latency=0,
        advice_latency=0,
    )
    assert settings.online_configured is False
    assert get_llm_runner(settings) is None
