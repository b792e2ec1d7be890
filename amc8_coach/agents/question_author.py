"""QuestionAuthor: generates a fresh AMC 8 style problem through the online model."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import uuid4

from ..llm_client import LLMRun, run_stage
from ..models.schemas import CONCRETE_TOPICS, Difficulty, Question, Topic
from ..util.jsonio import extract_json


_DIFFICULTY_PROMPTS: Dict[Difficulty, str] = {
    Difficulty.EASY: "Questions 1-5 level (basic arithmetic, simple geometry, direct logic).",
    Difficulty.MEDIUM: "Questions 6-15 level (multi-step algebra, area/perimeter puzzles, basic probability).",
    Difficulty.HARD: "Questions 16-25 level (number theory, 3D geometry, advanced counting).",
    Difficulty.COMPETITION: "Random mix. Pick Easy, Medium or Hard yourself and report which one.",
}

AUTHOR_SYSTEM_PROMPT = """\
You are the QuestionAuthor for an AMC 8 math practice tutor.
Write ONE new multiple-choice problem in the style of real AMC 8 problems:
concise MAA-style wording and plausible distractors built from common errors.
Do not copy an existing problem verbatim.
Output ONLY valid JSON matching this schema (no markdown, no explanation):
{
  "problemText": "<problem statement>",
  "options": ["<A>", "<B>", "<C>", "<D>", "<E>"],
  "correctOptionIndex": <0-based index 0-4>,
  "explanation": "<step-by-step solution>",
  "hint": "<a subtle hint>",
  "year": <simulated year>,
  "questionNumber": <simulated question number 1-25>,
  "topic": "<topic>",
  "difficulty": "<Easy|Medium|Hard>"
}
"""

FALLBACK_QUESTION = Question(
    id="fallback-1",
    year=2024,
    question_number=5,
    problem_text=(
        "A rectangular garden has a length that is 3 times its width. If the "
        "perimeter is 48 meters, what is the area of the garden in square meters?"
    ),
    options=["27", "54", "108", "144", "216"],
    correct_option_index=2,
    explanation=(
        "Let w be the width, so the length is 3w. The perimeter is "
        "2(w + 3w) = 8w = 48, so w = 6 and the length is 18. Area = 6 × 18 = 108."
    ),
    hint="Use P = 2(L + W) and substitute L = 3W.",
    topic=Topic.GEOMETRY,
    difficulty=Difficulty.MEDIUM,
)


def build_prompt(topic: Topic, difficulty: Difficulty) -> str:
    lines = [
        f"Topic: {topic.value}",
        f"Difficulty: {difficulty.value} - {_DIFFICULTY_PROMPTS[difficulty]}",
    ]
    if topic == Topic.MIXED:
        lines.append(
            "Choose the topic yourself from: "
            + ", ".join(t.value for t in CONCRETE_TOPICS)
            + "."
        )
    return "\n".join(lines)


def _resolve_difficulty(raw: Any, requested: Difficulty) -> Difficulty:
    if isinstance(raw, str):
        lowered = raw.lower()
        for level in (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD):
            if level.value.lower() in lowered:
                return level
    return requested


def _resolve_topic(raw: Any, requested: Topic) -> Topic:
    if requested != Topic.MIXED:
        return requested
    for topic in CONCRETE_TOPICS:
        if raw == topic.value:
            return topic
    return requested


def parse_question(raw: str, topic: Topic, difficulty: Difficulty) -> Question:
    data = extract_json(raw)
    payload = {
        "id": f"ai-{uuid4().hex}",
        "year": data.get("year") or 2024,
        "questionNumber": data.get("questionNumber") or data.get("question_number") or 1,
        "problemText": data.get("problemText") or data.get("problem_text"),
        "options": data.get("options"),
        "correctOptionIndex": data.get("correctOptionIndex", data.get("correct_option_index")),
        "explanation": data.get("explanation") or "",
        "hint": data.get("hint") or "",
        "topic": _resolve_topic(data.get("topic"), topic),
        "difficulty": _resolve_difficulty(data.get("difficulty"), difficulty),
    }
    return Question.model_validate(payload)


def author_question(
    topic: Topic,
    difficulty: Difficulty,
    llm_run: LLMRun,
    warnings: Optional[List[str]] = None,
) -> Question:
    """Ask the online model for a problem; ``FALLBACK_QUESTION`` on any failure."""

    def run_online() -> Question:
        raw = llm_run("QuestionAuthor", AUTHOR_SYSTEM_PROMPT, build_prompt(topic, difficulty))
        return parse_question(raw, topic, difficulty)

    question, _ = run_stage(
        "QuestionAuthor",
        run_online,
        lambda: FALLBACK_QUESTION.model_copy(deep=True),
        warnings,
    )
    return question
