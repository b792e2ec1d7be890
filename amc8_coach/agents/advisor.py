"""StudyAdvisor: rule-based study recommendation plus an optional online variant."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..llm_client import LLMRun, run_stage
from ..models.schemas import CONCRETE_TOPICS, Attempt, StudyRecommendation, Topic
from ..models.state import MASTERY_MAX, UserStats
from ..util.jsonio import extract_json


STRENGTH_THRESHOLD = 40
MAX_AREAS = 2
TREND_GAP = 0.15
RECENT_WINDOW = 10
ONBOARDING_TOTAL = 5
TREND_MIN_TOTAL = 10
CHALLENGE_ACCURACY = 0.8

MILESTONES = (
    (10, "Complete 10 Problems"),
    (25, "Solve 25 Problems"),
    (50, "Solve 50 Problems"),
    (100, "Reach Veteran Status (100 Problems)"),
)
FINAL_MILESTONE = "Maintain Your Excellence"
CHAMPION_MILESTONE = "AMC 8 Champion"


class AdviceBranch(str, Enum):
    ONBOARDING = "onboarding"
    IMPROVING = "improving"
    DECLINING = "declining"
    CHALLENGE = "challenge"
    STEADY = "steady"


# ── Rule-based analysis ─────────────────────────────────────────────
def focus_areas(stats: UserStats) -> List[Topic]:
    """Two weakest concrete topics; equal scores keep enumeration order."""
    ranked = sorted(CONCRETE_TOPICS, key=lambda t: stats.mastery_by_topic[t])
    return ranked[:MAX_AREAS]


def strength_areas(stats: UserStats) -> List[Topic]:
    strong = [t for t in CONCRETE_TOPICS if stats.mastery_by_topic[t] > STRENGTH_THRESHOLD]
    strong.sort(key=lambda t: -stats.mastery_by_topic[t])
    return strong[:MAX_AREAS]


def recent_accuracy(history: Sequence[Attempt], window: int = RECENT_WINDOW) -> float:
    recent = list(history)[-window:]
    if not recent:
        return 0.0
    return sum(1 for a in recent if a.correct) / len(recent)


def select_branch(stats: UserStats) -> AdviceBranch:
    overall = stats.accuracy()
    recent = recent_accuracy(stats.history)
    if stats.total < ONBOARDING_TOTAL:
        return AdviceBranch.ONBOARDING
    if stats.total >= TREND_MIN_TOTAL and recent > overall + TREND_GAP:
        return AdviceBranch.IMPROVING
    if stats.total >= TREND_MIN_TOTAL and recent < overall - TREND_GAP:
        return AdviceBranch.DECLINING
    if overall > CHALLENGE_ACCURACY:
        return AdviceBranch.CHALLENGE
    return AdviceBranch.STEADY


def _advice_text(
    branch: AdviceBranch,
    stats: UserStats,
    focus: Sequence[Topic],
    strengths: Sequence[Topic],
) -> str:
    if branch is AdviceBranch.ONBOARDING:
        return (
            "Welcome! Start with Mixed Practice to gauge your baseline "
            "skills across all topics."
        )
    if branch is AdviceBranch.IMPROVING:
        recent = round(recent_accuracy(stats.history) * 100)
        return (
            f"You're improving rapidly! Your recent accuracy ({recent}%) is "
            "well above your average. Consider trying Hard problems."
        )
    if branch is AdviceBranch.DECLINING:
        return (
            "You've hit a bumpy patch recently. Review your Mistake Log "
            "before solving new problems."
        )
    if branch is AdviceBranch.CHALLENGE:
        return (
            "Your fundamentals are excellent. Challenge yourself with "
            "Competition mode or Hard problems."
        )
    text = f"Steady progress. To reach the next level, focus on {focus[0].value} problems."
    if strengths:
        text += f" Keep your edge in {strengths[0].value} sharp."
    return text


def next_milestone(stats: UserStats) -> str:
    if any(score >= MASTERY_MAX for score in stats.mastery_by_topic.values()):
        return CHAMPION_MILESTONE
    for threshold, label in MILESTONES:
        if stats.total < threshold:
            return label
    return FINAL_MILESTONE


def analyze(stats: UserStats) -> StudyRecommendation:
    """Deterministic recommendation derived from ``stats`` alone."""
    focus = focus_areas(stats)
    strengths = strength_areas(stats)
    branch = select_branch(stats)
    return StudyRecommendation(
        focus_areas=focus,
        strength_areas=strengths,
        advice=_advice_text(branch, stats, focus, strengths),
        next_milestone=next_milestone(stats),
    )


# ── Online variant ──────────────────────────────────────────────────
ADVISOR_SYSTEM_PROMPT = """\
You are the StudyAdvisor for an AMC 8 math practice tutor.
Given a student's mastery scores and recent activity, produce a study path.
Output ONLY valid JSON matching this schema (no markdown, no explanation):
{
  "focusAreas": ["<topic>", ...],
  "strengthAreas": ["<topic>", ...],
  "advice": "<encouraging, tactical advice, max 2 sentences>",
  "nextMilestone": "<short goal phrase>"
}
Topics must be from: Algebra, Geometry, Number Theory,
Counting & Probability, Logic & Word Problems.
Mention the recent trend explicitly when it is significant.
"""

FALLBACK_RECOMMENDATION = StudyRecommendation(
    focus_areas=[Topic.ALGEBRA, Topic.GEOMETRY],
    strength_areas=[],
    advice="Keep practicing mixed problem sets to identify your specific strengths.",
    next_milestone="Complete 10 more practice problems",
)


def _trend_label(recent: float, overall: float) -> str:
    if recent > overall + TREND_GAP:
        return "Significantly Improving"
    if recent < overall - TREND_GAP:
        return "Declining"
    return "Stable"


def build_prompt(stats: UserStats) -> str:
    mastery = ", ".join(
        f"{t.value}: {stats.mastery_by_topic[t]}/100" for t in CONCRETE_TOPICS
    )
    recent_history = "; ".join(
        f"{a.topic.value} ({a.difficulty.value}): {'Correct' if a.correct else 'Incorrect'}"
        for a in stats.history[-RECENT_WINDOW:]
    )
    recent = recent_accuracy(stats.history)
    overall = stats.accuracy()
    return "\n".join(
        [
            f"Current mastery: {mastery}",
            f"Recent activity: {recent_history or 'none'}",
            f"Total problems solved: {stats.total}",
            f"Recent accuracy (last {RECENT_WINDOW}): {round(recent * 100)}%",
            f"Overall accuracy: {round(overall * 100)}%",
            f"Trend: {_trend_label(recent, overall)}",
        ]
    )


def _keep_known_topics(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    known = {t.value for t in CONCRETE_TOPICS}
    return [v for v in values if isinstance(v, str) and v in known]


def parse_recommendation(raw: str) -> StudyRecommendation:
    data: Dict[str, Any] = extract_json(raw)
    data["focusAreas"] = _keep_known_topics(data.get("focusAreas", data.get("focus_areas")))
    data["strengthAreas"] = _keep_known_topics(
        data.get("strengthAreas", data.get("strength_areas"))
    )
    data.pop("focus_areas", None)
    data.pop("strength_areas", None)
    return StudyRecommendation.model_validate(data)


def run_advisor(
    stats: UserStats,
    offline: bool = False,
    llm_run: Optional[LLMRun] = None,
    warnings: Optional[List[str]] = None,
) -> StudyRecommendation:
    """Rule-based offline; online falls back to ``FALLBACK_RECOMMENDATION``."""
    if offline or llm_run is None:
        return analyze(stats)

    def run_online() -> StudyRecommendation:
        raw = llm_run("StudyAdvisor", ADVISOR_SYSTEM_PROMPT, build_prompt(stats))
        return parse_recommendation(raw)

    recommendation, _ = run_stage(
        "StudyAdvisor",
        run_online,
        lambda: FALLBACK_RECOMMENDATION.model_copy(deep=True),
        warnings,
    )
    return recommendation

