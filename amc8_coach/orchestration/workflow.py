"""Interactive terminal loop: diagnostic → practice / mock exam → study path."""

from __future__ import annotations

import asyncio
from time import monotonic
from typing import List, Optional

from ..llm_client import LLMRun
from ..models.schemas import CONCRETE_TOPICS, OPTION_LABELS, Difficulty, Question, Topic
from ..util.console import (
    console,
    print_advice,
    print_banner,
    print_feedback,
    print_mistakes,
    print_mock_review,
    print_question,
    print_stats,
    print_step,
)
from .controller import CoachController
from .mock_exam import MockExamSession, MockPhase

_TOPIC_CHOICES = (Topic.MIXED, *CONCRETE_TOPICS)
_DIFFICULTY_CHOICES = (
    Difficulty.COMPETITION,
    Difficulty.EASY,
    Difficulty.MEDIUM,
    Difficulty.HARD,
)


def _read_option(prompt: str = "Your answer (A-E, Enter to stop): ") -> Optional[int]:
    """Return a 0-based option index, or None when the user stops."""
    while True:
        raw = input(prompt).strip().upper()
        if not raw:
            return None
        if raw in OPTION_LABELS:
            return OPTION_LABELS.index(raw)
        console.print("  [red]Enter a letter A-E[/red]")


def _read_practice_answer(question: Question) -> Optional[int]:
    """Like ``_read_option`` but ``?`` shows the hint and asks again."""
    while True:
        raw = input("Your answer (A-E, ? for hint, Enter to stop): ").strip().upper()
        if not raw:
            return None
        if raw in OPTION_LABELS:
            return OPTION_LABELS.index(raw)
        if raw == "?" and question.hint:
            console.print(f"[italic]{question.hint}[/italic]")
        else:
            console.print("  [red]Enter a letter A-E[/red]")


def _choose(title: str, choices: tuple) -> object:
    console.print(f"\n[bold]{title}[/bold]")
    for i, choice in enumerate(choices, 1):
        console.print(f"   {i}) {choice.value}")
    raw = input("> ").strip()
    try:
        index = int(raw) - 1
    except ValueError:
        return choices[0]
    return choices[index] if 0 <= index < len(choices) else choices[0]


def _flush_warnings(controller: CoachController) -> None:
    for warning in controller.drain_warnings():
        console.print(f"[yellow]{warning}[/yellow]")


def _refresh_advice(controller: CoachController) -> None:
    if controller.should_refresh_advice():
        asyncio.run(controller.refresh_advice())
        _flush_warnings(controller)


def _run_diagnostic(controller: CoachController) -> None:
    print_step("Diagnostic", "Five Medium problems, one per topic, to set your baseline.")
    question = asyncio.run(controller.start_diagnostic())
    n = 1
    while question is not None:
        print_question(n, question)
        choice = _read_option()
        if choice is None:
            controller.exit_quiz()
            console.print("[dim]Diagnostic paused; it will be offered again next time.[/dim]")
            return
        outcome = controller.submit_answer(choice)
        print_feedback(outcome.question, outcome.correct)
        if outcome.diagnostic_finished:
            break
        n += 1
        question = asyncio.run(controller.next_question())
    console.print("\n[bold green]Diagnostic complete.[/bold green]")
    _refresh_advice(controller)
    print_advice(controller.stats.study_advice)


def _run_practice(controller: CoachController) -> None:
    topic = _choose("Topic", _TOPIC_CHOICES)
    difficulty = _choose("Difficulty", _DIFFICULTY_CHOICES)
    print_step("Practice", f"{topic.value} · {difficulty.value}")

    question = asyncio.run(controller.start_practice(topic, difficulty))
    n = 1
    while question is not None:
        _flush_warnings(controller)
        print_question(n, question)
        if question.hint:
            console.print("[dim]Hint available: type ? to see it.[/dim]")
        choice = _read_practice_answer(question)
        if choice is None:
            break
        outcome = controller.submit_answer(choice)
        print_feedback(outcome.question, outcome.correct)
        console.print(
            f"[dim]Streak {controller.stats.streak} · XP {controller.stats.xp} · "
            f"Level {controller.stats.level}[/dim]"
        )
        _refresh_advice(controller)
        n += 1
        question = asyncio.run(controller.next_question())
    controller.exit_quiz()


def _answer_pass(
    session: MockExamSession, questions: List[Question], last: float
) -> float:
    """Present ``questions`` in order, ticking the session clock per elapsed second.

    The answer typed when the clock runs out still counts. Returns the
    monotonic time the clock was last advanced to.
    """
    numbers = {q.id: i for i, q in enumerate(session.questions, 1)}
    already_expired = session.time_expired
    for question in questions:
        console.print(
            f"[dim]Time left {session.remaining_seconds // 60:02d}:"
            f"{session.remaining_seconds % 60:02d}[/dim]"
        )
        print_question(numbers[question.id], question)
        choice = _read_option("Your answer (A-E, Enter to skip): ")
        now = monotonic()
        for _ in range(int(now - last)):
            session.tick()
        last = now - (now - last) % 1
        if choice is not None:
            session.answer(question.id, choice)
        if session.time_expired and not already_expired:
            console.print("[bold red]Time is up.[/bold red]")
            break
    return last


def _confirm_submit(session: MockExamSession) -> bool:
    unanswered = len(session.unanswered_ids())
    if unanswered:
        console.print(f"\n[yellow]{unanswered} problem(s) unanswered.[/yellow]")
    console.print("Submit the exam? (y to submit, Enter to go back)")
    return input("> ").strip().lower() in ("y", "yes")


def _run_mock(controller: CoachController) -> None:
    print_step("Mock exam", "25 problems, 40 minutes. Enter skips a problem.")
    if not asyncio.run(controller.start_mock()):
        console.print("[yellow]A mock exam is already running.[/yellow]")
        return
    session = controller.mock
    last = _answer_pass(session, list(session.questions), monotonic())
    while not _confirm_submit(session):
        pending = set(session.unanswered_ids())
        # Nothing blank left: go back over every problem to change answers.
        revisit = [q for q in session.questions if not pending or q.id in pending]
        last = _answer_pass(session, revisit, last)

    controller.submit_mock()
    if session.phase is MockPhase.SUBMITTED:
        print_mock_review(session.questions, session.answers, session.score)
    controller.exit_mock()
    _refresh_advice(controller)


def _run_mistakes(controller: CoachController) -> None:
    print_step("Mistake log", f"{len(controller.stats.mistakes)} problem(s)")
    mistakes = list(controller.stats.mistakes)
    print_mistakes(mistakes)
    if not mistakes:
        return
    raw = input("Retry which number (Enter to go back)? ").strip()
    try:
        number = int(raw)
    except ValueError:
        return
    if not 1 <= number <= len(mistakes):
        console.print(f"[red]Pick a number from 1 to {len(mistakes)}.[/red]")
        return
    question = mistakes[number - 1]
    print_question(1, question)
    choice = _read_option()
    if choice is None:
        return
    correct = question.is_correct(choice)
    print_feedback(question, correct)
    if correct:
        controller.remove_mistake(question.id)
        console.print("[green]Removed from your mistake log.[/green]")


def run_workflow(offline: bool = False, llm_run: Optional[LLMRun] = None) -> None:
    """Run the interactive coach until the user quits.

    Args:
        offline: If True, questions come from the bundled bank and advice
            from the rule engine.
        llm_run: Callable(agent_name, system_prompt, user_prompt) -> str.
    """
    print_banner()
    controller = CoachController(llm_run=None if offline else llm_run)
    stats = controller.load()
    if stats.total:
        console.print(f"[dim]Welcome back. {stats.total} problems solved so far.[/dim]")

    if not stats.diagnostic_completed:
        console.print("\nTake a 5-question diagnostic first? [Y/n]")
        if input("> ").strip().lower() in ("", "y", "yes"):
            _run_diagnostic(controller)
        else:
            controller.skip_diagnostic()

    actions = {
        "1": ("Practice", _run_practice),
        "2": ("Mock exam", _run_mock),
        "3": ("Mistake log", _run_mistakes),
        "4": ("Progress & study path", None),
        "5": ("Reset progress", None),
    }
    while True:
        console.print("\n[bold]Menu[/bold]")
        for key, (label, _) in actions.items():
            console.print(f"   {key}) {label}")
        console.print("   q) Quit")
        choice = input("> ").strip().lower()
        if choice in ("q", "quit"):
            break
        if choice == "4":
            print_stats(controller.stats)
            if controller.stats.study_advice is None:
                asyncio.run(controller.refresh_advice(force=True))
                _flush_warnings(controller)
            print_advice(controller.stats.study_advice)
        elif choice == "5":
            if input("Type RESET to erase all progress: ").strip() == "RESET":
                controller.reset()
                console.print("[yellow]Progress reset.[/yellow]")
        elif choice in actions:
            actions[choice][1](controller)

    if controller.save():
        console.print("\n[bold green]✅ Progress saved.[/bold green]\n")
    else:
        console.print("\n[bold yellow]Progress could not be saved.[/bold yellow]\n")
