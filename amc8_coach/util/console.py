"""Rich console helpers for CLI output."""

from __future__ import annotations

from typing import Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..models.schemas import CONCRETE_TOPICS, OPTION_LABELS, Question, StudyRecommendation
from ..models.state import XP_PER_LEVEL, UserStats

console = Console()


def print_banner() -> None:
    console.print(
        Panel(
            "[bold cyan]AMC 8 Coach[/bold cyan]\n"
            "[dim]Practice by topic, track mastery, sit timed mock exams[/dim]",
            border_style="bright_blue",
        )
    )


def print_step(step: str, description: str) -> None:
    console.print(f"\n[bold green]▶ {step}[/bold green]  {description}")


def print_question(q_num: int, question: Question) -> None:
    console.print(
        f"\n[bold yellow]Q{q_num}.[/bold yellow] "
        f"[dim]({question.topic.value} · {question.difficulty.value} · "
        f"{question.year} #{question.question_number})[/dim]"
    )
    console.print(question.problem_text)
    for label, option in zip(OPTION_LABELS, question.options):
        console.print(f"   ({label}) {option}")


def print_feedback(question: Question, correct: bool) -> None:
    if correct:
        console.print("[bold green]✅ Correct![/bold green]")
    else:
        console.print(
            f"[bold red]❌ Not quite.[/bold red] Answer: "
            f"({question.correct_label}) {question.options[question.correct_option_index]}"
        )
    if question.explanation:
        console.print(Panel(question.explanation, title="Solution", border_style="green"))


def print_stats(stats: UserStats) -> None:
    into_level = stats.xp % XP_PER_LEVEL
    console.print(
        f"[bold]Level {stats.level}[/bold]  XP {stats.xp} ({into_level}/{XP_PER_LEVEL})  "
        f"Streak {stats.streak}  Solved {stats.correct}/{stats.total}"
    )
    table = Table(title="Mastery", show_lines=False)
    table.add_column("Topic", style="bold")
    table.add_column("Score", justify="right")
    for topic in CONCRETE_TOPICS:
        table.add_row(topic.value, str(stats.mastery_by_topic[topic]))
    console.print(table)


def print_advice(advice: Optional[StudyRecommendation]) -> None:
    if advice is None:
        return
    focus = ", ".join(t.value for t in advice.focus_areas) or "—"
    strengths = ", ".join(t.value for t in advice.strength_areas) or "—"
    console.print(
        Panel(
            f"{advice.advice}\n\n"
            f"[bold]Focus:[/bold] {focus}\n"
            f"[bold]Strengths:[/bold] {strengths}\n"
            f"[bold]Next milestone:[/bold] {advice.next_milestone}",
            title="📚 Study Path",
            border_style="cyan",
        )
    )


def print_mock_review(
    questions: List[Question], answers: Dict[str, int], score: int
) -> None:
    table = Table(title=f"Mock Exam: {score}/{len(questions)}", show_lines=True)
    table.add_column("#", style="bold")
    table.add_column("Topic")
    table.add_column("Yours", justify="center")
    table.add_column("Answer", justify="center")
    table.add_column("", justify="center")
    for i, q in enumerate(questions, 1):
        selected = answers.get(q.id)
        yours = OPTION_LABELS[selected] if selected is not None else "—"
        mark = "✅" if q.is_correct(selected) else "❌"
        table.add_row(str(i), q.topic.value, yours, q.correct_label, mark)
    console.print(table)


def print_mistakes(mistakes: List[Question]) -> None:
    if not mistakes:
        console.print("  [green]Mistake log is empty.[/green]")
        return
    for i, q in enumerate(mistakes, 1):
        console.print(f"  {i}. [dim]{q.id}[/dim] {q.problem_text[:70]}")
