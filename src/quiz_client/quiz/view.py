"""Rich rendering and the interactive play loop for quiz sessions.

The loop only talks to :class:`~quiz_client.quiz.engine.QuizSessionEngine`
through its intents and snapshots, so tests can drive it with a recorded
console and a scripted input provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Literal, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .engine import QuizSessionEngine
from .state import Phase, QuizSnapshot

InputProvider = Callable[[], str]
ExitAction = Literal["completed", "quit"]

__all__ = [
    "InputProvider",
    "PlayCommand",
    "PlayOutcome",
    "option_key",
    "parse_play_command",
    "render_snapshot",
    "render_summary",
    "run_play_session",
]


@dataclass(frozen=True)
class PlayCommand:
    """Normalized user command parsed from console input."""

    type: Literal["answer", "restart", "retry", "quit"]
    option_index: Optional[int] = None


@dataclass(frozen=True)
class PlayOutcome:
    """Return value from :func:`run_play_session`."""

    snapshot: QuizSnapshot
    exit_action: ExitAction


def option_key(index: int) -> str:
    return chr(ord("A") + index)


def parse_play_command(raw: Optional[str]) -> Optional[PlayCommand]:
    """Parse console input into a command, or ``None`` if unrecognized."""

    if raw is None:
        return None
    text = raw.strip().lower()
    if not text:
        return None
    if text in {"q", "quit", "exit"}:
        return PlayCommand("quit")
    if text in {"r", "restart"}:
        return PlayCommand("restart")
    if text == "retry":
        return PlayCommand("retry")
    if len(text) == 1 and "a" <= text <= "z":
        return PlayCommand("answer", ord(text) - ord("a"))
    if text.isdigit() and int(text) >= 1:
        return PlayCommand("answer", int(text) - 1)
    return None


def render_snapshot(console: Console, snapshot: QuizSnapshot) -> None:
    if snapshot.phase is Phase.IN_PROGRESS:
        _render_question(console, snapshot)
    elif snapshot.phase is Phase.FINISHED:
        render_summary(console, snapshot)
    elif snapshot.phase is Phase.FAILED:
        _render_failure(console, snapshot)
    elif snapshot.phase is Phase.LOADING:
        console.print("[dim]Loading questions...[/]")


def _render_question(console: Console, snapshot: QuizSnapshot) -> None:
    question = snapshot.current_question
    if question is None:
        return
    header = Text.assemble(
        (f"Question {snapshot.current_index + 1}", "bold cyan"),
        (f" / {snapshot.total_questions}", "dim"),
    )
    console.print()
    console.rule(header)
    meta = " | ".join(
        part for part in (question.category, question.difficulty_label) if part
    )
    if meta:
        console.print(Text(meta, style="dim"))
    console.print(Text(question.prompt_text, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    for index, option in enumerate(question.answer_options):
        table.add_row(option_key(index), Text(option))
    console.print(table)

    keys = ", ".join(
        option_key(i) for i in range(len(question.answer_options))
    )
    console.print(
        Text(
            f"Score {snapshot.result_label} | "
            f"Commands: answer [{keys}], r (restart), q (quit)",
            style="dim",
        )
    )


def _render_failure(console: Console, snapshot: QuizSnapshot) -> None:
    console.print(
        Panel(
            Text(snapshot.last_error or "Unknown error."),
            title="Could not load quiz",
            border_style="red",
        )
    )
    console.print(
        Text("Type 'retry' to try again or 'q' to quit.", style="dim")
    )


def render_summary(console: Console, snapshot: QuizSnapshot) -> None:
    console.print()
    title = snapshot.title or "Quiz Summary"
    console.rule(Text(title, style="bold magenta"))
    if snapshot.total_questions == 0:
        console.print(
            Panel(
                "The backend returned no questions.",
                title="Quiz Session",
                border_style="yellow",
            )
        )

    overview = Table(
        show_header=False,
        box=box.MINIMAL_DOUBLE_HEAD,
        expand=False,
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Total questions", str(snapshot.total_questions))
    overview.add_row("Correct", str(snapshot.score))
    overview.add_row("Result", snapshot.result_label)
    overview.add_row("Percentage", f"{snapshot.percentage}%")
    console.print(overview)
    console.print(Text("Type 'r' to play again or 'q' to quit.", style="dim"))


async def run_play_session(
    engine: QuizSessionEngine,
    console: Console,
    input_provider: InputProvider,
    *,
    start: Callable[[], Awaitable[QuizSnapshot]],
) -> PlayOutcome:
    """Load a question set with ``start`` and play it interactively."""

    def _on_change(snapshot: QuizSnapshot) -> None:
        if snapshot.phase is Phase.LOADING:
            render_snapshot(console, snapshot)

    unsubscribe = engine.subscribe(_on_change)
    try:
        await start()
        while True:
            render_snapshot(console, engine.snapshot())
            try:
                raw = input_provider()
            except (EOFError, KeyboardInterrupt, StopIteration):
                console.print("\n[bold yellow]Session interrupted.[/]")
                break
            command = parse_play_command(raw)
            if command is None:
                console.print("[red]Unrecognized command. Try again.[/]")
                continue
            if command.type == "quit":
                break
            await _apply_command(command, engine, console)
    finally:
        unsubscribe()

    final = engine.snapshot()
    action: ExitAction = (
        "completed" if final.phase is Phase.FINISHED else "quit"
    )
    return PlayOutcome(final, action)


async def _apply_command(
    command: PlayCommand,
    engine: QuizSessionEngine,
    console: Console,
) -> None:
    snapshot = engine.snapshot()
    if command.type == "restart":
        if snapshot.has_question_set:
            engine.restart()
        else:
            console.print("[red]Nothing to restart yet.[/]")
        return
    if command.type == "retry":
        if snapshot.phase is Phase.FAILED:
            await engine.retry()
        else:
            console.print("[red]Nothing to retry.[/]")
        return

    question = snapshot.current_question
    index = command.option_index
    if snapshot.phase is not Phase.IN_PROGRESS or question is None:
        console.print("[red]There is no question to answer.[/]")
        return
    if index is None or not 0 <= index < len(question.answer_options):
        console.print(
            "[red]That is not a valid option for this question.[/]"
        )
        return
    if engine.answer(index):
        console.print("[bold green]Correct![/]")
    else:
        console.print(
            Text.assemble(
                ("Wrong.", "bold red"),
                " The answer was "
                f"{option_key(question.correct_option_index)}: "
                f"{question.correct_option}",
            )
        )
