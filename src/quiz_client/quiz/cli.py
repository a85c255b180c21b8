"""``quiz-client play``: run an interactive quiz against the backend."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import httpx
from rich.console import Console

from ..config import QuizClientConfig, QuizClientConfigError, load_config
from ..core.logging import configure_logger
from ..core.workspace import WorkspaceError
from ..data.repositories import QuizRepository
from ..data.transport import ApiClient
from .engine import QuizSessionEngine
from .state import Phase
from .view import InputProvider, PlayOutcome, run_play_session


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quiz-client play",
        description="Play a multiple-choice quiz served by the backend.",
    )
    parser.add_argument(
        "--count",
        type=int,
        help="Number of random questions (defaults to quiz.question_count).",
    )
    parser.add_argument(
        "--category", help="Only ask questions in this category."
    )
    parser.add_argument(
        "--difficulty", help="Only ask questions of this difficulty."
    )
    parser.add_argument(
        "--quiz-id",
        type=int,
        help="Play the full question set of one quiz instead of a sample.",
    )
    parser.add_argument(
        "--config", type=Path, help="Path to quiz_client.toml."
    )
    parser.add_argument(
        "--workspace", type=Path, help="Override the workspace root."
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log output to stderr.",
    )
    return parser


def _build_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Return a custom transport; ``None`` uses the httpx default."""

    return None


def _build_console() -> Console:
    return Console()


def _build_input_provider(console: Console) -> InputProvider:
    return lambda: console.input("[bold cyan]> [/]")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.count is not None and args.count < 1:
        parser.error("--count must be at least 1.")

    try:
        load_result = load_config(
            config_path=args.config, workspace_path=args.workspace
        )
    except (QuizClientConfigError, WorkspaceError) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2

    config = load_result.config
    logger, log_path = configure_logger(
        "quiz_client",
        log_dir=load_result.layout.path_for("logs"),
        level=config.logging.level,
        verbose=args.verbose or config.logging.verbose,
    )
    logger.debug(
        "play command invoked",
        extra={"base_url": config.backend.base_url},
    )

    console = _build_console()
    outcome = asyncio.run(_play(args, config, console, logger))
    console.print(f"[dim]Log file: {log_path}[/]")
    return 1 if outcome.snapshot.phase is Phase.FAILED else 0


async def _play(
    args: argparse.Namespace,
    config: QuizClientConfig,
    console: Console,
    logger: logging.Logger,
) -> PlayOutcome:
    count = args.count or config.quiz.question_count
    category = args.category or config.quiz.category
    difficulty = args.difficulty or config.quiz.difficulty

    async with ApiClient(
        config.backend.base_url,
        timeout_seconds=config.backend.timeout_seconds,
        transport=_build_transport(),
        logger=logger.getChild("http"),
    ) as client:
        repository = QuizRepository(client, logger=logger.getChild("data"))
        async with QuizSessionEngine(
            repository, logger=logger.getChild("engine")
        ) as engine:
            if args.quiz_id is not None:
                quiz_id = args.quiz_id

                def start():
                    return engine.load_by_id(quiz_id)

            else:

                def start():
                    return engine.load(count, category, difficulty)

            return await run_play_session(
                engine,
                console,
                _build_input_provider(console),
                start=start,
            )
