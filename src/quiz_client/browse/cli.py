"""``quiz-client browse``: list backend entities in a Rich table."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Sequence

import httpx
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..config import QuizClientConfig, QuizClientConfigError, load_config
from ..core.logging import configure_logger
from ..core.workspace import WorkspaceError
from ..data.repositories import (
    ENTITY_ROUTES,
    QuizRepository,
    build_entity_repositories,
)
from ..data.transport import ApiClient
from ..domain.result import Result, Success
from .controller import EntityListController

_EXTRA_LISTINGS = ("quizzes", "categories")


class _CallableSource:
    """Expose a zero-argument repository call as ``get_all``."""

    def __init__(self, call: Callable[[], Awaitable[Result[list[Any]]]]):
        self._call = call

    async def get_all(self) -> Result[list[Any]]:
        return await self._call()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quiz-client browse",
        description="Show records from one backend collection.",
    )
    parser.add_argument(
        "entity",
        choices=sorted(ENTITY_ROUTES) + list(_EXTRA_LISTINGS),
        help="Collection to display.",
    )
    parser.add_argument(
        "--id",
        dest="entity_id",
        type=int,
        help="Show a single record instead of the whole collection.",
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
    return None


def _build_console() -> Console:
    return Console()


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.entity_id is not None and args.entity in _EXTRA_LISTINGS:
        parser.error(f"--id is not supported for '{args.entity}'.")

    try:
        load_result = load_config(
            config_path=args.config, workspace_path=args.workspace
        )
    except (QuizClientConfigError, WorkspaceError) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2

    config = load_result.config
    logger, _ = configure_logger(
        "quiz_client",
        log_dir=load_result.layout.path_for("logs"),
        level=config.logging.level,
        verbose=args.verbose or config.logging.verbose,
    )
    console = _build_console()
    return asyncio.run(_browse(args, config, console, logger))


async def _browse(
    args: argparse.Namespace,
    config: QuizClientConfig,
    console: Console,
    logger: logging.Logger,
) -> int:
    async with ApiClient(
        config.backend.base_url,
        timeout_seconds=config.backend.timeout_seconds,
        transport=_build_transport(),
        logger=logger.getChild("http"),
    ) as client:
        data_logger = logger.getChild("data")
        if args.entity in _EXTRA_LISTINGS:
            quizzes = QuizRepository(client, logger=data_logger)
            source = _CallableSource(
                quizzes.get_all_quizzes
                if args.entity == "quizzes"
                else quizzes.get_categories
            )
        else:
            repository = build_entity_repositories(
                client, logger=data_logger
            )[args.entity]
            if args.entity_id is not None:
                result = await repository.get_by_id(args.entity_id)
                if not isinstance(result, Success):
                    _render_error(console, result.message)
                    return 1
                render_items(console, args.entity, [result.data])
                return 0
            source = repository

        controller = EntityListController(
            source, name=args.entity, logger=logger.getChild("browse")
        )
        state = await controller.load()
        if state.error is not None:
            _render_error(console, state.error)
            return 1
        render_items(console, args.entity, state.items)
        return 0


def render_items(console: Console, name: str, items: Sequence[Any]) -> None:
    """Print ``items`` as a table titled ``name``."""

    title = name.replace("_", " ").title()
    if not items:
        console.print(
            Panel(f"No {title.lower()} found.", border_style="yellow")
        )
        return

    table = Table(title=title, box=box.SIMPLE, expand=True)
    first = items[0]
    if not dataclasses.is_dataclass(first):
        table.add_column(title)
        for item in items:
            table.add_row(Text(_cell(item)))
        console.print(table)
        return

    columns = [field for field in dataclasses.fields(first) if field.repr]
    for field in columns:
        table.add_column(field.name.replace("_", " "), overflow="fold")
    for item in items:
        table.add_row(
            *(Text(_cell(getattr(item, field.name))) for field in columns)
        )
    console.print(table)


def _cell(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if dataclasses.is_dataclass(value):
        # Nested records are summarized by their first text field.
        for field in dataclasses.fields(value):
            candidate = getattr(value, field.name)
            if isinstance(candidate, str):
                return candidate
        return repr(value)
    if isinstance(value, tuple):
        if all(isinstance(item, str) for item in value):
            return ", ".join(value)
        return f"{len(value)} item(s)"
    return str(value)


def _render_error(console: Console, message: str) -> None:
    console.print(
        Panel(Text(message), title="Request failed", border_style="red")
    )
