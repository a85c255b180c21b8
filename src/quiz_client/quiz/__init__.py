"""Quiz session engine, snapshots and terminal play loop."""

from __future__ import annotations

from .engine import (
    DEFAULT_QUESTION_COUNT,
    QuizSessionEngine,
    QuizSessionError,
)
from .state import Phase, QuizSnapshot, percentage
from .view import PlayOutcome, parse_play_command, run_play_session

__all__ = [
    "DEFAULT_QUESTION_COUNT",
    "Phase",
    "PlayOutcome",
    "QuizSessionEngine",
    "QuizSessionError",
    "QuizSnapshot",
    "parse_play_command",
    "percentage",
    "run_play_session",
]
