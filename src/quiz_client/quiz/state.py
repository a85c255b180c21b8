"""Immutable quiz session snapshots and scoring helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..domain.models import QuizQuestion

__all__ = ["Phase", "QuizSnapshot", "percentage"]


class Phase(Enum):
    """Lifecycle of one quiz playthrough."""

    IDLE = "idle"
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    FAILED = "failed"


def percentage(score: int, total: int) -> int:
    """Integer percentage of ``score`` out of ``total``; 0 for no questions."""

    if total <= 0:
        return 0
    return score * 100 // total


@dataclass(frozen=True)
class QuizSnapshot:
    """Point-in-time view of a quiz session.

    Only the fields below are stored; everything a renderer needs beyond them
    (current question, totals, completion, percentage) is derived.
    """

    questions: tuple[QuizQuestion, ...] = ()
    current_index: int = 0
    score: int = 0
    phase: Phase = Phase.IDLE
    last_error: Optional[str] = None
    title: Optional[str] = None

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        if self.current_index < self.total_questions:
            return self.questions[self.current_index]
        return None

    @property
    def has_question_set(self) -> bool:
        return self.phase in (Phase.IN_PROGRESS, Phase.FINISHED)

    @property
    def is_finished(self) -> bool:
        # An empty set that loaded successfully counts as finished.
        return (
            self.has_question_set
            and self.current_index >= self.total_questions
        )

    @property
    def percentage(self) -> int:
        return percentage(self.score, self.total_questions)

    @property
    def result_label(self) -> str:
        return f"{self.score}/{self.total_questions}"
