"""Domain records and the Result outcome type."""

from __future__ import annotations

from .models import (
    Answer,
    DataIntegrityError,
    Difficulty,
    Question,
    Quiz,
    QuizQuestion,
    Status,
    Topic,
    User,
    UserQuestion,
    UserRole,
)
from .result import Error, Result, Success

__all__ = [
    "Answer",
    "DataIntegrityError",
    "Difficulty",
    "Question",
    "Quiz",
    "QuizQuestion",
    "Status",
    "Topic",
    "User",
    "UserQuestion",
    "UserRole",
    "Error",
    "Result",
    "Success",
]
