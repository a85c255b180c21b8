"""Shared builders and fake backends for the quiz_client test suite."""

from .backend import (  # noqa: F401
    BASE_URL,
    JsonRoutes,
    make_client,
    wire_question,
    wire_quiz_question,
    wire_user,
)
from .quiz import (  # noqa: F401
    FakeQuestionSource,
    GatedQuestionSource,
    make_question,
    make_questions,
    wait_for,
)

__all__ = [
    "BASE_URL",
    "FakeQuestionSource",
    "GatedQuestionSource",
    "JsonRoutes",
    "make_client",
    "make_question",
    "make_questions",
    "wait_for",
    "wire_question",
    "wire_quiz_question",
    "wire_user",
]
