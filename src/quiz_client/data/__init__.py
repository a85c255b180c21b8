"""Backend access: HTTP transport, wire mappers and repositories."""

from __future__ import annotations

from .mappers import WireFormatError
from .repositories import (
    ENTITY_ROUTES,
    EntityRepository,
    QuestionSource,
    QuizRepository,
    build_entity_repositories,
)
from .transport import ApiClient

__all__ = [
    "ApiClient",
    "ENTITY_ROUTES",
    "EntityRepository",
    "QuestionSource",
    "QuizRepository",
    "WireFormatError",
    "build_entity_repositories",
]
