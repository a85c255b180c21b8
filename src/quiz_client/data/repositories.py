"""Repositories that wrap backend calls in the Result protocol.

Each operation is a single-shot coroutine. Transport faults, non-2xx
responses, undecodable bodies and schema mismatches are all caught here and
returned as :class:`~quiz_client.domain.result.Error`; nothing but
cancellation escapes to the caller. There are no retries and no partial
results.
"""

from __future__ import annotations

import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    Mapping,
    NamedTuple,
    Optional,
    Protocol,
    TypeVar,
)

import httpx

from ..domain.models import DataIntegrityError, Quiz, QuizQuestion
from ..domain.result import Error, Result, Success
from . import mappers
from .transport import ApiClient

__all__ = [
    "EntityRepository",
    "EntityRoute",
    "ENTITY_ROUTES",
    "QuestionSource",
    "QuizRepository",
    "build_entity_repositories",
]

T = TypeVar("T")

_LOGGER = logging.getLogger(__name__)


class QuestionSource(Protocol):
    """What the quiz session engine needs from a question provider."""

    async def fetch_random(
        self,
        count: int,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> Result[list[QuizQuestion]]: ...

    async def fetch_by_quiz_id(self, quiz_id: int) -> Result[Quiz]: ...


async def _guarded(
    label: str,
    call: Callable[[], Awaitable[Any]],
    convert: Callable[[Any], T],
    *,
    logger: logging.Logger,
) -> Result[T]:
    try:
        payload = await call()
        data = convert(payload)
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        return _failure(
            label,
            f"server responded with HTTP {status}",
            exc,
            logger=logger,
        )
    except httpx.HTTPError as exc:
        return _failure(label, _describe(exc), exc, logger=logger)
    except (mappers.WireFormatError, DataIntegrityError) as exc:
        return _failure(
            label, f"invalid response data ({exc})", exc, logger=logger
        )
    except ValueError as exc:
        return _failure(
            label, "response body is not valid JSON", exc, logger=logger
        )
    except Exception as exc:
        return _failure(
            label, _describe(exc), exc, logger=logger, unexpected=True
        )
    return Success(data)


def _describe(exc: BaseException) -> str:
    text = str(exc).strip()
    return text or type(exc).__name__


def _failure(
    label: str,
    detail: str,
    exc: BaseException,
    *,
    logger: logging.Logger,
    unexpected: bool = False,
) -> Error:
    message = f"Failed to load {label}: {detail}"
    logger.warning(
        message,
        extra={"label": label, "error_type": type(exc).__name__},
        exc_info=exc if unexpected else None,
    )
    return Error(message, cause=exc)


class EntityRepository(Generic[T]):
    """``get_all``/``get_by_id`` access to one backend collection."""

    def __init__(
        self,
        client: ApiClient,
        *,
        route: str,
        mapper: Callable[[Any], T],
        label: str,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._route = route.strip("/")
        self._mapper = mapper
        self.label = label
        self._logger = logger or _LOGGER

    async def get_all(self) -> Result[list[T]]:
        return await _guarded(
            self.label,
            lambda: self._client.get_json(self._route),
            lambda payload: mappers.map_list(
                payload, self._mapper, kind=self.label
            ),
            logger=self._logger,
        )

    async def get_by_id(self, entity_id: int) -> Result[T]:
        return await _guarded(
            f"{self.label} {entity_id}",
            lambda: self._client.get_json(f"{self._route}/{entity_id}"),
            self._mapper,
            logger=self._logger,
        )


class EntityRoute(NamedTuple):
    """Static description of one backend collection."""

    route: str
    mapper: Callable[[Any], Any]
    label: str


ENTITY_ROUTES: Mapping[str, EntityRoute] = {
    "answers": EntityRoute("answers", mappers.answer_from_wire, "answers"),
    "questions": EntityRoute(
        "questions", mappers.question_from_wire, "questions"
    ),
    "topics": EntityRoute("topics", mappers.topic_from_wire, "topics"),
    "statuses": EntityRoute("status", mappers.status_from_wire, "statuses"),
    "difficulties": EntityRoute(
        "difficulties", mappers.difficulty_from_wire, "difficulties"
    ),
    "users": EntityRoute("users", mappers.user_from_wire, "users"),
    "user_roles": EntityRoute(
        "userRoles", mappers.user_role_from_wire, "user roles"
    ),
    "user_questions": EntityRoute(
        "userQuestions", mappers.user_question_from_wire, "user questions"
    ),
}


def build_entity_repositories(
    client: ApiClient, *, logger: Optional[logging.Logger] = None
) -> dict[str, EntityRepository[Any]]:
    """Return one repository per entity family keyed by its name."""

    return {
        name: EntityRepository(
            client,
            route=entry.route,
            mapper=entry.mapper,
            label=entry.label,
            logger=logger,
        )
        for name, entry in ENTITY_ROUTES.items()
    }


class QuizRepository:
    """Question sets for quiz play, plus quiz and category listings."""

    def __init__(
        self, client: ApiClient, *, logger: Optional[logging.Logger] = None
    ) -> None:
        self._client = client
        self._logger = logger or _LOGGER

    async def fetch_random(
        self,
        count: int = 10,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> Result[list[QuizQuestion]]:
        params = {
            "count": count,
            "category": category,
            "difficulty": difficulty,
        }
        return await _guarded(
            "questions",
            lambda: self._client.get_json("api/questions/random", params),
            lambda payload: mappers.map_list(
                payload, mappers.quiz_question_from_wire, kind="questions"
            ),
            logger=self._logger,
        )

    async def fetch_by_quiz_id(self, quiz_id: int) -> Result[Quiz]:
        return await _guarded(
            f"quiz {quiz_id}",
            lambda: self._client.get_json(f"api/quiz/{quiz_id}"),
            mappers.quiz_from_wire,
            logger=self._logger,
        )

    async def get_all_quizzes(self) -> Result[list[Quiz]]:
        return await _guarded(
            "quizzes",
            lambda: self._client.get_json("api/quiz"),
            lambda payload: mappers.map_list(
                payload, mappers.quiz_from_wire, kind="quizzes"
            ),
            logger=self._logger,
        )

    async def get_categories(self) -> Result[list[str]]:
        return await _guarded(
            "categories",
            lambda: self._client.get_json("api/categories"),
            mappers.categories_from_wire,
            logger=self._logger,
        )
