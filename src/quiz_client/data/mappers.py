"""Convert backend JSON records into domain entities.

Every converter is total over a record with the documented field set. A
missing or mistyped field raises :class:`WireFormatError`; a record that is
well formed but semantically broken (for example a correct-answer index that
points past the options) raises
:class:`~quiz_client.domain.models.DataIntegrityError`. Repositories turn
both into :class:`~quiz_client.domain.result.Error` values.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence, TypeVar

from ..domain.models import (
    Answer,
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

__all__ = [
    "WireFormatError",
    "map_list",
    "topic_from_wire",
    "status_from_wire",
    "difficulty_from_wire",
    "user_role_from_wire",
    "question_from_wire",
    "answer_from_wire",
    "user_from_wire",
    "user_question_from_wire",
    "quiz_question_from_wire",
    "quiz_from_wire",
    "categories_from_wire",
]

T = TypeVar("T")


class WireFormatError(ValueError):
    """Raised when a backend payload does not match the expected schema."""


def _record(payload: Any, *, kind: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise WireFormatError(
            f"Expected a JSON object for {kind}, got {type(payload).__name__}."
        )
    return payload


def _field(record: Mapping[str, Any], key: str, *, kind: str) -> Any:
    try:
        return record[key]
    except KeyError as exc:
        raise WireFormatError(f"{kind} record is missing '{key}'.") from exc


def _int(record: Mapping[str, Any], key: str, *, kind: str) -> int:
    value = _field(record, key, kind=kind)
    if isinstance(value, bool) or not isinstance(value, int):
        raise WireFormatError(f"{kind}.{key} must be an integer.")
    return value


def _str(record: Mapping[str, Any], key: str, *, kind: str) -> str:
    value = _field(record, key, kind=kind)
    if not isinstance(value, str):
        raise WireFormatError(f"{kind}.{key} must be a string.")
    return value


def _bool(record: Mapping[str, Any], key: str, *, kind: str) -> bool:
    value = _field(record, key, kind=kind)
    if not isinstance(value, bool):
        raise WireFormatError(f"{kind}.{key} must be a boolean.")
    return value


def _list(payload: Any, *, kind: str) -> Sequence[Any]:
    if isinstance(payload, (str, bytes)) or not isinstance(payload, Sequence):
        raise WireFormatError(f"Expected a JSON array of {kind}.")
    return payload


def map_list(
    payload: Any, mapper: Callable[[Any], T], *, kind: str
) -> list[T]:
    """Apply ``mapper`` to every element of a JSON array."""

    return [mapper(item) for item in _list(payload, kind=kind)]


def topic_from_wire(payload: Any) -> Topic:
    record = _record(payload, kind="topic")
    return Topic(
        topic_id=_int(record, "topicId", kind="topic"),
        topic=_str(record, "topic", kind="topic"),
    )


def status_from_wire(payload: Any) -> Status:
    record = _record(payload, kind="status")
    return Status(
        status_id=_int(record, "statusId", kind="status"),
        text=_str(record, "text", kind="status"),
    )


def difficulty_from_wire(payload: Any) -> Difficulty:
    record = _record(payload, kind="difficulty")
    return Difficulty(
        difficulty_id=_int(record, "difficultyId", kind="difficulty"),
        mode=_str(record, "mode", kind="difficulty"),
    )


def user_role_from_wire(payload: Any) -> UserRole:
    record = _record(payload, kind="userRole")
    return UserRole(
        user_role_id=_int(record, "userRoleId", kind="userRole"),
        user_role=_str(record, "userRole", kind="userRole"),
    )


def question_from_wire(payload: Any) -> Question:
    record = _record(payload, kind="question")
    return Question(
        question_id=_int(record, "questionId", kind="question"),
        question_text=_str(record, "questionText", kind="question"),
        reviewed_by=_int(record, "reviewedBy", kind="question"),
        topic=topic_from_wire(_field(record, "topic", kind="question")),
        status=status_from_wire(_field(record, "status", kind="question")),
        difficulty=difficulty_from_wire(
            _field(record, "difficulty", kind="question")
        ),
    )


def answer_from_wire(payload: Any) -> Answer:
    record = _record(payload, kind="answer")
    return Answer(
        answer_id=_int(record, "answerId", kind="answer"),
        text=_str(record, "text", kind="answer"),
        correct=_bool(record, "correct", kind="answer"),
        question=question_from_wire(_field(record, "question", kind="answer")),
    )


def user_from_wire(payload: Any) -> User:
    record = _record(payload, kind="user")
    return User(
        user_id=_int(record, "userId", kind="user"),
        surname=_str(record, "surname", kind="user"),
        firstname=_str(record, "firstname", kind="user"),
        birthdate=_str(record, "birthdate", kind="user"),
        nickname=_str(record, "nickname", kind="user"),
        email=_str(record, "email", kind="user"),
        password=_str(record, "password", kind="user"),
        user_role=user_role_from_wire(_field(record, "userRole", kind="user")),
    )


def user_question_from_wire(payload: Any) -> UserQuestion:
    record = _record(payload, kind="userQuestion")
    return UserQuestion(
        user_question_id=_int(
            record, "userQuestionId", kind="userQuestion"
        ),
        user=user_from_wire(_field(record, "user", kind="userQuestion")),
        question=question_from_wire(
            _field(record, "question", kind="userQuestion")
        ),
        score=_int(record, "score", kind="userQuestion"),
    )


def quiz_question_from_wire(payload: Any) -> QuizQuestion:
    record = _record(payload, kind="quizQuestion")
    options = _list(
        _field(record, "answers", kind="quizQuestion"), kind="answers"
    )
    if not all(isinstance(option, str) for option in options):
        raise WireFormatError("quizQuestion.answers must contain strings.")
    return QuizQuestion(
        id=_int(record, "id", kind="quizQuestion"),
        prompt_text=_str(record, "text", kind="quizQuestion"),
        answer_options=tuple(options),
        correct_option_index=_int(
            record, "correctAnswerIndex", kind="quizQuestion"
        ),
        category=_str(record, "category", kind="quizQuestion"),
        difficulty_label=_str(record, "difficulty", kind="quizQuestion"),
    )


def quiz_from_wire(payload: Any) -> Quiz:
    record = _record(payload, kind="quiz")
    return Quiz(
        id=_int(record, "id", kind="quiz"),
        title=_str(record, "title", kind="quiz"),
        questions=tuple(
            map_list(
                _field(record, "questions", kind="quiz"),
                quiz_question_from_wire,
                kind="quiz questions",
            )
        ),
    )


def categories_from_wire(payload: Any) -> list[str]:
    items = _list(payload, kind="categories")
    if not all(isinstance(item, str) for item in items):
        raise WireFormatError("Categories must be strings.")
    return list(items)
