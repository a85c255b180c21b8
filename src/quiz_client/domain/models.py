"""Entity records exchanged between repositories and their consumers."""

from __future__ import annotations

from dataclasses import dataclass, field

__all__ = [
    "DataIntegrityError",
    "Topic",
    "Status",
    "Difficulty",
    "UserRole",
    "Question",
    "Answer",
    "User",
    "UserQuestion",
    "QuizQuestion",
    "Quiz",
]


class DataIntegrityError(ValueError):
    """Raised when upstream data violates an entity invariant."""


@dataclass(frozen=True)
class Topic:
    topic_id: int
    topic: str


@dataclass(frozen=True)
class Status:
    status_id: int
    text: str


@dataclass(frozen=True)
class Difficulty:
    difficulty_id: int
    mode: str


@dataclass(frozen=True)
class UserRole:
    user_role_id: int
    user_role: str


@dataclass(frozen=True)
class Question:
    """A catalogue question with its review metadata."""

    question_id: int
    question_text: str
    reviewed_by: int
    topic: Topic
    status: Status
    difficulty: Difficulty


@dataclass(frozen=True)
class Answer:
    answer_id: int
    text: str
    correct: bool
    question: Question


@dataclass(frozen=True)
class User:
    user_id: int
    surname: str
    firstname: str
    birthdate: str
    nickname: str
    email: str
    password: str = field(repr=False)
    user_role: UserRole


@dataclass(frozen=True)
class UserQuestion:
    """The score a user earned on one catalogue question."""

    user_question_id: int
    user: User
    question: Question
    score: int


@dataclass(frozen=True)
class QuizQuestion:
    """A playable multiple-choice question.

    ``correct_option_index`` must point at one of ``answer_options``; a
    question that breaks this is rejected on construction.
    """

    id: int
    prompt_text: str
    answer_options: tuple[str, ...]
    correct_option_index: int
    category: str
    difficulty_label: str

    def __post_init__(self) -> None:
        options = tuple(self.answer_options)
        object.__setattr__(self, "answer_options", options)
        if len(options) < 2:
            raise DataIntegrityError(
                f"Question {self.id} needs at least two answer options, "
                f"got {len(options)}."
            )
        index = self.correct_option_index
        if isinstance(index, bool) or not isinstance(index, int):
            raise DataIntegrityError(
                f"Question {self.id} has a non-integer correct option index."
            )
        if not 0 <= index < len(options):
            raise DataIntegrityError(
                f"Question {self.id} marks option {index} as correct but "
                f"only has {len(options)} options."
            )

    @property
    def correct_option(self) -> str:
        return self.answer_options[self.correct_option_index]

    def is_correct(self, option_index: int) -> bool:
        return option_index == self.correct_option_index


@dataclass(frozen=True)
class Quiz:
    id: int
    title: str
    questions: tuple[QuizQuestion, ...] = ()
