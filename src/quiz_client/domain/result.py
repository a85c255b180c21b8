"""Two-variant outcome type returned by every data-loading call.

Repositories never raise for expected failures; they hand back either a
:class:`Success` carrying the loaded value or an :class:`Error` carrying a
human-readable message and, optionally, the fault that caused it::

    result = await repository.get_all()
    if isinstance(result, Success):
        render(result.data)
    else:
        show_error(result.message)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, TypeVar, Union

__all__ = ["Success", "Error", "Result"]

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Success(Generic[T]):
    """A completed call and the value it produced."""

    data: T

    @property
    def is_success(self) -> bool:
        return True

    def map(self, fn: Callable[[T], U]) -> "Success[U]":
        return Success(fn(self.data))


@dataclass(frozen=True)
class Error:
    """A failed call.

    ``message`` is meant for the user and is never empty. ``cause`` keeps the
    original exception for diagnostics only.
    """

    message: str
    cause: BaseException | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.message, str) or not self.message.strip():
            raise ValueError("Error message must be a non-empty string.")

    @property
    def is_success(self) -> bool:
        return False

    def map(self, fn: Callable[[object], object]) -> "Error":
        return self


Result = Union[Success[T], Error]
