"""Generic load-and-render state holder for entity listings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Generic, Optional, Protocol, TypeVar

from ..domain.result import Result, Success

__all__ = ["EntityListController", "ListSource", "ListState"]

T = TypeVar("T")


class ListSource(Protocol[T]):
    async def get_all(self) -> Result[list[T]]: ...


@dataclass(frozen=True)
class ListState(Generic[T]):
    items: tuple[T, ...] = ()
    is_loading: bool = False
    error: Optional[str] = None


class EntityListController(Generic[T]):
    """Fetch one collection through a repository and expose its state.

    On failure the previously loaded items are kept next to the error so a
    renderer can keep showing them while offering a retry.
    """

    def __init__(
        self,
        repository: ListSource[T],
        *,
        name: str,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._repository = repository
        self.name = name
        self._logger = logger or logging.getLogger(__name__)
        self._state: ListState[T] = ListState()
        self._listeners: list[Callable[[ListState[T]], None]] = []

    @property
    def state(self) -> ListState[T]:
        return self._state

    def subscribe(
        self, listener: Callable[[ListState[T]], None]
    ) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def load(self) -> ListState[T]:
        self._set(replace(self._state, is_loading=True, error=None))
        result = await self._repository.get_all()
        if isinstance(result, Success):
            self._set(ListState(items=tuple(result.data)))
            self._logger.info(
                "Loaded entity list",
                extra={"entity": self.name, "count": len(result.data)},
            )
        else:
            self._set(
                replace(self._state, is_loading=False, error=result.message)
            )
        return self._state

    async def retry(self) -> ListState[T]:
        return await self.load()

    def _set(self, state: ListState[T]) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                self._logger.exception(
                    "Entity list listener failed", extra={"entity": self.name}
                )
