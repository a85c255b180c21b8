"""Quiz session engine: progression, scoring and load recovery.

The engine owns exactly one :class:`~quiz_client.quiz.state.QuizSnapshot`.
Every intent replaces the snapshot with a new one and pushes it to the
subscribed listeners, so a renderer can either pull :meth:`snapshot` or
react to changes.

Loads run on the asyncio event loop. Starting a load while another is in
flight cancels the older request and bumps a generation counter, so a result
that still arrives late is dropped instead of overwriting newer state.
``answer`` and ``restart`` are synchronous; mutations go through one lock so
they cannot interleave when called from worker threads.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

from ..data.repositories import QuestionSource
from ..domain.result import Result, Success
from .state import Phase, QuizSnapshot

__all__ = [
    "DEFAULT_QUESTION_COUNT",
    "Listener",
    "QuizSessionEngine",
    "QuizSessionError",
]

DEFAULT_QUESTION_COUNT = 10

Listener = Callable[[QuizSnapshot], None]


class QuizSessionError(RuntimeError):
    """Raised when an intent is not valid for the current session state."""


@dataclass(frozen=True)
class _LoadRequest:
    count: int = DEFAULT_QUESTION_COUNT
    category: Optional[str] = None
    difficulty: Optional[str] = None
    quiz_id: Optional[int] = None

    def describe(self) -> dict[str, Any]:
        if self.quiz_id is not None:
            return {"source": "quiz", "quiz_id": self.quiz_id}
        return {
            "source": "random",
            "count": self.count,
            "category": self.category,
            "difficulty": self.difficulty,
        }


class QuizSessionEngine:
    """Drive one quiz playthrough from loading to the final score."""

    def __init__(
        self,
        source: QuestionSource,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._source = source
        self._logger = logger or logging.getLogger(__name__)
        self._state = QuizSnapshot()
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []
        self._generation = 0
        self._inflight: Optional[asyncio.Task[Any]] = None
        self._last_request: Optional[_LoadRequest] = None
        self._closed = False

    # Queries -----------------------------------------------------------

    def snapshot(self) -> QuizSnapshot:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every new snapshot until unsubscribed."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # Loading -----------------------------------------------------------

    async def load(
        self,
        count: int = DEFAULT_QUESTION_COUNT,
        category: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> QuizSnapshot:
        """Fetch ``count`` random questions, optionally filtered."""

        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValueError("count must be a positive integer.")
        return await self._run_load(
            _LoadRequest(count=count, category=category, difficulty=difficulty)
        )

    async def load_by_id(self, quiz_id: int) -> QuizSnapshot:
        """Fetch the ordered question set of one quiz."""

        return await self._run_load(_LoadRequest(quiz_id=quiz_id))

    async def retry(self) -> QuizSnapshot:
        """Repeat the most recent load with the same parameters."""

        if self._last_request is None:
            raise QuizSessionError("Nothing to retry; no quiz was requested.")
        return await self._run_load(self._last_request)

    async def _run_load(self, request: _LoadRequest) -> QuizSnapshot:
        self._ensure_open()
        self._last_request = request
        self._generation += 1
        generation = self._generation

        previous = self._inflight
        if previous is not None and not previous.done():
            previous.cancel()
            self._logger.info(
                "Superseded in-flight quiz load",
                extra={"event": "load_superseded", "generation": generation},
            )

        self._transition(
            QuizSnapshot(phase=Phase.LOADING),
            event="load_started",
            **request.describe(),
        )

        task = asyncio.ensure_future(self._fetch(request))
        self._inflight = task
        try:
            outcome = await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            # Our own fetch was cancelled by a newer load or by close().
            return self._state
        finally:
            if self._inflight is task:
                self._inflight = None

        if generation != self._generation or self._closed:
            self._logger.debug(
                "Discarded stale quiz load result",
                extra={"event": "load_discarded", "generation": generation},
            )
            return self._state

        self._apply_outcome(outcome)
        return self._state

    async def _fetch(
        self, request: _LoadRequest
    ) -> Result[tuple[Optional[str], tuple[Any, ...]]]:
        if request.quiz_id is not None:
            quiz_result = await self._source.fetch_by_quiz_id(request.quiz_id)
            return quiz_result.map(
                lambda quiz: (quiz.title, tuple(quiz.questions))
            )
        questions_result = await self._source.fetch_random(
            request.count, request.category, request.difficulty
        )
        return questions_result.map(lambda items: (None, tuple(items)))

    def _apply_outcome(
        self, outcome: Result[tuple[Optional[str], tuple[Any, ...]]]
    ) -> None:
        if isinstance(outcome, Success):
            title, questions = outcome.data
            phase = Phase.IN_PROGRESS if questions else Phase.FINISHED
            self._transition(
                QuizSnapshot(questions=questions, phase=phase, title=title),
                event="load_succeeded",
                total_questions=len(questions),
            )
            return
        self._transition(
            QuizSnapshot(
                phase=Phase.FAILED,
                last_error=outcome.message,
            ),
            event="load_failed",
            level=logging.WARNING,
        )

    # Play --------------------------------------------------------------

    def answer(self, selected_option_index: int) -> bool:
        """Score the current question and advance; return correctness.

        Any index is accepted; one that does not name an option simply
        scores as wrong. Raises :class:`QuizSessionError` only when there is
        no question to answer, in which case nothing is scored.
        """

        with self._lock:
            self._ensure_open()
            state = self._state
            question = state.current_question
            if state.phase is not Phase.IN_PROGRESS or question is None:
                raise QuizSessionError(
                    "No question to answer while the session is "
                    f"{state.phase.value}."
                )
            correct = question.is_correct(selected_option_index)
            next_index = state.current_index + 1
            finished = next_index >= state.total_questions
            updated = replace(
                state,
                current_index=next_index,
                score=state.score + 1 if correct else state.score,
                phase=Phase.FINISHED if finished else Phase.IN_PROGRESS,
            )
            self._state = updated
        self._announce(
            updated,
            event="answered",
            level=logging.DEBUG,
            question_id=question.id,
            correct=correct,
        )
        return correct

    def restart(self) -> QuizSnapshot:
        """Replay the loaded question set from the first question."""

        with self._lock:
            self._ensure_open()
            state = self._state
            if not state.has_question_set:
                raise QuizSessionError(
                    "Cannot restart before a question set has loaded."
                )
            updated = replace(
                state,
                current_index=0,
                score=0,
                last_error=None,
                phase=Phase.IN_PROGRESS if state.questions else Phase.FINISHED,
            )
            self._state = updated
        self._announce(updated, event="restarted")
        return updated

    # Teardown ----------------------------------------------------------

    async def close(self) -> None:
        """Cancel any in-flight load and refuse further intents."""

        if self._closed:
            return
        self._closed = True
        self._generation += 1
        task = self._inflight
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait([task])
        self._listeners.clear()
        self._logger.debug(
            "Quiz session engine closed", extra={"event": "closed"}
        )

    async def __aenter__(self) -> "QuizSessionEngine":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # Internals ---------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise QuizSessionError("The quiz session engine is closed.")

    def _transition(
        self,
        updated: QuizSnapshot,
        *,
        event: str,
        level: int = logging.INFO,
        **details: Any,
    ) -> None:
        with self._lock:
            self._state = updated
        self._announce(updated, event=event, level=level, **details)

    def _announce(
        self,
        snapshot: QuizSnapshot,
        *,
        event: str,
        level: int = logging.INFO,
        **details: Any,
    ) -> None:
        self._logger.log(
            level,
            "Quiz session %s",
            event,
            extra={
                "event": event,
                "phase": snapshot.phase.value,
                "current_index": snapshot.current_index,
                "score": snapshot.score,
                "last_error": snapshot.last_error,
                **details,
            },
        )
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                self._logger.exception(
                    "Quiz state listener failed", extra={"event": event}
                )
