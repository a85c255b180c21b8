from __future__ import annotations

import asyncio
import logging

import pytest

from fixtures import (
    FakeQuestionSource,
    GatedQuestionSource,
    make_question,
    make_questions,
    wait_for,
)
from quiz_client.domain import Quiz
from quiz_client.domain.result import Error, Success
from quiz_client.quiz import (
    Phase,
    QuizSessionEngine,
    QuizSessionError,
    QuizSnapshot,
    percentage,
)


def _loaded_engine(*correct_indexes: int) -> QuizSessionEngine:
    source = FakeQuestionSource(Success(make_questions(*correct_indexes)))
    engine = QuizSessionEngine(source)
    asyncio.run(engine.load(count=len(correct_indexes)))
    return engine


def test_new_engine_is_idle():
    engine = QuizSessionEngine(FakeQuestionSource(Success([])))

    state = engine.snapshot()

    assert state == QuizSnapshot()
    assert state.phase is Phase.IDLE
    assert state.current_question is None
    assert state.has_question_set is False
    assert state.is_finished is False


def test_successful_load_starts_at_first_question():
    questions = make_questions(0, 1, 2)
    source = FakeQuestionSource(Success(questions))
    engine = QuizSessionEngine(source)

    state = asyncio.run(engine.load(3, "science", "hard"))

    assert state.phase is Phase.IN_PROGRESS
    assert state.questions == tuple(questions)
    assert state.current_index == 0
    assert state.score == 0
    assert state.last_error is None
    assert state.current_question == questions[0]
    assert source.calls == [("random", 3, "science", "hard")]


def test_playthrough_scores_and_finishes():
    engine = _loaded_engine(0, 1, 2)

    assert engine.answer(0) is True
    assert engine.answer(0) is False
    assert engine.snapshot().current_index == 2
    assert engine.answer(2) is True

    state = engine.snapshot()
    assert state.phase is Phase.FINISHED
    assert state.is_finished is True
    assert state.current_question is None
    assert state.score == 2
    assert state.result_label == "2/3"
    assert state.percentage == 66


def test_answer_after_finish_is_rejected_without_scoring():
    engine = _loaded_engine(0)
    engine.answer(0)

    with pytest.raises(QuizSessionError):
        engine.answer(0)

    assert engine.snapshot().score == 1


def test_out_of_range_option_counts_as_wrong_and_advances():
    engine = _loaded_engine(1, 1)

    assert engine.answer(5) is False
    state = engine.snapshot()
    assert (state.current_index, state.score) == (1, 0)

    assert engine.answer(-1) is False
    state = engine.snapshot()
    assert state.phase is Phase.FINISHED
    assert state.current_index == 2
    assert state.score == 0


# Each step is an option index; 0 is correct for every question below.
_ANSWER_SEQUENCES = [
    [0, 0, 0],
    [1, 2, 1],
    [0, 1, 0, 2],
    [7, -1, 0],
    [0],
    [2, 0, 99, 0, 1],
]


@pytest.mark.parametrize("picks", _ANSWER_SEQUENCES)
def test_answer_sequences_keep_score_and_progress_consistent(picks):
    engine = _loaded_engine(*([0] * len(picks)))
    total = len(picks)
    previous_index = engine.snapshot().current_index

    for step, pick in enumerate(picks, start=1):
        before = engine.snapshot()
        correct = engine.answer(pick)
        after = engine.snapshot()

        assert correct is (pick == 0)
        assert after.score == before.score + (1 if correct else 0)
        assert after.current_index > previous_index
        assert after.current_index == step
        assert 0 <= after.score <= after.current_index
        expected = Phase.FINISHED if step == total else Phase.IN_PROGRESS
        assert after.phase is expected
        previous_index = after.current_index

    final = engine.snapshot()
    assert final.phase is Phase.FINISHED
    assert 0 <= final.score <= total
    assert final.score == picks.count(0)


def test_one_of_two_correct_is_fifty_percent():
    engine = _loaded_engine(0, 1)

    engine.answer(0)
    engine.answer(0)

    state = engine.snapshot()
    assert state.score == 1
    assert state.phase is Phase.FINISHED
    assert state.result_label == "1/2"
    assert state.percentage == 50


def test_fresh_load_after_failure_clears_error():
    source = FakeQuestionSource(
        Error("Network error"), Success(make_questions(0, 1, 2, 0, 1))
    )
    engine = QuizSessionEngine(source)

    async def scenario():
        failed = await engine.load(count=5)
        recovered = await engine.load(count=5)
        return failed, recovered

    failed, recovered = asyncio.run(scenario())

    assert failed.phase is Phase.FAILED
    assert failed.last_error == "Network error"
    assert recovered.phase is Phase.IN_PROGRESS
    assert recovered.last_error is None
    assert recovered.total_questions == 5
    assert source.calls == [
        ("random", 5, None, None),
        ("random", 5, None, None),
    ]


def test_answer_before_load_is_rejected():
    engine = QuizSessionEngine(FakeQuestionSource(Success([])))

    with pytest.raises(QuizSessionError):
        engine.answer(0)


def test_failed_load_records_error_and_clears_questions():
    source = FakeQuestionSource(
        Success(make_questions(0)),
        Error("Failed to load questions: boom"),
    )
    engine = QuizSessionEngine(source)

    async def scenario():
        await engine.load(1)
        engine.answer(0)
        return await engine.load(1)

    state = asyncio.run(scenario())

    assert state.phase is Phase.FAILED
    assert state.last_error == "Failed to load questions: boom"
    assert state.questions == ()
    assert state.score == 0
    assert state.has_question_set is False
    with pytest.raises(QuizSessionError):
        engine.restart()


def test_retry_repeats_the_last_request():
    source = FakeQuestionSource(
        Error("Failed to load questions: timed out"),
        Success(make_questions(0, 0)),
    )
    engine = QuizSessionEngine(source)

    async def scenario():
        failed = await engine.load(2, "history")
        recovered = await engine.retry()
        return failed, recovered

    failed, recovered = asyncio.run(scenario())

    assert failed.phase is Phase.FAILED
    assert recovered.phase is Phase.IN_PROGRESS
    assert recovered.last_error is None
    assert source.calls == [
        ("random", 2, "history", None),
        ("random", 2, "history", None),
    ]


def test_retry_without_previous_load_is_rejected():
    engine = QuizSessionEngine(FakeQuestionSource(Success([])))

    with pytest.raises(QuizSessionError):
        asyncio.run(engine.retry())


def test_empty_question_set_is_immediately_finished():
    engine = QuizSessionEngine(FakeQuestionSource(Success([])))

    state = asyncio.run(engine.load(5))

    assert state.phase is Phase.FINISHED
    assert state.is_finished is True
    assert state.total_questions == 0
    assert state.percentage == 0
    assert state.result_label == "0/0"
    with pytest.raises(QuizSessionError):
        engine.answer(0)
    assert engine.restart().phase is Phase.FINISHED


@pytest.mark.parametrize("count", [0, -3, True])
def test_load_rejects_invalid_counts(count):
    engine = QuizSessionEngine(FakeQuestionSource(Success([])))

    with pytest.raises(ValueError):
        asyncio.run(engine.load(count))
    assert engine.snapshot().phase is Phase.IDLE


def test_restart_resets_progress_and_keeps_questions():
    engine = _loaded_engine(0, 1)
    before = engine.snapshot().questions
    engine.answer(0)
    engine.answer(1)

    first = engine.restart()
    second = engine.restart()

    assert first == second
    assert first.phase is Phase.IN_PROGRESS
    assert first.current_index == 0
    assert first.score == 0
    assert first.questions == before


def test_restart_before_load_is_rejected():
    engine = QuizSessionEngine(FakeQuestionSource(Success([])))

    with pytest.raises(QuizSessionError):
        engine.restart()


def test_load_mid_quiz_replaces_progress():
    source = FakeQuestionSource(
        Success(make_questions(0, 0)), Success(make_questions(1))
    )
    engine = QuizSessionEngine(source)

    async def scenario():
        await engine.load(2)
        engine.answer(0)
        return await engine.load(1)

    state = asyncio.run(scenario())

    assert state.phase is Phase.IN_PROGRESS
    assert state.total_questions == 1
    assert state.current_index == 0
    assert state.score == 0


def test_load_by_id_uses_quiz_title_and_order():
    questions = make_questions(1, 0)
    quiz = Quiz(id=3, title="Capitals", questions=tuple(reversed(questions)))
    source = FakeQuestionSource(Success([]), quizzes={3: Success(quiz)})
    engine = QuizSessionEngine(source)

    state = asyncio.run(engine.load_by_id(3))

    assert state.title == "Capitals"
    assert [question.id for question in state.questions] == [2, 1]
    assert source.calls == [("quiz", 3)]


def test_listeners_see_each_transition_until_unsubscribed():
    source = FakeQuestionSource(Success(make_questions(0)))
    engine = QuizSessionEngine(source)
    seen: list[Phase] = []
    unsubscribe = engine.subscribe(lambda state: seen.append(state.phase))

    asyncio.run(engine.load(1))
    engine.answer(0)
    unsubscribe()
    engine.restart()

    assert seen == [Phase.LOADING, Phase.IN_PROGRESS, Phase.FINISHED]


def test_loading_snapshot_has_no_question_set():
    source = FakeQuestionSource(Success(make_questions(0)))
    engine = QuizSessionEngine(source)
    loading: list[QuizSnapshot] = []
    engine.subscribe(
        lambda state: loading.append(state)
        if state.phase is Phase.LOADING
        else None
    )

    asyncio.run(engine.load(1))

    assert loading == [QuizSnapshot(phase=Phase.LOADING)]


def test_failing_listener_does_not_break_the_engine(caplog):
    engine = _loaded_engine(0, 0)

    def broken(state: QuizSnapshot) -> None:
        raise RuntimeError("renderer crashed")

    engine.subscribe(broken)
    with caplog.at_level(logging.ERROR):
        assert engine.answer(0) is True

    assert engine.snapshot().current_index == 1
    assert "Quiz state listener failed" in caplog.text


def test_newer_load_supersedes_inflight_load():
    first_set = make_questions(0, 0)
    second_set = make_questions(1, 1, 1)
    source = GatedQuestionSource(Success(first_set), Success(second_set))
    engine = QuizSessionEngine(source)

    async def scenario():
        first = asyncio.create_task(engine.load(2))
        await wait_for(lambda: len(source.gates) == 1)
        second = asyncio.create_task(engine.load(3))
        await wait_for(lambda: len(source.gates) == 2)
        source.gates[1].set()
        return await first, await second

    first_state, second_state = asyncio.run(scenario())

    assert source.cancelled == 1
    assert first_state.phase is Phase.LOADING
    assert second_state.phase is Phase.IN_PROGRESS
    assert engine.snapshot().questions == tuple(second_set)


def test_filtered_load_supersedes_default_load():
    default_set = make_questions(*([0] * 10))
    science_set = [
        make_question(number, category="science") for number in range(1, 6)
    ]
    source = GatedQuestionSource(Success(default_set), Success(science_set))
    engine = QuizSessionEngine(source)

    async def scenario():
        first = asyncio.create_task(engine.load(count=10))
        await wait_for(lambda: len(source.gates) == 1)
        second = asyncio.create_task(
            engine.load(count=5, category="science")
        )
        await wait_for(lambda: len(source.gates) == 2)
        source.gates[0].set()
        source.gates[1].set()
        await first
        await second

    asyncio.run(scenario())

    state = engine.snapshot()
    assert state.phase is Phase.IN_PROGRESS
    assert state.total_questions == 5
    assert {question.category for question in state.questions} == {"science"}


def test_stale_result_is_discarded_when_cancellation_is_ignored():
    first_set = make_questions(0)
    second_set = make_questions(1, 1)
    source = GatedQuestionSource(
        Success(first_set), Success(second_set), honour_cancel=False
    )
    engine = QuizSessionEngine(source)

    async def scenario():
        first = asyncio.create_task(engine.load(1))
        await wait_for(lambda: len(source.gates) == 1)
        second = asyncio.create_task(engine.load(2))
        await wait_for(lambda: len(source.gates) == 2)
        # The first call ignored cancellation and has already returned.
        await first
        assert engine.snapshot().phase is Phase.LOADING
        source.gates[1].set()
        await second

    asyncio.run(scenario())

    assert engine.snapshot().questions == tuple(second_set)
    assert engine.snapshot().phase is Phase.IN_PROGRESS


def test_caller_cancellation_propagates():
    source = GatedQuestionSource(Success(make_questions(0)))
    engine = QuizSessionEngine(source)

    async def scenario():
        task = asyncio.create_task(engine.load(1))
        await wait_for(lambda: len(source.gates) == 1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert source.cancelled == 1
    assert engine.snapshot().phase is Phase.LOADING


def test_close_cancels_inflight_load_and_rejects_intents():
    source = GatedQuestionSource(Success(make_questions(0)))
    engine = QuizSessionEngine(source)
    seen: list[Phase] = []
    engine.subscribe(lambda state: seen.append(state.phase))

    async def scenario():
        task = asyncio.create_task(engine.load(1))
        await wait_for(lambda: len(source.gates) == 1)
        await engine.close()
        return await task

    state = asyncio.run(scenario())

    assert engine.closed is True
    assert source.cancelled == 1
    assert state.phase is Phase.LOADING
    assert seen == [Phase.LOADING]
    with pytest.raises(QuizSessionError):
        engine.answer(0)
    with pytest.raises(QuizSessionError):
        asyncio.run(engine.load(1))


def test_engine_as_async_context_manager_closes():
    source = FakeQuestionSource(Success(make_questions(0)))

    async def scenario():
        async with QuizSessionEngine(source) as engine:
            await engine.load(1)
        return engine

    engine = asyncio.run(scenario())

    assert engine.closed is True
    assert engine.snapshot().phase is Phase.IN_PROGRESS


@pytest.mark.parametrize(
    ("score", "total", "expected"),
    [(0, 0, 0), (1, 3, 33), (2, 3, 66), (3, 3, 100), (0, 4, 0)],
)
def test_percentage_truncates(score, total, expected):
    assert percentage(score, total) == expected
