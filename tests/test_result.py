from __future__ import annotations

import pytest

from quiz_client.domain.result import Error, Success


def test_success_carries_data_and_maps():
    result = Success([1, 2, 3])

    assert result.is_success is True
    assert result.map(len) == Success(3)


def test_error_requires_message():
    with pytest.raises(ValueError):
        Error("")
    with pytest.raises(ValueError):
        Error("   ")


def test_error_map_is_identity_and_ignores_cause_for_equality():
    cause = RuntimeError("boom")
    error = Error("Failed to load topics: boom", cause=cause)

    assert error.is_success is False
    assert error.map(len) is error
    assert error == Error("Failed to load topics: boom")
    assert error.cause is cause
