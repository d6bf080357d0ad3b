"""Test the Result type for explicit error handling."""

from dataclasses import FrozenInstanceError

import pytest

from vitals.services.result import Result
from vitals.services.storage import StorageError


class TestResult:
    def test_result_ok_creates_successful_result(self) -> None:
        result: Result[list[int], StorageError] = Result.ok([1, 2])

        assert result.is_ok()
        assert not result.is_err()
        assert result.unwrap() == [1, 2]

    def test_empty_value_is_still_ok(self) -> None:
        result: Result[list[int], StorageError] = Result.ok([])

        assert result.is_ok()
        assert result.unwrap() == []

    def test_result_error_creates_failed_result(self) -> None:
        error = StorageError("corrupt payload")
        result: Result[list[int], StorageError] = Result.err(error)

        assert not result.is_ok()
        assert result.is_err()
        assert result.unwrap_or([]) == []
        assert result.unwrap_err() is error

    def test_unwrap_raises_on_error_result(self) -> None:
        result: Result[str, StorageError] = Result.err(StorageError("corrupt payload"))

        with pytest.raises(StorageError, match="corrupt payload"):
            result.unwrap()

    def test_unwrap_err_raises_on_ok_result(self) -> None:
        with pytest.raises(ValueError, match="successful load"):
            Result.ok("fine").unwrap_err()

    def test_ok_may_hold_none(self) -> None:
        result: Result[None, StorageError] = Result.ok(None)

        assert result.is_ok()
        assert result.unwrap() is None

    def test_results_are_frozen_and_comparable(self) -> None:
        result: Result[list[int], StorageError] = Result.ok([1])

        assert result == Result.ok([1])
        with pytest.raises(FrozenInstanceError):
            result.value = [2]  # type: ignore[misc]

    def test_success_flag_must_match_error(self) -> None:
        with pytest.raises(ValueError, match="needs an error"):
            Result(succeeded=False)

        with pytest.raises(ValueError, match="carries no error"):
            Result(value="x", error=StorageError("y"))
