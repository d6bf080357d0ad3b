"""
Outcome of a storage read.

Loading records or settings can fail on a corrupt payload; that is an
expected outcome, so repository reads hand back a `Result` the caller
inspects instead of raising.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)


@dataclass(frozen=True)
class Result(Generic[ValueT, ErrorT]):
    """Either a loaded value or the error that stopped the load. Build with ok() or err()."""

    value: ValueT | None = None
    error: ErrorT | None = None
    succeeded: bool = True

    def __post_init__(self) -> None:
        if self.succeeded and self.error is not None:
            raise ValueError("a successful Result carries no error")
        if not self.succeeded and self.error is None:
            raise ValueError("a failed Result needs an error")

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error, succeeded=False)

    def is_ok(self) -> bool:
        return self.succeeded

    def is_err(self) -> bool:
        return not self.succeeded

    def unwrap(self) -> ValueT:
        """The loaded value; re-raises the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def unwrap_or(self, default: ValueT) -> ValueT:
        return self.value if self.succeeded else default  # type: ignore[return-value]

    def unwrap_err(self) -> ErrorT:
        if self.error is None:
            raise ValueError("unwrap_err() called on a successful load")
        return self.error
