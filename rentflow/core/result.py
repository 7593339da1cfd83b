"""Result[T, E]: errors as values for every RentFlow instruction.

Handlers never raise for business failures. They return Ok[T] on success
or Err[E] carrying a RentFlowError, and the program facade rolls the
request back on any Err.

Supports: .map, .bind, .unwrap.
Free function: unwrap.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, NoReturn, TypeVar, Union, final

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success variant of Result."""

    value: T

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        return Ok(f(self.value))

    def bind(self, f: Callable[[T], Ok[U] | Err[E]]) -> Ok[U] | Err[E]:
        """Chain a fallible step."""
        return f(self.value)

    def unwrap(self) -> T:
        return self.value


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Error variant of Result."""

    error: E

    def map(self, f: Callable[[Any], Any]) -> Err[E]:  # noqa: ARG002
        return self

    def bind(self, f: Callable[[Any], Any]) -> Err[E]:  # noqa: ARG002
        """Short-circuits: f is never called."""
        return self

    def unwrap(self) -> NoReturn:
        raise RuntimeError(f"Called unwrap on Err: {self.error}")


Result = Union[Ok[T], Err[E]]


def unwrap(result: Ok[T] | Err[Any]) -> T:
    """Extract the Ok value or raise RuntimeError. Tests and service boundary only."""
    if isinstance(result, Ok):
        return result.value
    if isinstance(result, Err):
        raise RuntimeError(f"unwrap on Err: {result.error}")
    raise TypeError(f"Expected Ok or Err, got {type(result).__name__}")

