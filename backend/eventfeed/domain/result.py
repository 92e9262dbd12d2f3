"""Two-variant result type returned across the data and domain layers.

``Ok`` carries the success payload, ``Err`` the failure payload. Consumers
branch with ``isinstance`` on exactly these two classes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
F = TypeVar("F")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def map_err(self, func: Callable[[E], F]) -> "Ok[T]":
        return self


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E

    def map_err(self, func: Callable[[E], F]) -> "Err[F]":
        return Err(func(self.error))


Result = Union[Ok[T], Err[E]]
