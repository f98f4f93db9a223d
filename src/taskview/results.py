"""Explicit outcomes for optimistic task mutations."""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Mutation succeeded; ``value`` is the state to apply."""

    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err(Generic[T]):
    """Mutation failed; ``previous`` is the state to restore."""

    reason: str
    previous: T

    @property
    def is_ok(self) -> bool:
        return False


MutationResult = Union[Ok[T], Err[T]]
