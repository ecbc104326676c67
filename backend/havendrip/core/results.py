"""
Typed outcomes for calls that cross the network to Firebase.

Adapters never let a Firestore error escape: they return `Ok(value)` or
`Err(RemoteFailure)`, and callers branch with `isinstance`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class RemoteFailure:
    """A CartStore / CouponDirectory / order call that did not complete."""
    operation: str
    message: str

    def __str__(self) -> str:
        return f"{self.operation} failed: {self.message}"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: RemoteFailure


RemoteResult = Union[Ok[T], Err]
