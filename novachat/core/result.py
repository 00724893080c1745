"""Minimal success/error union used by every step of the proxy pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from .errors import ProxyError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: ProxyError

    @property
    def is_ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]
