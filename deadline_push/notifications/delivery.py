from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Union

# A reminder is attempted at most this many times before it is dropped
MAX_ATTEMPTS = 2


@dataclass(frozen=True)
class Delivered:
    pass


@dataclass(frozen=True)
class Failed:
    reason: str


DeliveryResult = Union[Delivered, Failed]


class RetryAction(enum.Enum):
    retry = "retry"
    delete = "delete"


def next_action(result: DeliveryResult, retry_count: int) -> RetryAction:
    """Decide what happens to a queue entry after one delivery attempt.

    Delivered entries are removed. A failed entry is kept once, with its
    retry counter bumped, and removed on the next failure.
    """
    if isinstance(result, Delivered):
        return RetryAction.delete
    if retry_count < MAX_ATTEMPTS - 1:
        return RetryAction.retry
    return RetryAction.delete


class PushGateway(ABC):
    """Single-call push delivery channel."""

    def is_configured(self) -> bool:
        return True

    @abstractmethod
    def send(self, message: Dict[str, Any]) -> DeliveryResult:
        ...
