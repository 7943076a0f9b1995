"""Retry policy as an explicit state machine.

    PENDING -> ATTEMPTING -> SUCCESS
                          -> ATTEMPTING   (retryable failure, attempts < max_attempts)
                          -> FAILED       (fatal failure, or retries exhausted)

The policy only sees an async callable and a classifier, so it can be driven
by fakes in tests without any sockets.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Optional, TypeVar

from .errors import FailureKind, classify

log = logging.getLogger(__name__)

T = TypeVar("T")

Backoff = Callable[[int], float]


class State(enum.Enum):
    PENDING = "pending"
    ATTEMPTING = "attempting"
    SUCCESS = "success"
    FAILED = "failed"


def no_backoff(attempt: int) -> float:
    return 0.0


def constant_backoff(delay_s: float) -> Backoff:
    def backoff(attempt: int) -> float:
        return delay_s

    return backoff


@dataclass(slots=True)
class PolicyResult(Generic[T]):
    state: State
    attempts: int
    value: Optional[T] = None
    error: Optional[BaseException] = None
    kind: Optional[FailureKind] = None
    history: List[State] = field(default_factory=list)


@dataclass(slots=True)
class RetryPolicy:
    max_attempts: int
    classifier: Callable[[BaseException], FailureKind] = classify
    backoff: Backoff = no_backoff

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    async def run(
        self,
        operation: Callable[[int], Awaitable[T]],
        label: str = "",
    ) -> PolicyResult[T]:
        """Drive ``operation(attempt_number)`` to a terminal state.

        Exceptions raised by ``operation`` are classified, never propagated;
        task cancellation is the only thing that escapes.
        """
        result: PolicyResult[T] = PolicyResult(state=State.PENDING, attempts=0)
        result.history.append(State.PENDING)

        while True:
            result.state = State.ATTEMPTING
            result.history.append(State.ATTEMPTING)
            result.attempts += 1
            try:
                result.value = await operation(result.attempts)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                kind = self.classifier(e)
                result.error, result.kind = e, kind
                if kind.retryable and result.attempts < self.max_attempts:
                    log.debug(
                        "%s: attempt %d/%d failed (%s): %s; retrying",
                        label, result.attempts, self.max_attempts, kind.value, e,
                    )
                    delay = self.backoff(result.attempts)
                    if delay > 0:
                        await asyncio.sleep(delay)
                    continue
                result.state = State.FAILED
            else:
                result.error, result.kind = None, None
                result.state = State.SUCCESS
            result.history.append(result.state)
            return result
