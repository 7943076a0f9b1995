from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .codec import exchange
from .config import TransferConfig
from .errors import FailureKind
from .model import Status, TransferOutcome, TransferTask
from .retry import RetryPolicy, State, constant_backoff

log = logging.getLogger(__name__)


def policy_for(config: TransferConfig) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=config.max_retries,
        backoff=constant_backoff(config.retry_backoff_s),
    )


@dataclass(slots=True)
class TransferSession:
    task: TransferTask
    config: TransferConfig
    limiter: Optional[asyncio.Semaphore] = None

    async def _attempt(self, attempt: int):
        self.task.attempts = attempt
        return await exchange(
            self.task.image,
            self.task.server,
            self.config.output_dir,
            timeout_s=self.config.timeout_s,
            chunk_size=self.config.chunk_size,
        )

    async def _drive(self) -> TransferOutcome:
        self.task.mark_started()
        result = await policy_for(self.config).run(self._attempt, label=self.task.label)
        elapsed = self.task.elapsed_s
        if result.state is State.SUCCESS:
            return TransferOutcome(
                image=self.task.image,
                server=self.task.server,
                status=Status.SUCCESS,
                elapsed_s=elapsed,
                attempts=result.attempts,
                output_path=result.value,
            )
        return TransferOutcome(
            image=self.task.image,
            server=self.task.server,
            status=Status.FAILED,
            elapsed_s=elapsed,
            attempts=result.attempts,
            kind=result.kind or FailureKind.UNEXPECTED,
            error=str(result.error) if result.error else None,
        )

    async def run(self) -> TransferOutcome:
        if self.limiter is None:
            outcome = await self._drive()
        else:
            async with self.limiter:
                outcome = await self._drive()
        if outcome.ok:
            log.info("%s", outcome.describe())
        else:
            log.warning("%s", outcome.describe())
        return outcome
