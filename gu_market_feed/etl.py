"""Sequential async job runner with bounded retries.

A job is anything with an ``async run()``. ``AsyncIndependentJob`` wraps a single
zero-argument coroutine function; ``AsyncJobSequence`` runs child jobs one after
another and retries the whole pass when a child gives up.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryOptions:
    max_retries: int = 0
    delay_seconds: float = 0.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {self.delay_seconds}")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


class RetriesExhaustedError(Exception):
    """All permitted attempts of a job failed.

    ``last_error`` is the failure of the final attempt. For sequences this is the
    child's own ``RetriesExhaustedError``; ``root_cause`` follows the chain down to
    the operation failure that started it.
    """

    def __init__(self, job: "AsyncJob", attempts: int, last_error: BaseException):
        super().__init__(f"{job!r} failed after {attempts} attempt(s): {last_error!r}")
        self.job = job
        self.attempts = attempts
        self.last_error = last_error

    @property
    def root_cause(self) -> BaseException:
        err: BaseException = self
        while isinstance(err, RetriesExhaustedError):
            err = err.last_error
        return err


class AsyncJob(ABC):
    def __init__(self, retry_options: Optional[RetryOptions] = None):
        self.retry_options = retry_options or RetryOptions()

    @abstractmethod
    async def _run_once(self) -> Any:
        ...

    async def run(self) -> Any:
        opts = self.retry_options
        last_error: Optional[Exception] = None
        for attempt in range(1, opts.max_attempts + 1):
            if attempt > 1 and opts.delay_seconds > 0:
                await asyncio.sleep(opts.delay_seconds)
            try:
                return await self._run_once()
            except Exception as e:
                last_error = e
                logger.warning("%r attempt %d/%d failed: %s", self, attempt, opts.max_attempts, e)
        assert last_error is not None
        raise RetriesExhaustedError(self, opts.max_attempts, last_error) from last_error


class AsyncIndependentJob(AsyncJob):
    def __init__(self, operation: Callable[[], Awaitable[Any]], retry_options: Optional[RetryOptions] = None):
        super().__init__(retry_options)
        self.operation = operation

    async def _run_once(self) -> Any:
        return await self.operation()

    def __repr__(self) -> str:
        name = getattr(self.operation, "__name__", None) or getattr(
            getattr(self.operation, "func", None), "__name__", "operation"
        )
        args = getattr(self.operation, "args", ())
        # client handles are noise in logs, keep plain scalar args only
        shown = ", ".join(repr(a) for a in args if isinstance(a, (int, float, str)))
        return f"AsyncIndependentJob({name}({shown}))"


class AsyncJobSequence(AsyncJob):
    def __init__(self, jobs: Sequence[AsyncJob], retry_options: Optional[RetryOptions] = None):
        super().__init__(retry_options)
        self.jobs: List[AsyncJob] = list(jobs)

    async def _run_once(self) -> List[Any]:
        results: List[Any] = []
        for job in self.jobs:
            results.append(await job.run())
        return results

    def __len__(self) -> int:
        return len(self.jobs)

    def __repr__(self) -> str:
        return f"AsyncJobSequence(jobs={len(self.jobs)})"
