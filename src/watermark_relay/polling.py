"""
Shared submit -> poll -> terminal state machine for asynchronous providers.

Adapters translate their own status vocabulary into ``Job`` snapshots; the poller
only knows about ``JobStatus`` and owns cadence and attempt budgeting.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from .errors import PollTimeoutError
from .types import Job

logger = logging.getLogger(__name__)

FetchStatus = Callable[[], Awaitable[Job]]
Sleep = Callable[[float], Awaitable[None]]


def _still_running(job: Job) -> bool:
    return not job.status.is_terminal


class JobPoller:
    """Drive status checks for a single job until it is terminal or the budget runs out."""

    def __init__(self, sleep: Sleep | None = None) -> None:
        self._sleep: Sleep = sleep or asyncio.sleep

    async def poll(
        self,
        fetch_status: FetchStatus,
        interval: float,
        max_attempts: int,
        *,
        provider: str | None = None,
    ) -> Job:
        """
        Wait ``interval`` before each call to ``fetch_status``, at most ``max_attempts`` times.

        Returns the first SUCCEEDED or FAILED job. Exceptions from ``fetch_status``
        propagate without another attempt.

        Raises
        ------
        PollTimeoutError
            If every observation was QUEUED or PROCESSING.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        retrying = AsyncRetrying(
            retry=retry_if_result(_still_running),
            stop=stop_after_attempt(max_attempts),
            wait=wait_fixed(interval),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.DEBUG),
        )

        # tenacity only waits between attempts; the first check is delayed here.
        await self._sleep(interval)
        try:
            job: Job = await retrying(fetch_status)
        except RetryError as exc:
            last = exc.last_attempt.result()
            logger.warning(
                "%s job %s still %s after %d checks",
                provider or "provider",
                last.id,
                last.status.value,
                max_attempts,
            )
            raise PollTimeoutError(
                f"Task timeout: job {last.id} did not finish after {max_attempts} checks"
                f" ({max_attempts * interval:g}s)",
                provider=provider,
                attempts=max_attempts,
            ) from None

        logger.debug("%s job %s finished with status %s", provider or "provider", job.id, job.status.value)
        return job
