"""Polling loop that drives a submitted job to its terminal state."""

import logging
import time
from collections.abc import Callable

from multicloud_s2t.domain.models import JobState, JobStatus, TranscriptionRequest
from multicloud_s2t.exceptions import JobTimeoutError, TranscriptionJobFailedError

logger = logging.getLogger(__name__)


class JobPoller:
    """
    Waits for a job on a job-based backend to complete.

    Status queries are issued no more often than once per ``interval_ms``.
    With ``max_wait_ms`` set, waiting stops with ``JobTimeoutError`` once the
    next query would fall after the deadline.
    """

    def __init__(
        self,
        interval_ms: int,
        max_wait_ms: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self._interval_s = interval_ms / 1000
        self._max_wait_ms = max_wait_ms
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_request(
        cls,
        request: TranscriptionRequest,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> "JobPoller":
        return cls(
            request.job_check_interval_ms,
            request.job_max_wait_ms,
            sleep=sleep,
            clock=clock,
        )

    def wait(
        self,
        initial_state: JobState,
        fetch_status: Callable[[str], JobState],
    ) -> JobState:
        """
        Polls until the job completes.

        Args:
            initial_state: State reported by the submission.
            fetch_status: Queries the current state by job name.

        Returns:
            The COMPLETED state.

        Raises:
            TranscriptionJobFailedError: If the job ends in FAILED.
            JobTimeoutError: If the deadline passes first.
        """
        job_name = initial_state.job_name
        started = self._clock()
        deadline = (
            started + self._max_wait_ms / 1000
            if self._max_wait_ms is not None
            else None
        )
        last_query = started
        state = initial_state
        polls = 0

        while True:
            if state.status == JobStatus.COMPLETED:
                logger.info(
                    "Transcription job completed",
                    extra={"job_name": job_name, "polls": polls},
                )
                return state
            if state.status == JobStatus.FAILED:
                logger.error(
                    "Transcription job failed",
                    extra={"job_name": job_name, "reason": state.failure_reason},
                )
                raise TranscriptionJobFailedError(job_name, state.failure_reason)

            next_query = last_query + self._interval_s
            if deadline is not None and next_query > deadline:
                raise JobTimeoutError(job_name, self._max_wait_ms)

            remaining = next_query - self._clock()
            if remaining > 0:
                self._sleep(remaining)

            last_query = self._clock()
            state = fetch_status(job_name)
            polls += 1
