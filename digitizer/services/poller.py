"""Status polling for the active digitization job.

One run per started job id. A run loops ``sleep -> check -> request ->
check -> apply`` so at most one status request is outstanding at a time,
and the next tick is only scheduled after the previous one finished.

stop() never aborts a request that is already on the wire: the run is
marked cancelled and its response, once it arrives, is discarded. A run
that is sleeping is cancelled outright so no timer fires again.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from digitizer.core.exceptions import ApiError, TransportError
from digitizer.core.logging_utils import short_id
from digitizer.core.settings import polling_settings
from digitizer.domain.ports import DigitizationApiPort
from digitizer.domain.session import SessionState
from digitizer.services.error_classifier import ErrorClassifier

logger = logging.getLogger(__name__)

# Consecutive responses for a different job id before the run gives up
MAX_ID_MISMATCHES = 5


@dataclass
class _PollRun:
    job_id: str
    cancelled: bool = False
    in_flight: bool = False
    ticks: int = 0
    mismatches: int = 0
    task: Optional[asyncio.Task] = None


class StatusPoller:
    """Repeatedly fetches job status into a SessionState until a terminal state."""

    def __init__(
        self,
        api: DigitizationApiPort,
        state: SessionState,
        classifier: Optional[ErrorClassifier] = None,
        interval_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._api = api
        self._state = state
        self._classifier = classifier or ErrorClassifier()
        self.interval_seconds = (
            polling_settings.DIGITIZER_POLL_INTERVAL_SECONDS
            if interval_seconds is None
            else interval_seconds
        )
        if self.interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive (got {self.interval_seconds})")
        self._sleep = sleep
        self._run: Optional[_PollRun] = None

    @property
    def job_id(self) -> Optional[str]:
        return self._run.job_id if self._run else None

    @property
    def is_running(self) -> bool:
        return (
            self._run is not None
            and self._run.task is not None
            and not self._run.task.done()
        )

    def start(self, job_id: str) -> asyncio.Task:
        """Begin polling job_id, detaching any previous run first."""
        self.stop()
        run = _PollRun(job_id=job_id)
        run.task = asyncio.create_task(self._poll(run), name=f"poll-{job_id}")
        self._run = run
        logger.info(
            f"Polling started for job {short_id(job_id)} every {self.interval_seconds}s",
            extra={"job_id": job_id},
        )
        return run.task

    def stop(self) -> None:
        """Stop the current run. Idempotent."""
        run = self._run
        if run is None:
            return
        self._run = None
        self._halt(run)

    def _halt(self, run: _PollRun) -> None:
        if run.cancelled:
            return
        run.cancelled = True
        if run.task is not None and not run.task.done() and not run.in_flight:
            run.task.cancel()
        logger.debug(
            f"Polling stopped for job {short_id(run.job_id)} after {run.ticks} ticks",
            extra={"job_id": run.job_id, "tick": run.ticks},
        )

    async def wait(self) -> None:
        """Wait until the current run finishes or is cancelled."""
        run = self._run
        if run is None or run.task is None:
            return
        try:
            await asyncio.shield(run.task)
        except asyncio.CancelledError:
            if not run.task.cancelled():
                raise

    async def _poll(self, run: _PollRun) -> None:
        while True:
            await self._sleep(self.interval_seconds)
            if run.cancelled:
                return

            run.ticks += 1
            run.in_flight = True
            started = time.monotonic()
            try:
                snapshot = await self._api.get_result(run.job_id)
            except (ApiError, TransportError) as e:
                run.in_flight = False
                if not self._is_stale(run):
                    self._halt_with_error(run, e)
                return
            run.in_flight = False

            if self._is_stale(run):
                return

            duration_ms = int((time.monotonic() - started) * 1000)
            if not self._state.apply_snapshot(run.job_id, snapshot):
                # Response carried another job's id; keep polling our own
                run.mismatches += 1
                logger.warning(
                    f"Discarding result for job {short_id(snapshot.id)}; "
                    f"active job is {short_id(self._state.active_job_id)} "
                    f"({run.mismatches}/{MAX_ID_MISMATCHES})",
                    extra={"job_id": run.job_id, "tick": run.ticks},
                )
                if run.mismatches >= MAX_ID_MISMATCHES:
                    self._halt_with_error(
                        run,
                        TransportError(
                            "invalid_response",
                            detail=f"Result id {snapshot.id!r} does not match requested job",
                            payload=snapshot.model_dump(mode="json", by_alias=True),
                        ),
                    )
                    return
                continue
            run.mismatches = 0

            logger.info(
                f"Job {short_id(run.job_id)} is {snapshot.status.value} ({self._state.progress}%)",
                extra={
                    "job_id": run.job_id,
                    "tick": run.ticks,
                    "status": snapshot.status.value,
                    "progress": self._state.progress,
                    "duration_ms": duration_ms,
                },
            )

            if snapshot.is_terminal:
                self._finish(run)
                return

    def _halt_with_error(self, run: _PollRun, exc: Exception) -> None:
        error = self._classifier.classify_poll(exc, run.job_id)
        self._state.fail_poll(run.job_id, error)
        logger.warning(
            f"Polling halted for job {short_id(run.job_id)}: {error.message}",
            extra={"job_id": run.job_id, "tick": run.ticks, "error_code": error.error_code},
        )
        self._finish(run)

    def _is_stale(self, run: _PollRun) -> bool:
        if run.cancelled or not self._state.tracks(run.job_id):
            logger.debug(
                f"Dropping response for stopped job {short_id(run.job_id)}",
                extra={"job_id": run.job_id, "tick": run.ticks},
            )
            self._finish(run)
            return True
        return False

    def _finish(self, run: _PollRun) -> None:
        run.cancelled = True
        if self._run is run:
            self._run = None
