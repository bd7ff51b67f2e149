"""Session state: the single source of truth for one digitization session.

Every mutation is guarded: results that belong to a superseded submission
(an older generation) or to a job id other than the active one are discarded,
and a session in a terminal phase stays frozen until the next submission.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from digitizer.core.exceptions import BaseError
from digitizer.domain.models import JobSnapshot, JobStatus
from digitizer.domain.progress import estimate

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    SUBMISSION_FAILED = "submission_failed"
    POLL_FAILED = "poll_failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES


TERMINAL_PHASES = frozenset(
    {
        SessionPhase.COMPLETED,
        SessionPhase.FAILED,
        SessionPhase.SUBMISSION_FAILED,
        SessionPhase.POLL_FAILED,
        SessionPhase.CANCELLED,
    }
)

Listener = Callable[["SessionState"], None]


@dataclass
class SessionState:
    """Client-owned state of the one job a session tracks."""

    active_job_id: Optional[str] = None
    last_snapshot: Optional[JobSnapshot] = None
    progress: int = 0
    error: Optional[str] = None
    error_detail: Optional[BaseError] = None
    is_busy: bool = False
    phase: SessionPhase = SessionPhase.IDLE
    generation: int = 0
    _listeners: List[Listener] = field(default_factory=list, repr=False, compare=False)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callable notified after every applied mutation.

        Exceptions raised by the listener are logged and do not reach the
        code that changed the state.

        Returns:
            A function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        # Mutation is already applied; listener failures are logged, not raised
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception(
                    f"State listener {listener!r} failed",
                    extra={"job_id": self.active_job_id, "phase": self.phase.value},
                )

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def tracks(self, job_id: Optional[str]) -> bool:
        """True while job_id is the active job and still being polled."""
        return (
            job_id is not None
            and job_id == self.active_job_id
            and self.phase is SessionPhase.POLLING
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def begin_submission(self, submitting_progress: int = 5) -> int:
        """Reset to a fresh busy state for a new submission.

        Detaches the previously active job id.

        Returns:
            The generation number that the submission result must present.
        """
        self.generation += 1
        self.active_job_id = None
        self.last_snapshot = None
        self.error = None
        self.error_detail = None
        self.is_busy = True
        self.progress = submitting_progress
        self.phase = SessionPhase.SUBMITTING
        self._notify()
        return self.generation

    def track(self, generation: int, snapshot: JobSnapshot) -> bool:
        """Start tracking the job a submission created.

        Returns:
            False when the submission was superseded and the result discarded.
        """
        if not self.is_current(generation) or self.phase is not SessionPhase.SUBMITTING:
            logger.debug(
                f"Discarding stale submission result (generation {generation}, current {self.generation})",
                extra={"job_id": snapshot.id},
            )
            return False

        self.active_job_id = snapshot.id
        self.last_snapshot = snapshot
        self.progress = max(self.progress, estimate(snapshot.status))
        self.phase = SessionPhase.POLLING
        self._notify()
        return True

    def fail_submission(self, generation: int, error: BaseError) -> bool:
        if not self.is_current(generation) or self.phase is not SessionPhase.SUBMITTING:
            return False

        self.active_job_id = None
        self.error = error.message
        self.error_detail = error
        self.is_busy = False
        self.phase = SessionPhase.SUBMISSION_FAILED
        self._notify()
        return True

    def record_validation_error(self, error: BaseError) -> None:
        """Show a client-side validation message; nothing else changes."""
        self.error = error.message
        self.error_detail = error
        self._notify()

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def apply_snapshot(self, job_id: str, snapshot: JobSnapshot) -> bool:
        """Apply one poll result for job_id.

        Progress never decreases for the same job, and reaches 100 only
        at a terminal status.

        Returns:
            False when the result was discarded.
        """
        if not self.tracks(job_id) or snapshot.id != job_id:
            return False

        self.last_snapshot = snapshot
        if snapshot.is_terminal:
            self.progress = 100
            self.is_busy = False
            self.phase = (
                SessionPhase.COMPLETED
                if snapshot.status is JobStatus.COMPLETED
                else SessionPhase.FAILED
            )
        else:
            self.progress = max(self.progress, estimate(snapshot.status))
        self._notify()
        return True

    def fail_poll(self, job_id: str, error: BaseError) -> bool:
        if not self.tracks(job_id):
            return False

        self.error = error.message
        self.error_detail = error
        self.is_busy = False
        self.phase = SessionPhase.POLL_FAILED
        self._notify()
        return True

    def cancel(self) -> bool:
        """Abandon the in-progress submission or job without a result."""
        if self.phase not in (SessionPhase.SUBMITTING, SessionPhase.POLLING):
            return False

        self.generation += 1
        self.is_busy = False
        self.phase = SessionPhase.CANCELLED
        self._notify()
        return True
