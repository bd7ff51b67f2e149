"""Digitization session controller.

Wires one JobSubmitter / StatusPoller pair to one SessionState and is the
boundary where submission errors turn into displayable state. Concurrent
sessions each own an independent controller.
"""

from __future__ import annotations

import logging
from typing import Optional

from digitizer.core.exceptions import SubmissionError, ValidationError
from digitizer.domain.models import FileSource, SubmissionSource, UrlSource
from digitizer.domain.ports import DigitizationApiPort
from digitizer.domain.session import SessionState
from digitizer.services.error_classifier import ErrorClassifier
from digitizer.services.poller import StatusPoller
from digitizer.services.submitter import JobSubmitter

logger = logging.getLogger(__name__)


class DigitizationController:
    """Submit a job and follow it to completion.

    Example:
        >>> async with DigitizationApiClient() as api:
        ...     controller = DigitizationController(api)
        ...     await controller.submit_url("https://example.com/note.png", "es")
        ...     await controller.wait()
        ...     print(controller.state.last_snapshot.translated_text)
    """

    def __init__(
        self,
        api: DigitizationApiPort,
        state: Optional[SessionState] = None,
        classifier: Optional[ErrorClassifier] = None,
        poll_interval: Optional[float] = None,
        submitting_progress: Optional[int] = None,
    ):
        self.state = state if state is not None else SessionState()
        classifier = classifier or ErrorClassifier()
        self.poller = StatusPoller(
            api, self.state, classifier=classifier, interval_seconds=poll_interval
        )
        self.submitter = JobSubmitter(
            api,
            self.state,
            self.poller,
            classifier=classifier,
            submitting_progress=submitting_progress,
        )

    async def submit(self, source: SubmissionSource) -> Optional[str]:
        """Submit source and start polling its job.

        Returns:
            The new job id, or None when validation or submission failed
            (the reason is in ``state.error``) or a newer submission won.
        """
        try:
            snapshot = await self.submitter.submit(source)
        except ValidationError as e:
            logger.info(f"Submission rejected: {e.message}", extra={"error_code": e.error_code})
            self.state.record_validation_error(e)
            return None
        except SubmissionError:
            return None

        if self.state.active_job_id != snapshot.id:
            logger.info(
                f"Job {snapshot.id} was superseded before polling started",
                extra={"job_id": snapshot.id},
            )
            return None

        self.poller.start(snapshot.id)
        return snapshot.id

    async def submit_url(self, image_url: str, target_language: str = "") -> Optional[str]:
        return await self.submit(UrlSource(image_url=image_url, target_language=target_language))

    async def submit_file(
        self,
        file_content: Optional[bytes],
        filename: str = "image",
        target_language: str = "",
        content_type: Optional[str] = None,
    ) -> Optional[str]:
        return await self.submit(
            FileSource(
                file_content=file_content,
                filename=filename,
                content_type=content_type,
                target_language=target_language,
            )
        )

    async def wait(self) -> SessionState:
        """Wait for the tracked job to settle and return the session state."""
        await self.poller.wait()
        return self.state

    def stop(self) -> None:
        """Abandon the tracked job; later responses are discarded."""
        self.poller.stop()
        if self.state.cancel():
            logger.info("Tracking cancelled", extra={"job_id": self.state.active_job_id})
