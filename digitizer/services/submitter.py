"""Job submission: validate, reset the session, create the job."""

from __future__ import annotations

import logging
import time
from typing import Optional

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from digitizer.core.errors import ErrorCode
from digitizer.core.exceptions import ApiError, TransportError, ValidationError
from digitizer.core.logging_utils import sanitize_url
from digitizer.core.settings import polling_settings
from digitizer.domain.models import FileSource, JobSnapshot, SubmissionSource, UrlSource
from digitizer.domain.ports import DigitizationApiPort
from digitizer.domain.session import SessionState
from digitizer.services.error_classifier import ErrorClassifier, ErrorContext
from digitizer.services.poller import StatusPoller

logger = logging.getLogger(__name__)

_url_adapter = TypeAdapter(AnyUrl)


def validate_source(source: SubmissionSource) -> None:
    """Check client-side preconditions of a submission.

    Raises:
        ValidationError: If the URL is missing/invalid or no file content is present
    """
    if isinstance(source, UrlSource):
        image_url = (source.image_url or "").strip()
        if not image_url:
            spec = ErrorCode.IMAGE_URL_MISSING.value
            raise ValidationError(spec.message, field="image_url", error_code=spec.code)
        try:
            _url_adapter.validate_python(image_url)
        except PydanticValidationError as e:
            spec = ErrorCode.IMAGE_URL_INVALID.value
            raise ValidationError(
                spec.message,
                field="image_url",
                error_code=spec.code,
                details={"reason": e.errors()[0]["msg"] if e.errors() else str(e)},
            ) from e
    elif isinstance(source, FileSource):
        if not source.file_content:
            spec = ErrorCode.FILE_MISSING.value
            raise ValidationError(spec.message, field="file", error_code=spec.code)
    else:
        raise TypeError(f"Unsupported submission source: {type(source).__name__}")


class JobSubmitter:
    """Creates digitization jobs on behalf of one SessionState."""

    def __init__(
        self,
        api: DigitizationApiPort,
        state: SessionState,
        poller: StatusPoller,
        classifier: Optional[ErrorClassifier] = None,
        submitting_progress: Optional[int] = None,
    ):
        self._api = api
        self._state = state
        self._poller = poller
        self._classifier = classifier or ErrorClassifier()
        self.submitting_progress = (
            polling_settings.DIGITIZER_SUBMITTING_PROGRESS
            if submitting_progress is None
            else submitting_progress
        )

    async def submit(self, source: SubmissionSource) -> JobSnapshot:
        """Create a job for source and start tracking its id.

        Returns:
            The initial pending snapshot of the new job.

        Raises:
            ValidationError: Before any state change or network call
            SubmissionError: When the server rejects the job or cannot be reached
        """
        validate_source(source)

        self._poller.stop()
        generation = self._state.begin_submission(self.submitting_progress)

        if isinstance(source, UrlSource):
            context = ErrorContext.URL_SUBMISSION
            logger.info(f"Submitting image URL {sanitize_url(source.image_url)}")
        else:
            context = ErrorContext.FILE_SUBMISSION
            logger.info(
                f"Uploading {source.filename} ({len(source.file_content)} bytes)"
            )

        started = time.monotonic()
        try:
            if isinstance(source, UrlSource):
                job_id = await self._api.submit_url(
                    source.image_url.strip(), source.target_language
                )
            else:
                job_id = await self._api.submit_upload(
                    source.file_content,
                    source.filename,
                    source.target_language,
                    content_type=source.content_type,
                )
        except (ApiError, TransportError) as e:
            error = self._classifier.classify_submission(e, context)
            self._state.fail_submission(generation, error)
            raise error from e

        snapshot = JobSnapshot.pending(job_id)
        if self._state.track(generation, snapshot):
            logger.info(
                f"Job {job_id} created",
                extra={
                    "job_id": job_id,
                    "duration_ms": int((time.monotonic() - started) * 1000),
                },
            )
        return snapshot
