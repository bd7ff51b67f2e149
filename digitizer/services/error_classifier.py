"""Turn failed API interactions into one displayable error.

The body's ``message`` is shown verbatim when the server sent one;
otherwise a fixed fallback for the context (URL submission, file
submission, result polling) is used, so the user never sees an empty
message. Status code and raw payload are kept for diagnostics only.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from digitizer.core.errors import ErrorCode
from digitizer.core.exceptions import BaseError, PollError, SubmissionError

logger = logging.getLogger(__name__)


class ErrorContext(str, Enum):
    URL_SUBMISSION = "url_submission"
    FILE_SUBMISSION = "file_submission"
    POLL = "poll"


FALLBACKS = {
    ErrorContext.URL_SUBMISSION: ErrorCode.URL_SUBMISSION_FAILED.value,
    ErrorContext.FILE_SUBMISSION: ErrorCode.FILE_SUBMISSION_FAILED.value,
    ErrorContext.POLL: ErrorCode.RESULT_FETCH_FAILED.value,
}


def _body_message(exc: Exception) -> Optional[str]:
    message = getattr(exc, "body_message", None)
    if isinstance(message, str) and message.strip():
        return message
    return None


def _diagnostics(exc: Exception) -> tuple[Optional[int], Any]:
    status_code = exc.status_code if isinstance(exc, BaseError) else None
    return status_code, getattr(exc, "payload", None)


class ErrorClassifier:
    """Builds SubmissionError / PollError instances from transport failures."""

    def message_for(self, exc: Exception, context: ErrorContext) -> tuple[str, str]:
        """Pick the display message and error code for a failure.

        Returns:
            (message, error_code)
        """
        body_message = _body_message(exc)
        if body_message is not None:
            return body_message, "API_ERROR"
        spec = FALLBACKS[context]
        return spec.message, spec.code

    def classify_submission(self, exc: Exception, context: ErrorContext) -> SubmissionError:
        message, code = self.message_for(exc, context)
        status_code, payload = _diagnostics(exc)
        logger.info(
            f"Submission failed: {type(exc).__name__}: {exc}",
            extra={"context": context.value, "error_code": code, "http_status": status_code},
        )
        return SubmissionError(
            message, error_code=code, status_code=status_code, raw_payload=payload
        )

    def classify_poll(self, exc: Exception, job_id: str) -> PollError:
        message, code = self.message_for(exc, ErrorContext.POLL)
        status_code, payload = _diagnostics(exc)
        logger.info(
            f"Status check failed: {type(exc).__name__}: {exc}",
            extra={"job_id": job_id, "error_code": code, "http_status": status_code},
        )
        return PollError(
            message, job_id, error_code=code, status_code=status_code, raw_payload=payload
        )
