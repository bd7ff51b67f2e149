"""Custom exception hierarchy for the digitizer client.

All exceptions inherit from BaseError and carry structured error information:
a display message, an error code from the registry, a category, and the
diagnostic status code / payload of the HTTP interaction that caused them.
None of them are retryable: a failed submission or poll ends tracking.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Error categories for classification and monitoring."""

    VALIDATION = "validation"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    EXTERNAL_SERVICE = "external_service"


def category_for_status(status_code: Optional[int]) -> ErrorCategory:
    """Map an HTTP status (or its absence) to an error category."""
    if status_code is None:
        return ErrorCategory.EXTERNAL_SERVICE
    if 400 <= status_code < 500:
        return ErrorCategory.CLIENT_ERROR
    return ErrorCategory.SERVER_ERROR


def body_message_text(candidate: Any) -> Optional[str]:
    """Displayable text of a response body's ``message`` field.

    Validation errors often carry a list of messages; those are joined
    with ", ". Blank or non-text values give None.
    """
    if isinstance(candidate, list):
        parts = [item.strip() for item in candidate if isinstance(item, str) and item.strip()]
        return ", ".join(parts) if parts else None
    if isinstance(candidate, str) and candidate.strip():
        return candidate
    return None


class BaseError(Exception):
    """Base exception for all digitizer client errors.

    Attributes:
        message: Human-readable error message
        error_code: Application-specific error code
        category: Error category for classification
        status_code: HTTP status of the failed response, if any
        details: Additional context (dict)
        retryable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        category: ErrorCategory,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.status_code = status_code
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to a diagnostics dict.

        Returns:
            Dict containing standardized error information
        """
        return {
            "code": self.error_code,
            "message": self.message,
            "category": self.category.value,
            "status": self.status_code,
            "details": self.details,
            "retryable": self.retryable,
        }


class ValidationError(BaseError):
    """Client-side input validation failed.

    Raised before any network interaction.

    Args:
        message: Validation error description
        field: Name of the input that failed validation
        error_code: Registry code for the failure
    """

    def __init__(
        self, message: str, field: str, error_code: str = "VALIDATION_ERROR", **kwargs
    ):
        additional_details = kwargs.pop("details", {})
        additional_details["field"] = field
        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.VALIDATION,
            details=additional_details,
            **kwargs,
        )
        self.field = field


class ApiError(BaseError):
    """The API answered with a non-2xx status.

    Args:
        status_code: HTTP status code of the response
        payload: Parsed JSON body
        default_message: Message used when the body carries none
    """

    def __init__(
        self,
        status_code: int,
        payload: Any = None,
        default_message: str = "An API error occurred",
    ):
        body_message = None
        if isinstance(payload, dict):
            body_message = body_message_text(payload.get("message"))

        super().__init__(
            message=body_message or default_message,
            error_code="API_ERROR",
            category=category_for_status(status_code),
            status_code=status_code,
            details={"payload": payload},
        )
        self.payload = payload
        self.body_message = body_message


class TransportError(BaseError):
    """The API could not be reached or returned an unusable body.

    Args:
        error_type: "unreachable", "timeout" or "invalid_response"
        detail: Low-level description of the failure
        status_code: HTTP status, when a response was received
        payload: Raw body, when a response was received
    """

    def __init__(
        self,
        error_type: str,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        payload: Any = None,
    ):
        super().__init__(
            message=f"Digitization API {error_type.replace('_', ' ')}",
            error_code=f"API_{error_type.upper()}",
            category=ErrorCategory.EXTERNAL_SERVICE,
            status_code=status_code,
            details={"error_type": error_type, "detail": detail},
        )
        self.error_type = error_type
        self.payload = payload
        self.body_message = None


class SubmissionError(BaseError):
    """Job creation was rejected or the API was unreachable.

    Args:
        message: Display message chosen by the error classifier
        error_code: Registry code
        status_code: HTTP status of the rejected request, if any
        raw_payload: Response body kept for diagnostics
    """

    def __init__(
        self,
        message: str,
        error_code: str = "SUBMISSION_FAILED",
        status_code: Optional[int] = None,
        raw_payload: Any = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            category=category_for_status(status_code),
            status_code=status_code,
            details={"raw_payload": raw_payload},
        )
        self.raw_payload = raw_payload


class PollError(BaseError):
    """A status check for a tracked job failed.

    Args:
        message: Display message chosen by the error classifier
        job_id: Job whose status check failed
        error_code: Registry code
        status_code: HTTP status of the failed check, if any
        raw_payload: Response body kept for diagnostics
    """

    def __init__(
        self,
        message: str,
        job_id: str,
        error_code: str = "POLL_FAILED",
        status_code: Optional[int] = None,
        raw_payload: Any = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            category=category_for_status(status_code),
            status_code=status_code,
            details={"job_id": job_id, "raw_payload": raw_payload},
        )
        self.job_id = job_id
        self.raw_payload = raw_payload
