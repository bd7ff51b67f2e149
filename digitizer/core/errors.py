"""
Centralized error code registry with user-facing messages.

Provides single source of truth for error codes, including the
user-facing messages shown for each failure and its category.
"""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ErrorSpec:
    """Code, message and category of a single error type."""
    code: str
    message: str                 # Message shown to the user
    category: str                # "validation", "client_error", "server_error", "external_service"


class ErrorCode(Enum):
    """Centralized error code registry.

    Usage:
        error_spec = ErrorCode.get_spec("RESULT_FETCH_FAILED")
        print(error_spec.message, error_spec.category)
    """

    # ========================================
    # VALIDATION ERRORS (never reach the network)
    # ========================================
    IMAGE_URL_MISSING = ErrorSpec(
        "IMAGE_URL_MISSING",
        "Please enter an image URL.",
        "validation",
    )
    IMAGE_URL_INVALID = ErrorSpec(
        "IMAGE_URL_INVALID",
        "Please enter a valid image URL.",
        "validation",
    )
    FILE_MISSING = ErrorSpec(
        "FILE_MISSING",
        "Please select a file to upload.",
        "validation",
    )

    # ========================================
    # FALLBACK MESSAGES (response carried no message)
    # ========================================
    URL_SUBMISSION_FAILED = ErrorSpec(
        "URL_SUBMISSION_FAILED",
        "An unknown error occurred during URL submission.",
        "external_service",
    )
    FILE_SUBMISSION_FAILED = ErrorSpec(
        "FILE_SUBMISSION_FAILED",
        "An unknown error occurred during file submission.",
        "external_service",
    )
    RESULT_FETCH_FAILED = ErrorSpec(
        "RESULT_FETCH_FAILED",
        "An unknown error occurred while fetching results.",
        "external_service",
    )

    # ========================================
    # TRANSPORT DEFAULTS (ApiError.message when the body has none)
    # ========================================
    API_ERROR = ErrorSpec(
        "API_ERROR",
        "An API error occurred",
        "external_service",
    )
    UPLOAD_FAILED = ErrorSpec(
        "UPLOAD_FAILED",
        "File upload failed",
        "external_service",
    )

    # ========================================
    # JOB OUTCOME
    # ========================================
    JOB_FAILED = ErrorSpec(
        "JOB_FAILED",
        "An unknown error occurred.",
        "server_error",
    )

    @classmethod
    def get_spec(cls, code: str) -> ErrorSpec:
        """Get error definition by code string.

        Returns:
            ErrorSpec with message and category.
            Returns a generic definition for unknown codes.
        """
        for error in cls:
            if error.value.code == code:
                return error.value
        return ErrorSpec(code, f"Error: {code}", "server_error")


def message_for(code: str) -> str:
    """Get the user-facing message for an error code."""
    return ErrorCode.get_spec(code).message
