"""Unit tests for exception hierarchy."""

import pytest
from digitizer.core.exceptions import (
    ApiError,
    BaseError,
    ErrorCategory,
    PollError,
    SubmissionError,
    TransportError,
    ValidationError,
    body_message_text,
    category_for_status,
)


class TestBaseError:
    """Tests for BaseError class."""

    def test_base_error_creation(self):
        """Test BaseError can be created with all parameters."""
        error = BaseError(
            message="Test error",
            error_code="TEST_ERROR",
            category=ErrorCategory.CLIENT_ERROR,
            status_code=400,
            details={"detail": "Additional info"},
            retryable=False,
        )

        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.error_code == "TEST_ERROR"
        assert error.category == ErrorCategory.CLIENT_ERROR
        assert error.status_code == 400
        assert error.details == {"detail": "Additional info"}
        assert error.retryable is False

    def test_base_error_to_dict(self):
        """Test BaseError converts to a diagnostics dict."""
        error = BaseError(
            message="Test error",
            error_code="TEST_ERROR",
            category=ErrorCategory.SERVER_ERROR,
            status_code=503,
        )

        result = error.to_dict()

        assert result["code"] == "TEST_ERROR"
        assert result["message"] == "Test error"
        assert result["category"] == "server_error"
        assert result["status"] == 503
        assert result["details"] == {}
        assert result["retryable"] is False


class TestCategoryForStatus:
    """Tests for mapping HTTP status to category."""

    @pytest.mark.parametrize(
        "status_code, expected",
        [
            (None, ErrorCategory.EXTERNAL_SERVICE),
            (400, ErrorCategory.CLIENT_ERROR),
            (404, ErrorCategory.CLIENT_ERROR),
            (500, ErrorCategory.SERVER_ERROR),
            (502, ErrorCategory.SERVER_ERROR),
        ],
    )
    def test_category_for_status(self, status_code, expected):
        assert category_for_status(status_code) == expected


class TestValidationError:
    """Tests for ValidationError."""

    def test_validation_error_basic(self):
        """Test ValidationError records the failing field."""
        error = ValidationError(message="Please select a file to upload.", field="file")

        assert error.error_code == "VALIDATION_ERROR"
        assert error.category == ErrorCategory.VALIDATION
        assert error.details["field"] == "file"
        assert error.field == "file"
        assert error.status_code is None
        assert error.retryable is False

    def test_validation_error_with_details(self):
        """Test ValidationError merges additional details."""
        error = ValidationError(
            message="Please enter a valid image URL.",
            field="image_url",
            error_code="IMAGE_URL_INVALID",
            details={"reason": "relative URL without a base"},
        )

        assert error.error_code == "IMAGE_URL_INVALID"
        assert error.details["field"] == "image_url"
        assert error.details["reason"] == "relative URL without a base"


class TestApiError:
    """Tests for ApiError raised on non-2xx responses."""

    def test_uses_body_message(self):
        error = ApiError(422, {"message": "bad image"})

        assert error.message == "bad image"
        assert error.body_message == "bad image"
        assert error.status_code == 422
        assert error.payload == {"message": "bad image"}
        assert error.category == ErrorCategory.CLIENT_ERROR

    def test_default_message_when_body_has_none(self):
        error = ApiError(500, {"error": "boom"})

        assert error.message == "An API error occurred"
        assert error.body_message is None
        assert error.category == ErrorCategory.SERVER_ERROR

    def test_blank_body_message_is_ignored(self):
        error = ApiError(400, {"message": "   "}, default_message="File upload failed")

        assert error.message == "File upload failed"
        assert error.body_message is None

    def test_non_dict_payload(self):
        error = ApiError(500, ["unexpected"])

        assert error.body_message is None
        assert error.payload == ["unexpected"]


class TestTransportError:
    """Tests for TransportError."""

    def test_timeout(self):
        error = TransportError("timeout", detail="read timed out")

        assert error.error_code == "API_TIMEOUT"
        assert error.message == "Digitization API timeout"
        assert error.category == ErrorCategory.EXTERNAL_SERVICE
        assert error.details == {"error_type": "timeout", "detail": "read timed out"}
        assert error.body_message is None

    def test_invalid_response_keeps_status_and_payload(self):
        error = TransportError(
            "invalid_response", detail="not JSON", status_code=502, payload="<html>"
        )

        assert error.error_code == "API_INVALID_RESPONSE"
        assert error.message == "Digitization API invalid response"
        assert error.status_code == 502
        assert error.payload == "<html>"


class TestSubmissionAndPollErrors:
    """Tests for the errors the session displays."""

    def test_submission_error(self):
        error = SubmissionError(
            "imageUrl is required", status_code=400, raw_payload={"message": "imageUrl is required"}
        )

        assert error.error_code == "SUBMISSION_FAILED"
        assert error.category == ErrorCategory.CLIENT_ERROR
        assert error.raw_payload == {"message": "imageUrl is required"}
        assert error.retryable is False

    def test_submission_error_without_response(self):
        error = SubmissionError("An unknown error occurred during URL submission.")

        assert error.status_code is None
        assert error.category == ErrorCategory.EXTERNAL_SERVICE

    def test_poll_error(self):
        error = PollError("bad image", "job123", status_code=422, raw_payload={"message": "bad image"})

        assert error.job_id == "job123"
        assert error.details["job_id"] == "job123"
        assert error.error_code == "POLL_FAILED"
        assert error.raw_payload == {"message": "bad image"}
        assert error.retryable is False


class TestBodyMessageText:
    """Tests for extracting the displayable body message."""

    def test_list_of_messages_is_joined(self):
        error = ApiError(
            400,
            {
                "message": ["imageUrl must be a URL address", "targetLanguage must be a string"],
                "error": "Bad Request",
                "statusCode": 400,
            },
        )

        assert error.body_message == "imageUrl must be a URL address, targetLanguage must be a string"
        assert error.message == error.body_message

    @pytest.mark.parametrize(
        "candidate, expected",
        [
            ("bad image", "bad image"),
            (["only one"], "only one"),
            (["  ", "kept"], "kept"),
            ([], None),
            ([1, None], None),
            ({"nested": "object"}, None),
            (42, None),
            (None, None),
        ],
    )
    def test_body_message_text(self, candidate, expected):
        assert body_message_text(candidate) == expected
