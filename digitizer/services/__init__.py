"""Job submission, status polling and error classification."""

from digitizer.services.controller import DigitizationController
from digitizer.services.error_classifier import ErrorClassifier, ErrorContext
from digitizer.services.poller import StatusPoller
from digitizer.services.submitter import JobSubmitter, validate_source

__all__ = [
    "DigitizationController",
    "ErrorClassifier",
    "ErrorContext",
    "JobSubmitter",
    "StatusPoller",
    "validate_source",
]
