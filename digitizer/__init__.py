"""Client for the handwriting digitization API.

Submits an image (by URL or upload), polls the job until it completes or
fails, and keeps the outcome in a SessionState:

- clients/api_client.py - DigitizationApiClient (httpx)
- domain/ - JobSnapshot, SessionState, progress mapping, API port
- services/ - JobSubmitter, StatusPoller, ErrorClassifier, DigitizationController
"""

from digitizer.clients.api_client import DigitizationApiClient
from digitizer.domain.models import FileSource, JobSnapshot, JobStatus, UrlSource
from digitizer.domain.session import SessionPhase, SessionState
from digitizer.services.controller import DigitizationController

__all__ = [
    "DigitizationApiClient",
    "DigitizationController",
    "FileSource",
    "JobSnapshot",
    "JobStatus",
    "SessionPhase",
    "SessionState",
    "UrlSource",
]
