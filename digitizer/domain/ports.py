"""DigitizationApiPort protocol for the digitization API.

The submitter and poller depend on this contract, not on httpx.
"""

from __future__ import annotations

from typing import Optional, Protocol

from digitizer.domain.models import JobSnapshot


class DigitizationApiPort(Protocol):
    """Abstraction over the digitization HTTP API."""

    async def submit_url(self, image_url: str, target_language: str) -> str: ...

    async def submit_upload(
        self,
        file_content: bytes,
        filename: str,
        target_language: str,
        content_type: Optional[str] = None,
    ) -> str: ...

    async def get_result(self, job_id: str) -> JobSnapshot: ...
