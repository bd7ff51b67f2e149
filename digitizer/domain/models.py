"""Domain models for digitization jobs.

JobSnapshot is the client's read-only projection of a server-side job;
UrlSource and FileSource describe what a submission sends.
"""

from __future__ import annotations

import mimetypes
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from digitizer.core.errors import ErrorCode


class JobStatus(str, Enum):
    """Server-side job status, in progression order."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobSnapshot(BaseModel):
    """Most recent known state of one job."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore"
    )

    id: Optional[str] = Field(
        default=None,
        min_length=1,
        validation_alias=AliasChoices("_id", "id", "digitizationId"),
    )
    status: JobStatus
    recognized_text: Optional[str] = None
    translated_text: Optional[str] = None
    failure_reason: Optional[str] = None

    @classmethod
    def pending(cls, job_id: str) -> "JobSnapshot":
        """Initial snapshot handed to the poller right after submission."""
        return cls(id=job_id, status=JobStatus.PENDING)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def display_failure_reason(self) -> Optional[str]:
        """Failure reason to show for a failed job, never empty."""
        if self.status is not JobStatus.FAILED:
            return None
        return self.failure_reason or ErrorCode.JOB_FAILED.value.message


class UrlSource(BaseModel):
    """Digitize an image the server downloads itself."""

    image_url: str = ""
    target_language: str = ""


class FileSource(BaseModel):
    """Digitize an uploaded image file."""

    file_content: Optional[bytes] = None
    filename: str = "image"
    content_type: Optional[str] = None
    target_language: str = ""

    @classmethod
    def from_path(cls, path: Union[str, Path, None], target_language: str = "") -> "FileSource":
        """Build a source from a local file.

        A missing path or file yields a source without content, which the
        submitter rejects before touching the network.
        """
        if not path:
            return cls(target_language=target_language)

        file_path = Path(path)
        if not file_path.is_file():
            return cls(filename=file_path.name or "image", target_language=target_language)

        content_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            file_content=file_path.read_bytes(),
            filename=file_path.name,
            content_type=content_type or "application/octet-stream",
            target_language=target_language,
        )


SubmissionSource = Union[UrlSource, FileSource]
