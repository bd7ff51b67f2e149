"""Status to progress mapping.

Stateless: callers keep progress monotonic per job id.
"""

from digitizer.domain.models import JobStatus

PROGRESS_BY_STATUS = {
    JobStatus.PENDING: 5,
    JobStatus.PROCESSING: 50,
    JobStatus.COMPLETED: 100,
    JobStatus.FAILED: 100,
}


def estimate(status: JobStatus) -> int:
    return PROGRESS_BY_STATUS[JobStatus(status)]
