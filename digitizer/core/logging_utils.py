"""
Log-safe formatting helpers.

Image URLs are often pre-signed; keep them useful for debugging
without leaking credentials or signatures into logs.
"""

from urllib.parse import urlsplit, urlunsplit


def sanitize_url(url: str | None) -> str:
    """
    Sanitize an image URL for logs.

    Rules:
    - None / empty → "***"
    - userinfo, query string and fragment are dropped
    - unparseable values → fully masked
    """
    if not url:
        return "***"

    try:
        parts = urlsplit(url.strip())
        host = parts.hostname or ""
        if parts.port:
            host = f"{host}:{parts.port}"
    except ValueError:
        return "***"

    if not parts.scheme or not host:
        return "***"

    suffix = "?***" if parts.query else ""
    return urlunsplit((parts.scheme, host, parts.path, "", "")) + suffix


def short_id(job_id: str | None) -> str:
    """
    Shorten a job ID for human-readable log lines.
    """
    if not job_id:
        return "N/A"
    return job_id if len(job_id) <= 8 else f"{job_id[:8]}..."
