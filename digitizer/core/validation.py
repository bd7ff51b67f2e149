"""Startup validation checks.

Validates critical settings before the client starts talking to the API.
Settings classes define data, this module validates behavior.
"""

import logging

logger = logging.getLogger(__name__)


def validate_all_settings() -> None:
    """Validate all critical settings at startup.

    Fails fast if the environment is misconfigured, rather than on the
    first request or the first poll tick.

    Raises:
        RuntimeError: If any critical setting is missing or invalid
    """
    from digitizer.core.settings import api_settings, polling_settings

    problems = []

    base_url = api_settings.DIGITIZER_API_BASE_URL.strip()
    if not base_url:
        problems.append("  - DIGITIZER_API_BASE_URL is empty")
    elif not base_url.startswith(("http://", "https://")):
        problems.append(
            f"  - DIGITIZER_API_BASE_URL must start with http:// or https:// (got {base_url!r})"
        )

    positive_checks = [
        (polling_settings.DIGITIZER_POLL_INTERVAL_SECONDS, "DIGITIZER_POLL_INTERVAL_SECONDS"),
        (api_settings.DIGITIZER_HTTP_TIMEOUT_SECONDS, "DIGITIZER_HTTP_TIMEOUT_SECONDS"),
        (api_settings.DIGITIZER_UPLOAD_TIMEOUT_SECONDS, "DIGITIZER_UPLOAD_TIMEOUT_SECONDS"),
    ]
    for value, name in positive_checks:
        if value <= 0:
            problems.append(f"  - {name} must be positive (got {value})")

    submitting = polling_settings.DIGITIZER_SUBMITTING_PROGRESS
    if not 0 < submitting < 100:
        problems.append(
            f"  - DIGITIZER_SUBMITTING_PROGRESS must be between 1 and 99 (got {submitting})"
        )

    if problems:
        error_msg = "Invalid client configuration:\n" + "\n".join(problems)
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    logger.debug(f"Settings validated: api_root={api_settings.api_root}")
