"""Command-line runner for the digitizer client.

Usage:
    python -m digitizer url https://example.com/note.png --lang es
    python -m digitizer file ./note.jpg --lang fr
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import asyncio
import logging
import sys
from typing import Optional

from digitizer.clients.api_client import DigitizationApiClient
from digitizer.core.exceptions import ValidationError
from digitizer.core.logging_config import configure_structured_logging
from digitizer.core.settings import api_settings, app_settings
from digitizer.core.validation import validate_all_settings
from digitizer.domain.models import FileSource, SubmissionSource, UrlSource
from digitizer.domain.session import SessionPhase, SessionState
from digitizer.services.controller import DigitizationController

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


def positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number (got {value})")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="digitizer",
        description="Extract and translate handwritten text from an image.",
    )
    parser.add_argument(
        "--base-url",
        help="API host, e.g. https://host (DIGITIZER_API_PREFIX is appended)",
    )
    parser.add_argument(
        "--interval", type=positive_float, help="Seconds between status checks"
    )
    parser.add_argument("--log-level", default=app_settings.LOG_LEVEL)
    parser.add_argument(
        "--json-logs", action="store_true", default=app_settings.LOG_JSON
    )

    sub = parser.add_subparsers(dest="command", required=True)

    url_cmd = sub.add_parser("url", help="Digitize an image by URL")
    url_cmd.add_argument("image_url")
    url_cmd.add_argument("--lang", default="", help="Target language (e.g. es, fr, de)")

    file_cmd = sub.add_parser("file", help="Digitize a local image file")
    file_cmd.add_argument("path")
    file_cmd.add_argument("--lang", default="", help="Target language (e.g. es, fr, de)")

    return parser


def build_source(args: argparse.Namespace) -> SubmissionSource:
    if args.command == "url":
        return UrlSource(image_url=args.image_url, target_language=args.lang)
    return FileSource.from_path(args.path, target_language=args.lang)


class StatusPrinter:
    """Prints a line whenever the visible status or progress changes."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self._last: Optional[tuple] = None

    def __call__(self, state: SessionState) -> None:
        status = state.last_snapshot.status.value if state.last_snapshot else None
        key = (state.phase, status, state.progress)
        if key == self._last:
            return
        self._last = key
        label = status or ("submitting..." if state.is_busy else state.phase.value)
        print(f"Status: {label} [{state.progress:3d}%]", file=self.stream)


def render_result(state: SessionState, stream=None) -> int:
    """Print the outcome of a settled session and return the exit code."""
    stream = stream or sys.stdout
    if state.error:
        print(f"Error: {state.error}", file=stream)

    snapshot = state.last_snapshot
    if snapshot is not None:
        if snapshot.recognized_text:
            print(f"Recognized Text:\n{snapshot.recognized_text}", file=stream)
        if snapshot.translated_text:
            print(f"Translated Text:\n{snapshot.translated_text}", file=stream)
        if snapshot.display_failure_reason:
            print(f"Failure Reason:\n{snapshot.display_failure_reason}", file=stream)

    if state.phase is SessionPhase.COMPLETED:
        return EXIT_OK
    if isinstance(state.error_detail, ValidationError):
        return EXIT_INVALID
    return EXIT_FAILED


async def run(args: argparse.Namespace) -> int:
    base_url = api_settings.join_prefix(args.base_url) if args.base_url else None
    async with DigitizationApiClient(base_url=base_url) as api:
        controller = DigitizationController(api, poll_interval=args.interval)
        controller.state.subscribe(StatusPrinter())
        try:
            await controller.submit(build_source(args))
            await controller.wait()
        finally:
            controller.stop()
        return render_result(controller.state)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_structured_logging(level=args.log_level, json_format=args.json_logs)
    validate_all_settings()
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
