from __future__ import annotations

import asyncio
from typing import Any

import pytest

from digitizer.core.exceptions import ApiError, TransportError
from digitizer.domain.models import JobSnapshot
from digitizer.domain.session import SessionPhase, SessionState
from digitizer.services.poller import MAX_ID_MISMATCHES, StatusPoller

FAST = 0.001


class ScriptedApi:
    """Returns scripted get_result outcomes in order.

    An outcome may be a snapshot, an exception to raise, or a future whose
    result (snapshot or exception) is awaited first.
    """

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[str] = []
        self.in_flight = asyncio.Event()

    async def submit_url(self, image_url: str, target_language: str) -> str:
        raise AssertionError("not used")

    async def submit_upload(self, file_content, filename, target_language, content_type=None) -> str:
        raise AssertionError("not used")

    async def get_result(self, job_id: str) -> JobSnapshot:
        self.calls.append(job_id)
        self.in_flight.set()
        outcome = self.outcomes.pop(0) if self.outcomes else JobSnapshot(id=job_id, status="processing")
        if isinstance(outcome, asyncio.Future):
            outcome = await outcome
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _tracking(job_id: str) -> SessionState:
    state = SessionState()
    generation = state.begin_submission()
    state.track(generation, JobSnapshot.pending(job_id))
    return state


@pytest.mark.asyncio
async def test_polls_until_terminal_and_stops() -> None:
    api = ScriptedApi(
        JobSnapshot(id="A", status="processing"),
        JobSnapshot(id="A", status="completed", recognized_text="Hola"),
    )
    state = _tracking("A")
    poller = StatusPoller(api, state, interval_seconds=FAST)

    task = poller.start("A")
    await task
    for _ in range(5):
        await asyncio.sleep(0)

    assert api.calls == ["A", "A"]
    assert state.phase is SessionPhase.COMPLETED
    assert state.progress == 100
    assert poller.is_running is False
    assert poller.job_id is None


@pytest.mark.asyncio
async def test_first_check_waits_one_interval() -> None:
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)
        await asyncio.sleep(0)

    api = ScriptedApi(JobSnapshot(id="A", status="completed"))
    state = _tracking("A")
    poller = StatusPoller(api, state, interval_seconds=3.0, sleep=fake_sleep)

    await poller.start("A")

    assert delays == [3.0]
    assert api.calls == ["A"]


@pytest.mark.asyncio
async def test_stop_while_sleeping_cancels_the_run() -> None:
    api = ScriptedApi()
    state = _tracking("A")
    poller = StatusPoller(api, state, interval_seconds=10)

    task = poller.start("A")
    await asyncio.sleep(0)
    poller.stop()
    await asyncio.gather(task, return_exceptions=True)

    assert task.cancelled()
    assert api.calls == []
    assert poller.is_running is False


@pytest.mark.asyncio
async def test_stop_while_in_flight_discards_the_response() -> None:
    gate = asyncio.get_running_loop().create_future()
    api = ScriptedApi(gate)
    state = _tracking("A")
    poller = StatusPoller(api, state, interval_seconds=FAST)

    task = poller.start("A")
    await api.in_flight.wait()
    poller.stop()
    state.cancel()
    gate.set_result(JobSnapshot(id="A", status="completed", recognized_text="late"))
    await task

    assert not task.cancelled()
    assert api.calls == ["A"]
    assert state.phase is SessionPhase.CANCELLED
    assert state.last_snapshot.status.value == "pending"


@pytest.mark.asyncio
async def test_poll_error_halts_without_retry() -> None:
    api = ScriptedApi(ApiError(422, {"message": "bad image"}))
    state = _tracking("A")
    poller = StatusPoller(api, state, interval_seconds=FAST)

    await poller.start("A")
    for _ in range(5):
        await asyncio.sleep(0)

    assert api.calls == ["A"]
    assert state.phase is SessionPhase.POLL_FAILED
    assert state.error == "bad image"
    assert state.is_busy is False


@pytest.mark.asyncio
async def test_transport_error_uses_fallback_message() -> None:
    api = ScriptedApi(TransportError("unreachable", detail="connection refused"))
    state = _tracking("A")
    poller = StatusPoller(api, state, interval_seconds=FAST)

    await poller.start("A")

    assert state.error == "An unknown error occurred while fetching results."
    assert state.error_detail.job_id == "A"


@pytest.mark.asyncio
async def test_response_for_another_job_is_ignored() -> None:
    api = ScriptedApi(
        JobSnapshot(id="B", status="completed", recognized_text="wrong"),
        JobSnapshot(id="A", status="completed", recognized_text="right"),
    )
    state = _tracking("A")
    poller = StatusPoller(api, state, interval_seconds=FAST)

    await poller.start("A")

    assert api.calls == ["A", "A"]
    assert state.last_snapshot.recognized_text == "right"


@pytest.mark.asyncio
async def test_restart_detaches_previous_run() -> None:
    api = ScriptedApi()
    state = _tracking("A")
    poller = StatusPoller(api, state, interval_seconds=10)

    first = poller.start("A")
    second = poller.start("B")
    await asyncio.gather(first, return_exceptions=True)

    assert first.cancelled()
    assert poller.job_id == "B"
    poller.stop()
    await asyncio.gather(second, return_exceptions=True)


@pytest.mark.asyncio
async def test_stop_is_idempotent() -> None:
    api = ScriptedApi()
    state = _tracking("A")
    poller = StatusPoller(api, state, interval_seconds=10)

    poller.stop()
    task = poller.start("A")
    poller.stop()
    poller.stop()
    await asyncio.gather(task, return_exceptions=True)

    assert poller.job_id is None
    await poller.wait()


@pytest.mark.asyncio
async def test_repeated_id_mismatch_halts_the_run() -> None:
    api = ScriptedApi(*[JobSnapshot(id="B", status="processing") for _ in range(MAX_ID_MISMATCHES + 3)])
    state = _tracking("A")
    poller = StatusPoller(api, state, interval_seconds=FAST)

    await poller.start("A")

    assert len(api.calls) == MAX_ID_MISMATCHES
    assert state.phase is SessionPhase.POLL_FAILED
    assert state.error == "An unknown error occurred while fetching results."
    assert state.is_busy is False
    assert state.progress == 5


@pytest.mark.asyncio
async def test_matching_response_resets_mismatch_count() -> None:
    other = JobSnapshot(id="B", status="processing")
    ours = JobSnapshot(id="A", status="processing")
    outcomes = [other] * (MAX_ID_MISMATCHES - 1) + [ours] + [other] * (MAX_ID_MISMATCHES - 1)
    api = ScriptedApi(*outcomes, JobSnapshot(id="A", status="completed"))
    state = _tracking("A")
    poller = StatusPoller(api, state, interval_seconds=FAST)

    await poller.start("A")

    assert len(api.calls) == len(outcomes) + 1
    assert state.phase is SessionPhase.COMPLETED


@pytest.mark.asyncio
async def test_failing_listener_does_not_stall_polling() -> None:
    api = ScriptedApi(JobSnapshot(id="A", status="completed", recognized_text="Hola"))
    state = _tracking("A")

    def broken_listener(_state: SessionState) -> None:
        raise RuntimeError("display went away")

    state.subscribe(broken_listener)
    poller = StatusPoller(api, state, interval_seconds=FAST)

    await poller.start("A")

    assert state.phase is SessionPhase.COMPLETED
    assert state.is_busy is False
    assert poller.is_running is False


@pytest.mark.parametrize("interval", [0, -1.5])
def test_non_positive_interval_is_rejected(interval: float) -> None:
    with pytest.raises(ValueError):
        StatusPoller(ScriptedApi(), SessionState(), interval_seconds=interval)
