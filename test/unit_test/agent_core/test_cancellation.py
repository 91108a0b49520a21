from __future__ import annotations

import asyncio

import pytest

from pagepilot_ai.agent_core.cancellation import CancellationSignal
from pagepilot_ai.agent_core.errors import ErrorKind, RequestCancelledError


@pytest.mark.asyncio
async def test_run_returns_result_when_not_cancelled() -> None:
    signal = CancellationSignal()

    async def work() -> str:
        return "ok"

    assert await signal.run(work()) == "ok"


@pytest.mark.asyncio
async def test_run_propagates_work_errors() -> None:
    signal = CancellationSignal()

    async def work() -> None:
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        await signal.run(work())


@pytest.mark.asyncio
async def test_cancel_mid_call_cancels_the_work() -> None:
    signal = CancellationSignal()
    started = asyncio.Event()
    was_cancelled = False

    async def slow() -> None:
        nonlocal was_cancelled
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            was_cancelled = True
            raise

    async def fire() -> None:
        await started.wait()
        signal.cancel("user stopped")

    asyncio.ensure_future(fire())
    with pytest.raises(RequestCancelledError) as exc_info:
        await signal.run(slow())

    assert exc_info.value.kind == ErrorKind.aborted
    assert exc_info.value.message == "user stopped"
    assert was_cancelled


@pytest.mark.asyncio
async def test_run_refuses_to_start_after_cancel() -> None:
    signal = CancellationSignal()
    signal.cancel()

    async def work() -> str:
        return "never"

    coro = work()
    with pytest.raises(RequestCancelledError, match="Task cancelled"):
        await signal.run(coro)
    coro.close()


@pytest.mark.asyncio
async def test_sleep_completes_without_signal() -> None:
    signal = CancellationSignal()
    await signal.sleep(0.01)
    assert not signal.cancelled


@pytest.mark.asyncio
async def test_sleep_is_interrupted_by_signal() -> None:
    signal = CancellationSignal()
    loop = asyncio.get_running_loop()
    loop.call_later(0.01, signal.cancel)
    start = loop.time()

    with pytest.raises(RequestCancelledError):
        await signal.sleep(5)

    assert loop.time() - start < 1


def test_first_reason_is_kept() -> None:
    signal = CancellationSignal()
    signal.cancel("first")
    signal.cancel("second")
    assert signal.reason == "first"
    with pytest.raises(RequestCancelledError, match="first"):
        signal.raise_if_cancelled()
