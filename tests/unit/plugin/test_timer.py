import anyio
import pytest

from plugbar.plugin import Timer


@pytest.mark.anyio
async def test_fires_once_after_delay() -> None:
    calls: list[int] = []
    timer = Timer(0.05, lambda: calls.append(1))

    async with anyio.create_task_group() as tg:
        timer.schedule(tg)
        assert timer.pending

    assert calls == [1]
    assert not timer.pending


@pytest.mark.anyio
async def test_cancel_before_delay_prevents_callback() -> None:
    calls: list[int] = []
    timer = Timer(0.2, lambda: calls.append(1))

    async with anyio.create_task_group() as tg:
        timer.schedule(tg)
        await anyio.sleep(0.01)
        timer.cancel()

    assert calls == []
    assert not timer.pending


@pytest.mark.anyio
async def test_cancel_before_schedule_prevents_callback() -> None:
    calls: list[int] = []
    timer = Timer(0.01, lambda: calls.append(1))
    timer.cancel()

    async with anyio.create_task_group() as tg:
        timer.schedule(tg)

    assert calls == []


def test_cancel_is_idempotent() -> None:
    timer = Timer(1.0, lambda: None)

    timer.cancel()
    timer.cancel()

    assert not timer.pending
    assert timer.delay == 1.0
