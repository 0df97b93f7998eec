"""Tests for bounded fan-out and cooperative cancellation."""

import asyncio

import pytest

from journeykit.shared.utils.concurrency import OperationContext, gather_bounded


def test_context_rejects_non_positive_limit() -> None:
    with pytest.raises(ValueError):
        OperationContext(max_concurrency=0)


@pytest.mark.asyncio
async def test_outcomes_keep_input_order_and_capture_errors() -> None:
    async def ok(value: int) -> int:
        await asyncio.sleep(0.01 * (3 - value))
        return value * 10

    async def fail() -> int:
        raise RuntimeError("nope")

    outcomes = await gather_bounded(
        OperationContext(2),
        [("a", lambda: ok(1)), ("b", fail), ("c", lambda: ok(2))],
    )

    assert [o.key for o in outcomes] == ["a", "b", "c"]
    assert [o.value for o in outcomes] == [10, None, 20]
    assert isinstance(outcomes[1].error, RuntimeError)
    assert [o.ok for o in outcomes] == [True, False, True]


@pytest.mark.asyncio
async def test_concurrency_never_exceeds_limit() -> None:
    running = 0
    peak = 0

    async def call() -> None:
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1

    await gather_bounded(OperationContext(3), [(i, call) for i in range(10)])
    assert peak == 3


@pytest.mark.asyncio
async def test_cancellation_stops_new_calls_but_lets_in_flight_finish() -> None:
    ctx = OperationContext(1)
    started: list[int] = []

    async def call(i: int) -> int:
        started.append(i)
        if i == 0:
            ctx.cancel()
        await asyncio.sleep(0)
        return i

    outcomes = await gather_bounded(ctx, [(i, lambda i=i: call(i)) for i in range(3)])

    assert started == [0]
    assert outcomes[0].value == 0 and outcomes[0].ok
    assert [o.cancelled for o in outcomes[1:]] == [True, True]


@pytest.mark.asyncio
async def test_empty_input() -> None:
    assert await gather_bounded(OperationContext(), []) == []
