"""Bounded fan-out of independent remote calls with cooperative cancellation.

Calls within one phase share no mutable state, so they run concurrently
under a semaphore. Cancellation stops new calls from being issued; calls
already in flight finish and their outcomes are still returned.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class OperationContext:
    """Per-operation concurrency limit and cancellation flag."""

    def __init__(
        self,
        max_concurrency: int = 8,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.max_concurrency = max_concurrency
        self.cancel_event = cancel_event or asyncio.Event()
        self._semaphore = asyncio.Semaphore(max_concurrency)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        """Stop issuing new per-object requests."""
        self.cancel_event.set()

    @property
    def semaphore(self) -> asyncio.Semaphore:
        return self._semaphore


@dataclass
class CallOutcome(Generic[K, T]):
    """Result of one fanned-out call: a value, an exception, or 'never issued'."""

    key: K
    value: T | None = None
    error: Exception | None = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.cancelled


async def _run_one(
    ctx: OperationContext, key: Any, call: Callable[[], Awaitable[Any]]
) -> CallOutcome[Any, Any]:
    async with ctx.semaphore:
        if ctx.cancelled:
            return CallOutcome(key=key, cancelled=True)
        try:
            return CallOutcome(key=key, value=await call())
        except Exception as e:
            return CallOutcome(key=key, error=e)


async def gather_bounded(
    ctx: OperationContext,
    calls: Iterable[tuple[K, Callable[[], Awaitable[T]]]],
) -> list[CallOutcome[K, T]]:
    """Run keyed zero-argument coroutine factories concurrently under ctx's limit.

    Exceptions raised by a call are captured on its outcome and never abort
    sibling calls. Outcomes are returned in input order.
    """
    pending = [_run_one(ctx, key, call) for key, call in calls]
    if not pending:
        return []
    return list(await asyncio.gather(*pending))
