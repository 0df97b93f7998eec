"""Folding fan-out outcomes into operation results."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from journeykit.application.dtos.results import ObjectError, OperationResult
from journeykit.domain.enums import ObjectKind, ObjectOperation
from journeykit.shared.utils.concurrency import (
    CallOutcome,
    OperationContext,
    gather_bounded,
)


def fold_outcomes(
    result: OperationResult,
    outcomes: list[CallOutcome[str, Any]],
    kind: ObjectKind,
    operation: ObjectOperation,
    missing_is_error: bool = False,
) -> dict[str, Any]:
    """Record failures on result and return the successful values by key.

    With missing_is_error, a None value (object absent) is recorded as a
    "not found" error instead of being returned.
    """
    values: dict[str, Any] = {}
    for outcome in outcomes:
        if outcome.cancelled:
            result.cancelled = True
        elif outcome.error is not None:
            result.record(
                ObjectError.from_exception(kind, outcome.key, operation, outcome.error)
            )
        elif outcome.value is None and missing_is_error:
            result.record(ObjectError(kind, outcome.key, operation, "not found"))
        else:
            values[outcome.key] = outcome.value
    return values


async def run_keyed(
    ctx: OperationContext,
    result: OperationResult,
    kind: ObjectKind,
    operation: ObjectOperation,
    calls: list[tuple[str, Callable[[], Awaitable[Any]]]],
    missing_is_error: bool = False,
) -> dict[str, Any]:
    """Fan out keyed calls under ctx and fold their outcomes into result."""
    outcomes = await gather_bounded(ctx, calls)
    return fold_outcomes(result, outcomes, kind, operation, missing_is_error)
