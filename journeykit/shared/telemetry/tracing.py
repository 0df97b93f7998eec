"""Span helpers for journey operations.

``traced`` wraps a use-case method in a span named after the operation,
records the identifying arguments (journey id, options) and, when the
method returns an operation result, its error count and cancellation flag.
"""

import asyncio
import inspect
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

# Only these argument names are copied onto spans; bodies and tokens never are.
_RECORDED_ARGS = frozenset({
    "journey_id", "node_id", "node_type", "object_id", "realm", "options",
})


def _arg_attributes(
    signature: inspect.Signature, args: tuple, kwargs: dict[str, Any]
) -> dict[str, str]:
    try:
        bound = signature.bind_partial(*args, **kwargs)
    except TypeError:
        return {}
    return {
        f"journeykit.{name}": str(value)
        for name, value in bound.arguments.items()
        if name in _RECORDED_ARGS and value is not None
    }


def _record_outcome(span: trace.Span, result: Any) -> None:
    errors = getattr(result, "errors", None)
    if isinstance(errors, list):
        span.set_attribute("journeykit.error_count", len(errors))
    if getattr(result, "cancelled", False):
        span.set_attribute("journeykit.cancelled", True)


@contextmanager
def _operation_span(
    name: str, attributes: dict[str, Any]
) -> Iterator[trace.Span]:
    tracer = trace.get_tracer("journeykit")
    with tracer.start_as_current_span(
        name,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise
        span.set_status(Status(StatusCode.OK))


def traced(
    operation_name: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable:
    """Run the decorated function (sync or async) inside its own span.

    Args:
        operation_name: Span name; defaults to ``module.qualname``.
        attributes: Static attributes added to every span.
    """

    def decorator(func: Callable) -> Callable:
        name = operation_name or f"{func.__module__}.{func.__qualname__}"
        signature = inspect.signature(func)

        def span_attributes(args: tuple, kwargs: dict[str, Any]) -> dict[str, Any]:
            return {**(attributes or {}), **_arg_attributes(signature, args, kwargs)}

        if asyncio.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with _operation_span(name, span_attributes(args, kwargs)) as span:
                    result = await func(*args, **kwargs)
                    _record_outcome(span, result)
                    return result

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _operation_span(name, span_attributes(args, kwargs)) as span:
                result = func(*args, **kwargs)
                _record_outcome(span, result)
                return result

        return sync_wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Set attributes on the current span, if one is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes(attributes)
