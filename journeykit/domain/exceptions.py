"""Domain exceptions for journeykit.

Structural errors (malformed bundle, missing entry node, unknown journey)
abort an operation before any remote write. Per-object remote failures are
not raised; they are collected as ObjectError entries on the operation
result and surfaced together through JourneyOperationException.
"""

from typing import Any


class JourneyKitException(Exception):
    """Base exception for all journeykit errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. journey_id, object_type).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class StructuralException(JourneyKitException):
    """Base for errors that make the whole operation impossible."""


class MalformedBundleException(StructuralException):
    """Raised when an export bundle fails top-level shape validation."""

    def __init__(self, validation_errors: list[Any]) -> None:
        """Initialize with the validation errors.

        Args:
            validation_errors: List of validation error details (e.g. from jsonschema).
        """
        super().__init__(
            "Export bundle is malformed",
            "MALFORMED_BUNDLE",
            {"errors": validation_errors},
        )


class MissingEntryNodeException(StructuralException):
    """Raised when a journey's entry node is unset or absent from its node map."""

    def __init__(self, journey_id: str, entry_node_id: str | None) -> None:
        super().__init__(
            f"Entry node {entry_node_id!r} of journey {journey_id} is missing",
            "MISSING_ENTRY_NODE",
            {"journey_id": journey_id, "entry_node_id": entry_node_id},
        )


class JourneyNotFoundException(StructuralException):
    """Raised when the requested journey does not exist in the realm."""

    def __init__(self, journey_id: str) -> None:
        """Initialize with the missing journey id.

        Args:
            journey_id: The journey id/name that was not found.
        """
        super().__init__(
            f"Journey not found: {journey_id}",
            "JOURNEY_NOT_FOUND",
            {"journey_id": journey_id},
        )


class PlatformRequestException(JourneyKitException):
    """Raised when a REST call to the platform fails with a non-404 error status."""

    def __init__(
        self,
        method: str,
        url: str,
        status_code: int,
        payload: Any = None,
    ) -> None:
        """Initialize with request and response context.

        Args:
            method: HTTP method of the failed request.
            url: Request URL.
            status_code: HTTP status code returned by the platform.
            payload: Decoded JSON body (or raw text) of the error response.
        """
        self.status_code = status_code
        self.payload = payload
        remote_message = payload.get("message") if isinstance(payload, dict) else None
        message = f"{method} {url} failed with status {status_code}"
        if remote_message:
            message = f"{message}: {remote_message}"
        super().__init__(
            message,
            "PLATFORM_REQUEST_FAILED",
            {"method": method, "url": url, "status_code": status_code},
        )

    @property
    def remote_message(self) -> str | None:
        """The platform's own error message, when the body carried one."""
        if isinstance(self.payload, dict):
            return self.payload.get("message")
        return None


class JourneyOperationException(JourneyKitException):
    """Aggregate error for an export/import/delete that collected per-object errors.

    The partial result is attached so callers can proceed, retry the failed
    subset, or abort.
    """

    def __init__(self, operation: str, errors: list[Any], result: Any = None) -> None:
        """Initialize with the operation name, collected errors and partial result.

        Args:
            operation: 'export', 'import' or 'delete'.
            errors: ObjectError entries collected during the operation.
            result: The partial ExportResult / ImportResult / DeletionResult.
        """
        self.errors = list(errors)
        self.result = result
        super().__init__(
            f"{operation} finished with {len(self.errors)} error(s)",
            "PARTIAL_FAILURE",
            {"operation": operation, "error_count": len(self.errors)},
        )
