"""DTOs for operation options and results (export, import, delete)."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from journeykit.application.dtos.bundle import ExportBundle, MultiJourneyBundle
from journeykit.domain.enums import DeletionStatus, ObjectKind, ObjectOperation
from journeykit.domain.exceptions import JourneyOperationException


@dataclass
class ExportOptions:
    """Options for exporting a journey."""

    deps: bool = True
    use_string_arrays: bool = True


@dataclass
class ImportOptions:
    """Options for importing a journey bundle."""

    re_uuid: bool = False
    deps: bool = True


@dataclass
class DeleteOptions:
    """Options for deleting a journey."""

    deep: bool = False


@dataclass(frozen=True)
class ObjectError:
    """One failed remote operation on one object.

    cross_phase marks failures that leave the remote state partially
    configured (e.g. the tree write failing after its nodes were written).
    """

    object_type: ObjectKind
    object_id: str
    operation: ObjectOperation
    message: str
    cross_phase: bool = False

    @classmethod
    def from_exception(
        cls,
        object_type: ObjectKind,
        object_id: str,
        operation: ObjectOperation,
        error: BaseException,
        cross_phase: bool = False,
    ) -> ObjectError:
        return cls(
            object_type=object_type,
            object_id=object_id,
            operation=operation,
            message=str(error) or error.__class__.__name__,
            cross_phase=cross_phase,
        )

    def __str__(self) -> str:
        return (
            f"{self.operation.value} {self.object_type.value} {self.object_id}: "
            f"{self.message}"
        )


@dataclass
class OperationResult:
    """Errors and cancellation state shared by every operation result."""

    errors: list[ObjectError] = field(default_factory=list)
    cancelled: bool = False

    operation: str = field(default="operation", init=False, repr=False)

    @property
    def cross_phase_errors(self) -> list[ObjectError]:
        return [e for e in self.errors if e.cross_phase]

    @property
    def ok(self) -> bool:
        return not self.errors and not self.cancelled

    def record(self, error: ObjectError) -> None:
        self.errors.append(error)

    def raise_for_errors(self) -> None:
        """Raise JourneyOperationException carrying this result if any error was collected."""
        if self.errors:
            raise JourneyOperationException(self.operation, self.errors, result=self)

    def _error_suffix(self) -> str:
        suffix = f", {len(self.errors)} error{'s' if len(self.errors) != 1 else ''}"
        if self.cancelled:
            suffix += ", cancelled"
        return suffix


@dataclass
class ExportResult(OperationResult):
    """Bundle produced by an export plus the per-object read errors."""

    bundle: ExportBundle | None = None

    def __post_init__(self) -> None:
        self.operation = "export"

    def summary(self) -> str:
        exported = self.bundle.dependency_count() if self.bundle else 0
        failed = len({(e.object_type, e.object_id) for e in self.errors})
        return (
            f"exported {exported}/{exported + failed} dependent objects"
            f"{self._error_suffix()}"
        )


@dataclass
class ImportResult(OperationResult):
    """Objects written by an import, per object kind."""

    journey_id: str = ""
    created: dict[ObjectKind, list[str]] = field(default_factory=dict)
    updated: dict[ObjectKind, list[str]] = field(default_factory=dict)
    remapped_ids: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.operation = "import"

    def record_written(self, kind: ObjectKind, object_id: str, created: bool = False) -> None:
        target = self.created if created else self.updated
        target.setdefault(kind, []).append(object_id)

    @property
    def written_count(self) -> int:
        return sum(len(v) for v in self.created.values()) + sum(
            len(v) for v in self.updated.values()
        )

    def summary(self) -> str:
        written = self.written_count
        failed = len({(e.object_type, e.object_id) for e in self.errors})
        return (
            f"imported {written}/{written + failed} objects"
            f"{self._error_suffix()}"
        )


@dataclass(frozen=True)
class DeletionEntry:
    """Outcome for one object considered by a deletion."""

    object_type: ObjectKind
    object_id: str
    status: DeletionStatus


@dataclass
class DeletionResult(OperationResult):
    """Per-object outcomes of a (deep) journey deletion."""

    journey_id: str = ""
    entries: list[DeletionEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.operation = "delete"

    def mark(self, kind: ObjectKind, object_id: str, status: DeletionStatus) -> None:
        self.entries.append(DeletionEntry(kind, object_id, status))

    def status_of(self, kind: ObjectKind, object_id: str) -> DeletionStatus | None:
        for entry in self.entries:
            if entry.object_type == kind and entry.object_id == object_id:
                return entry.status
        return None

    def ids_with_status(self, status: DeletionStatus) -> list[str]:
        return [e.object_id for e in self.entries if e.status == status]

    def summary(self) -> str:
        counts = Counter(entry.status for entry in self.entries)
        deleted = counts[DeletionStatus.DELETED]
        considered = deleted + counts[DeletionStatus.FAILED]
        text = f"deleted {deleted}/{considered} objects"
        if counts[DeletionStatus.SKIPPED_SHARED]:
            text += f", {counts[DeletionStatus.SKIPPED_SHARED]} skipped (shared)"
        if counts[DeletionStatus.SKIPPED_UNVERIFIED]:
            text += f", {counts[DeletionStatus.SKIPPED_UNVERIFIED]} skipped (unverified)"
        return text + self._error_suffix()


@dataclass
class BatchResult(OperationResult):
    """Results of running one operation over several journeys.

    errors aggregates every child error plus batch-level ones (e.g. a journey
    skipped because its inner journeys could not be resolved).
    """

    batch_operation: str = ""
    results: dict[str, Any] = field(default_factory=dict)
    bundle: MultiJourneyBundle | None = None
    skipped: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.operation = self.batch_operation or "batch"

    def add(self, journey_id: str, result: OperationResult) -> None:
        self.results[journey_id] = result
        self.errors.extend(result.errors)
        self.cancelled = self.cancelled or result.cancelled

    def summary(self) -> str:
        succeeded = sum(1 for r in self.results.values() if r.ok)
        total = len(self.results) + len(self.skipped)
        return (
            f"{self.operation}: {succeeded}/{total} journeys succeeded"
            f"{self._error_suffix()}"
        )
