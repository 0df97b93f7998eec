"""Application DTOs: bundles, discovery sets, options and results."""

from journeykit.application.dtos.bundle import (
    ExportBundle,
    ExportMeta,
    MultiJourneyBundle,
    Saml2Entities,
)
from journeykit.application.dtos.discovery import DiscoverySet
from journeykit.application.dtos.results import (
    BatchResult,
    DeleteOptions,
    DeletionEntry,
    DeletionResult,
    ExportOptions,
    ExportResult,
    ImportOptions,
    ImportResult,
    ObjectError,
    OperationResult,
)

__all__ = [
    "BatchResult",
    "DeleteOptions",
    "DeletionEntry",
    "DeletionResult",
    "DiscoverySet",
    "ExportBundle",
    "ExportMeta",
    "ExportOptions",
    "ExportResult",
    "ImportOptions",
    "ImportResult",
    "MultiJourneyBundle",
    "ObjectError",
    "OperationResult",
    "Saml2Entities",
]
