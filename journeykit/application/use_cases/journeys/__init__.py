"""Journey use cases: export, import, delete and maintenance."""

from journeykit.application.use_cases.journeys.delete_journey import (
    JourneyDeletionService,
)
from journeykit.application.use_cases.journeys.export_journey import (
    JourneyExportService,
)
from journeykit.application.use_cases.journeys.import_journey import (
    JourneyImportService,
)
from journeykit.application.use_cases.journeys.journey_maintenance import (
    JourneyMaintenanceService,
    OrphanedNodeReport,
)

__all__ = [
    "JourneyDeletionService",
    "JourneyExportService",
    "JourneyImportService",
    "JourneyMaintenanceService",
    "OrphanedNodeReport",
]
