"""Journey maintenance use cases: orphaned nodes, enable/disable, classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Any

from journeykit.application.dtos.bundle import ExportBundle
from journeykit.application.dtos.results import ObjectError
from journeykit.application.interfaces.collaborators import PlatformCollaborators
from journeykit.application.services.journey_classification import (
    get_journey_classification,
)
from journeykit.core.config import Settings
from journeykit.domain.entities import (
    PageNode,
    is_container_type,
    node_type_of,
    parse_node,
)
from journeykit.domain.enums import JourneyClassification, ObjectKind, ObjectOperation
from journeykit.domain.exceptions import JourneyNotFoundException
from journeykit.shared.telemetry.logging import get_logger
from journeykit.shared.utils.concurrency import OperationContext, gather_bounded

logger = get_logger(__name__)


@dataclass
class OrphanedNodeReport:
    """Nodes no journey references, plus node types that could not be listed."""

    nodes: list[dict[str, Any]] = field(default_factory=list)
    skipped_types: list[str] = field(default_factory=list)


class JourneyMaintenanceService:
    """Realm-wide housekeeping around journeys and their nodes."""

    def __init__(
        self,
        collaborators: PlatformCollaborators,
        settings: Settings,
        ctx: OperationContext | None = None,
    ) -> None:
        self._c = collaborators
        self._settings = settings
        self._ctx = ctx or OperationContext(settings.max_concurrency)

    async def _active_node_ids(self) -> set[str]:
        """Every node id referenced by a journey, including inner nodes of containers."""
        active: set[str] = set()
        containers: list[tuple[str, str]] = []
        for tree in await self._c.trees.read_all():
            for node_id, ref in (tree.get("nodes") or {}).items():
                active.add(node_id)
                node_type = ref.get("nodeType", "")
                if is_container_type(node_type):
                    containers.append((node_id, node_type))
        outcomes = await gather_bounded(
            self._ctx,
            [
                (node_id, partial(self._c.nodes.read, node_type, node_id))
                for node_id, node_type in containers
            ],
        )
        for outcome in outcomes:
            if outcome.error is not None:
                raise outcome.error
            if outcome.value:
                container = parse_node(outcome.value, outcome.key)
                if isinstance(container, PageNode):
                    active.update(ref.id for ref in container.inner_nodes)
        return active

    async def find_orphaned_nodes(self) -> OrphanedNodeReport:
        """List nodes of every type that no journey (outer or inner) references."""
        report = OrphanedNodeReport()
        all_nodes: list[dict[str, Any]] = []
        node_types = await self._c.nodes.list_types()
        outcomes = await gather_bounded(
            self._ctx,
            [(t, partial(self._c.nodes.read_all_by_type, t)) for t in node_types],
        )
        for outcome in outcomes:
            if outcome.ok:
                all_nodes.extend(outcome.value or [])
            else:
                report.skipped_types.append(outcome.key)
        if report.skipped_types:
            logger.warning("Skipped node types: %s", ", ".join(report.skipped_types))

        active = await self._active_node_ids()
        report.nodes = [node for node in all_nodes if node.get("_id") not in active]
        logger.info(
            "%s total nodes, %s active, %s orphaned",
            len(all_nodes),
            len(active),
            len(report.nodes),
        )
        return report

    async def remove_orphaned_nodes(
        self, orphaned_nodes: list[dict[str, Any]]
    ) -> list[ObjectError]:
        """Delete the given nodes; returns one error per node that could not be removed."""
        outcomes = await gather_bounded(
            self._ctx,
            [
                (
                    node.get("_id", ""),
                    partial(self._c.nodes.delete, node_type_of(node), node.get("_id", "")),
                )
                for node in orphaned_nodes
            ],
        )
        errors = [
            ObjectError.from_exception(
                ObjectKind.NODE, o.key, ObjectOperation.DELETE, o.error
            )
            for o in outcomes
            if o.error is not None
        ]
        logger.info(
            "Removed %s of %s orphaned nodes", len(orphaned_nodes) - len(errors), len(orphaned_nodes)
        )
        return errors

    async def _set_enabled(self, journey_id: str, enabled: bool) -> dict[str, Any]:
        tree = await self._c.trees.read(journey_id)
        if tree is None:
            raise JourneyNotFoundException(journey_id)
        tree = {k: v for k, v in tree.items() if k != "_rev"}
        tree["enabled"] = enabled
        return await self._c.trees.update(journey_id, tree)

    async def enable_journey(self, journey_id: str) -> dict[str, Any]:
        return await self._set_enabled(journey_id, True)

    async def disable_journey(self, journey_id: str) -> dict[str, Any]:
        return await self._set_enabled(journey_id, False)

    def get_journey_classification(
        self, bundle: ExportBundle
    ) -> list[JourneyClassification]:
        return get_journey_classification(bundle, self._settings.am_version)
