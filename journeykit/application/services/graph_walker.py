"""Breadth-first discovery of a journey's reachable nodes and their dependencies.

The walk starts at the entry node and follows outcome connections with a
visited set, so cyclic journeys terminate and every reachable node is seen
once. Each BFS level is fetched concurrently. Container nodes are expanded
into their inner nodes (recursively, with a visited set per container).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from journeykit.application.dtos.discovery import DiscoverySet
from journeykit.application.dtos.results import ObjectError
from journeykit.application.services.dependency_classifier import (
    classify_node,
    inner_tree_reference,
)
from journeykit.domain.entities import Journey, PageNode, parse_node
from journeykit.domain.enums import ObjectKind, ObjectOperation
from journeykit.domain.exceptions import MissingEntryNodeException
from journeykit.shared.telemetry.logging import get_logger
from journeykit.shared.telemetry.tracing import add_span_attributes, traced
from journeykit.shared.utils.concurrency import OperationContext, gather_bounded

if TYPE_CHECKING:
    from journeykit.application.interfaces.collaborators import INodeCollaborator

logger = get_logger(__name__)


class INodeSource(Protocol):
    """Where the walker reads node bodies from."""

    async def get(self, node_type: str, node_id: str) -> dict[str, Any] | None:
        """Return the node body, or None if it does not exist."""


class RemoteNodeSource:
    """Reads node bodies through the node collaborator, memoised per (type, id)."""

    def __init__(self, nodes: INodeCollaborator) -> None:
        self._nodes = nodes
        self._cache: dict[tuple[str, str], dict[str, Any] | None] = {}

    async def get(self, node_type: str, node_id: str) -> dict[str, Any] | None:
        key = (node_type, node_id)
        if key not in self._cache:
            self._cache[key] = await self._nodes.read(node_type, node_id)
        return self._cache[key]


class GraphWalker:
    """Discovers everything reachable from a journey's entry node."""

    def __init__(
        self, node_source: INodeSource, ctx: OperationContext | None = None
    ) -> None:
        self._source = node_source
        self._ctx = ctx or OperationContext()

    @traced("journeykit.walker.discover")
    async def discover(self, journey: Journey) -> DiscoverySet:
        """Walk the journey and return its DiscoverySet.

        Raises:
            MissingEntryNodeException: entry node unset or not in the node map.
        """
        if not journey.has_entry_node():
            raise MissingEntryNodeException(journey.id, journey.entry_node_id)

        discovery = DiscoverySet(journey=journey)
        visited: set[str] = {journey.entry_node_id}
        frontier: list[str] = [journey.entry_node_id]
        while frontier:
            discovery.node_ids.extend(frontier)
            for node_id in frontier:
                discovery.node_types[node_id] = journey.nodes[node_id].node_type
            bodies = await self._fetch(
                discovery,
                [(node_id, journey.nodes[node_id].node_type) for node_id in frontier],
                ObjectKind.NODE,
            )
            for node_id, body in bodies:
                await self._expand(discovery, node_id, body, ancestors=(node_id,))
            frontier = self._next_frontier(discovery, journey, frontier, visited)

        add_span_attributes(
            journey_id=journey.id,
            node_count=len(discovery.node_ids),
            inner_node_count=len(discovery.all_inner_node_ids),
        )
        logger.debug(
            "Discovered journey %s: %s nodes, %s inner nodes, %s anomalies",
            journey.id,
            len(discovery.node_ids),
            len(discovery.all_inner_node_ids),
            len(discovery.anomalies),
        )
        return discovery

    async def add_unreachable_containers(self, discovery: DiscoverySet) -> list[str]:
        """Load containers in the node map that the walk never reached.

        Only their inner node ids are recorded (so a deep delete can remove
        them with the container); their dependencies are not. Returns the
        ids of the containers that loaded.
        """
        journey = discovery.journey
        refs = [
            (node_id, ref.node_type)
            for node_id, ref in journey.nodes.items()
            if node_id not in discovery.node_types
            and ref.node_type in PageNode.node_types
        ]
        loaded = await self._fetch(discovery, refs, ObjectKind.NODE)
        for node_id, body in loaded:
            container = parse_node(body, node_id)
            if not isinstance(container, PageNode):
                continue
            inner_ids: list[str] = []
            for ref in container.inner_nodes:
                if ref.id == node_id or ref.id in inner_ids:
                    continue
                inner_ids.append(ref.id)
                discovery.inner_node_types[ref.id] = ref.node_type
            discovery.inner_node_ids[node_id] = inner_ids
        if loaded:
            logger.debug(
                "Journey %s: %s unreachable containers loaded", journey.id, len(loaded)
            )
        return [node_id for node_id, _ in loaded]

    def _next_frontier(
        self,
        discovery: DiscoverySet,
        journey: Journey,
        frontier: list[str],
        visited: set[str],
    ) -> list[str]:
        next_frontier: list[str] = []
        for node_id in frontier:
            for outcome, target in journey.nodes[node_id].connections.items():
                if Journey.is_terminal(target) or target in visited:
                    continue
                if target not in journey.nodes:
                    message = (
                        f"Node {node_id} outcome {outcome!r} points at unknown node {target}"
                    )
                    discovery.anomalies.append(message)
                    logger.warning("Journey %s: %s", journey.id, message)
                    continue
                visited.add(target)
                next_frontier.append(target)
        return next_frontier

    async def _fetch(
        self,
        discovery: DiscoverySet,
        refs: list[tuple[str, str]],
        kind: ObjectKind,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Fetch bodies concurrently; failures become read errors on the discovery."""
        outcomes = await gather_bounded(
            self._ctx,
            [
                (node_id, self._reader(node_type, node_id))
                for node_id, node_type in refs
            ],
        )
        loaded: list[tuple[str, dict[str, Any]]] = []
        for outcome in outcomes:
            if outcome.cancelled:
                discovery.cancelled = True
            elif outcome.error is not None:
                discovery.read_errors.append(
                    ObjectError.from_exception(
                        kind, outcome.key, ObjectOperation.READ, outcome.error
                    )
                )
            elif outcome.value is None:
                discovery.read_errors.append(
                    ObjectError(kind, outcome.key, ObjectOperation.READ, "not found")
                )
            else:
                loaded.append((outcome.key, outcome.value))
        return loaded

    def _reader(self, node_type: str, node_id: str):
        async def read() -> dict[str, Any] | None:
            return await self._source.get(node_type, node_id)

        return read

    async def _expand(
        self,
        discovery: DiscoverySet,
        node_id: str,
        body: dict[str, Any],
        ancestors: tuple[str, ...],
    ) -> None:
        """Record a loaded body, its dependencies, and (for containers) its inner nodes."""
        discovery.node_bodies[node_id] = body
        node = parse_node(body, node_id)
        for ref in classify_node(node):
            discovery.add_dependency(ref)
        inner_journey = inner_tree_reference(body)
        if inner_journey:
            discovery.inner_journeys.add(inner_journey)
        if not isinstance(node, PageNode):
            return

        container_visited: set[str] = set()
        inner_refs = []
        for ref in node.inner_nodes:
            if ref.id in container_visited:
                continue
            container_visited.add(ref.id)
            if ref.id in ancestors:
                message = f"Container {node_id} embeds its own ancestor {ref.id}"
                discovery.anomalies.append(message)
                logger.warning("Journey %s: %s", discovery.journey_id, message)
                continue
            inner_refs.append(ref)
            discovery.inner_node_types[ref.id] = ref.node_type
        discovery.inner_node_ids[node_id] = [ref.id for ref in inner_refs]

        bodies = await self._fetch(
            discovery,
            [(ref.id, ref.node_type) for ref in inner_refs],
            ObjectKind.INNER_NODE,
        )
        for inner_id, inner_body in bodies:
            await self._expand(
                discovery, inner_id, inner_body, ancestors=ancestors + (inner_id,)
            )
