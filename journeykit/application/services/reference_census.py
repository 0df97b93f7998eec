"""Which journeys reference which nodes and collaborator objects.

Built once by walking every journey in the realm; deep deletes consult it
to decide whether a dependent object is exclusive to the journey being
deleted. A batch delete reuses one census and forgets each journey as it
is removed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from journeykit.application.dtos.discovery import DiscoverySet
from journeykit.application.services.graph_walker import GraphWalker
from journeykit.core.constants import ALL_SOCIAL_PROVIDERS
from journeykit.domain.entities import DependencyRef, Journey
from journeykit.domain.enums import DependencyType
from journeykit.domain.exceptions import StructuralException
from journeykit.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


@dataclass
class JourneyReferences:
    """Node ids and dependency refs one journey holds."""

    node_ids: set[str] = field(default_factory=set)
    dependencies: set[DependencyRef] = field(default_factory=set)

    @classmethod
    def from_discovery(cls, discovery: DiscoverySet) -> JourneyReferences:
        node_ids = set(discovery.journey.nodes) | set(discovery.all_inner_node_ids)
        return cls(node_ids=node_ids, dependencies=set(discovery.dependency_refs()))


class ReferenceCensus:
    """Reverse index from objects to the journeys that reference them.

    incomplete maps journeys whose walk failed or lost node reads to the
    reason. Their dependencies are unknown, so while any remain no
    collaborator object can be proven exclusive to another journey.
    """

    def __init__(self) -> None:
        self._by_journey: dict[str, JourneyReferences] = {}
        self.incomplete: dict[str, str] = {}

    @classmethod
    async def build(
        cls, journeys: list[Journey], walker: GraphWalker
    ) -> ReferenceCensus:
        """Walk every journey and record its references.

        A journey that cannot be walked (e.g. missing entry node) still
        contributes every node id in its map, so its nodes are never treated
        as exclusive to someone else. It is recorded as incomplete, as is a
        journey whose walk lost node reads or was cancelled.
        """
        census = cls()
        for journey in journeys:
            try:
                discovery = await walker.discover(journey)
            except StructuralException as e:
                logger.warning(
                    "Journey %s could not be walked for the census: %s", journey.id, e
                )
                census._by_journey[journey.id] = JourneyReferences(
                    node_ids=set(journey.nodes)
                )
                census.incomplete[journey.id] = e.message
                continue
            census.add(discovery)
        return census

    def add(self, discovery: DiscoverySet) -> None:
        journey_id = discovery.journey_id
        self._by_journey[journey_id] = JourneyReferences.from_discovery(discovery)
        self.incomplete.pop(journey_id, None)
        if discovery.read_errors:
            self.incomplete[journey_id] = (
                f"{len(discovery.read_errors)} node(s) could not be read"
            )
        elif discovery.cancelled:
            self.incomplete[journey_id] = "walk cancelled"
        if journey_id in self.incomplete:
            logger.warning(
                "Census for journey %s is incomplete: %s",
                journey_id,
                self.incomplete[journey_id],
            )

    def forget(self, journey_id: str) -> None:
        """Drop a journey (after it was deleted) so it no longer holds references."""
        self._by_journey.pop(journey_id, None)
        self.incomplete.pop(journey_id, None)

    @property
    def journey_ids(self) -> set[str]:
        return set(self._by_journey)

    def incomplete_except(self, journey_id: str) -> list[str]:
        """Sorted ids of incompletely walked journeys other than journey_id."""
        return sorted(jid for jid in self.incomplete if jid != journey_id)

    def _others(self, journey_id: str) -> list[JourneyReferences]:
        return [refs for jid, refs in self._by_journey.items() if jid != journey_id]

    def node_is_shared(self, node_id: str, journey_id: str) -> bool:
        """Return whether any journey other than journey_id references the node."""
        return any(node_id in refs.node_ids for refs in self._others(journey_id))

    def dependency_is_shared(self, ref: DependencyRef, journey_id: str) -> bool:
        """Return whether any journey other than journey_id references the object.

        A journey using every social provider (wildcard) shares all of them.
        """
        wildcard = DependencyRef(DependencyType.SOCIAL_IDP, ALL_SOCIAL_PROVIDERS)
        for refs in self._others(journey_id):
            if ref in refs.dependencies:
                return True
            if ref.type == DependencyType.SOCIAL_IDP and wildcard in refs.dependencies:
                return True
        return False
