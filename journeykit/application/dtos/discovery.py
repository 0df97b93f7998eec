"""DTO for the outcome of walking one journey's node graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from journeykit.core.constants import ALL_SOCIAL_PROVIDERS
from journeykit.domain.entities import DependencyRef, Journey
from journeykit.domain.enums import DependencyType

if TYPE_CHECKING:
    from journeykit.application.dtos.results import ObjectError


@dataclass
class DiscoverySet:
    """Everything reachable from a journey's entry node.

    node_ids keeps breadth-first order; inner_node_ids keeps each
    container's declared order. node_bodies holds every body fetched during
    the walk (outer and inner) so later phases never re-fetch them.
    """

    journey: Journey
    node_ids: list[str] = field(default_factory=list)
    node_types: dict[str, str] = field(default_factory=dict)
    inner_node_ids: dict[str, list[str]] = field(default_factory=dict)
    inner_node_types: dict[str, str] = field(default_factory=dict)
    node_bodies: dict[str, dict[str, Any]] = field(default_factory=dict)
    dependencies: dict[DependencyType, set[str]] = field(default_factory=dict)
    inner_journeys: set[str] = field(default_factory=set)
    anomalies: list[str] = field(default_factory=list)
    read_errors: list[ObjectError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def journey_id(self) -> str:
        return self.journey.id

    def add_dependency(self, ref: DependencyRef) -> None:
        self.dependencies.setdefault(ref.type, set()).add(ref.id)

    def dependency_ids(self, dependency_type: DependencyType) -> list[str]:
        """Sorted explicit ids for a type (the social IdP wildcard is excluded)."""
        ids = self.dependencies.get(dependency_type, set())
        return sorted(i for i in ids if i != ALL_SOCIAL_PROVIDERS)

    @property
    def uses_all_social_providers(self) -> bool:
        return ALL_SOCIAL_PROVIDERS in self.dependencies.get(
            DependencyType.SOCIAL_IDP, set()
        )

    @property
    def all_inner_node_ids(self) -> list[str]:
        """Inner node ids across every container, without duplicates."""
        seen: dict[str, None] = {}
        for ids in self.inner_node_ids.values():
            for node_id in ids:
                seen.setdefault(node_id, None)
        return list(seen)

    def dependency_refs(self) -> list[DependencyRef]:
        return [
            DependencyRef(type=dependency_type, id=object_id)
            for dependency_type, ids in self.dependencies.items()
            for object_id in sorted(ids)
        ]
