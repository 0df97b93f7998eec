"""DTOs for export bundles (single and multi-journey)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from journeykit.domain.entities import Journey
from journeykit.domain.enums import SamlLocation


@dataclass
class ExportMeta:
    """Provenance of a bundle."""

    origin: str = ""
    origin_am_version: str = ""
    exported_by: str = ""
    export_date: str = ""
    export_tool: str = ""
    export_tool_version: str = ""


@dataclass
class Saml2Entities:
    """SAML2 providers bucketed by location, plus remote metadata XML as lines."""

    hosted: dict[str, dict[str, Any]] = field(default_factory=dict)
    remote: dict[str, dict[str, Any]] = field(default_factory=dict)
    metadata: dict[str, list[str]] = field(default_factory=dict)

    def bucket(self, location: SamlLocation) -> dict[str, dict[str, Any]]:
        return self.hosted if location == SamlLocation.HOSTED else self.remote

    def by_entity_id(self) -> dict[str, tuple[SamlLocation, dict[str, Any]]]:
        """Map entity id -> (location, body) across both buckets."""
        found: dict[str, tuple[SamlLocation, dict[str, Any]]] = {}
        for location in SamlLocation:
            for body in self.bucket(location).values():
                entity_id = body.get("entityId")
                if entity_id:
                    found[entity_id] = (location, body)
        return found

    def __len__(self) -> int:
        return len(self.hosted) + len(self.remote)


@dataclass
class ExportBundle:
    """Self-contained export of one journey and everything it depends on.

    Collaborator maps are keyed by the id the owning node references (email
    templates by name); themes are a list of theme bodies.
    """

    tree: dict[str, Any]
    meta: ExportMeta | None = None
    nodes: dict[str, dict[str, Any]] = field(default_factory=dict)
    inner_nodes: dict[str, dict[str, Any]] = field(default_factory=dict)
    scripts: dict[str, dict[str, Any]] = field(default_factory=dict)
    email_templates: dict[str, dict[str, Any]] = field(default_factory=dict)
    saml2_entities: Saml2Entities = field(default_factory=Saml2Entities)
    circles_of_trust: dict[str, dict[str, Any]] = field(default_factory=dict)
    social_identity_providers: dict[str, dict[str, Any]] = field(default_factory=dict)
    themes: list[dict[str, Any]] = field(default_factory=list)

    @property
    def journey_id(self) -> str:
        return self.tree.get("_id", "")

    @property
    def journey(self) -> Journey:
        return Journey.from_dict(self.tree)

    def dependency_count(self) -> int:
        """Number of collaborator objects carried by the bundle."""
        return (
            len(self.scripts)
            + len(self.email_templates)
            + len(self.saml2_entities)
            + len(self.circles_of_trust)
            + len(self.social_identity_providers)
            + len(self.themes)
        )


@dataclass
class MultiJourneyBundle:
    """Several journey bundles in one document, keyed by journey id."""

    meta: ExportMeta | None = None
    trees: dict[str, ExportBundle] = field(default_factory=dict)
