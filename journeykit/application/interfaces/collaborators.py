"""Collaborator interfaces (ports) for the journey engine.

Protocols define the narrow read/write surface the engine needs for every
object type it touches. Implementations live in
journeykit.infrastructure.platform (REST) and in tests (in-memory fakes).

Conventions shared by every collaborator:
- ``read`` returns None when the object does not exist.
- Any other failure raises (PlatformRequestException for the REST
  implementations); the engine records it as an ObjectError.
- Bodies are plain JSON-compatible dicts, passed through verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from journeykit.domain.enums import DependencyType, SamlLocation


class ICollaborator(Protocol):
    """Protocol for an id-keyed object collection (scripts, templates, themes, ...)."""

    async def read(self, object_id: str) -> dict[str, Any] | None:
        """Return the object body, or None if it does not exist."""

    async def read_all(self) -> list[dict[str, Any]]:
        """Return every object of this type in the realm."""

    async def create(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create the object; fails if it already exists (where the platform enforces it)."""

    async def update(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create or replace the object (upsert)."""

    async def delete(self, object_id: str) -> dict[str, Any] | None:
        """Delete the object; returns the deleted body or None if it was absent."""


class ITreeCollaborator(Protocol):
    """Protocol for journey (authentication tree) records."""

    async def read(self, tree_id: str) -> dict[str, Any] | None:
        """Return the tree body, or None if it does not exist."""

    async def read_all(self) -> list[dict[str, Any]]:
        """Return every tree in the realm."""

    async def update(self, tree_id: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create or replace the tree."""

    async def delete(self, tree_id: str) -> dict[str, Any] | None:
        """Delete the tree; returns the deleted body or None if it was absent."""


class INodeCollaborator(Protocol):
    """Protocol for node configurations, addressed by (node type, node id)."""

    async def read(self, node_type: str, node_id: str) -> dict[str, Any] | None:
        """Return the node body, or None if it does not exist."""

    async def update(
        self, node_type: str, node_id: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        """Create or replace the node."""

    async def delete(self, node_type: str, node_id: str) -> dict[str, Any] | None:
        """Delete the node; returns the deleted body or None if it was absent."""

    async def list_types(self) -> list[str]:
        """Return every node type id known to the platform."""

    async def read_all_by_type(self, node_type: str) -> list[dict[str, Any]]:
        """Return every node of the given type."""


class ISaml2Collaborator(Protocol):
    """Protocol for SAML2 entity providers.

    Providers are addressed by location (hosted/remote) and their platform
    ``_id``; the engine looks them up by entity id through ``read_all``.
    """

    async def read_all(self) -> list[dict[str, Any]]:
        """Return provider stubs with at least ``_id``, ``entityId`` and ``location``."""

    async def read(
        self, location: SamlLocation, provider_id: str
    ) -> dict[str, Any] | None:
        """Return the full provider body, or None if it does not exist."""

    async def read_metadata(self, entity_id: str) -> str | None:
        """Return the provider's SAML2 metadata XML, or None if unavailable."""

    async def create(
        self,
        location: SamlLocation,
        body: dict[str, Any],
        metadata: str | None = None,
    ) -> dict[str, Any]:
        """Create a provider. Remote providers are created from base64url metadata."""

    async def update(
        self, location: SamlLocation, provider_id: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        """Replace an existing provider."""

    async def delete(
        self, location: SamlLocation, provider_id: str
    ) -> dict[str, Any] | None:
        """Delete a provider; returns the deleted body or None if it was absent."""


@dataclass
class PlatformCollaborators:
    """Every collaborator the engine needs, bundled for injection."""

    trees: ITreeCollaborator
    nodes: INodeCollaborator
    scripts: ICollaborator
    email_templates: ICollaborator
    saml2: ISaml2Collaborator
    circles_of_trust: ICollaborator
    social_idps: ICollaborator
    themes: ICollaborator

    def for_dependency(self, dependency_type: DependencyType) -> ICollaborator:
        """Return the id-keyed collaborator for a dependency type.

        SAML2 entities are not id-keyed and must use ``saml2`` directly.
        """
        by_type: dict[DependencyType, ICollaborator] = {
            DependencyType.SCRIPT: self.scripts,
            DependencyType.EMAIL_TEMPLATE: self.email_templates,
            DependencyType.CIRCLE_OF_TRUST: self.circles_of_trust,
            DependencyType.SOCIAL_IDP: self.social_idps,
            DependencyType.THEME: self.themes,
        }
        if dependency_type not in by_type:
            raise ValueError(f"No id-keyed collaborator for {dependency_type.value}")
        return by_type[dependency_type]
