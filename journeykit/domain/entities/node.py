"""Node domain entities.

A node's configuration shape depends on its type tag (``_type._id``). Known
types are modelled as variants of NodeConfig with typed accessors over the
raw body; any other type is an OpaqueNode. The raw body is always kept
verbatim so export/import round-trips do not lose fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from journeykit.core.constants import EMPTY_SCRIPT_PLACEHOLDER
from journeykit.domain.enums import DependencyType


def node_type_of(body: dict[str, Any]) -> str:
    """Return the type tag of a node body ('' when absent)."""
    node_type = body.get("_type")
    if isinstance(node_type, dict):
        return node_type.get("_id") or ""
    return ""


@dataclass(frozen=True)
class DependencyRef:
    """Directed edge from a node to a collaborator object."""

    type: DependencyType
    id: str


@dataclass(frozen=True)
class InnerNodeRef:
    """Reference from a container node to one of its inner nodes."""

    id: str
    node_type: str
    display_name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InnerNodeRef:
        return cls(
            id=data["_id"],
            node_type=data.get("nodeType", ""),
            display_name=data.get("displayName", ""),
        )


@dataclass(frozen=True)
class NodeConfig:
    """Base variant: a node body with its id and type tag."""

    id: str
    node_type: str
    body: dict[str, Any]

    node_types: ClassVar[frozenset[str]] = frozenset()
    is_container: ClassVar[bool] = False

    @property
    def stage(self) -> Any:
        """UI customisation block (JSON string, legacy 'themeId=' string, or dict)."""
        return self.body.get("stage")

    @property
    def identity_resource(self) -> str | None:
        return self.body.get("identityResource")


@dataclass(frozen=True)
class OpaqueNode(NodeConfig):
    """Any node type without known dependency-bearing fields."""


@dataclass(frozen=True)
class ScriptedNode(NodeConfig):
    """Node that runs a script selected by id."""

    node_types: ClassVar[frozenset[str]] = frozenset(
        {
            "ConfigProviderNode",
            "ScriptedDecisionNode",
            "ClientScriptNode",
            "CustomScriptNode",
        }
    )

    @property
    def script_id(self) -> str | None:
        script = self.body.get("script")
        if not isinstance(script, str) or not script or script == EMPTY_SCRIPT_PLACEHOLDER:
            return None
        return script


@dataclass(frozen=True)
class SocialProviderHandlerNode(ScriptedNode):
    """Scripted node that hands off to every enabled social identity provider."""

    node_types: ClassVar[frozenset[str]] = frozenset({"SocialProviderHandlerNode"})


@dataclass(frozen=True)
class EmailTemplateNode(NodeConfig):
    """Node that sends an email rendered from an IDM email template."""

    node_types: ClassVar[frozenset[str]] = frozenset(
        {"EmailSuspendNode", "EmailTemplateNode"}
    )

    @property
    def email_template_name(self) -> str | None:
        name = self.body.get("emailTemplateName")
        return name if isinstance(name, str) and name else None


@dataclass(frozen=True)
class Saml2Node(NodeConfig):
    """SAML2 SP-initiated authentication node."""

    node_types: ClassVar[frozenset[str]] = frozenset({"product-Saml2Node"})

    @property
    def entity_ids(self) -> list[str]:
        """Entity ids from metaAlias (last path segment, e.g. '/alpha/sp' -> 'sp') and idpEntityId."""
        ids: list[str] = []
        meta_alias = self.body.get("metaAlias")
        if isinstance(meta_alias, str) and meta_alias:
            ids.append(meta_alias.split("/")[-1])
        idp_entity_id = self.body.get("idpEntityId")
        if isinstance(idp_entity_id, str) and idp_entity_id:
            ids.append(idp_entity_id)
        return ids


@dataclass(frozen=True)
class SelectIdPNode(NodeConfig):
    """Node letting the user pick among a filtered set of social providers."""

    node_types: ClassVar[frozenset[str]] = frozenset({"SelectIdPNode"})

    @property
    def filtered_providers(self) -> list[str]:
        providers = self.body.get("filteredProviders") or []
        if not isinstance(providers, list):
            return []
        return [p for p in providers if isinstance(p, str) and p]


@dataclass(frozen=True)
class PageNode(NodeConfig):
    """Container node embedding its own list of inner nodes."""

    node_types: ClassVar[frozenset[str]] = frozenset({"PageNode", "CustomPageNode"})
    is_container: ClassVar[bool] = True

    @property
    def inner_nodes(self) -> list[InnerNodeRef]:
        refs = self.body.get("nodes") or []
        return [
            InnerNodeRef.from_dict(ref)
            for ref in refs
            if isinstance(ref, dict) and ref.get("_id")
        ]


@dataclass(frozen=True)
class InnerTreeNode(NodeConfig):
    """Node that evaluates another journey."""

    node_types: ClassVar[frozenset[str]] = frozenset({"InnerTreeEvaluatorNode"})

    @property
    def tree_id(self) -> str | None:
        tree_id = self.body.get("tree")
        return tree_id if isinstance(tree_id, str) and tree_id else None


_VARIANTS: tuple[type[NodeConfig], ...] = (
    ScriptedNode,
    SocialProviderHandlerNode,
    EmailTemplateNode,
    Saml2Node,
    SelectIdPNode,
    PageNode,
    InnerTreeNode,
)

_VARIANT_BY_TYPE: dict[str, type[NodeConfig]] = {
    node_type: variant for variant in _VARIANTS for node_type in variant.node_types
}

CONTAINER_NODE_TYPES: frozenset[str] = PageNode.node_types


def is_container_type(node_type: str) -> bool:
    """Return whether nodes of this type embed inner nodes."""
    return node_type in CONTAINER_NODE_TYPES


def parse_node(body: dict[str, Any], node_id: str | None = None) -> NodeConfig:
    """Return the typed variant for a node body; unknown types become OpaqueNode."""
    node_type = node_type_of(body)
    variant = _VARIANT_BY_TYPE.get(node_type, OpaqueNode)
    return variant(id=node_id or body.get("_id", ""), node_type=node_type, body=body)
