"""Domain entities: journeys and their nodes."""

from journeykit.domain.entities.journey import Journey, NodeRef
from journeykit.domain.entities.node import (
    CONTAINER_NODE_TYPES,
    DependencyRef,
    EmailTemplateNode,
    InnerNodeRef,
    InnerTreeNode,
    NodeConfig,
    OpaqueNode,
    PageNode,
    Saml2Node,
    ScriptedNode,
    SelectIdPNode,
    SocialProviderHandlerNode,
    is_container_type,
    node_type_of,
    parse_node,
)

__all__ = [
    "CONTAINER_NODE_TYPES",
    "DependencyRef",
    "EmailTemplateNode",
    "InnerNodeRef",
    "InnerTreeNode",
    "Journey",
    "NodeConfig",
    "NodeRef",
    "OpaqueNode",
    "PageNode",
    "Saml2Node",
    "ScriptedNode",
    "SelectIdPNode",
    "SocialProviderHandlerNode",
    "is_container_type",
    "node_type_of",
    "parse_node",
]
