"""Journey domain entity.

A journey (authentication tree) is a map of node references keyed by node id
plus an entry node id. Node references carry only the layout metadata and
outcome connections; node configuration lives in separate node objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from journeykit.core.constants import TERMINAL_NODE_IDS


@dataclass(frozen=True)
class NodeRef:
    """A node's place in a journey: type, display name and outcome connections."""

    id: str
    node_type: str
    display_name: str = ""
    connections: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, node_id: str, data: dict[str, Any]) -> NodeRef:
        return cls(
            id=node_id,
            node_type=data.get("nodeType", ""),
            display_name=data.get("displayName", ""),
            connections=dict(data.get("connections") or {}),
        )


@dataclass
class Journey:
    """Domain entity for a journey, wrapping the raw tree body."""

    id: str
    entry_node_id: str | None
    nodes: dict[str, NodeRef]
    body: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Journey:
        """Build a Journey from a tree body as returned by the platform."""
        return cls(
            id=data.get("_id", ""),
            entry_node_id=data.get("entryNodeId"),
            nodes={
                node_id: NodeRef.from_dict(node_id, ref)
                for node_id, ref in (data.get("nodes") or {}).items()
            },
            body=data,
        )

    @property
    def identity_resource(self) -> str | None:
        return self.body.get("identityResource")

    def has_entry_node(self) -> bool:
        """Return whether the entry node is set and present in the node map."""
        return bool(self.entry_node_id) and self.entry_node_id in self.nodes

    @staticmethod
    def is_terminal(node_id: str) -> bool:
        """Return whether a connection target is a success/failure/start marker."""
        return node_id in TERMINAL_NODE_IDS
