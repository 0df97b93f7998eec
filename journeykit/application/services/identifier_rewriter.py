"""Regenerates node identifiers in a bundle while preserving graph topology."""

from __future__ import annotations

import copy
import uuid
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from journeykit.application.dtos.bundle import ExportBundle
from journeykit.domain.entities import Journey


class RemappingTable(Mapping[str, str]):
    """Old node id -> new node id for one rewrite pass (outer and inner nodes)."""

    def __init__(self, mapping: dict[str, str] | None = None) -> None:
        self._mapping = dict(mapping or {})

    def __getitem__(self, old_id: str) -> str:
        return self._mapping[old_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def resolve(self, node_id: str) -> str:
        """Return the new id for node_id, or node_id itself when it is not remapped."""
        return self._mapping.get(node_id, node_id)

    def as_dict(self) -> dict[str, str]:
        return dict(self._mapping)


def _build_table(bundle: ExportBundle, id_factory: Callable[[], Any]) -> RemappingTable:
    static_nodes = set((bundle.tree.get("staticNodes") or {}).keys())
    old_ids: dict[str, None] = {}
    for node_id in (
        list((bundle.tree.get("nodes") or {}).keys())
        + list(bundle.nodes.keys())
        + list(bundle.inner_nodes.keys())
    ):
        if Journey.is_terminal(node_id) or node_id in static_nodes:
            continue
        old_ids.setdefault(node_id, None)
    return RemappingTable({old: str(id_factory()) for old in old_ids})


def _rewrite_node_body(body: dict[str, Any], new_id: str, table: RemappingTable) -> dict[str, Any]:
    body["_id"] = new_id
    inner_refs = body.get("nodes")
    if isinstance(inner_refs, list):
        for ref in inner_refs:
            if isinstance(ref, dict) and "_id" in ref:
                ref["_id"] = table.resolve(ref["_id"])
    return body


def _rewrite_tree(tree: dict[str, Any], table: RemappingTable) -> dict[str, Any]:
    if tree.get("entryNodeId"):
        tree["entryNodeId"] = table.resolve(tree["entryNodeId"])
    nodes = {}
    for node_id, ref in (tree.get("nodes") or {}).items():
        connections = ref.get("connections")
        if isinstance(connections, dict):
            ref["connections"] = {
                outcome: table.resolve(target) for outcome, target in connections.items()
            }
        nodes[table.resolve(node_id)] = ref
    if "nodes" in tree:
        tree["nodes"] = nodes
    return tree


def rewrite(
    bundle: ExportBundle, id_factory: Callable[[], Any] = uuid.uuid4
) -> tuple[ExportBundle, RemappingTable]:
    """Return a deep copy of bundle with fresh node ids, and the table used.

    Collaborator references, terminal markers and static nodes keep their ids.
    """
    out = copy.deepcopy(bundle)
    table = _build_table(out, id_factory)
    out.nodes = {
        table.resolve(node_id): _rewrite_node_body(body, table.resolve(node_id), table)
        for node_id, body in out.nodes.items()
    }
    out.inner_nodes = {
        table.resolve(node_id): _rewrite_node_body(body, table.resolve(node_id), table)
        for node_id, body in out.inner_nodes.items()
    }
    out.tree = _rewrite_tree(out.tree, table)
    return out, table
