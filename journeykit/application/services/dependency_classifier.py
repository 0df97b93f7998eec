"""Maps a node body to the collaborator objects it references.

Pure functions: no I/O, no logging. Unknown node types yield no
dependencies; they are still exported as opaque bodies.
"""

from __future__ import annotations

import json
from typing import Any

from journeykit.core.constants import ALL_SOCIAL_PROVIDERS
from journeykit.domain.entities import DependencyRef, NodeConfig, parse_node
from journeykit.domain.entities.node import (
    EmailTemplateNode,
    InnerTreeNode,
    Saml2Node,
    ScriptedNode,
    SelectIdPNode,
    SocialProviderHandlerNode,
    is_container_type,
)
from journeykit.domain.enums import DependencyType

_LEGACY_THEME_PREFIX = "themeId="


def theme_reference(stage: Any) -> str | None:
    """Return the theme id/name a node's ``stage`` selects, if any.

    Accepts a dict, a JSON object string, or the legacy ``themeId=<id>`` form.
    """
    if not stage:
        return None
    if isinstance(stage, dict):
        return stage.get("themeId") or None
    if not isinstance(stage, str):
        return None
    try:
        parsed = json.loads(stage)
    except ValueError:
        if stage.startswith(_LEGACY_THEME_PREFIX):
            return stage[len(_LEGACY_THEME_PREFIX):] or None
        return None
    if isinstance(parsed, dict):
        return parsed.get("themeId") or None
    return None


def classify_node(node: NodeConfig) -> list[DependencyRef]:
    """Return the dependency references of a parsed node (deduplicated, in field order)."""
    refs: list[DependencyRef] = []
    if isinstance(node, ScriptedNode) and node.script_id:
        refs.append(DependencyRef(DependencyType.SCRIPT, node.script_id))
    if isinstance(node, SocialProviderHandlerNode):
        refs.append(DependencyRef(DependencyType.SOCIAL_IDP, ALL_SOCIAL_PROVIDERS))
    if isinstance(node, EmailTemplateNode) and node.email_template_name:
        refs.append(DependencyRef(DependencyType.EMAIL_TEMPLATE, node.email_template_name))
    if isinstance(node, Saml2Node):
        refs.extend(DependencyRef(DependencyType.SAML2_ENTITY, e) for e in node.entity_ids)
    if isinstance(node, SelectIdPNode):
        refs.extend(
            DependencyRef(DependencyType.SOCIAL_IDP, p) for p in node.filtered_providers
        )
    theme = theme_reference(node.stage)
    if theme:
        refs.append(DependencyRef(DependencyType.THEME, theme))
    return list(dict.fromkeys(refs))


def classify(node_body: dict[str, Any]) -> list[DependencyRef]:
    """Return the dependency references of a raw node body."""
    return classify_node(parse_node(node_body))


def is_container(node_type: str) -> bool:
    """Return whether nodes of this type embed inner nodes (PageNode and friends)."""
    return is_container_type(node_type)


def inner_tree_reference(node_body: dict[str, Any]) -> str | None:
    """Return the journey id an InnerTreeEvaluatorNode evaluates, else None."""
    node = parse_node(node_body)
    if isinstance(node, InnerTreeNode):
        return node.tree_id
    return None
