"""Application services: classification, graph walking, bundle codec, id rewriting, reference census."""

from journeykit.application.services.dependency_classifier import (
    classify,
    classify_node,
    inner_tree_reference,
    is_container,
    theme_reference,
)
from journeykit.application.services.graph_walker import (
    GraphWalker,
    RemoteNodeSource,
)
from journeykit.application.services.identifier_rewriter import RemappingTable, rewrite
from journeykit.application.services.journey_classification import (
    get_journey_classification,
)
from journeykit.application.services.journey_dependencies import (
    ImportPlan,
    plan_import_order,
)
from journeykit.application.services.reference_census import ReferenceCensus

__all__ = [
    "GraphWalker",
    "ImportPlan",
    "ReferenceCensus",
    "RemappingTable",
    "RemoteNodeSource",
    "classify",
    "classify_node",
    "get_journey_classification",
    "inner_tree_reference",
    "is_container",
    "plan_import_order",
    "rewrite",
    "theme_reference",
]
