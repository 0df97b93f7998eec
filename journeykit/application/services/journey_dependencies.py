"""Import ordering for several journeys that evaluate each other as inner journeys."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from journeykit.application.dtos.bundle import ExportBundle
from journeykit.application.services.dependency_classifier import inner_tree_reference


def inner_journey_ids(bundle: ExportBundle) -> set[str]:
    """Journey ids referenced by InnerTreeEvaluatorNodes anywhere in the bundle."""
    refs: set[str] = set()
    for body in list(bundle.nodes.values()) + list(bundle.inner_nodes.values()):
        tree_id = inner_tree_reference(body)
        if tree_id and tree_id != bundle.journey_id:
            refs.add(tree_id)
    return refs


@dataclass
class ImportPlan:
    """Journeys in a safe import order, plus those whose references never resolved."""

    ordered: list[str] = field(default_factory=list)
    unresolved: dict[str, set[str]] = field(default_factory=dict)


def plan_import_order(
    bundles: dict[str, ExportBundle], existing: Iterable[str] = ()
) -> ImportPlan:
    """Order journeys so every inner journey precedes the journeys that use it.

    A reference is satisfied by a journey already on the platform
    (``existing``) or by one earlier in the plan. Journeys left over (missing
    references or reference cycles) are returned as unresolved with the ids
    they are still waiting on.
    """
    pending = {journey_id: inner_journey_ids(b) for journey_id, b in bundles.items()}
    # a bundled journey counts as resolved only once it is imported
    resolved: set[str] = set(existing) - set(bundles)
    plan = ImportPlan()
    while pending:
        ready = [jid for jid, refs in pending.items() if refs <= resolved]
        if not ready:
            break
        for journey_id in ready:
            plan.ordered.append(journey_id)
            resolved.add(journey_id)
            del pending[journey_id]
    plan.unresolved = {jid: refs - resolved for jid, refs in pending.items()}
    return plan
