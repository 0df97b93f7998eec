"""Delete use case: remove a journey and, when deep, its exclusive dependents.

The tree record goes first; nodes and collaborator objects are only
removed once it is gone, so a failed tree delete leaves the journey intact.
Objects another journey still references are kept and reported as
"skipped: shared". While the census holds a journey it could not fully
walk, no collaborator object is deleted; each is reported as
"skipped: census incomplete".
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any

from journeykit.application.dtos.discovery import DiscoverySet
from journeykit.application.dtos.results import (
    BatchResult,
    DeleteOptions,
    DeletionResult,
    ObjectError,
)
from journeykit.application.interfaces.collaborators import PlatformCollaborators
from journeykit.application.services.graph_walker import GraphWalker, RemoteNodeSource
from journeykit.application.services.reference_census import ReferenceCensus
from journeykit.core.config import Settings
from journeykit.core.constants import ALL_SOCIAL_PROVIDERS, NODE_DID_NOT_EXIST_MESSAGE
from journeykit.domain.entities import DependencyRef, Journey
from journeykit.domain.enums import (
    DeletionStatus,
    DependencyType,
    ObjectKind,
    ObjectOperation,
    SamlLocation,
)
from journeykit.domain.exceptions import (
    JourneyNotFoundException,
    PlatformRequestException,
    StructuralException,
)
from journeykit.shared.telemetry.logging import get_logger
from journeykit.shared.telemetry.tracing import traced
from journeykit.shared.utils.concurrency import OperationContext, gather_bounded

logger = get_logger(__name__)

_IDM_DEPENDENCIES = (DependencyType.EMAIL_TEMPLATE, DependencyType.THEME)
# kept even when exclusive to the deleted journey
_NEVER_DELETED = (DependencyType.CIRCLE_OF_TRUST,)
_ALL_SOCIAL_IDPS = DependencyRef(DependencyType.SOCIAL_IDP, ALL_SOCIAL_PROVIDERS)


class JourneyDeletionService:
    """Deletes journeys, consulting a ReferenceCensus before removing shared objects."""

    def __init__(
        self,
        collaborators: PlatformCollaborators,
        settings: Settings,
        ctx: OperationContext | None = None,
    ) -> None:
        self._c = collaborators
        self._settings = settings
        self._ctx = ctx or OperationContext(settings.max_concurrency)

    def _new_walker(self) -> GraphWalker:
        """Walker with a node cache scoped to one delete operation."""
        return GraphWalker(RemoteNodeSource(self._c.nodes), self._ctx)

    async def build_census(
        self,
        trees: list[dict[str, Any]] | None = None,
        walker: GraphWalker | None = None,
    ) -> ReferenceCensus:
        """Walk every journey in the realm into a ReferenceCensus."""
        if trees is None:
            trees = await self._c.trees.read_all()
        journeys = [Journey.from_dict(tree) for tree in trees]
        return await ReferenceCensus.build(journeys, walker or self._new_walker())

    @traced("journeykit.delete_journey")
    async def delete_journey(
        self,
        journey_id: str,
        options: DeleteOptions | None = None,
        census: ReferenceCensus | None = None,
    ) -> DeletionResult:
        """Delete one journey (and its exclusive dependents when deep).

        Raises:
            JourneyNotFoundException: the journey does not exist.
            MissingEntryNodeException: deep delete of a journey that cannot be walked.
        """
        options = options or DeleteOptions()
        tree = await self._c.trees.read(journey_id)
        if tree is None:
            raise JourneyNotFoundException(journey_id)
        walker = self._new_walker()
        if options.deep and census is None:
            census = await self.build_census(walker=walker)
        return await self._delete_tree(tree, options, census, walker)

    @traced("journeykit.delete_journeys")
    async def delete_journeys(self, options: DeleteOptions | None = None) -> BatchResult:
        """Delete every journey in the realm, reusing one census for the whole run."""
        options = options or DeleteOptions()
        batch = BatchResult(batch_operation="delete")
        trees = sorted(await self._c.trees.read_all(), key=lambda t: t.get("_id", ""))
        walker = self._new_walker()
        census = await self.build_census(trees, walker) if options.deep else None
        for tree in trees:
            journey_id = tree.get("_id", "")
            try:
                result = await self._delete_tree(tree, options, census, walker)
            except StructuralException as e:
                logger.warning("Skipping journey %s: %s", journey_id, e.message)
                batch.skipped.append(journey_id)
                batch.record(
                    ObjectError(ObjectKind.TREE, journey_id, ObjectOperation.DELETE, e.message)
                )
                continue
            batch.add(journey_id, result)
            if census is not None and result.status_of(ObjectKind.TREE, journey_id) == (
                DeletionStatus.DELETED
            ):
                census.forget(journey_id)
        logger.info(batch.summary())
        return batch

    async def _delete_tree(
        self,
        tree: dict[str, Any],
        options: DeleteOptions,
        census: ReferenceCensus | None,
        walker: GraphWalker,
    ) -> DeletionResult:
        journey = Journey.from_dict(tree)
        discovery = None
        if options.deep:
            discovery = await walker.discover(journey)
            await walker.add_unreachable_containers(discovery)

        result = DeletionResult(journey_id=journey.id)
        try:
            await self._c.trees.delete(journey.id)
        except Exception as e:
            result.mark(ObjectKind.TREE, journey.id, DeletionStatus.FAILED)
            result.record(
                ObjectError.from_exception(
                    ObjectKind.TREE, journey.id, ObjectOperation.DELETE, e
                )
            )
            logger.error("Journey %s: tree delete failed: %s", journey.id, e)
            return result
        result.mark(ObjectKind.TREE, journey.id, DeletionStatus.DELETED)

        if discovery is not None and census is not None:
            result.errors.extend(discovery.read_errors)
            await self._delete_nodes(journey, discovery, census, result)
            await self._delete_dependencies(discovery, census, result)
        logger.info("Journey %s: %s", journey.id, result.summary())
        return result

    async def _delete_node(self, node_type: str, node_id: str) -> dict[str, Any] | None:
        try:
            return await self._c.nodes.delete(node_type, node_id)
        except PlatformRequestException as e:
            # containers whose inner nodes went first report their own config as gone
            if e.status_code == 500 and e.remote_message == NODE_DID_NOT_EXIST_MESSAGE:
                return None
            raise

    async def _delete_nodes(
        self,
        journey: Journey,
        discovery: DiscoverySet,
        census: ReferenceCensus,
        result: DeletionResult,
    ) -> None:
        inner = [
            (node_id, discovery.inner_node_types.get(node_id, ""))
            for node_id in discovery.all_inner_node_ids
        ]
        outer = [(node_id, ref.node_type) for node_id, ref in journey.nodes.items()]
        for kind, nodes in ((ObjectKind.INNER_NODE, inner), (ObjectKind.NODE, outer)):
            calls = []
            for node_id, node_type in nodes:
                if census.node_is_shared(node_id, journey.id):
                    result.mark(kind, node_id, DeletionStatus.SKIPPED_SHARED)
                else:
                    calls.append((node_id, partial(self._delete_node, node_type, node_id)))
            await self._run_deletes(kind, calls, result)

    async def _delete_dependencies(
        self, discovery: DiscoverySet, census: ReferenceCensus, result: DeletionResult
    ) -> None:
        by_type: dict[DependencyType, list[tuple[str, Callable[[], Awaitable[Any]]]]] = {}
        saml2_stubs: dict[str, dict[str, Any]] | None = None
        unverified = census.incomplete_except(discovery.journey_id)
        kept: list[str] = []
        for ref in discovery.dependency_refs():
            if ref.type in _NEVER_DELETED or ref == _ALL_SOCIAL_IDPS:
                continue
            if ref.type in _IDM_DEPENDENCIES and not self._settings.supports_idm_config:
                continue
            kind = ObjectKind.for_dependency(ref.type)
            if census.dependency_is_shared(ref, discovery.journey_id):
                result.mark(kind, ref.id, DeletionStatus.SKIPPED_SHARED)
                continue
            if unverified:
                result.mark(kind, ref.id, DeletionStatus.SKIPPED_UNVERIFIED)
                kept.append(ref.id)
                continue
            if ref.type == DependencyType.SAML2_ENTITY:
                if saml2_stubs is None:
                    saml2_stubs = await self._saml2_stubs(result)
                call = partial(self._delete_saml2_entity, saml2_stubs.get(ref.id))
            else:
                call = partial(self._c.for_dependency(ref.type).delete, ref.id)
            by_type.setdefault(ref.type, []).append((ref.id, call))
        for dependency_type, calls in by_type.items():
            await self._run_deletes(ObjectKind.for_dependency(dependency_type), calls, result)
        if kept:
            message = (
                f"kept {len(kept)} dependent object(s); could not verify they are "
                f"unused by journeys {', '.join(unverified)}"
            )
            logger.warning("Journey %s: %s", discovery.journey_id, message)
            result.record(
                ObjectError(
                    ObjectKind.TREE,
                    discovery.journey_id,
                    ObjectOperation.DELETE,
                    message,
                    cross_phase=True,
                )
            )

    async def _saml2_stubs(self, result: DeletionResult) -> dict[str, dict[str, Any]]:
        try:
            stubs = await self._c.saml2.read_all()
        except Exception as e:
            result.record(
                ObjectError.from_exception(
                    ObjectKind.SAML2_ENTITY, "*", ObjectOperation.READ, e
                )
            )
            return {}
        return {s.get("entityId"): s for s in stubs if s.get("entityId")}

    async def _delete_saml2_entity(self, stub: dict[str, Any] | None) -> dict[str, Any] | None:
        if stub is None:
            return None
        location = SamlLocation(stub.get("location", SamlLocation.HOSTED.value))
        return await self._c.saml2.delete(location, stub["_id"])

    async def _run_deletes(
        self,
        kind: ObjectKind,
        calls: list[tuple[str, Callable[[], Awaitable[Any]]]],
        result: DeletionResult,
    ) -> None:
        for outcome in await gather_bounded(self._ctx, calls):
            if outcome.cancelled:
                result.cancelled = True
                result.mark(kind, outcome.key, DeletionStatus.CANCELLED)
            elif outcome.error is not None:
                result.mark(kind, outcome.key, DeletionStatus.FAILED)
                result.record(
                    ObjectError.from_exception(
                        kind, outcome.key, ObjectOperation.DELETE, outcome.error
                    )
                )
            else:
                result.mark(kind, outcome.key, DeletionStatus.DELETED)
