"""Export use case: assemble a self-contained bundle for a journey."""

from __future__ import annotations

import copy
from functools import partial
from typing import Any

from journeykit.application.dtos.bundle import ExportBundle, ExportMeta, MultiJourneyBundle
from journeykit.application.dtos.discovery import DiscoverySet
from journeykit.application.dtos.results import (
    BatchResult,
    ExportOptions,
    ExportResult,
    ObjectError,
)
from journeykit.application.interfaces.collaborators import PlatformCollaborators
from journeykit.application.services.bundle_codec import encode_script
from journeykit.application.services.graph_walker import GraphWalker, RemoteNodeSource
from journeykit.application.use_cases.journeys._outcomes import run_keyed
from journeykit.core.config import Settings
from journeykit.core.constants import EXPORT_TOOL_ID, SAML2_TRUSTED_PROVIDER_SUFFIX
from journeykit.domain.entities import Journey
from journeykit.domain.enums import (
    DependencyType,
    ObjectKind,
    ObjectOperation,
    SamlLocation,
)
from journeykit.domain.exceptions import JourneyNotFoundException, StructuralException
from journeykit.shared.telemetry.logging import get_logger
from journeykit.shared.telemetry.tracing import traced
from journeykit.shared.utils.concurrency import OperationContext
from journeykit.shared.utils.datetime import utc_now_iso
from journeykit.shared.utils.encoding import text_to_lines

logger = get_logger(__name__)


class JourneyExportService:
    """Walks a live journey and fetches everything it depends on into an ExportBundle."""

    def __init__(
        self,
        collaborators: PlatformCollaborators,
        settings: Settings,
        ctx: OperationContext | None = None,
    ) -> None:
        self._c = collaborators
        self._settings = settings
        self._ctx = ctx or OperationContext(settings.max_concurrency)

    def _meta(self) -> ExportMeta:
        return ExportMeta(
            origin=self._settings.am_base_url,
            origin_am_version=self._settings.am_version,
            exported_by=self._settings.username,
            export_date=utc_now_iso(),
            export_tool=EXPORT_TOOL_ID,
            export_tool_version=self._settings.app_version,
        )

    @traced("journeykit.export_journey")
    async def export_journey(
        self, journey_id: str, options: ExportOptions | None = None
    ) -> ExportResult:
        """Export one journey.

        Raises:
            JourneyNotFoundException: the journey does not exist.
            MissingEntryNodeException: the journey has no usable entry node.
        """
        tree = await self._c.trees.read(journey_id)
        if tree is None:
            raise JourneyNotFoundException(journey_id)
        return await self._export_tree(tree, options or ExportOptions())

    @traced("journeykit.export_journeys")
    async def export_journeys(self, options: ExportOptions | None = None) -> BatchResult:
        """Export every journey in the realm into one MultiJourneyBundle.

        Journeys that cannot be exported for structural reasons are skipped
        and reported; the others are still exported.
        """
        options = options or ExportOptions()
        batch = BatchResult(batch_operation="export")
        multi = MultiJourneyBundle(meta=self._meta())
        trees = sorted(await self._c.trees.read_all(), key=lambda t: t.get("_id", ""))
        for tree in trees:
            journey_id = tree.get("_id", "")
            try:
                result = await self._export_tree(tree, options)
            except StructuralException as e:
                logger.warning("Skipping journey %s: %s", journey_id, e.message)
                batch.skipped.append(journey_id)
                batch.record(
                    ObjectError(ObjectKind.TREE, journey_id, ObjectOperation.READ, e.message)
                )
                continue
            batch.add(journey_id, result)
            if result.bundle is not None:
                result.bundle.meta = None
                multi.trees[journey_id] = result.bundle
        batch.bundle = multi
        logger.info(batch.summary())
        return batch

    async def _export_tree(
        self, tree: dict[str, Any], options: ExportOptions
    ) -> ExportResult:
        journey = Journey.from_dict(tree)
        walker = GraphWalker(RemoteNodeSource(self._c.nodes), self._ctx)
        discovery = await walker.discover(journey)

        result = ExportResult(errors=list(discovery.read_errors), cancelled=discovery.cancelled)
        bundle = self._skeleton(tree, discovery)
        if options.deps:
            await self._export_dependencies(discovery, bundle, result, options)
        result.bundle = bundle
        logger.info("Journey %s: %s", journey.id, result.summary())
        return result

    def _skeleton(self, tree: dict[str, Any], discovery: DiscoverySet) -> ExportBundle:
        """Bundle with the tree (pruned to reachable nodes) and every fetched node body."""
        tree = copy.deepcopy(tree)
        reachable = set(discovery.node_ids)
        tree["nodes"] = {
            node_id: ref
            for node_id, ref in (tree.get("nodes") or {}).items()
            if node_id in reachable
        }
        bodies = discovery.node_bodies
        return ExportBundle(
            meta=self._meta(),
            tree=tree,
            nodes={i: bodies[i] for i in discovery.node_ids if i in bodies},
            inner_nodes={i: bodies[i] for i in discovery.all_inner_node_ids if i in bodies},
        )

    async def _export_dependencies(
        self,
        discovery: DiscoverySet,
        bundle: ExportBundle,
        result: ExportResult,
        options: ExportOptions,
    ) -> None:
        transform_scripts = await self._export_social_idps(discovery, bundle, result)
        entity_ids = await self._export_saml2_entities(discovery, bundle, result)
        await self._export_circles_of_trust(entity_ids, bundle, result)
        script_ids = discovery.dependency_ids(DependencyType.SCRIPT)
        script_ids += [s for s in transform_scripts if s not in script_ids]
        await self._export_scripts(script_ids, bundle, result, options)
        if self._settings.supports_idm_config:
            await self._export_email_templates(discovery, bundle, result)
            await self._export_themes(discovery, bundle, result)

    async def _export_scripts(
        self,
        script_ids: list[str],
        bundle: ExportBundle,
        result: ExportResult,
        options: ExportOptions,
    ) -> None:
        found = await run_keyed(
            self._ctx,
            result,
            ObjectKind.SCRIPT,
            ObjectOperation.READ,
            [(i, partial(self._c.scripts.read, i)) for i in script_ids],
            missing_is_error=True,
        )
        for script_id, body in found.items():
            try:
                bundle.scripts[script_id] = encode_script(body, options.use_string_arrays)
            except ValueError as e:
                result.record(
                    ObjectError.from_exception(
                        ObjectKind.SCRIPT, script_id, ObjectOperation.READ, e
                    )
                )

    async def _export_email_templates(
        self, discovery: DiscoverySet, bundle: ExportBundle, result: ExportResult
    ) -> None:
        names = discovery.dependency_ids(DependencyType.EMAIL_TEMPLATE)
        bundle.email_templates.update(
            await run_keyed(
                self._ctx,
                result,
                ObjectKind.EMAIL_TEMPLATE,
                ObjectOperation.READ,
                [(n, partial(self._c.email_templates.read, n)) for n in names],
                missing_is_error=True,
            )
        )

    async def _export_social_idps(
        self, discovery: DiscoverySet, bundle: ExportBundle, result: ExportResult
    ) -> list[str]:
        """Export social IdPs; returns the transform script ids they reference."""
        explicit = discovery.dependency_ids(DependencyType.SOCIAL_IDP)
        providers: dict[str, dict[str, Any]] = {}
        if discovery.uses_all_social_providers:
            try:
                all_providers = await self._c.social_idps.read_all()
            except Exception as e:
                result.record(
                    ObjectError.from_exception(
                        ObjectKind.SOCIAL_IDP, "*", ObjectOperation.READ, e
                    )
                )
                return []
            providers = {
                p["_id"]: p
                for p in all_providers
                if p.get("_id") and (not explicit or p["_id"] in explicit)
            }
        elif explicit:
            providers = await run_keyed(
                self._ctx,
                result,
                ObjectKind.SOCIAL_IDP,
                ObjectOperation.READ,
                [(i, partial(self._c.social_idps.read, i)) for i in explicit],
                missing_is_error=True,
            )
        bundle.social_identity_providers.update(providers)
        transforms: list[str] = []
        for provider in providers.values():
            transform = provider.get("transform")
            if isinstance(transform, str) and transform and transform not in transforms:
                transforms.append(transform)
        return transforms

    async def _export_saml2_entities(
        self, discovery: DiscoverySet, bundle: ExportBundle, result: ExportResult
    ) -> list[str]:
        """Export SAML2 providers by entity id; returns the entity ids exported."""
        entity_ids = discovery.dependency_ids(DependencyType.SAML2_ENTITY)
        if not entity_ids:
            return []
        try:
            stubs = await self._c.saml2.read_all()
        except Exception as e:
            for entity_id in entity_ids:
                result.record(
                    ObjectError.from_exception(
                        ObjectKind.SAML2_ENTITY, entity_id, ObjectOperation.READ, e
                    )
                )
            return []
        by_entity_id = {s.get("entityId"): s for s in stubs}
        found = await run_keyed(
            self._ctx,
            result,
            ObjectKind.SAML2_ENTITY,
            ObjectOperation.READ,
            [(e, partial(self._read_saml2_entity, by_entity_id.get(e))) for e in entity_ids],
            missing_is_error=True,
        )
        for entity_id, (location, body, metadata) in found.items():
            bundle.saml2_entities.bucket(location)[body.get("_id", entity_id)] = body
            if metadata is not None:
                bundle.saml2_entities.metadata[entity_id] = text_to_lines(metadata)
        return list(found)

    async def _read_saml2_entity(
        self, stub: dict[str, Any] | None
    ) -> tuple[SamlLocation, dict[str, Any], str | None] | None:
        if stub is None:
            return None
        location = SamlLocation(stub.get("location", SamlLocation.HOSTED.value))
        body = await self._c.saml2.read(location, stub["_id"])
        if body is None:
            return None
        metadata = None
        if location == SamlLocation.REMOTE:
            metadata = await self._c.saml2.read_metadata(body.get("entityId", ""))
        return location, body, metadata

    async def _export_circles_of_trust(
        self, entity_ids: list[str], bundle: ExportBundle, result: ExportResult
    ) -> None:
        if not entity_ids:
            return
        trusted = {f"{e}{SAML2_TRUSTED_PROVIDER_SUFFIX}" for e in entity_ids}
        try:
            circles = await self._c.circles_of_trust.read_all()
        except Exception as e:
            result.record(
                ObjectError.from_exception(
                    ObjectKind.CIRCLE_OF_TRUST, "*", ObjectOperation.READ, e
                )
            )
            return
        for circle in circles:
            if trusted & set(circle.get("trustedProviders") or []):
                bundle.circles_of_trust[circle["_id"]] = circle

    async def _export_themes(
        self, discovery: DiscoverySet, bundle: ExportBundle, result: ExportResult
    ) -> None:
        wanted = set(discovery.dependency_ids(DependencyType.THEME))
        try:
            themes = await self._c.themes.read_all()
        except Exception as e:
            result.record(
                ObjectError.from_exception(ObjectKind.THEME, "*", ObjectOperation.READ, e)
            )
            return
        matched: set[str] = set()
        for theme in themes:
            keys = {theme.get("_id"), theme.get("name")} & wanted
            linked = discovery.journey_id in (theme.get("linkedTrees") or [])
            if keys or linked:
                bundle.themes.append(theme)
                matched |= keys
        for missing in sorted(wanted - matched):
            result.record(
                ObjectError(ObjectKind.THEME, missing, ObjectOperation.READ, "not found")
            )
