"""Import use case: re-create a bundle's journey and dependencies on the platform.

Write order is collaborators, inner nodes, outer nodes, then the tree, so
every object exists before anything referencing it is written. Within a
phase, writes run concurrently and fail independently.
"""

from __future__ import annotations

import copy
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any

from journeykit.application.dtos.bundle import ExportBundle, MultiJourneyBundle
from journeykit.application.dtos.results import (
    BatchResult,
    ImportOptions,
    ImportResult,
    ObjectError,
)
from journeykit.application.interfaces.collaborators import PlatformCollaborators
from journeykit.application.services.bundle_codec import decode_script
from journeykit.application.services.identifier_rewriter import rewrite
from journeykit.application.services.journey_dependencies import plan_import_order
from journeykit.application.use_cases.journeys._outcomes import run_keyed
from journeykit.core.config import Settings
from journeykit.core.constants import (
    CLASSIC_DEPLOYMENT_TYPE,
    INVALID_ATTRIBUTE_MESSAGE,
    MISSING_SCRIPT_MESSAGE,
    REDIRECT_AFTER_FORM_POST_MESSAGE,
)
from journeykit.domain.entities import Journey, node_type_of
from journeykit.domain.enums import ObjectKind, ObjectOperation, SamlLocation
from journeykit.domain.exceptions import (
    JourneyKitException,
    MissingEntryNodeException,
    PlatformRequestException,
    StructuralException,
)
from journeykit.shared.telemetry.logging import get_logger
from journeykit.shared.telemetry.tracing import traced
from journeykit.shared.utils.concurrency import OperationContext
from journeykit.shared.utils.encoding import lines_to_base64url

logger = get_logger(__name__)

_CIRCLE_OF_TRUST_EXISTS_STATUSES = (409, 500)


def _without_rev(body: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in body.items() if k != "_rev"}


def _valid_attributes(error: PlatformRequestException) -> list[str] | None:
    """Attributes the platform accepts, when it rejected a write for unknown ones."""
    if error.status_code != 400 or error.remote_message != INVALID_ATTRIBUTE_MESSAGE:
        return None
    detail = error.payload.get("detail") if isinstance(error.payload, dict) else None
    valid = detail.get("validAttributes") if isinstance(detail, dict) else None
    return list(valid) if isinstance(valid, list) else None


async def _write_with_attribute_retry(
    write: Callable[[dict[str, Any]], Awaitable[dict[str, Any]]],
    body: dict[str, Any],
    label: str,
) -> dict[str, Any]:
    """Write body; on "Invalid attribute specified." retry once with only the valid ones."""
    try:
        return await write(body)
    except PlatformRequestException as e:
        valid = _valid_attributes(e)
        if valid is None:
            raise
        allowed = set(valid) | {"_id"}
        removed = sorted(k for k in body if k not in allowed)
        logger.warning("%s: removing invalid attributes %s and retrying", label, removed)
        return await write({k: v for k, v in body.items() if k in allowed})


class JourneyImportService:
    """Writes bundles to the platform bottom-up, collecting per-object failures."""

    def __init__(
        self,
        collaborators: PlatformCollaborators,
        settings: Settings,
        ctx: OperationContext | None = None,
    ) -> None:
        self._c = collaborators
        self._settings = settings
        self._ctx = ctx or OperationContext(settings.max_concurrency)

    @property
    def _managed_user_resource(self) -> str:
        return f"managed/{self._settings.realm_managed_user}"

    @traced("journeykit.import_journey")
    async def import_journey(
        self, bundle: ExportBundle, options: ImportOptions | None = None
    ) -> ImportResult:
        """Import one journey bundle.

        Raises:
            MissingEntryNodeException: the bundle's tree has no usable entry node
                (raised before any remote write).
        """
        options = options or ImportOptions()
        journey = Journey.from_dict(bundle.tree)
        if not journey.has_entry_node():
            raise MissingEntryNodeException(journey.id, journey.entry_node_id)

        result = ImportResult(journey_id=journey.id)
        working = copy.deepcopy(bundle)
        if options.re_uuid:
            working, table = rewrite(working)
            result.remapped_ids = table.as_dict()

        if options.deps:
            await self._import_dependencies(working, result)

        tree_identity_resource = bundle.tree.get("identityResource")
        failures_before = len(result.errors)
        await self._import_nodes(
            working.inner_nodes, ObjectKind.INNER_NODE, tree_identity_resource, result
        )
        await self._import_nodes(
            working.nodes, ObjectKind.NODE, tree_identity_resource, result
        )
        node_failures = [
            e
            for e in result.errors[failures_before:]
            if e.object_type in (ObjectKind.NODE, ObjectKind.INNER_NODE)
        ]
        if node_failures or result.cancelled:
            reason = (
                "import cancelled"
                if result.cancelled and not node_failures
                else f"{len(node_failures)} node(s) failed to import"
            )
            result.record(
                ObjectError(
                    ObjectKind.TREE,
                    journey.id,
                    ObjectOperation.UPDATE,
                    f"tree not written: {reason}",
                    cross_phase=True,
                )
            )
        else:
            await self._import_tree(working.tree, result)
        logger.info("Journey %s: %s", journey.id, result.summary())
        return result

    @traced("journeykit.import_journeys")
    async def import_journeys(
        self, multi: MultiJourneyBundle, options: ImportOptions | None = None
    ) -> BatchResult:
        """Import several journeys, inner journeys before the journeys that evaluate them."""
        batch = BatchResult(batch_operation="import")
        existing = {tree.get("_id", "") for tree in await self._c.trees.read_all()}
        plan = plan_import_order(multi.trees, existing)
        for journey_id in plan.ordered:
            try:
                result = await self.import_journey(multi.trees[journey_id], options)
            except StructuralException as e:
                logger.warning("Skipping journey %s: %s", journey_id, e.message)
                batch.skipped.append(journey_id)
                batch.record(
                    ObjectError(ObjectKind.TREE, journey_id, ObjectOperation.UPDATE, e.message)
                )
                continue
            batch.add(journey_id, result)
        for journey_id, missing in sorted(plan.unresolved.items()):
            message = f"unresolved inner journeys: {', '.join(sorted(missing))}"
            logger.warning("Skipping journey %s: %s", journey_id, message)
            batch.skipped.append(journey_id)
            batch.record(
                ObjectError(ObjectKind.TREE, journey_id, ObjectOperation.UPDATE, message)
            )
        logger.info(batch.summary())
        return batch

    async def _import_dependencies(self, bundle: ExportBundle, result: ImportResult) -> None:
        await self._upsert_all(
            ObjectKind.SCRIPT,
            {k: _without_rev(v) for k, v in bundle.scripts.items()},
            self._write_script,
            result,
        )
        if self._settings.supports_idm_config:
            await self._upsert_all(
                ObjectKind.EMAIL_TEMPLATE,
                {k: _without_rev(v) for k, v in bundle.email_templates.items()},
                self._c.email_templates.update,
                result,
            )
            await self._upsert_all(
                ObjectKind.THEME,
                self._themes_by_key(bundle.themes, result),
                self._c.themes.update,
                result,
            )
        await self._upsert_all(
            ObjectKind.SOCIAL_IDP,
            {k: _without_rev(v) for k, v in bundle.social_identity_providers.items()},
            self._write_social_idp,
            result,
        )
        await self._import_saml2_entities(bundle, result)
        await self._import_circles_of_trust(bundle, result)

    def _themes_by_key(
        self, themes: list[dict[str, Any]], result: ImportResult
    ) -> dict[str, dict[str, Any]]:
        """Key themes by _id, falling back to name; themes with neither are errors."""
        keyed: dict[str, dict[str, Any]] = {}
        for index, theme in enumerate(themes):
            key = theme.get("_id") or theme.get("name")
            if not key:
                result.record(
                    ObjectError(
                        ObjectKind.THEME,
                        f"themes[{index}]",
                        ObjectOperation.UPDATE,
                        "theme has neither _id nor name",
                    )
                )
                continue
            keyed[key] = _without_rev(theme)
        return keyed

    async def _upsert_all(
        self,
        kind: ObjectKind,
        bodies: dict[str, dict[str, Any]],
        write: Callable[[str, dict[str, Any]], Awaitable[Any]],
        result: ImportResult,
    ) -> None:
        written = await run_keyed(
            self._ctx,
            result,
            kind,
            ObjectOperation.UPDATE,
            [(object_id, partial(write, object_id, body)) for object_id, body in bodies.items()],
        )
        for object_id in written:
            result.record_written(kind, object_id)

    async def _write_script(self, script_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._c.scripts.update(script_id, decode_script(body))

    async def _write_social_idp(self, provider_id: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            return await self._c.social_idps.update(provider_id, body)
        except PlatformRequestException as e:
            if e.status_code != 500 or e.remote_message != REDIRECT_AFTER_FORM_POST_MESSAGE:
                raise
            logger.warning(
                "Social IdP %s: clearing redirectAfterFormPostURI and retrying", provider_id
            )
            return await self._c.social_idps.update(
                provider_id, {**body, "redirectAfterFormPostURI": ""}
            )

    async def _import_saml2_entities(self, bundle: ExportBundle, result: ImportResult) -> None:
        entities = bundle.saml2_entities.by_entity_id()
        if not entities:
            return
        try:
            stubs = await self._c.saml2.read_all()
        except Exception as e:
            for entity_id in entities:
                result.record(
                    ObjectError.from_exception(
                        ObjectKind.SAML2_ENTITY, entity_id, ObjectOperation.READ, e
                    )
                )
            return
        existing = {s.get("entityId") for s in stubs}
        outcomes = await run_keyed(
            self._ctx,
            result,
            ObjectKind.SAML2_ENTITY,
            ObjectOperation.UPDATE,
            [
                (
                    entity_id,
                    partial(
                        self._write_saml2_entity,
                        location,
                        _without_rev(body),
                        entity_id in existing,
                        bundle.saml2_entities.metadata.get(entity_id),
                    ),
                )
                for entity_id, (location, body) in entities.items()
            ],
        )
        for entity_id in outcomes:
            result.record_written(
                ObjectKind.SAML2_ENTITY, entity_id, created=entity_id not in existing
            )

    async def _write_saml2_entity(
        self,
        location: SamlLocation,
        body: dict[str, Any],
        exists: bool,
        metadata_lines: list[str] | None,
    ) -> dict[str, Any]:
        """Update an existing entity; otherwise create it (remote ones from metadata)."""
        if exists:
            return await self._c.saml2.update(location, body["_id"], body)
        metadata = None
        if location == SamlLocation.REMOTE:
            if not metadata_lines:
                raise JourneyKitException(
                    f"Remote SAML2 entity {body.get('entityId')} has no metadata in the bundle",
                    "MISSING_SAML2_METADATA",
                )
            metadata = lines_to_base64url(metadata_lines)
        return await self._c.saml2.create(location, body, metadata)

    async def _import_circles_of_trust(self, bundle: ExportBundle, result: ImportResult) -> None:
        outcomes = await run_keyed(
            self._ctx,
            result,
            ObjectKind.CIRCLE_OF_TRUST,
            ObjectOperation.CREATE,
            [
                (cot_id, partial(self._write_circle_of_trust, cot_id, _without_rev(body)))
                for cot_id, body in bundle.circles_of_trust.items()
            ],
        )
        for cot_id, created in outcomes.items():
            result.record_written(ObjectKind.CIRCLE_OF_TRUST, cot_id, created=created)

    async def _write_circle_of_trust(self, cot_id: str, body: dict[str, Any]) -> bool:
        """Create the circle, falling back to update when it already exists; True if created."""
        try:
            await self._c.circles_of_trust.create(cot_id, body)
            return True
        except PlatformRequestException as e:
            if e.status_code not in _CIRCLE_OF_TRUST_EXISTS_STATUSES:
                raise
        await self._c.circles_of_trust.update(cot_id, body)
        return False

    def _prepare_node(
        self, body: dict[str, Any], tree_identity_resource: str | None
    ) -> dict[str, Any]:
        body = _without_rev(body)
        identity_resource = body.get("identityResource")
        if (
            isinstance(identity_resource, str)
            and identity_resource.endswith("user")
            and identity_resource == tree_identity_resource
        ):
            body["identityResource"] = self._managed_user_resource
        return body

    async def _write_node(self, node_id: str, body: dict[str, Any]) -> dict[str, Any]:
        node_type = node_type_of(body)
        try:
            return await _write_with_attribute_retry(
                partial(self._c.nodes.update, node_type, node_id),
                body,
                f"Node {node_id} ({node_type})",
            )
        except PlatformRequestException as e:
            if e.status_code == 400 and e.remote_message == MISSING_SCRIPT_MESSAGE:
                raise JourneyKitException(
                    f"Missing script {body.get('script')} referenced by node "
                    f"{node_id} ({node_type})",
                    "MISSING_SCRIPT",
                    {"node_id": node_id, "script": body.get("script")},
                ) from e
            raise

    async def _import_nodes(
        self,
        nodes: dict[str, dict[str, Any]],
        kind: ObjectKind,
        tree_identity_resource: str | None,
        result: ImportResult,
    ) -> None:
        written = await run_keyed(
            self._ctx,
            result,
            kind,
            ObjectOperation.UPDATE,
            [
                (
                    node_id,
                    partial(
                        self._write_node,
                        node_id,
                        self._prepare_node(body, tree_identity_resource),
                    ),
                )
                for node_id, body in nodes.items()
            ],
        )
        for node_id in written:
            result.record_written(kind, node_id)

    async def _import_tree(self, tree: dict[str, Any], result: ImportResult) -> None:
        tree = _without_rev(tree)
        identity_resource = tree.get("identityResource")
        if (
            isinstance(identity_resource, str) and identity_resource.endswith("user")
        ) or self._settings.deployment_type != CLASSIC_DEPLOYMENT_TYPE:
            tree["identityResource"] = self._managed_user_resource
        tree_id = tree.get("_id", "")
        try:
            await _write_with_attribute_retry(
                partial(self._c.trees.update, tree_id), tree, f"Journey {tree_id}"
            )
        except Exception as e:
            logger.error(
                "Journey %s: tree write failed after its nodes were written: %s", tree_id, e
            )
            result.record(
                ObjectError.from_exception(
                    ObjectKind.TREE, tree_id, ObjectOperation.UPDATE, e, cross_phase=True
                )
            )
            return
        result.record_written(ObjectKind.TREE, tree_id)
