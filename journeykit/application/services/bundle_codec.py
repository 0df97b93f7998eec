"""Wire format of export bundles: dict/JSON conversion and shape validation.

Only the top-level shape is validated (jsonschema); object bodies pass
through verbatim. Legacy layouts are normalised on load:
- ``innernodes`` is accepted for ``innerNodes``;
- a flat ``saml2Entities`` map (providers keyed by ``_id`` carrying
  ``entityLocation`` and ``base64EntityXML``) becomes hosted/remote/metadata.
"""

from __future__ import annotations

import copy
import json
from typing import Any

import jsonschema

from journeykit.application.dtos.bundle import (
    ExportBundle,
    ExportMeta,
    MultiJourneyBundle,
    Saml2Entities,
)
from journeykit.domain.enums import SamlLocation
from journeykit.domain.exceptions import MalformedBundleException
from journeykit.shared.utils.encoding import (
    base64url_to_lines,
    script_from_bundle,
    script_to_bundle,
)

_OBJECT_MAP = {"type": "object", "additionalProperties": {"type": "object"}}

BUNDLE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["meta", "tree", "nodes", "innerNodes"],
    "properties": {
        "meta": {"type": "object"},
        "tree": {
            "type": "object",
            "required": ["_id"],
            "properties": {
                "_id": {"type": "string", "minLength": 1},
                "entryNodeId": {"type": "string"},
                "nodes": _OBJECT_MAP,
            },
        },
        "nodes": _OBJECT_MAP,
        "innerNodes": _OBJECT_MAP,
        "scripts": _OBJECT_MAP,
        "emailTemplates": _OBJECT_MAP,
        "saml2Entities": {
            "type": "object",
            "properties": {
                "hosted": _OBJECT_MAP,
                "remote": _OBJECT_MAP,
                "metadata": {
                    "type": "object",
                    "additionalProperties": {"type": ["array", "string"]},
                },
            },
        },
        "circlesOfTrust": _OBJECT_MAP,
        "socialIdentityProviders": _OBJECT_MAP,
        "themes": {"type": "array", "items": {"type": "object"}},
    },
}

MULTI_BUNDLE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["trees"],
    "properties": {
        "meta": {"type": "object"},
        "trees": {"type": "object", "additionalProperties": {"type": "object"}},
    },
}

_META_FIELDS = {
    "origin": "origin",
    "originAmVersion": "origin_am_version",
    "exportedBy": "exported_by",
    "exportDate": "export_date",
    "exportTool": "export_tool",
    "exportToolVersion": "export_tool_version",
}

_SAML2_BUCKETS = ("hosted", "remote", "metadata")


def _validate(instance: Any, schema: dict[str, Any]) -> None:
    validator = jsonschema.Draft7Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        raise MalformedBundleException(
            [
                f"{'/'.join(str(p) for p in e.path) or '<root>'}: {e.message}"
                for e in errors
            ]
        )


def meta_to_dict(meta: ExportMeta) -> dict[str, Any]:
    return {key: getattr(meta, attr) for key, attr in _META_FIELDS.items()}


def meta_from_dict(data: dict[str, Any] | None) -> ExportMeta | None:
    if data is None:
        return None
    return ExportMeta(
        **{attr: str(data.get(key) or "") for key, attr in _META_FIELDS.items()}
    )


def _normalise_saml2(data: dict[str, Any]) -> dict[str, Any]:
    """Convert a legacy flat SAML2 map into hosted/remote/metadata buckets."""
    if not data or any(key in data for key in _SAML2_BUCKETS):
        return data
    normalised: dict[str, Any] = {"hosted": {}, "remote": {}, "metadata": {}}
    for provider_id, body in data.items():
        if not isinstance(body, dict):
            continue
        body = dict(body)
        location = body.pop("entityLocation", SamlLocation.HOSTED.value)
        xml = body.pop("base64EntityXML", None)
        bucket = "remote" if location == SamlLocation.REMOTE.value else "hosted"
        normalised[bucket][provider_id] = body
        if xml and body.get("entityId"):
            normalised["metadata"][body["entityId"]] = (
                xml if isinstance(xml, list) else base64url_to_lines(xml)
            )
    return normalised


def _normalise(data: dict[str, Any]) -> dict[str, Any]:
    data = dict(data)
    if "innerNodes" not in data and "innernodes" in data:
        data["innerNodes"] = data.pop("innernodes")
    if isinstance(data.get("saml2Entities"), dict):
        data["saml2Entities"] = _normalise_saml2(data["saml2Entities"])
    return data


def bundle_to_dict(bundle: ExportBundle) -> dict[str, Any]:
    """Return the JSON-compatible wire form of a bundle."""
    out: dict[str, Any] = {}
    if bundle.meta is not None:
        out["meta"] = meta_to_dict(bundle.meta)
    out.update(
        {
            "tree": bundle.tree,
            "nodes": bundle.nodes,
            "innerNodes": bundle.inner_nodes,
            "scripts": bundle.scripts,
            "emailTemplates": bundle.email_templates,
            "saml2Entities": {
                "hosted": bundle.saml2_entities.hosted,
                "remote": bundle.saml2_entities.remote,
                "metadata": bundle.saml2_entities.metadata,
            },
            "circlesOfTrust": bundle.circles_of_trust,
            "socialIdentityProviders": bundle.social_identity_providers,
            "themes": bundle.themes,
        }
    )
    return out


def bundle_from_dict(data: Any) -> ExportBundle:
    """Validate and build a bundle from its wire form (deep-copied).

    Raises:
        MalformedBundleException: top-level shape is invalid.
    """
    if not isinstance(data, dict):
        raise MalformedBundleException(["<root>: bundle must be a JSON object"])
    data = _normalise(copy.deepcopy(data))
    _validate(data, BUNDLE_SCHEMA)
    saml2 = data.get("saml2Entities") or {}
    metadata = {
        entity_id: lines if isinstance(lines, list) else base64url_to_lines(lines)
        for entity_id, lines in (saml2.get("metadata") or {}).items()
    }
    return ExportBundle(
        meta=meta_from_dict(data.get("meta")),
        tree=data["tree"],
        nodes=data["nodes"],
        inner_nodes=data["innerNodes"],
        scripts=data.get("scripts") or {},
        email_templates=data.get("emailTemplates") or {},
        saml2_entities=Saml2Entities(
            hosted=saml2.get("hosted") or {},
            remote=saml2.get("remote") or {},
            metadata=metadata,
        ),
        circles_of_trust=data.get("circlesOfTrust") or {},
        social_identity_providers=data.get("socialIdentityProviders") or {},
        themes=data.get("themes") or [],
    )


def multi_bundle_to_dict(bundle: MultiJourneyBundle) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if bundle.meta is not None:
        out["meta"] = meta_to_dict(bundle.meta)
    trees = {}
    for journey_id, journey_bundle in bundle.trees.items():
        tree_dict = bundle_to_dict(journey_bundle)
        tree_dict.pop("meta", None)
        trees[journey_id] = tree_dict
    out["trees"] = trees
    return out


def multi_bundle_from_dict(data: Any) -> MultiJourneyBundle:
    """Validate and build a multi-journey bundle; each tree inherits the top-level meta."""
    if not isinstance(data, dict):
        raise MalformedBundleException(["<root>: bundle must be a JSON object"])
    _validate(data, MULTI_BUNDLE_SCHEMA)
    meta = data.get("meta") or {}
    trees: dict[str, ExportBundle] = {}
    errors: list[str] = []
    for journey_id, tree_data in data["trees"].items():
        try:
            trees[journey_id] = bundle_from_dict({"meta": meta, **tree_data})
        except MalformedBundleException as e:
            errors.extend(f"trees/{journey_id}/{err}" for err in e.details["errors"])
    if errors:
        raise MalformedBundleException(errors)
    return MultiJourneyBundle(meta=meta_from_dict(data.get("meta")), trees=trees)


def _parse_json(text: str | bytes) -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise MalformedBundleException([f"<root>: invalid JSON: {e}"]) from e


def dumps(bundle: ExportBundle | MultiJourneyBundle, indent: int | None = 2) -> str:
    """Serialize a single or multi-journey bundle to JSON text."""
    if isinstance(bundle, MultiJourneyBundle):
        return json.dumps(multi_bundle_to_dict(bundle), indent=indent)
    return json.dumps(bundle_to_dict(bundle), indent=indent)


def loads(text: str | bytes) -> ExportBundle:
    """Parse and validate a single-journey bundle."""
    return bundle_from_dict(_parse_json(text))


def loads_any(text: str | bytes) -> ExportBundle | MultiJourneyBundle:
    """Parse a document that holds either one journey or several (``trees`` key)."""
    data = _parse_json(text)
    if isinstance(data, dict) and "trees" in data and "tree" not in data:
        return multi_bundle_from_dict(data)
    return bundle_from_dict(data)


def encode_script(body: dict[str, Any], use_string_arrays: bool) -> dict[str, Any]:
    """Return a copy of a platform script body with its source in bundle form."""
    out = dict(body)
    if isinstance(out.get("script"), str):
        out["script"] = script_to_bundle(out["script"], use_string_arrays)
    return out


def decode_script(body: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a bundle script body with its source base64-encoded again."""
    out = dict(body)
    if isinstance(out.get("script"), (list, str)):
        out["script"] = script_from_bundle(out["script"])
    return out
