"""Pytest configuration and fixtures for journeykit.

The engine only talks to the platform through PlatformCollaborators, so
unit tests run against in-memory fakes (FakePlatform). REST collaborator
tests live in tests/integration and use httpx.MockTransport instead.
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

from journeykit.application.interfaces.collaborators import PlatformCollaborators
from journeykit.core.config import Settings
from journeykit.domain.enums import SamlLocation
from journeykit.domain.exceptions import PlatformRequestException
from journeykit.shared.utils.concurrency import OperationContext

AM_BASE_URL = "https://tenant.example.com/am"


def make_settings(**overrides: Any) -> Settings:
    """Settings for tests; never reads .env."""
    values: dict[str, Any] = {
        "am_base_url": AM_BASE_URL,
        "realm": "alpha",
        "deployment_type": "cloud",
        "am_version": "7.2.0",
        "username": "tester",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_node(node_id: str, node_type: str, **fields: Any) -> dict[str, Any]:
    """Node body as the platform returns it."""
    return {
        "_id": node_id,
        "_rev": "1",
        "_type": {"_id": node_type, "name": node_type, "collection": True},
        **fields,
    }


def make_tree(
    journey_id: str,
    entry: str | None,
    nodes: dict[str, tuple[str, dict[str, str]]],
    **fields: Any,
) -> dict[str, Any]:
    """Tree body; nodes maps node id -> (node type, connections)."""
    return {
        "_id": journey_id,
        "_rev": "1",
        "entryNodeId": entry,
        "nodes": {
            node_id: {
                "nodeType": node_type,
                "displayName": node_id,
                "connections": dict(connections),
            }
            for node_id, (node_type, connections) in nodes.items()
        },
        "staticNodes": {"startNode": {}, SUCCESS: {}, FAILURE: {}},
        **fields,
    }


SUCCESS = "70e691a5-1e33-4ac3-a356-e7b6d60d92e0"
FAILURE = "e301438c-0bd0-429c-ab0c-66126501069a"


class _Failures:
    """Scripted failures: (operation, object id) -> errors to raise, in order."""

    def __init__(self) -> None:
        self._errors: dict[tuple[str, str], list[Exception]] = {}
        self._always: dict[tuple[str, str], Exception] = {}

    def add(self, operation: str, object_id: str, error: Exception, always: bool) -> None:
        if always:
            self._always[(operation, object_id)] = error
        else:
            self._errors.setdefault((operation, object_id), []).append(error)

    def check(self, operation: str, object_id: str) -> None:
        key = (operation, object_id)
        if key in self._always:
            raise self._always[key]
        queued = self._errors.get(key)
        if queued:
            raise queued.pop(0)


class FakeStore:
    """In-memory id-keyed collaborator (ICollaborator / ITreeCollaborator)."""

    def __init__(self, name: str = "store", log: list | None = None) -> None:
        self.name = name
        self.log = log if log is not None else []
        self.objects: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self.writes: list[tuple[str, str, dict[str, Any]]] = []
        self._failures = _Failures()

    def fail(self, operation: str, object_id: str, error: Exception, always: bool = True) -> None:
        self._failures.add(operation, object_id, error, always)

    def _call(self, operation: str, object_id: str) -> None:
        self.calls.append((operation, object_id))
        self.log.append((self.name, operation, object_id))
        self._failures.check(operation, object_id)

    async def read(self, object_id: str) -> dict[str, Any] | None:
        self._call("read", object_id)
        body = self.objects.get(object_id)
        return copy.deepcopy(body) if body is not None else None

    async def read_all(self) -> list[dict[str, Any]]:
        self._call("read_all", "*")
        return [copy.deepcopy(body) for body in self.objects.values()]

    async def create(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        self._call("create", object_id)
        if object_id in self.objects:
            raise PlatformRequestException("POST", object_id, 409, {"message": "exists"})
        self.writes.append(("create", object_id, copy.deepcopy(body)))
        self.objects[object_id] = copy.deepcopy(body)
        return body

    async def update(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        self._call("update", object_id)
        self.writes.append(("update", object_id, copy.deepcopy(body)))
        self.objects[object_id] = copy.deepcopy(body)
        return body

    async def delete(self, object_id: str) -> dict[str, Any] | None:
        self._call("delete", object_id)
        return self.objects.pop(object_id, None)


class FakeNodes:
    """In-memory INodeCollaborator; bodies keyed by node id."""

    def __init__(self, log: list | None = None) -> None:
        self.log = log if log is not None else []
        self.objects: dict[str, dict[str, Any]] = {}
        self.extra_types: list[str] = []
        self.calls: list[tuple[str, str]] = []
        self.writes: list[tuple[str, dict[str, Any]]] = []
        self._failures = _Failures()

    def fail(self, operation: str, node_id: str, error: Exception, always: bool = True) -> None:
        self._failures.add(operation, node_id, error, always)

    def _call(self, operation: str, node_id: str) -> None:
        self.calls.append((operation, node_id))
        self.log.append(("nodes", operation, node_id))
        self._failures.check(operation, node_id)

    def add(self, *bodies: dict[str, Any]) -> None:
        for body in bodies:
            self.objects[body["_id"]] = copy.deepcopy(body)

    async def read(self, node_type: str, node_id: str) -> dict[str, Any] | None:
        self._call("read", node_id)
        body = self.objects.get(node_id)
        return copy.deepcopy(body) if body is not None else None

    async def update(
        self, node_type: str, node_id: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        self._call("update", node_id)
        self.writes.append((node_id, copy.deepcopy(body)))
        stored = {**copy.deepcopy(body), "_id": node_id}
        stored.setdefault("_type", {"_id": node_type})
        self.objects[node_id] = stored
        return body

    async def delete(self, node_type: str, node_id: str) -> dict[str, Any] | None:
        self._call("delete", node_id)
        return self.objects.pop(node_id, None)

    async def list_types(self) -> list[str]:
        types = {body["_type"]["_id"] for body in self.objects.values()}
        return sorted(types | set(self.extra_types))

    async def read_all_by_type(self, node_type: str) -> list[dict[str, Any]]:
        self._call("read_all_by_type", node_type)
        return [
            copy.deepcopy(body)
            for body in self.objects.values()
            if body["_type"]["_id"] == node_type
        ]


class FakeSaml2:
    """In-memory ISaml2Collaborator; providers keyed by platform id."""

    def __init__(self) -> None:
        self.providers: dict[str, tuple[SamlLocation, dict[str, Any]]] = {}
        self.metadata: dict[str, str] = {}
        self.created: list[tuple[SamlLocation, dict[str, Any], str | None]] = []
        self.updated: list[tuple[SamlLocation, str, dict[str, Any]]] = []
        self.deleted: list[str] = []

    def add(self, location: SamlLocation, body: dict[str, Any], metadata: str | None = None) -> None:
        self.providers[body["_id"]] = (location, copy.deepcopy(body))
        if metadata is not None:
            self.metadata[body["entityId"]] = metadata

    async def read_all(self) -> list[dict[str, Any]]:
        return [
            {"_id": pid, "entityId": body["entityId"], "location": location.value}
            for pid, (location, body) in self.providers.items()
        ]

    async def read(self, location: SamlLocation, provider_id: str) -> dict[str, Any] | None:
        found = self.providers.get(provider_id)
        if found is None or found[0] != location:
            return None
        return copy.deepcopy(found[1])

    async def read_metadata(self, entity_id: str) -> str | None:
        return self.metadata.get(entity_id)

    async def create(
        self, location: SamlLocation, body: dict[str, Any], metadata: str | None = None
    ) -> dict[str, Any]:
        self.created.append((location, copy.deepcopy(body), metadata))
        self.providers[body["_id"]] = (location, copy.deepcopy(body))
        return body

    async def update(
        self, location: SamlLocation, provider_id: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        self.updated.append((location, provider_id, copy.deepcopy(body)))
        self.providers[provider_id] = (location, copy.deepcopy(body))
        return body

    async def delete(self, location: SamlLocation, provider_id: str) -> dict[str, Any] | None:
        self.deleted.append(provider_id)
        found = self.providers.pop(provider_id, None)
        return found[1] if found else None


class FakePlatform:
    """Every fake collaborator plus the PlatformCollaborators bundle over them."""

    def __init__(self) -> None:
        # (collaborator, operation, id) across every fake, in call order
        self.log: list[tuple[str, str, str]] = []
        self.trees = FakeStore("trees", self.log)
        self.nodes = FakeNodes(self.log)
        self.scripts = FakeStore("scripts", self.log)
        self.email_templates = FakeStore("emailTemplates", self.log)
        self.saml2 = FakeSaml2()
        self.circles_of_trust = FakeStore("circlesOfTrust", self.log)
        self.social_idps = FakeStore("socialIdentityProviders", self.log)
        self.themes = FakeStore("themes", self.log)
        self.collaborators = PlatformCollaborators(
            trees=self.trees,
            nodes=self.nodes,
            scripts=self.scripts,
            email_templates=self.email_templates,
            saml2=self.saml2,
            circles_of_trust=self.circles_of_trust,
            social_idps=self.social_idps,
            themes=self.themes,
        )

    def add_journey(self, tree: dict[str, Any], *nodes: dict[str, Any]) -> None:
        self.trees.objects[tree["_id"]] = copy.deepcopy(tree)
        self.nodes.add(*nodes)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def classic_settings() -> Settings:
    return make_settings(deployment_type="classic", am_version="7.1.0")


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def ctx() -> OperationContext:
    return OperationContext(max_concurrency=4)
