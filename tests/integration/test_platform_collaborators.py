"""REST collaborator tests over httpx.MockTransport (endpoints, bodies, read-modify-write)."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from journeykit.application.interfaces.collaborators import PlatformCollaborators
from journeykit.domain.enums import SamlLocation
from journeykit.infrastructure.platform import (
    PlatformRESTClient,
    build_collaborators,
    open_platform,
)
from tests.conftest import make_settings

pytestmark = pytest.mark.integration

REALM = "/am/json/realms/root/realms/alpha"


class _Routes:
    """Canned responses keyed by (method, path); records every request."""

    def __init__(self) -> None:
        self.responses: dict[tuple[str, str], Any] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, response: Any) -> None:
        self.responses[(method, path)] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"code": 404})
        if callable(response):
            return response(request)
        return httpx.Response(200, json=response)

    def sent(self, method: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method]


def _body(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content)


@pytest.fixture
def routes() -> _Routes:
    return _Routes()


@pytest.fixture
def collaborators(routes: _Routes) -> PlatformCollaborators:
    http = httpx.AsyncClient(transport=httpx.MockTransport(routes))
    return build_collaborators(PlatformRESTClient(make_settings(), http))


@pytest.mark.asyncio
async def test_tree_and_node_endpoints(
    routes: _Routes, collaborators: PlatformCollaborators
) -> None:
    trees = f"{REALM}/realm-config/authentication/authenticationtrees/trees"
    nodes = f"{REALM}/realm-config/authentication/authenticationtrees/nodes"
    routes.on("GET", f"{trees}/Login", {"_id": "Login"})
    routes.on("GET", f"{nodes}/PageNode/p1", {"_id": "p1"})
    routes.on("POST", nodes, {"result": [{"_id": "PageNode"}, {"_id": "MessageNode"}]})
    routes.on("GET", f"{nodes}/MessageNode", {"result": [{"_id": "m1"}]})

    assert await collaborators.trees.read("Login") == {"_id": "Login"}
    assert await collaborators.trees.read("Missing") is None
    assert await collaborators.nodes.read("PageNode", "p1") == {"_id": "p1"}
    assert await collaborators.nodes.list_types() == ["PageNode", "MessageNode"]
    assert await collaborators.nodes.read_all_by_type("MessageNode") == [{"_id": "m1"}]
    assert routes.sent("POST")[0].url.params["_action"] == "getAllTypes"


@pytest.mark.asyncio
async def test_ids_are_path_quoted(
    routes: _Routes, collaborators: PlatformCollaborators
) -> None:
    await collaborators.trees.read("My Journey/1")
    assert routes.requests[0].url.raw_path.decode().endswith("/trees/My%20Journey%2F1")


@pytest.mark.asyncio
async def test_script_create_posts_action_with_id(
    routes: _Routes, collaborators: PlatformCollaborators
) -> None:
    routes.on("POST", f"{REALM}/scripts", lambda r: httpx.Response(201, json=_body(r)))

    await collaborators.scripts.create("s-1", {"name": "Check", "script": "eA=="})

    request = routes.sent("POST")[0]
    assert request.url.params["_action"] == "create"
    assert request.headers["Accept-API-Version"] == "protocol=2.0,resource=1.0"
    assert _body(request) == {"name": "Check", "script": "eA==", "_id": "s-1"}


@pytest.mark.asyncio
async def test_email_templates_live_in_idm_config(
    routes: _Routes, collaborators: PlatformCollaborators
) -> None:
    routes.on(
        "PUT",
        "/openidm/config/emailTemplate/welcome",
        lambda r: httpx.Response(200, json=_body(r)),
    )
    routes.on("GET", "/openidm/config", {"result": [{"_id": "emailTemplate/welcome"}]})

    await collaborators.email_templates.create("welcome", {"enabled": True})
    assert await collaborators.email_templates.read_all() == [{"_id": "emailTemplate/welcome"}]

    query = routes.sent("GET")[0].url.params["_queryFilter"]
    assert query == '_id sw "emailTemplate"'


@pytest.mark.asyncio
async def test_social_provider_writes_use_the_provider_type(
    routes: _Routes, collaborators: PlatformCollaborators
) -> None:
    service = f"{REALM}/realm-config/services/SocialIdentityProviders"
    routes.on(
        "POST",
        service,
        {"result": [{"_id": "google", "_type": {"_id": "googleConfig"}}]},
    )
    routes.on(
        "PUT",
        f"{service}/googleConfig/google",
        lambda r: httpx.Response(200, json=_body(r)),
    )
    routes.on("DELETE", f"{service}/googleConfig/google", {"_id": "google"})

    await collaborators.social_idps.update("google", {"_type": {"_id": "googleConfig"}})
    assert await collaborators.social_idps.read("google") is not None
    assert await collaborators.social_idps.delete("google") == {"_id": "google"}
    assert await collaborators.social_idps.delete("facebook") is None
    with pytest.raises(ValueError):
        await collaborators.social_idps.update("apple", {})


@pytest.mark.asyncio
async def test_remote_saml2_provider_is_imported_from_metadata(
    routes: _Routes, collaborators: PlatformCollaborators
) -> None:
    routes.on(
        "POST",
        f"{REALM}/realm-config/saml2/remote/",
        lambda r: httpx.Response(200, json={"_id": "c3A"}),
    )
    routes.on(
        "POST",
        f"{REALM}/realm-config/saml2/hosted/",
        lambda r: httpx.Response(201, json=_body(r)),
    )

    await collaborators.saml2.create(SamlLocation.REMOTE, {"entityId": "sp"}, "<xml/>")
    await collaborators.saml2.create(SamlLocation.HOSTED, {"_id": "aWRw", "entityId": "idp"})

    remote, hosted = routes.sent("POST")
    assert remote.url.params["_action"] == "importEntity"
    assert _body(remote) == {"standardMetadata": "<xml/>"}
    assert hosted.url.params["_action"] == "create"
    with pytest.raises(ValueError):
        await collaborators.saml2.create(SamlLocation.REMOTE, {"entityId": "sp"})


@pytest.mark.asyncio
async def test_saml2_metadata_is_read_as_text(
    routes: _Routes, collaborators: PlatformCollaborators
) -> None:
    routes.on(
        "GET",
        "/am/saml2/jsp/exportmetadata.jsp",
        lambda r: httpx.Response(200, text="<EntityDescriptor/>"),
    )
    assert await collaborators.saml2.read_metadata("sp") == "<EntityDescriptor/>"
    params = routes.requests[0].url.params
    assert (params["entityid"], params["realm"]) == ("sp", "alpha")


@pytest.mark.asyncio
async def test_theme_writes_update_the_realm_document(
    routes: _Routes, collaborators: PlatformCollaborators
) -> None:
    document = {
        "_id": "ui/themerealm",
        "realm": {
            "alpha": [{"_id": "t1", "name": "Starter"}],
            "bravo": [{"_id": "t9", "name": "Other"}],
        },
    }

    def put(request: httpx.Request) -> httpx.Response:
        document.clear()
        document.update(_body(request))
        return httpx.Response(200, json=document)

    routes.on("GET", "/openidm/config/ui/themerealm", lambda r: httpx.Response(200, json=document))
    routes.on("PUT", "/openidm/config/ui/themerealm", put)

    assert (await collaborators.themes.read("Starter"))["_id"] == "t1"
    await collaborators.themes.update("t2", {"name": "Zardoz"})
    await collaborators.themes.update("t1", {"name": "Starter v2"})

    assert document["realm"]["alpha"] == [
        {"name": "Starter v2", "_id": "t1"},
        {"name": "Zardoz", "_id": "t2"},
    ]
    assert document["realm"]["bravo"] == [{"_id": "t9", "name": "Other"}]

    assert await collaborators.themes.delete("Zardoz") == {"name": "Zardoz", "_id": "t2"}
    assert await collaborators.themes.delete("missing") is None
    assert [t["_id"] for t in document["realm"]["alpha"]] == ["t1"]

    await collaborators.themes.update("Starter v2", {"name": "Starter v2", "primaryColor": "#000"})
    assert document["realm"]["alpha"] == [
        {"name": "Starter v2", "primaryColor": "#000", "_id": "t1"}
    ]


@pytest.mark.asyncio
async def test_open_platform_leaves_injected_client_open(routes: _Routes) -> None:
    http = httpx.AsyncClient(transport=httpx.MockTransport(routes))
    async with open_platform(make_settings(), http) as collaborators:
        assert await collaborators.trees.read_all() == []
    assert not http.is_closed
    await http.aclose()
