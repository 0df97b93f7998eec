"""PlatformRESTClient tests over httpx.MockTransport (URLs, headers, status handling)."""

import json

import httpx
import pytest

from journeykit.domain.exceptions import PlatformRequestException
from journeykit.infrastructure.platform import PlatformRESTClient
from journeykit.infrastructure.platform._rest_client import (
    AM_API_VERSION,
    IDM_API_VERSION,
)
from tests.conftest import AM_BASE_URL, make_settings

pytestmark = pytest.mark.integration


def _client(handler, **overrides) -> PlatformRESTClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PlatformRESTClient(make_settings(**overrides), http)


def test_url_builders() -> None:
    client = _client(lambda request: httpx.Response(200), realm="/parent/child")
    assert client.am_url("scripts/abc") == (
        f"{AM_BASE_URL}/json/realms/root/realms/parent/realms/child/scripts/abc"
    )
    assert client.am_root_url("/saml2/jsp/exportmetadata.jsp") == (
        f"{AM_BASE_URL}/saml2/jsp/exportmetadata.jsp"
    )
    assert client.idm_url("config/ui/themerealm") == (
        "https://tenant.example.com/openidm/config/ui/themerealm"
    )


@pytest.mark.asyncio
async def test_headers_carry_token_and_api_version() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"_id": "x"})

    client = _client(handler, bearer_token="tok")
    assert await client.get(client.am_url("scripts/x")) == {"_id": "x"}
    await client.get(client.idm_url("config/x"), api_version=IDM_API_VERSION)

    assert seen[0].headers["Authorization"] == "Bearer tok"
    assert seen[0].headers["Accept-API-Version"] == AM_API_VERSION
    assert "Accept-API-Version" not in seen[1].headers


@pytest.mark.asyncio
async def test_not_found_returns_none() -> None:
    client = _client(lambda request: httpx.Response(404, json={"code": 404}))
    assert await client.get(client.am_url("scripts/missing")) is None
    assert await client.delete(client.am_url("scripts/missing")) is None
    assert await client.query_all(client.am_url("scripts")) == []


@pytest.mark.asyncio
async def test_error_status_raises_with_platform_message() -> None:
    client = _client(
        lambda request: httpx.Response(
            500, json={"code": 500, "message": "Unable to read SMS config: Node did not exist"}
        )
    )
    with pytest.raises(PlatformRequestException) as exc_info:
        await client.delete(client.am_url("nodes/PageNode/p1"))
    assert exc_info.value.status_code == 500
    assert exc_info.value.remote_message == "Unable to read SMS config: Node did not exist"


@pytest.mark.asyncio
async def test_error_with_text_body() -> None:
    client = _client(lambda request: httpx.Response(502, text="Bad gateway"))
    with pytest.raises(PlatformRequestException) as exc_info:
        await client.get(client.am_url("scripts"))
    assert exc_info.value.payload == "Bad gateway"


@pytest.mark.asyncio
async def test_post_sends_json_body_and_empty_response_is_empty_dict() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201)

    client = _client(handler)
    assert await client.post(client.am_url("scripts"), params={"_action": "create"}) == {}
    assert await client.put(client.am_url("scripts/a"), {"name": "a"}) == {}
    assert bodies == [{}, {"name": "a"}]


@pytest.mark.asyncio
async def test_query_all_returns_result_list() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["_queryFilter"] == "true"
        return httpx.Response(200, json={"result": [{"_id": "a"}], "resultCount": 1})

    client = _client(handler)
    assert await client.query_all(client.am_url("scripts")) == [{"_id": "a"}]


@pytest.mark.asyncio
async def test_unsupported_method() -> None:
    client = _client(lambda request: httpx.Response(200))
    with pytest.raises(ValueError):
        await client.request("PATCH", client.am_url("scripts"))


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_open() -> None:
    http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    client = PlatformRESTClient(make_settings(), http)
    await client.aclose()
    assert not http.is_closed
    await http.aclose()
