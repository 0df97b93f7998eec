"""Thin AM/IDM REST client.

All HTTP calls use httpx.AsyncClient so they do not block the event loop.
Every collaborator shares one client (and its connection pool); close it
with ``aclose`` when the operation is done.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from journeykit.core.config import Settings
from journeykit.domain.exceptions import PlatformRequestException
from journeykit.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

AM_API_VERSION = "protocol=2.1,resource=1.0"
SCRIPT_API_VERSION = "protocol=2.0,resource=1.0"
SAML2_API_VERSION = "protocol=2.1,resource=1.0"
IDM_API_VERSION = ""

_METHODS = ("GET", "PUT", "POST", "DELETE")


def _decode_payload(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return resp.text


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    params: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    as_text: bool = False,
) -> Any:
    """Perform an async HTTP request against AM or IDM. 404 returns None.

    Any other non-2xx status raises PlatformRequestException carrying the
    decoded error body, so callers can match on the platform's message.
    """
    if method not in _METHODS:
        raise ValueError(f"Unsupported method: {method!r}")
    resp = await client.request(
        method,
        url,
        params=params,
        headers=headers,
        json=body if method in ("PUT", "POST") else None,
    )
    if resp.status_code == 404:
        return None
    if not resp.is_success:
        payload = _decode_payload(resp)
        logger.debug("%s %s -> %s %s", method, url, resp.status_code, payload)
        raise PlatformRequestException(method, url, resp.status_code, payload)
    if as_text:
        return resp.text
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


class PlatformRESTClient:
    """Shared HTTP plumbing for the platform collaborators.

    Builds realm-scoped AM URLs and IDM config URLs from Settings and adds
    the bearer token and Accept-API-Version headers to every request.
    """

    def __init__(
        self, settings: Settings, http: httpx.AsyncClient | None = None
    ) -> None:
        self._settings = settings
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            timeout=settings.request_timeout_seconds
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    def am_url(self, path: str) -> str:
        """Realm-scoped AM JSON endpoint, e.g. am_url("scripts/abc")."""
        return (
            f"{self._settings.am_base_url}/json{self._settings.realm_path}/"
            f"{path.lstrip('/')}"
        )

    def am_root_url(self, path: str) -> str:
        """AM endpoint outside the JSON API (e.g. the SAML2 metadata JSP)."""
        return f"{self._settings.am_base_url}/{path.lstrip('/')}"

    def idm_url(self, path: str) -> str:
        return f"{self._settings.idm_base_url}/{path.lstrip('/')}"

    def _headers(self, api_version: str) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if api_version:
            headers["Accept-API-Version"] = api_version
        token = self._settings.bearer_token
        if token is not None:
            headers["Authorization"] = f"Bearer {token.get_secret_value()}"
        return headers

    async def request(
        self,
        method: str,
        url: str,
        body: dict | None = None,
        params: dict[str, str] | None = None,
        api_version: str = AM_API_VERSION,
        as_text: bool = False,
    ) -> Any:
        return await _request_async(
            self._http,
            url,
            method=method,
            body=body,
            params=params,
            headers=self._headers(api_version),
            as_text=as_text,
        )

    async def get(self, url: str, **kwargs: Any) -> Any:
        return await self.request("GET", url, **kwargs)

    async def put(self, url: str, body: dict, **kwargs: Any) -> Any:
        return await self.request("PUT", url, body=body, **kwargs)

    async def post(self, url: str, body: dict | None = None, **kwargs: Any) -> Any:
        return await self.request("POST", url, body=body or {}, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", url, **kwargs)

    async def query_all(self, url: str, **kwargs: Any) -> list[dict[str, Any]]:
        """GET ``url?_queryFilter=true`` and return its ``result`` list ([] on 404)."""
        out = await self.get(url, params={"_queryFilter": "true"}, **kwargs)
        if not out:
            return []
        return list(out.get("result") or [])

    async def aclose(self) -> None:
        """Close the HTTP connection pool if this client created it."""
        if self._owns_http:
            await self._http.aclose()
