"""Script collaborator."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from journeykit.infrastructure.platform._rest_client import (
    SCRIPT_API_VERSION,
    PlatformRESTClient,
)


class AmScriptCollaborator:
    """Realm scripts. Bodies carry the script source base64-encoded."""

    def __init__(self, client: PlatformRESTClient) -> None:
        self._client = client

    def _url(self, script_id: str = "") -> str:
        if not script_id:
            return self._client.am_url("scripts")
        return self._client.am_url(f"scripts/{quote(script_id, safe='')}")

    async def read(self, object_id: str) -> dict[str, Any] | None:
        return await self._client.get(self._url(object_id), api_version=SCRIPT_API_VERSION)

    async def read_all(self) -> list[dict[str, Any]]:
        return await self._client.query_all(self._url(), api_version=SCRIPT_API_VERSION)

    async def create(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._client.post(
            self._url(),
            {**body, "_id": object_id},
            params={"_action": "create"},
            api_version=SCRIPT_API_VERSION,
        )

    async def update(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._client.put(
            self._url(object_id), body, api_version=SCRIPT_API_VERSION
        )

    async def delete(self, object_id: str) -> dict[str, Any] | None:
        return await self._client.delete(self._url(object_id), api_version=SCRIPT_API_VERSION)
