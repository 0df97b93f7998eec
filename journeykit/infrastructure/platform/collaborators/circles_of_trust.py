"""Circle of trust collaborator."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from journeykit.infrastructure.platform._rest_client import PlatformRESTClient

_COT_PATH = "realm-config/federation/circlesoftrust"


class AmCircleOfTrustCollaborator:
    def __init__(self, client: PlatformRESTClient) -> None:
        self._client = client

    def _url(self, cot_id: str = "") -> str:
        if not cot_id:
            return self._client.am_url(_COT_PATH)
        return self._client.am_url(f"{_COT_PATH}/{quote(cot_id, safe='')}")

    async def read(self, object_id: str) -> dict[str, Any] | None:
        return await self._client.get(self._url(object_id))

    async def read_all(self) -> list[dict[str, Any]]:
        return await self._client.query_all(self._url())

    async def create(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create a circle; the platform answers 409 when it already exists."""
        return await self._client.post(
            self._url(), {**body, "_id": object_id}, params={"_action": "create"}
        )

    async def update(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._client.put(self._url(object_id), body)

    async def delete(self, object_id: str) -> dict[str, Any] | None:
        return await self._client.delete(self._url(object_id))
