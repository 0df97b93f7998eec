"""Authentication tree collaborator (implements ITreeCollaborator)."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from journeykit.infrastructure.platform._rest_client import PlatformRESTClient

_TREES_PATH = "realm-config/authentication/authenticationtrees/trees"


class AmTreeCollaborator:
    """Journeys stored under AM's authenticationtrees realm config."""

    def __init__(self, client: PlatformRESTClient) -> None:
        self._client = client

    def _url(self, tree_id: str = "") -> str:
        if not tree_id:
            return self._client.am_url(_TREES_PATH)
        return self._client.am_url(f"{_TREES_PATH}/{quote(tree_id, safe='')}")

    async def read(self, tree_id: str) -> dict[str, Any] | None:
        return await self._client.get(self._url(tree_id))

    async def read_all(self) -> list[dict[str, Any]]:
        return await self._client.query_all(self._url())

    async def update(self, tree_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._client.put(self._url(tree_id), body)

    async def delete(self, tree_id: str) -> dict[str, Any] | None:
        return await self._client.delete(self._url(tree_id))
