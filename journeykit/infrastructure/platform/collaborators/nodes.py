"""Node configuration collaborator (implements INodeCollaborator)."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from journeykit.infrastructure.platform._rest_client import PlatformRESTClient

_NODES_PATH = "realm-config/authentication/authenticationtrees/nodes"


class AmNodeCollaborator:
    """Node configs, addressed by node type and node id."""

    def __init__(self, client: PlatformRESTClient) -> None:
        self._client = client

    def _url(self, node_type: str, node_id: str = "") -> str:
        path = f"{_NODES_PATH}/{quote(node_type, safe='')}"
        if node_id:
            path = f"{path}/{quote(node_id, safe='')}"
        return self._client.am_url(path)

    async def read(self, node_type: str, node_id: str) -> dict[str, Any] | None:
        return await self._client.get(self._url(node_type, node_id))

    async def update(
        self, node_type: str, node_id: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._client.put(self._url(node_type, node_id), body)

    async def delete(self, node_type: str, node_id: str) -> dict[str, Any] | None:
        return await self._client.delete(self._url(node_type, node_id))

    async def list_types(self) -> list[str]:
        out = await self._client.post(
            self._client.am_url(_NODES_PATH), params={"_action": "getAllTypes"}
        )
        if not out:
            return []
        return [t["_id"] for t in out.get("result") or [] if t.get("_id")]

    async def read_all_by_type(self, node_type: str) -> list[dict[str, Any]]:
        return await self._client.query_all(self._url(node_type))
