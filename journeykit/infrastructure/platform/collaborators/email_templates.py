"""Email template collaborator (IDM config objects ``emailTemplate/<name>``)."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from journeykit.core.constants import EMAIL_TEMPLATE_CONFIG_TYPE
from journeykit.infrastructure.platform._rest_client import (
    IDM_API_VERSION,
    PlatformRESTClient,
)


class IdmEmailTemplateCollaborator:
    """Email templates keyed by template name (without the config type prefix)."""

    def __init__(self, client: PlatformRESTClient) -> None:
        self._client = client

    def _url(self, name: str) -> str:
        return self._client.idm_url(
            f"config/{EMAIL_TEMPLATE_CONFIG_TYPE}/{quote(name, safe='')}"
        )

    async def read(self, object_id: str) -> dict[str, Any] | None:
        return await self._client.get(self._url(object_id), api_version=IDM_API_VERSION)

    async def read_all(self) -> list[dict[str, Any]]:
        out = await self._client.get(
            self._client.idm_url("config"),
            params={"_queryFilter": f'_id sw "{EMAIL_TEMPLATE_CONFIG_TYPE}"'},
            api_version=IDM_API_VERSION,
        )
        if not out:
            return []
        return list(out.get("result") or [])

    async def create(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self.update(object_id, body)

    async def update(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._client.put(
            self._url(object_id), body, api_version=IDM_API_VERSION
        )

    async def delete(self, object_id: str) -> dict[str, Any] | None:
        return await self._client.delete(self._url(object_id), api_version=IDM_API_VERSION)
