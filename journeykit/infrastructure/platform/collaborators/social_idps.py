"""Social identity provider collaborator.

Providers live under ``realm-config/services/SocialIdentityProviders/<type>/<id>``;
the type is only known from the body (``_type._id``), so id-only lookups go
through the provider listing.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from journeykit.infrastructure.platform._rest_client import PlatformRESTClient

_SERVICE_PATH = "realm-config/services/SocialIdentityProviders"


def _provider_type(body: dict[str, Any]) -> str:
    provider_type = (body.get("_type") or {}).get("_id")
    if not provider_type:
        raise ValueError(f"Social identity provider {body.get('_id')!r} has no _type._id")
    return provider_type


class AmSocialIdpCollaborator:
    def __init__(self, client: PlatformRESTClient) -> None:
        self._client = client

    def _url(self, provider_type: str, provider_id: str) -> str:
        return self._client.am_url(
            f"{_SERVICE_PATH}/{quote(provider_type, safe='')}/{quote(provider_id, safe='')}"
        )

    async def read_all(self) -> list[dict[str, Any]]:
        out = await self._client.post(
            self._client.am_url(_SERVICE_PATH), params={"_action": "nextdescendents"}
        )
        if not out:
            return []
        return list(out.get("result") or [])

    async def read(self, object_id: str) -> dict[str, Any] | None:
        for provider in await self.read_all():
            if provider.get("_id") == object_id:
                return provider
        return None

    async def create(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self.update(object_id, body)

    async def update(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self._client.put(self._url(_provider_type(body), object_id), body)

    async def delete(self, object_id: str) -> dict[str, Any] | None:
        provider = await self.read(object_id)
        if provider is None:
            return None
        return await self._client.delete(self._url(_provider_type(provider), object_id))
