"""SAML2 entity provider collaborator (implements ISaml2Collaborator)."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from journeykit.domain.enums import SamlLocation
from journeykit.infrastructure.platform._rest_client import (
    SAML2_API_VERSION,
    PlatformRESTClient,
)

_SAML2_PATH = "realm-config/saml2"


class AmSaml2Collaborator:
    """Hosted and remote SAML2 providers.

    Provider ids are the platform's base64url form of the entity id; remote
    providers can only be created by importing their standard metadata.
    """

    def __init__(self, client: PlatformRESTClient) -> None:
        self._client = client

    def _url(self, location: SamlLocation, provider_id: str) -> str:
        return self._client.am_url(
            f"{_SAML2_PATH}/{location.value}/{quote(provider_id, safe='')}"
        )

    async def read_all(self) -> list[dict[str, Any]]:
        return await self._client.query_all(
            self._client.am_url(_SAML2_PATH), api_version=SAML2_API_VERSION
        )

    async def read(
        self, location: SamlLocation, provider_id: str
    ) -> dict[str, Any] | None:
        return await self._client.get(
            self._url(location, provider_id), api_version=SAML2_API_VERSION
        )

    async def read_metadata(self, entity_id: str) -> str | None:
        return await self._client.get(
            self._client.am_root_url("saml2/jsp/exportmetadata.jsp"),
            params={"entityid": entity_id, "realm": self._client.settings.realm},
            api_version=SAML2_API_VERSION,
            as_text=True,
        )

    async def create(
        self,
        location: SamlLocation,
        body: dict[str, Any],
        metadata: str | None = None,
    ) -> dict[str, Any]:
        if location == SamlLocation.REMOTE:
            if not metadata:
                raise ValueError(
                    f"Remote SAML2 provider {body.get('entityId')!r} needs metadata to be created"
                )
            return await self._client.post(
                self._client.am_url(f"{_SAML2_PATH}/remote/"),
                {"standardMetadata": metadata},
                params={"_action": "importEntity"},
                api_version=SAML2_API_VERSION,
            )
        return await self._client.post(
            self._client.am_url(f"{_SAML2_PATH}/hosted/"),
            body,
            params={"_action": "create"},
            api_version=SAML2_API_VERSION,
        )

    async def update(
        self, location: SamlLocation, provider_id: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        return await self._client.put(
            self._url(location, provider_id), body, api_version=SAML2_API_VERSION
        )

    async def delete(
        self, location: SamlLocation, provider_id: str
    ) -> dict[str, Any] | None:
        return await self._client.delete(
            self._url(location, provider_id), api_version=SAML2_API_VERSION
        )
