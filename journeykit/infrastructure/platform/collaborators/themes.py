"""Theme collaborator.

Themes are not individual config objects: every realm's themes live in one
IDM config document (``ui/themerealm``) as ``realm.<realm name>``. Writes are
read-modify-write of that document, serialised with a lock so concurrent
theme imports do not overwrite each other.
"""

from __future__ import annotations

import asyncio
from typing import Any

from journeykit.core.constants import THEMEREALM_CONFIG_ID
from journeykit.infrastructure.platform._rest_client import (
    IDM_API_VERSION,
    PlatformRESTClient,
)


class IdmThemeCollaborator:
    """Realm themes, addressed by ``_id`` (reads also match by ``name``)."""

    def __init__(self, client: PlatformRESTClient) -> None:
        self._client = client
        self._lock = asyncio.Lock()

    def _url(self) -> str:
        return self._client.idm_url(f"config/{THEMEREALM_CONFIG_ID}")

    async def _read_document(self) -> dict[str, Any]:
        doc = await self._client.get(self._url(), api_version=IDM_API_VERSION)
        return doc or {"_id": THEMEREALM_CONFIG_ID, "realm": {}}

    def _realm_themes(self, doc: dict[str, Any]) -> list[dict[str, Any]]:
        realms = doc.setdefault("realm", {})
        return realms.setdefault(self._client.settings.realm_name, [])

    async def _write_document(self, doc: dict[str, Any]) -> None:
        await self._client.put(self._url(), doc, api_version=IDM_API_VERSION)

    async def read_all(self) -> list[dict[str, Any]]:
        return list(self._realm_themes(await self._read_document()))

    async def read(self, object_id: str) -> dict[str, Any] | None:
        for theme in await self.read_all():
            if object_id in (theme.get("_id"), theme.get("name")):
                return theme
        return None

    async def create(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self.update(object_id, body)

    async def update(self, object_id: str, body: dict[str, Any]) -> dict[str, Any]:
        """Replace the theme whose _id or name is object_id, or append it."""
        theme = {**body, "_id": body.get("_id") or object_id}
        async with self._lock:
            doc = await self._read_document()
            themes = self._realm_themes(doc)
            for i, existing in enumerate(themes):
                if object_id in (existing.get("_id"), existing.get("name")):
                    theme["_id"] = existing.get("_id") or theme["_id"]
                    themes[i] = theme
                    break
            else:
                themes.append(theme)
            await self._write_document(doc)
        return theme

    async def delete(self, object_id: str) -> dict[str, Any] | None:
        async with self._lock:
            doc = await self._read_document()
            themes = self._realm_themes(doc)
            for i, existing in enumerate(themes):
                if object_id in (existing.get("_id"), existing.get("name")):
                    removed = themes.pop(i)
                    await self._write_document(doc)
                    return removed
        return None
