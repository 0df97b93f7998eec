"""Platform client wiring.

Builds the shared PlatformRESTClient from Settings and bundles the REST
collaborators into PlatformCollaborators for the use cases.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from journeykit.application.interfaces.collaborators import PlatformCollaborators
from journeykit.core.config import Settings, get_settings
from journeykit.infrastructure.platform._rest_client import PlatformRESTClient
from journeykit.infrastructure.platform.collaborators import (
    AmCircleOfTrustCollaborator,
    AmNodeCollaborator,
    AmSaml2Collaborator,
    AmScriptCollaborator,
    AmSocialIdpCollaborator,
    AmTreeCollaborator,
    IdmEmailTemplateCollaborator,
    IdmThemeCollaborator,
)
from journeykit.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def build_collaborators(client: PlatformRESTClient) -> PlatformCollaborators:
    """Return every REST collaborator, all sharing one HTTP client."""
    return PlatformCollaborators(
        trees=AmTreeCollaborator(client),
        nodes=AmNodeCollaborator(client),
        scripts=AmScriptCollaborator(client),
        email_templates=IdmEmailTemplateCollaborator(client),
        saml2=AmSaml2Collaborator(client),
        circles_of_trust=AmCircleOfTrustCollaborator(client),
        social_idps=AmSocialIdpCollaborator(client),
        themes=IdmThemeCollaborator(client),
    )


@asynccontextmanager
async def open_platform(
    settings: Settings | None = None, http: httpx.AsyncClient | None = None
) -> AsyncIterator[PlatformCollaborators]:
    """Yield collaborators bound to the configured platform; closes the client on exit.

    An injected ``http`` client is left open for its owner to close.
    """
    settings = settings or get_settings()
    client = PlatformRESTClient(settings, http)
    logger.debug("Connecting to %s (realm %s)", settings.am_base_url, settings.realm)
    try:
        yield build_collaborators(client)
    finally:
        await client.aclose()
        logger.debug("Platform HTTP client closed")
