"""AM/IDM REST integration."""

from journeykit.infrastructure.platform._rest_client import PlatformRESTClient
from journeykit.infrastructure.platform.client import build_collaborators, open_platform

__all__ = [
    "PlatformRESTClient",
    "build_collaborators",
    "open_platform",
]
