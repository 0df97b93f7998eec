"""REST implementations of the collaborator interfaces."""

from journeykit.infrastructure.platform.collaborators.circles_of_trust import (
    AmCircleOfTrustCollaborator,
)
from journeykit.infrastructure.platform.collaborators.email_templates import (
    IdmEmailTemplateCollaborator,
)
from journeykit.infrastructure.platform.collaborators.nodes import AmNodeCollaborator
from journeykit.infrastructure.platform.collaborators.saml2 import AmSaml2Collaborator
from journeykit.infrastructure.platform.collaborators.scripts import AmScriptCollaborator
from journeykit.infrastructure.platform.collaborators.social_idps import (
    AmSocialIdpCollaborator,
)
from journeykit.infrastructure.platform.collaborators.themes import IdmThemeCollaborator
from journeykit.infrastructure.platform.collaborators.trees import AmTreeCollaborator

__all__ = [
    "AmCircleOfTrustCollaborator",
    "AmNodeCollaborator",
    "AmSaml2Collaborator",
    "AmScriptCollaborator",
    "AmSocialIdpCollaborator",
    "AmTreeCollaborator",
    "IdmEmailTemplateCollaborator",
    "IdmThemeCollaborator",
]
