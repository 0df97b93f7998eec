"""Application interfaces (ports): collaborator protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from journeykit.infrastructure.
"""

from journeykit.application.interfaces.collaborators import (
    ICollaborator,
    INodeCollaborator,
    ISaml2Collaborator,
    ITreeCollaborator,
    PlatformCollaborators,
)

__all__ = [
    "ICollaborator",
    "INodeCollaborator",
    "ISaml2Collaborator",
    "ITreeCollaborator",
    "PlatformCollaborators",
]
