"""Domain layer: entities, enums, and exceptions.

No dependencies on infrastructure. Used by application and infrastructure
layers.
"""

from journeykit.domain.entities import (
    DependencyRef,
    InnerNodeRef,
    Journey,
    NodeConfig,
    NodeRef,
    parse_node,
)
from journeykit.domain.enums import (
    DeletionStatus,
    DependencyType,
    JourneyClassification,
    ObjectKind,
    ObjectOperation,
    SamlLocation,
)
from journeykit.domain.exceptions import (
    JourneyKitException,
    JourneyNotFoundException,
    JourneyOperationException,
    MalformedBundleException,
    MissingEntryNodeException,
    PlatformRequestException,
    StructuralException,
)

__all__ = [
    # Entities
    "DependencyRef",
    "InnerNodeRef",
    "Journey",
    "NodeConfig",
    "NodeRef",
    "parse_node",
    # Enums
    "DeletionStatus",
    "DependencyType",
    "JourneyClassification",
    "ObjectKind",
    "ObjectOperation",
    "SamlLocation",
    # Exceptions
    "JourneyKitException",
    "JourneyNotFoundException",
    "JourneyOperationException",
    "MalformedBundleException",
    "MissingEntryNodeException",
    "PlatformRequestException",
    "StructuralException",
]
