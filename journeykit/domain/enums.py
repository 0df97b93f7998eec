"""Domain enumerations for journeykit.

Enums represent fixed sets of domain values (dependency types, object
operations, journey classifications).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class DependencyType(_ValuesMixin, str, Enum):
    """Collaborator object types a node can reference.

    Values double as the bundle keys of the corresponding maps.
    """

    SCRIPT = "scripts"
    EMAIL_TEMPLATE = "emailTemplates"
    SAML2_ENTITY = "saml2Entities"
    CIRCLE_OF_TRUST = "circlesOfTrust"
    SOCIAL_IDP = "socialIdentityProviders"
    THEME = "themes"


class ObjectKind(_ValuesMixin, str, Enum):
    """Every object type an operation can report on (collaborators plus journey graph)."""

    TREE = "tree"
    NODE = "node"
    INNER_NODE = "innerNode"
    SCRIPT = DependencyType.SCRIPT.value
    EMAIL_TEMPLATE = DependencyType.EMAIL_TEMPLATE.value
    SAML2_ENTITY = DependencyType.SAML2_ENTITY.value
    CIRCLE_OF_TRUST = DependencyType.CIRCLE_OF_TRUST.value
    SOCIAL_IDP = DependencyType.SOCIAL_IDP.value
    THEME = DependencyType.THEME.value

    @classmethod
    def for_dependency(cls, dependency_type: DependencyType) -> "ObjectKind":
        """Return the ObjectKind matching a DependencyType."""
        return cls(dependency_type.value)


class ObjectOperation(_ValuesMixin, str, Enum):
    """Remote operation an ObjectError is tagged with."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class DeletionStatus(_ValuesMixin, str, Enum):
    """Outcome for one object considered by a deletion."""

    DELETED = "deleted"
    SKIPPED_SHARED = "skipped: shared"
    SKIPPED_UNVERIFIED = "skipped: census incomplete"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SamlLocation(_ValuesMixin, str, Enum):
    """Where a SAML2 entity provider lives."""

    HOSTED = "hosted"
    REMOTE = "remote"


class JourneyClassification(_ValuesMixin, str, Enum):
    """Journey classification by the node types it uses."""

    STANDARD = "standard"
    CUSTOM = "custom"
    CLOUD = "cloud"
    PREMIUM = "premium"
