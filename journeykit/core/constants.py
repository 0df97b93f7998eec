"""Core constants: deployment types, wire-format literals, and well-known ids.

Single source of truth for literal values shared by the engine and the
REST collaborators.
"""

# Deployment types
CLOUD_DEPLOYMENT_TYPE = "cloud"
FORGEOPS_DEPLOYMENT_TYPE = "forgeops"
CLASSIC_DEPLOYMENT_TYPE = "classic"
DEPLOYMENT_TYPES = (
    CLOUD_DEPLOYMENT_TYPE,
    FORGEOPS_DEPLOYMENT_TYPE,
    CLASSIC_DEPLOYMENT_TYPE,
)

# Export metadata
EXPORT_TOOL_ID = "journeykit"

# Terminal markers a connection may point at instead of a node id
SUCCESS_NODE_ID = "70e691a5-1e33-4ac3-a356-e7b6d60d92e0"
FAILURE_NODE_ID = "e301438c-0bd0-429c-ab0c-66126501069a"
START_NODE_ID = "startNode"
TERMINAL_NODE_IDS = frozenset({SUCCESS_NODE_ID, FAILURE_NODE_ID, START_NODE_ID})

# Script placeholder used by nodes with no script selected
EMPTY_SCRIPT_PLACEHOLDER = "[Empty]"

# Social IdP reference meaning "every enabled provider"
ALL_SOCIAL_PROVIDERS = "*"

# Suffix AM appends to SAML2 entity ids inside circle-of-trust provider lists
SAML2_TRUSTED_PROVIDER_SUFFIX = "|saml2"

# IDM config ids
EMAIL_TEMPLATE_CONFIG_TYPE = "emailTemplate"
THEMEREALM_CONFIG_ID = "ui/themerealm"

# Remote error messages with special handling
INVALID_ATTRIBUTE_MESSAGE = "Invalid attribute specified."
NODE_DID_NOT_EXIST_MESSAGE = "Unable to read SMS config: Node did not exist"
REDIRECT_AFTER_FORM_POST_MESSAGE = (
    "Unable to update SMS config: Data validation failed for the attribute, "
    "Redirect after form post URL"
)
MISSING_SCRIPT_MESSAGE = "Data validation failed for the attribute, Script"
