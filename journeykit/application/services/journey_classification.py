"""Classify journeys by the node types they use.

- standard: runs on any platform release
- cloud: uses nodes only available in the cloud offering
- premium: uses nodes that come at a premium
- custom: uses nodes not shipped with the platform release
"""

from __future__ import annotations

from journeykit.application.dtos.bundle import ExportBundle
from journeykit.domain.entities import node_type_of
from journeykit.domain.enums import JourneyClassification

_NODE_TYPES_7 = frozenset({
    "AcceptTermsAndConditionsNode", "AccountActiveDecisionNode", "AccountLockoutNode",
    "AgentDataStoreDecisionNode", "AnonymousSessionUpgradeNode", "AnonymousUserNode",
    "AttributeCollectorNode", "AttributePresentDecisionNode", "AttributeValueDecisionNode",
    "AuthLevelDecisionNode", "ChoiceCollectorNode", "ConsentNode",
    "CookiePresenceDecisionNode", "CreateObjectNode", "CreatePasswordNode",
    "DataStoreDecisionNode", "DeviceGeoFencingNode", "DeviceLocationMatchNode",
    "DeviceMatchNode", "DeviceProfileCollectorNode", "DeviceSaveNode",
    "DeviceTamperingVerificationNode", "DisplayUserNameNode", "EmailSuspendNode",
    "EmailTemplateNode", "IdentifyExistingUserNode", "IncrementLoginCountNode",
    "InnerTreeEvaluatorNode", "IotAuthenticationNode", "IotRegistrationNode",
    "KbaCreateNode", "KbaDecisionNode", "KbaVerifyNode", "LdapDecisionNode",
    "LoginCountDecisionNode", "MessageNode", "MetadataNode", "MeterNode",
    "ModifyAuthLevelNode", "OneTimePasswordCollectorDecisionNode",
    "OneTimePasswordGeneratorNode", "OneTimePasswordSmsSenderNode",
    "OneTimePasswordSmtpSenderNode", "PageNode", "PasswordCollectorNode",
    "PatchObjectNode", "PersistentCookieDecisionNode", "PollingWaitNode",
    "ProfileCompletenessDecisionNode", "ProvisionDynamicAccountNode",
    "ProvisionIdmAccountNode", "PushAuthenticationSenderNode", "PushResultVerifierNode",
    "QueryFilterDecisionNode", "RecoveryCodeCollectorDecisionNode",
    "RecoveryCodeDisplayNode", "RegisterLogoutWebhookNode", "RemoveSessionPropertiesNode",
    "RequiredAttributesDecisionNode", "RetryLimitDecisionNode", "ScriptedDecisionNode",
    "SelectIdPNode", "SessionDataNode", "SetFailureUrlNode", "SetPersistentCookieNode",
    "SetSessionPropertiesNode", "SetSuccessUrlNode", "SocialFacebookNode",
    "SocialGoogleNode", "SocialNode", "SocialOAuthIgnoreProfileNode",
    "SocialOpenIdConnectNode", "SocialProviderHandlerNode",
    "TermsAndConditionsDecisionNode", "TimeSinceDecisionNode", "TimerStartNode",
    "TimerStopNode", "UsernameCollectorNode", "ValidatedPasswordNode",
    "ValidatedUsernameNode", "WebAuthnAuthenticationNode", "WebAuthnDeviceStorageNode",
    "WebAuthnRegistrationNode", "ZeroPageLoginNode", "product-CertificateCollectorNode",
    "product-CertificateUserExtractorNode", "product-CertificateValidationNode",
    "product-KerberosNode", "product-ReCaptchaNode", "product-Saml2Node",
    "product-WriteFederationInformationNode",
})

_NODE_TYPES_7_1 = _NODE_TYPES_7 | {
    "PushRegistrationNode", "GetAuthenticatorAppNode",
    "MultiFactorRegistrationOptionsNode", "OptOutMultiFactorAuthenticationNode",
}

_NODE_TYPES_7_2 = _NODE_TYPES_7_1 | {
    "OathRegistrationNode", "OathTokenVerifierNode", "PassthroughAuthenticationNode",
    "ConfigProviderNode", "DebugNode",
}

_NODE_TYPES_6 = frozenset({
    "AbstractSocialAuthLoginNode", "AccountLockoutNode", "AgentDataStoreDecisionNode",
    "AnonymousUserNode", "AuthLevelDecisionNode", "ChoiceCollectorNode",
    "CookiePresenceDecisionNode", "CreatePasswordNode", "DataStoreDecisionNode",
    "InnerTreeEvaluatorNode", "LdapDecisionNode", "MessageNode", "MetadataNode",
    "MeterNode", "ModifyAuthLevelNode", "OneTimePasswordCollectorDecisionNode",
    "OneTimePasswordGeneratorNode", "OneTimePasswordSmsSenderNode",
    "OneTimePasswordSmtpSenderNode", "PageNode", "PasswordCollectorNode",
    "PersistentCookieDecisionNode", "PollingWaitNode", "ProvisionDynamicAccountNode",
    "ProvisionIdmAccountNode", "PushAuthenticationSenderNode", "PushResultVerifierNode",
    "RecoveryCodeCollectorDecisionNode", "RecoveryCodeDisplayNode",
    "RegisterLogoutWebhookNode", "RemoveSessionPropertiesNode", "RetryLimitDecisionNode",
    "ScriptedDecisionNode", "SessionDataNode", "SetFailureUrlNode",
    "SetPersistentCookieNode", "SetSessionPropertiesNode", "SetSuccessUrlNode",
    "SocialFacebookNode", "SocialGoogleNode", "SocialNode",
    "SocialOAuthIgnoreProfileNode", "SocialOpenIdConnectNode", "TimerStartNode",
    "TimerStopNode", "UsernameCollectorNode", "WebAuthnAuthenticationNode",
    "WebAuthnRegistrationNode", "ZeroPageLoginNode",
})

PREMIUM_NODE_TYPES = frozenset({
    "AutonomousAccessSignalNode",
    "AutonomousAccessDecisionNode",
    "AutonomousAccessResultNode",
})

CLOUD_ONLY_NODE_TYPES = PREMIUM_NODE_TYPES | {"IdentityStoreDecisionNode"}

# AM release -> node types it ships; 6.5.x ships the same catalog as 6.0.x
_RELEASE_CATALOGS: dict[str, frozenset[str]] = {
    "7.0": _NODE_TYPES_7,
    "7.1": _NODE_TYPES_7_1,
    "7.2": _NODE_TYPES_7_2,
    "7.3": _NODE_TYPES_7_2,
    "6.5": _NODE_TYPES_6,
    "6.0": _NODE_TYPES_6,
}


def standard_node_types(am_version: str) -> frozenset[str] | None:
    """Return the node types a release ships, or None for unknown versions (e.g. cloud)."""
    release = ".".join(am_version.split(".")[:2])
    return _RELEASE_CATALOGS.get(release)


def is_premium_node(node_type: str) -> bool:
    return node_type in PREMIUM_NODE_TYPES


def is_cloud_only_node(node_type: str) -> bool:
    return node_type in CLOUD_ONLY_NODE_TYPES


def is_custom_node(node_type: str, am_version: str) -> bool:
    """Return whether a node type is custom for a release.

    Unknown releases have no catalog, so every node that is neither premium
    nor cloud-only counts as custom there.
    """
    if is_premium_node(node_type) or is_cloud_only_node(node_type):
        return False
    catalog = standard_node_types(am_version)
    return catalog is None or node_type not in catalog


def _node_types(bundle: ExportBundle) -> set[str]:
    bodies = list(bundle.nodes.values()) + list(bundle.inner_nodes.values())
    return {node_type_of(body) for body in bodies}


def get_journey_classification(
    bundle: ExportBundle, am_version: str
) -> list[JourneyClassification]:
    """Return custom, cloud or standard, plus premium when premium nodes are used."""
    node_types = _node_types(bundle)
    classifications: list[JourneyClassification] = []
    if any(is_custom_node(t, am_version) for t in node_types):
        classifications.append(JourneyClassification.CUSTOM)
    elif any(is_cloud_only_node(t) for t in node_types):
        classifications.append(JourneyClassification.CLOUD)
    else:
        classifications.append(JourneyClassification.STANDARD)
    if any(is_premium_node(t) for t in node_types):
        classifications.append(JourneyClassification.PREMIUM)
    return classifications
