"""Shared constants used by the external secrets providers."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Provider identity
# ---------------------------------------------------------------------------
PROVIDER_NAME_AWS = "awsSecretsManager"
PROVIDER_DISPLAY_NAME_AWS = "AWS Secrets Manager"

# ---------------------------------------------------------------------------
# Provider states
# ---------------------------------------------------------------------------
STATE_UNINITIALIZED = "uninitialized"
STATE_CONNECTING = "connecting"
STATE_CONNECTED = "connected"
STATE_ERROR = "error"

VALID_PROVIDER_STATES = frozenset(
    {STATE_UNINITIALIZED, STATE_CONNECTING, STATE_CONNECTED, STATE_ERROR}
)

# ---------------------------------------------------------------------------
# Authentication methods
# ---------------------------------------------------------------------------
AUTH_METHOD_IAM_USER = "iamUser"
AUTH_METHOD_IAM_ROLE = "iamRole"
AUTH_METHOD_AUTO_DETECT = "autoDetect"

VALID_AUTH_METHODS = frozenset(
    {AUTH_METHOD_IAM_USER, AUTH_METHOD_IAM_ROLE, AUTH_METHOD_AUTO_DETECT}
)

# ---------------------------------------------------------------------------
# AWS services
# ---------------------------------------------------------------------------
SECRETS_MANAGER_SERVICE = "secretsmanager"
STS_SERVICE = "sts"

DEFAULT_ROLE_SESSION_NAME = "external-secrets-provider"

# ---------------------------------------------------------------------------
# Secrets Manager limits
# ---------------------------------------------------------------------------
BATCH_GET_MAX_SECRETS = 20  # BatchGetSecretValue SecretIdList limit
PROBE_MAX_RESULTS = 1

# ---------------------------------------------------------------------------
# ListSecrets filters
# ---------------------------------------------------------------------------
FILTER_KEY_TAG_KEY = "tag-key"
FILTER_KEY_TAG_VALUE = "tag-value"
FILTER_KEY_NAME = "name"
FILTER_KEY_DESCRIPTION = "description"
FILTER_KEY_PRIMARY_REGION = "primary-region"

ALLOWED_FILTER_KEYS = frozenset(
    {
        FILTER_KEY_TAG_KEY,
        FILTER_KEY_TAG_VALUE,
        FILTER_KEY_NAME,
        FILTER_KEY_DESCRIPTION,
        FILTER_KEY_PRIMARY_REGION,
    }
)

# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------
AUTHENTICATION_ERROR_CODES = frozenset(
    {
        "AccessDenied",
        "AccessDeniedException",
        "ExpiredToken",
        "ExpiredTokenException",
        "IncompleteSignature",
        "InvalidClientTokenId",
        "InvalidSignatureException",
        "MissingAuthenticationToken",
        "SignatureDoesNotMatch",
        "UnrecognizedClientException",
    }
)

# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------
ENV_PREFIX = "EXTERNAL_SECRETS_AWS_"
