"""Provider settings for the AWS Secrets Manager backend.

Hosts hand settings over as a plain mapping (usually camelCase keys coming
from a settings form). ``ProviderSettings.from_mapping`` normalises and
validates them; ``load_provider_settings`` builds the same object from
environment variables for local runs.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from external_secrets.shared.constants import (
    AUTH_METHOD_AUTO_DETECT,
    AUTH_METHOD_IAM_ROLE,
    AUTH_METHOD_IAM_USER,
    DEFAULT_ROLE_SESSION_NAME,
    ENV_PREFIX,
    VALID_AUTH_METHODS,
)
from external_secrets.shared.errors import ConfigurationError


class AuthMethod(Enum):
    IAM_USER = AUTH_METHOD_IAM_USER
    IAM_ROLE = AUTH_METHOD_IAM_ROLE
    AUTO_DETECT = AUTH_METHOD_AUTO_DETECT


# field name -> accepted keys in a host settings mapping
_SETTING_KEYS: dict[str, tuple[str, ...]] = {
    "region": ("region",),
    "auth_method": ("authMethod", "auth_method"),
    "access_key_id": ("accessKeyId", "access_key_id"),
    "secret_access_key": ("secretAccessKey", "secret_access_key"),
    "session_token": ("sessionToken", "session_token"),
    "role_arn": ("roleArn", "role_arn"),
    "role_session_name": ("roleSessionName", "role_session_name"),
    "external_id": ("externalId", "external_id"),
    "endpoint_url": ("endpointUrl", "endpoint_url"),
    "filter_json": ("filterJson", "filter_json"),
}


@dataclass(frozen=True)
class ProviderSettings:
    """Immutable, validated settings for one provider instance."""

    region: str
    auth_method: AuthMethod = AuthMethod.IAM_USER

    # Static credentials (iamUser, optional base credentials for iamRole)
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None

    # Role assumption (iamRole)
    role_arn: str | None = None
    role_session_name: str = DEFAULT_ROLE_SESSION_NAME
    external_id: str | None = None

    # Optional overrides (useful for local testing)
    endpoint_url: str | None = None

    # Raw, untrusted ListSecrets filter JSON
    filter_json: str | None = None

    def __post_init__(self) -> None:
        if not self.region or not self.region.strip():
            raise ConfigurationError("'region' is required")

        if self.auth_method is AuthMethod.IAM_USER:
            missing = [
                name
                for name, value in (
                    ("accessKeyId", self.access_key_id),
                    ("secretAccessKey", self.secret_access_key),
                )
                if not value
            ]
            if missing:
                raise ConfigurationError(
                    f"Auth method '{self.auth_method.value}' requires: {', '.join(missing)}"
                )
        elif self.auth_method is AuthMethod.IAM_ROLE:
            if not self.role_arn:
                raise ConfigurationError(
                    f"Auth method '{self.auth_method.value}' requires: roleArn"
                )
            if bool(self.access_key_id) != bool(self.secret_access_key):
                raise ConfigurationError(
                    "accessKeyId and secretAccessKey must be provided together"
                )

    @property
    def has_static_credentials(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)

    @classmethod
    def from_mapping(cls, settings: Mapping[str, Any]) -> ProviderSettings:
        """Build settings from a host-supplied mapping.

        Accepts camelCase (``accessKeyId``) or snake_case (``access_key_id``)
        keys. Empty strings are treated as absent.

        Raises:
            ConfigurationError: If the auth method is unknown or a field
                required by it is missing.
        """
        values: dict[str, Any] = {}
        for field_name, keys in _SETTING_KEYS.items():
            for key in keys:
                raw = settings.get(key)
                if raw is None or raw == "":
                    continue
                if not isinstance(raw, str):
                    raise ConfigurationError(f"'{key}' must be a string")
                values[field_name] = raw
                break

        if "region" not in values:
            raise ConfigurationError("'region' is required")

        values["auth_method"] = parse_auth_method(
            values.get("auth_method", AUTH_METHOD_IAM_USER)
        )
        return cls(**values)


def parse_auth_method(value: str) -> AuthMethod:
    """Return the ``AuthMethod`` for *value* or raise ``ConfigurationError``."""
    if value not in VALID_AUTH_METHODS:
        raise ConfigurationError(
            f"Unknown auth method '{value}'. Must be one of {sorted(VALID_AUTH_METHODS)}"
        )
    return AuthMethod(value)


def load_provider_settings() -> ProviderSettings:
    """Build ProviderSettings from ``EXTERNAL_SECRETS_AWS_*`` environment variables."""
    env: dict[str, str] = {}
    for field_name in _SETTING_KEYS:
        value = os.environ.get(f"{ENV_PREFIX}{field_name.upper()}")
        if value:
            env[field_name] = value

    if "region" not in env and os.environ.get("AWS_REGION"):
        env["region"] = os.environ["AWS_REGION"]

    return ProviderSettings.from_mapping(env)
