"""Shared configuration and environment settings for CDK infrastructure."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class EnvironmentConfig:
    """Immutable configuration for a deployment environment."""

    stage: str
    aws_account_id: str
    aws_region: str

    # Naming
    project_name: str = "external-secrets-aws"

    # Secrets the provider role may read. An empty prefix grants every secret
    # in the account/region.
    secrets_prefix: str = ""

    # Role trust. Defaults to the deploying account's root principal.
    trusted_principal_arn: str | None = None
    external_id: str | None = None
    max_session_duration_hours: int = 1

    # Customer-managed KMS keys used to encrypt the readable secrets
    kms_key_arns: tuple[str, ...] = ()

    # Tags
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def resource_prefix(self) -> str:
        return f"{self.project_name}-{self.stage}"

    def resource_name(self, name: str) -> str:
        return f"{self.resource_prefix}-{name}"

    def secret_arn_pattern(self) -> str:
        """ARN pattern matching every secret the provider may read."""
        return (
            f"arn:aws:secretsmanager:{self.aws_region}:{self.aws_account_id}"
            f":secret:{self.secrets_prefix}*"
        )


# Pre-defined environment configurations
# NOTE: aws_account_id values are placeholders; set them to your AWS account IDs before deploy.
_ENV_CONFIGS: dict[str, dict[str, object]] = {
    "dev": {
        "stage": "dev",
        "aws_account_id": "000000000000",
        "aws_region": "us-east-1",
        "tags": {"Environment": "dev", "Project": "external-secrets-aws"},
    },
    "staging": {
        "stage": "staging",
        "aws_account_id": "000000000000",
        "aws_region": "us-east-1",
        "secrets_prefix": "staging/",
        "tags": {"Environment": "staging", "Project": "external-secrets-aws"},
    },
    "prod": {
        "stage": "prod",
        "aws_account_id": "000000000000",
        "aws_region": "us-east-1",
        "secrets_prefix": "prod/",
        "max_session_duration_hours": 2,
        "tags": {"Environment": "prod", "Project": "external-secrets-aws"},
    },
}


def get_environment_config(env_name: str) -> EnvironmentConfig:
    """Get configuration for the given environment name.

    Args:
        env_name: One of 'dev', 'staging', 'prod'.

    Returns:
        EnvironmentConfig for the requested environment.

    Raises:
        ValueError: If env_name is not recognized.
    """
    if env_name not in _ENV_CONFIGS:
        raise ValueError(
            f"Unknown environment '{env_name}'. Choose from: {list(_ENV_CONFIGS.keys())}"
        )
    return EnvironmentConfig(**_ENV_CONFIGS[env_name])  # type: ignore[arg-type]


# CDK context key -> EnvironmentConfig field
_CONTEXT_OVERRIDES: dict[str, str] = {
    "account": "aws_account_id",
    "region": "aws_region",
    "secretsPrefix": "secrets_prefix",
    "trustedPrincipalArn": "trusted_principal_arn",
    "externalId": "external_id",
}


def apply_context_overrides(
    config: EnvironmentConfig, context: Mapping[str, object]
) -> EnvironmentConfig:
    """Return *config* with values supplied via ``cdk -c key=value`` applied.

    ``kmsKeyArns`` takes a comma-separated list of key ARNs.
    """
    changes: dict[str, object] = {}
    for key, field_name in _CONTEXT_OVERRIDES.items():
        value = context.get(key)
        if value is not None:
            changes[field_name] = str(value)

    kms_key_arns = context.get("kmsKeyArns")
    if kms_key_arns:
        changes["kms_key_arns"] = tuple(
            arn.strip() for arn in str(kms_key_arns).split(",") if arn.strip()
        )

    return replace(config, **changes) if changes else config
