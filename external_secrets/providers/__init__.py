"""External secrets providers."""

from external_secrets.providers.aws_secrets_manager import AwsSecretsManagerProvider
from external_secrets.providers.base_provider import (
    ProviderContext,
    ProviderState,
    SecretsProvider,
)
from external_secrets.providers.filters import parse_filter
from external_secrets.providers.secret_cache import SecretCache

__all__ = [
    "AwsSecretsManagerProvider",
    "ProviderContext",
    "ProviderState",
    "SecretCache",
    "SecretsProvider",
    "parse_filter",
]
