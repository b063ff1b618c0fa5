"""Exception hierarchy shared by the external secrets providers."""

from __future__ import annotations


class ExternalSecretsError(Exception):
    """Base error raised for any external secrets issue."""


class ConfigurationError(ExternalSecretsError):
    """Raised when provider settings are missing or invalid."""


class ProviderConnectionError(ExternalSecretsError):
    """Raised when a call to the remote secret store fails."""


class AuthenticationError(ProviderConnectionError):
    """Raised when the secret store rejects the configured credentials."""


class ConnectivityError(ProviderConnectionError):
    """Raised when the secret store cannot be reached or answers with an error."""


class NotConnectedError(ExternalSecretsError):
    """Raised when an operation needs a connected provider."""


class SecretNotFoundError(ExternalSecretsError):
    """Raised when a secret is absent from the current cache generation."""


__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "ConnectivityError",
    "ExternalSecretsError",
    "NotConnectedError",
    "ProviderConnectionError",
    "SecretNotFoundError",
]
