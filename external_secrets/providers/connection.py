"""Secrets Manager client lifecycle.

Builds the boto3 client for the configured auth method, probes connectivity
and tracks the resulting ``ProviderState``. Failures during ``connect`` are
recorded instead of raised; callers inspect ``state`` and ``last_error``.
"""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from external_secrets.providers.base_provider import ProviderState
from external_secrets.shared.config import AuthMethod, ProviderSettings
from external_secrets.shared.constants import (
    AUTHENTICATION_ERROR_CODES,
    PROBE_MAX_RESULTS,
    SECRETS_MANAGER_SERVICE,
    STS_SERVICE,
)
from external_secrets.shared.errors import (
    AuthenticationError,
    ConnectivityError,
    NotConnectedError,
    ProviderConnectionError,
)

logger = logging.getLogger(__name__)


def translate_aws_error(
    exc: ClientError | BotoCoreError, operation: str
) -> ProviderConnectionError:
    """Map a botocore exception to an ``AuthenticationError`` or ``ConnectivityError``."""
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "Unknown")
        message = exc.response.get("Error", {}).get("Message", str(exc))
        if code in AUTHENTICATION_ERROR_CODES:
            return AuthenticationError(f"{operation} rejected credentials: {code} - {message}")
        return ConnectivityError(f"{operation} failed: {code} - {message}")
    if isinstance(exc, (NoCredentialsError, PartialCredentialsError)):
        return AuthenticationError(f"{operation} failed: {exc}")
    return ConnectivityError(f"{operation} failed: {exc}")


class SecretsManagerConnection:
    """Owns the authenticated Secrets Manager client for one provider."""

    def __init__(self, settings: ProviderSettings) -> None:
        self._settings = settings
        self._client: Any = None
        self._state = ProviderState.UNINITIALIZED
        self._last_error: Exception | None = None

    @property
    def state(self) -> ProviderState:
        return self._state

    @property
    def settings(self) -> ProviderSettings:
        return self._settings

    @property
    def last_error(self) -> Exception | None:
        """The error that moved the connection to ``ERROR``, if any."""
        return self._last_error

    @property
    def client(self) -> Any:
        """The connected boto3 client.

        Raises:
            NotConnectedError: If the connection is not ``CONNECTED``.
        """
        if self._state is not ProviderState.CONNECTED or self._client is None:
            raise NotConnectedError(
                f"Secrets Manager connection is {self._state.value}, not connected"
            )
        return self._client

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> ProviderState:
        """Build a fresh client and probe it. Never raises."""
        self._state = ProviderState.CONNECTING
        self._client = None
        self._last_error = None

        try:
            client = self._build_client()
            self._probe(client)
        except Exception as exc:
            logger.exception(
                "Failed to connect to Secrets Manager in %s", self._settings.region
            )
            error: Exception = exc
            if isinstance(exc, (ClientError, BotoCoreError)):
                error = translate_aws_error(exc, "Connect")
            self.mark_error(error)
            return self._state

        self._client = client
        self._state = ProviderState.CONNECTED
        logger.info(
            "Connected to Secrets Manager in %s (auth=%s)",
            self._settings.region,
            self._settings.auth_method.value,
        )
        return self._state

    def disconnect(self) -> None:
        self._client = None
        self._last_error = None
        self._state = ProviderState.UNINITIALIZED

    def mark_error(self, exc: Exception) -> None:
        """Move to ``ERROR`` and drop the client."""
        self._client = None
        self._last_error = exc
        self._state = ProviderState.ERROR

    def test(self) -> tuple[bool, str | None]:
        """Probe with a throwaway client, leaving state untouched."""
        try:
            self._probe(self._build_client())
        except Exception as exc:
            logger.warning("Secrets Manager connection test failed: %s", exc)
            return False, str(exc)
        return True, None

    # ------------------------------------------------------------------
    # Client construction
    # ------------------------------------------------------------------

    def _probe(self, client: Any) -> None:
        try:
            client.list_secrets(MaxResults=PROBE_MAX_RESULTS)
        except (ClientError, BotoCoreError) as exc:
            raise translate_aws_error(exc, "ListSecrets") from exc

    def _build_client(self) -> Any:
        kwargs: dict[str, Any] = {"region_name": self._settings.region}
        if self._settings.endpoint_url:
            kwargs["endpoint_url"] = self._settings.endpoint_url
        kwargs.update(self._credentials())
        return boto3.client(SECRETS_MANAGER_SERVICE, **kwargs)

    def _credentials(self) -> dict[str, str]:
        method = self._settings.auth_method
        if method is AuthMethod.IAM_USER:
            return self._static_credentials()
        if method is AuthMethod.IAM_ROLE:
            return self._assume_role()
        return {}

    def _static_credentials(self) -> dict[str, str]:
        if not self._settings.has_static_credentials:
            return {}
        credentials = {
            "aws_access_key_id": self._settings.access_key_id or "",
            "aws_secret_access_key": self._settings.secret_access_key or "",
        }
        if self._settings.session_token:
            credentials["aws_session_token"] = self._settings.session_token
        return credentials

    def _assume_role(self) -> dict[str, str]:
        """Exchange the base credentials for temporary role credentials."""
        sts = boto3.client(
            STS_SERVICE,
            region_name=self._settings.region,
            **self._static_credentials(),
        )
        kwargs: dict[str, Any] = {
            "RoleArn": self._settings.role_arn,
            "RoleSessionName": self._settings.role_session_name,
        }
        if self._settings.external_id:
            kwargs["ExternalId"] = self._settings.external_id

        try:
            response = sts.assume_role(**kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise translate_aws_error(exc, "AssumeRole") from exc

        credentials = response["Credentials"]
        logger.info(
            "Assumed role %s (expires %s)",
            self._settings.role_arn,
            credentials.get("Expiration"),
        )
        return {
            "aws_access_key_id": credentials["AccessKeyId"],
            "aws_secret_access_key": credentials["SecretAccessKey"],
            "aws_session_token": credentials["SessionToken"],
        }
