"""AWS Secrets Manager external secrets provider.

Lifecycle:
- ``init`` validates settings (no network I/O)
- ``connect`` builds the client and probes it, reporting through ``state``
- ``update`` lists every visible secret, fetches values in batches and
  publishes them as one new cache generation
- ``get_secret`` reads the published generation only
"""

from __future__ import annotations

import logging
import threading

from external_secrets.providers.base_provider import (
    ProviderContext,
    ProviderState,
    SecretsProvider,
)
from external_secrets.providers.connection import SecretsManagerConnection
from external_secrets.providers.filters import parse_filter
from external_secrets.providers.secrets_reader import (
    BatchValueFetcher,
    SecretIdentifierLister,
    validate_fetch_options,
)
from external_secrets.shared.config import ProviderSettings
from external_secrets.shared.constants import (
    BATCH_GET_MAX_SECRETS,
    PROVIDER_DISPLAY_NAME_AWS,
    PROVIDER_NAME_AWS,
)
from external_secrets.shared.errors import (
    AuthenticationError,
    ConfigurationError,
    NotConnectedError,
)

logger = logging.getLogger(__name__)


class AwsSecretsManagerProvider(SecretsProvider):
    """Serves every secret visible to the configured AWS credentials."""

    name = PROVIDER_NAME_AWS
    display_name = PROVIDER_DISPLAY_NAME_AWS

    def __init__(
        self,
        *,
        max_batch_size: int = BATCH_GET_MAX_SECRETS,
        max_workers: int = 1,
    ) -> None:
        super().__init__()
        validate_fetch_options(max_batch_size, max_workers)
        self._max_batch_size = max_batch_size
        self._max_workers = max_workers
        self._settings: ProviderSettings | None = None
        self._connection: SecretsManagerConnection | None = None
        self._update_lock = threading.Lock()

    @property
    def state(self) -> ProviderState:
        if self._connection is None:
            return ProviderState.UNINITIALIZED
        return self._connection.state

    @property
    def settings(self) -> ProviderSettings | None:
        return self._settings

    @property
    def last_error(self) -> Exception | None:
        """The error behind the current ``ERROR`` state, if any."""
        if self._connection is None:
            return None
        return self._connection.last_error

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self, context: ProviderContext) -> None:
        """Validate and store the settings carried by *context*.

        Raises:
            ConfigurationError: If required settings are missing.
        """
        settings = ProviderSettings.from_mapping(context.settings)
        self._settings = settings
        self._connection = SecretsManagerConnection(settings)
        logger.info(
            "Initialised %s provider for %s (auth=%s)",
            self.name,
            settings.region,
            settings.auth_method.value,
        )

    def connect(self) -> None:
        self._require_initialised().connect()

    def disconnect(self) -> None:
        if self._connection is not None:
            self._connection.disconnect()

    def test(self) -> tuple[bool, str | None]:
        if self._connection is None:
            return False, "Provider has not been initialised"
        return self._connection.test()

    def update(self) -> None:
        """Refresh the cache with every secret currently in the store.

        The new generation is published only after listing and every batch
        fetch succeeded; on failure the previous generation stays in place.

        Raises:
            NotConnectedError: If the provider is not connected.
            AuthenticationError: If the credentials were rejected. The
                provider moves to ``ERROR`` and needs a new ``connect``.
            ConnectivityError: If listing or fetching failed.
        """
        with self._update_lock:
            connection = self._connection
            if connection is None or connection.state is not ProviderState.CONNECTED:
                raise NotConnectedError(
                    f"{self.display_name} provider is {self.state.value}, not connected"
                )
            client = connection.client
            filters = parse_filter(connection.settings.filter_json)

            try:
                identifiers = SecretIdentifierLister(client).list_all_identifiers(filters)
                secrets = BatchValueFetcher(
                    client,
                    max_batch_size=self._max_batch_size,
                    max_workers=self._max_workers,
                ).fetch_values(identifiers)
            except AuthenticationError as exc:
                logger.error("Secrets refresh rejected credentials: %s", exc)
                connection.mark_error(exc)
                raise
            except Exception:
                logger.exception("Secrets refresh failed; keeping previous cache")
                raise

            self._cache.publish(secrets)
            logger.info(
                "Published %d secrets (generation %d)",
                self._cache.size(),
                self._cache.generation,
            )

    # Internal helpers

    def _require_initialised(self) -> SecretsManagerConnection:
        if self._connection is None:
            raise ConfigurationError(f"{self.display_name} provider has not been initialised")
        return self._connection
