"""Base class for external secrets providers.

Every backend exposes the same lifecycle (init → connect → update) and reads
secrets from an in-memory ``SecretCache`` so lookups never touch the network.
"""

from __future__ import annotations

import abc
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from external_secrets.providers.secret_cache import SecretCache
from external_secrets.shared.constants import (
    STATE_CONNECTED,
    STATE_CONNECTING,
    STATE_ERROR,
    STATE_UNINITIALIZED,
)
from external_secrets.shared.errors import NotConnectedError


class ProviderState(Enum):
    UNINITIALIZED = STATE_UNINITIALIZED
    CONNECTING = STATE_CONNECTING
    CONNECTED = STATE_CONNECTED
    ERROR = STATE_ERROR


@dataclass(frozen=True)
class ProviderContext:
    """What the host hands to ``SecretsProvider.init``."""

    settings: Mapping[str, Any] = field(default_factory=dict)


class SecretsProvider(abc.ABC):
    """Abstract base class for secret store integrations."""

    name: str = ""
    display_name: str = ""

    def __init__(self) -> None:
        self._cache = SecretCache()

    @property
    @abc.abstractmethod
    def state(self) -> ProviderState:
        """Current connection state."""

    @abc.abstractmethod
    def init(self, context: ProviderContext) -> None:
        """Store settings. Must not perform network I/O."""

    @abc.abstractmethod
    def connect(self) -> None:
        """Connect to the store. Failures are reported through ``state``."""

    @abc.abstractmethod
    def disconnect(self) -> None:
        """Drop the connection. The cached secrets stay readable."""

    @abc.abstractmethod
    def update(self) -> None:
        """Refresh the cache from the store, replacing it on success."""

    @abc.abstractmethod
    def test(self) -> tuple[bool, str | None]:
        """Check connectivity without changing state.

        Returns ``(True, None)`` on success or ``(False, message)``.
        """

    def get_secret(self, name: str) -> Any:
        """Return the cached value of *name*.

        Raises:
            NotConnectedError: If the provider was never connected and holds
                no cached secrets.
            SecretNotFoundError: If *name* is not in the current cache.
        """
        if self.state is ProviderState.UNINITIALIZED and self._cache.generation == 0:
            raise NotConnectedError(f"{self.display_name or 'Provider'} is not connected")
        return self._cache.get(name)

    def has_secret(self, name: str) -> bool:
        return self._cache.contains(name)

    def get_secret_names(self) -> list[str]:
        return self._cache.names()
