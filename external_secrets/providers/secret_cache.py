"""In-memory secret cache with whole-generation replacement."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from external_secrets.shared.errors import SecretNotFoundError

_EMPTY: Mapping[str, Any] = MappingProxyType({})


class SecretCache:
    """Holds the secrets published by the last successful refresh.

    The current generation is a read-only mapping that is only ever replaced
    by a single reference assignment in ``publish``. Readers that grabbed the
    previous mapping keep seeing a complete, consistent generation.
    """

    def __init__(self) -> None:
        self._secrets: Mapping[str, Any] = _EMPTY
        self._generation = 0

    @property
    def generation(self) -> int:
        """Number of generations published so far (0 = never refreshed)."""
        return self._generation

    def publish(self, secrets: Mapping[str, Any]) -> None:
        """Replace the current generation with a copy of *secrets*."""
        snapshot = MappingProxyType(dict(secrets))
        self._secrets = snapshot
        self._generation += 1

    def get(self, name: str) -> Any:
        """Return the cached value for *name*.

        Raises:
            SecretNotFoundError: If *name* is not in the current generation.
        """
        secrets = self._secrets
        try:
            return secrets[name]
        except KeyError:
            raise SecretNotFoundError(f"Secret not found: {name}") from None

    def contains(self, name: str) -> bool:
        return name in self._secrets

    def names(self) -> list[str]:
        return list(self._secrets)

    def size(self) -> int:
        return len(self._secrets)

    def snapshot(self) -> Mapping[str, Any]:
        """Return the current generation (read-only)."""
        return self._secrets
