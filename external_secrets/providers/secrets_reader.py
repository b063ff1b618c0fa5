"""Secret discovery and bulk value retrieval against Secrets Manager.

``SecretIdentifierLister`` walks every ``ListSecrets`` page and
``BatchValueFetcher`` pulls values in ``BatchGetSecretValue``-sized chunks.
Both raise on the first failed call; nothing they return is ever partial.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from external_secrets.providers.connection import translate_aws_error
from external_secrets.shared.constants import BATCH_GET_MAX_SECRETS
from external_secrets.shared.errors import ConnectivityError

logger = logging.getLogger(__name__)


def chunked(items: Sequence[str], size: int) -> Iterator[list[str]]:
    """Yield consecutive slices of *items* holding at most *size* elements."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def validate_fetch_options(max_batch_size: int, max_workers: int) -> None:
    """Raise ValueError unless both batch fetch options are in range."""
    if not 1 <= max_batch_size <= BATCH_GET_MAX_SECRETS:
        raise ValueError(
            f"max_batch_size must be 1-{BATCH_GET_MAX_SECRETS}, got {max_batch_size}"
        )
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")


def decode_secret_value(entry: dict[str, Any]) -> Any:
    """Return the value carried by a ``SecretValues`` entry.

    JSON objects stored as ``SecretString`` are returned as dicts, any other
    string verbatim, ``SecretBinary`` as bytes. None if the entry has neither.
    """
    if entry.get("SecretString") is not None:
        raw: str = entry["SecretString"]
        try:
            parsed = json.loads(raw)
        except (ValueError, RecursionError):
            return raw
        return parsed if isinstance(parsed, dict) else raw
    if entry.get("SecretBinary") is not None:
        return bytes(entry["SecretBinary"])
    return None


class SecretIdentifierLister:
    """Collects the names of every secret visible to the client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def list_all_identifiers(self, filters: list[dict[str, Any]] | None = None) -> list[str]:
        """Page through ``ListSecrets`` and return every secret name.

        *filters* is sent unchanged with each page. Names are returned in
        listing order without duplicates.

        Raises:
            AuthenticationError: If the store rejects the credentials.
            ConnectivityError: If any page cannot be fetched or a page repeats
                the previous NextToken.
        """
        base_kwargs: dict[str, Any] = {}
        if filters is not None:
            base_kwargs["Filters"] = filters

        names: dict[str, None] = {}
        next_token: str | None = None
        pages = 0

        while True:
            kwargs = dict(base_kwargs)
            if next_token:
                kwargs["NextToken"] = next_token

            try:
                response = self._client.list_secrets(**kwargs)
            except (ClientError, BotoCoreError) as exc:
                raise translate_aws_error(exc, "ListSecrets") from exc

            pages += 1
            for entry in response.get("SecretList", []):
                name = entry.get("Name")
                if name:
                    names.setdefault(name, None)

            token = response.get("NextToken")
            if not token:
                break
            if token == next_token:
                raise ConnectivityError(f"ListSecrets returned NextToken {token!r} twice")
            next_token = token

        logger.debug("Listed %d secrets over %d page(s)", len(names), pages)
        return list(names)


class BatchValueFetcher:
    """Fetches secret values in chunks of at most ``max_batch_size`` names.

    Chunks are fetched one after another unless ``max_workers`` > 1, in
    which case they run on a thread pool. Either way every chunk has
    finished before ``fetch_values`` returns, and one failed chunk fails the
    whole fetch.
    """

    def __init__(
        self,
        client: Any,
        *,
        max_batch_size: int = BATCH_GET_MAX_SECRETS,
        max_workers: int = 1,
    ) -> None:
        validate_fetch_options(max_batch_size, max_workers)
        self._client = client
        self._max_batch_size = max_batch_size
        self._max_workers = max_workers

    @property
    def max_batch_size(self) -> int:
        return self._max_batch_size

    def fetch_values(self, identifiers: Sequence[str]) -> dict[str, Any]:
        """Return a name → value mapping for *identifiers*.

        Raises:
            AuthenticationError: If the store rejects the credentials.
            ConnectivityError: If any chunk cannot be fetched.
        """
        chunks = list(chunked(identifiers, self._max_batch_size))

        if self._max_workers > 1 and len(chunks) > 1:
            workers = min(self._max_workers, len(chunks))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(self._fetch_chunk, chunks))
        else:
            results = [self._fetch_chunk(chunk) for chunk in chunks]

        values: dict[str, Any] = {}
        for result in results:
            values.update(result)

        logger.debug("Fetched %d secret values in %d chunk(s)", len(values), len(chunks))
        return values

    def _fetch_chunk(self, chunk: list[str]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        kwargs: dict[str, Any] = {"SecretIdList": chunk}

        while True:
            try:
                response = self._client.batch_get_secret_value(**kwargs)
            except (ClientError, BotoCoreError) as exc:
                raise translate_aws_error(exc, "BatchGetSecretValue") from exc

            for entry in response.get("SecretValues", []):
                name = entry.get("Name")
                value = decode_secret_value(entry)
                if name is None or value is None:
                    continue
                values[name] = value

            # Per-secret failures (e.g. KMS key not accessible) do not fail the call
            for error in response.get("Errors", []):
                logger.warning(
                    "Skipping secret %s: %s - %s",
                    error.get("SecretId"),
                    error.get("ErrorCode"),
                    error.get("Message"),
                )

            next_token = response.get("NextToken")
            if not next_token:
                return values
            if next_token == kwargs.get("NextToken"):
                raise ConnectivityError(
                    f"BatchGetSecretValue returned NextToken {next_token!r} twice"
                )
            kwargs = {"SecretIdList": chunk, "NextToken": next_token}
