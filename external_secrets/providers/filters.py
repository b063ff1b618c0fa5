"""Validation of user-supplied ListSecrets filters.

The filter JSON comes straight from provider settings and is untrusted. It is
applied all-or-nothing: when any clause is malformed the whole filter is
dropped and listing runs unfiltered. A partially applied filter would quietly
enumerate something other than what the user asked for.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Literal

from pydantic import BaseModel, Field, StrictStr, TypeAdapter, ValidationError

from external_secrets.shared.constants import ALLOWED_FILTER_KEYS

logger = logging.getLogger(__name__)

FilterKey = Literal["tag-key", "tag-value", "name", "description", "primary-region"]


class SecretsFilter(BaseModel):
    """One ListSecrets filter clause."""

    Key: FilterKey
    Values: list[StrictStr] = Field(..., min_length=1)


_FILTER_LIST = TypeAdapter(list[SecretsFilter])


def parse_filter(filter_json: str | None) -> list[dict[str, Any]] | None:
    """Parse *filter_json* into ListSecrets ``Filters`` or return None.

    None means "no filter": absent or empty input, invalid JSON, a value that
    is not an array, an empty array, or any invalid clause. Never raises.
    """
    if not filter_json or not filter_json.strip():
        return None

    try:
        parsed = json.loads(filter_json)
    except (ValueError, RecursionError):
        logger.warning("Ignoring secrets filter: not valid JSON")
        return None

    if not isinstance(parsed, list):
        logger.warning("Ignoring secrets filter: expected a JSON array")
        return None

    if not parsed:
        return None

    try:
        clauses = _FILTER_LIST.validate_python(parsed)
    except ValidationError as exc:
        logger.warning(
            "Ignoring secrets filter: %d invalid clause field(s), allowed keys are %s",
            exc.error_count(),
            sorted(ALLOWED_FILTER_KEYS),
        )
        return None

    return [{"Key": clause.Key, "Values": list(clause.Values)} for clause in clauses]
