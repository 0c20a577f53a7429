"""Cache key construction and endpoint pattern matching.

A key is ``<endpoint>|<encoded params>`` where the params are canonical JSON
(sorted keys) encoded as URL-safe base64. The encoded part never contains
``/`` or ``|``, so the endpoint can always be split back out of a key.
"""

import base64
import json
from typing import Any, Mapping, NamedTuple

from placify.app.cache.errors import SerializationError

KEY_SEPARATOR = "|"


class CacheKey(NamedTuple):
    endpoint: str
    encoded_params: str


def encode_params(params: Mapping[str, Any] | None) -> str:
    """Serialize params independently of insertion order."""
    try:
        canonical = json.dumps(dict(params or {}), sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialize cache params: {e}") from e
    return base64.urlsafe_b64encode(canonical.encode("utf-8")).decode("ascii")


def build_key(endpoint: str, params: Mapping[str, Any] | None = None) -> str:
    return f"{endpoint}{KEY_SEPARATOR}{encode_params(params)}"


def parse_key(key: str) -> CacheKey:
    endpoint, sep, encoded = key.rpartition(KEY_SEPARATOR)
    if not sep:
        # Not one of ours; treat the whole string as the endpoint.
        return CacheKey(key, "")
    return CacheKey(endpoint, encoded)


def split_segments(path: str) -> list[str]:
    """Path segments of an endpoint, ignoring any query string."""
    path = path.split("?", 1)[0]
    return [s for s in path.split("/") if s]


def endpoint_matches(endpoint: str, pattern: str) -> bool:
    """True if the pattern's segments occur as a contiguous run in the endpoint.

    ``/jobs`` matches ``/jobs``, ``/jobs/recruiter/my-jobs`` and
    ``/student/jobs`` but not ``/jobs-archive``. An empty pattern matches
    every endpoint.
    """
    wanted = split_segments(pattern)
    if not wanted:
        return True
    have = split_segments(endpoint)
    n = len(wanted)
    return any(have[i:i + n] == wanted for i in range(len(have) - n + 1))
