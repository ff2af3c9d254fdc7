"""
Deterministic JSON serialization for cache keys.

Two requests that canonicalize to the same parameters must hash to the same
key, regardless of dict ordering or whitespace.
"""

import hashlib
import json
from typing import Any, Mapping


def canonical_dumps(value: Any) -> str:
    """Return JSON with sorted keys, tight separators and ASCII-only output."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def request_fingerprint(flow_name: str, params: Mapping[str, Any]) -> str:
    """`<flow_name>:<sha256 of canonical params>`; flows never share keys."""
    digest = hashlib.sha256(canonical_dumps(dict(params)).encode("utf-8")).hexdigest()
    return f"{flow_name}:{digest}"
