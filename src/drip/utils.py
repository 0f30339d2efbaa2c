"""Helpers shared by the sync and async Drip clients."""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any

_DJB2_SEED = 5381
_MASK_64 = 0xFFFFFFFFFFFFFFFF


def _format_quantity(quantity: float) -> str:
    # Shortest general form: 1500 -> "1500", 0.5 -> "0.5"
    return format(float(quantity), "g")


def generate_idempotency_key(
    prefix: str,
    a: str,
    b: str,
    quantity: float = 0,
) -> str:
    """
    Derive a deterministic idempotency key.

    The key is a 64-bit djb2 hash over ``"{prefix}:{a}:{b}:{quantity}"``,
    rendered as ``"{prefix}_{hex}"``. Identical inputs always give the same
    key, so a retried call is deduplicated by the server. This is a dedup
    aid, not a security token.

    Args:
        prefix: Operation prefix (e.g. ``"track"``, ``"evt"``, ``"run"``).
        a: First identifier (customer or run ID).
        b: Second identifier (meter or event type).
        quantity: Numeric component (quantity or event index).

    Returns:
        The idempotency key.

    Example:
        >>> generate_idempotency_key("track", "cus_123", "tokens", 1500)
        'track_...'
    """
    key_input = f"{prefix}:{a}:{b}:{_format_quantity(quantity)}"
    value = _DJB2_SEED
    for byte in key_input.encode("utf-8"):
        value = ((value << 5) + value + byte) & _MASK_64
    return f"{prefix}_{value:x}"


def metadata_from_json(value: Any) -> dict[str, str]:
    """Convert a decoded JSON object to string metadata.

    Non-string values are kept as their compact JSON text.
    """
    if not isinstance(value, Mapping):
        return {}
    return {
        str(k): v if isinstance(v, str) else json.dumps(v, separators=(",", ":"))
        for k, v in value.items()
    }


def _finite_or_none(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, Mapping):
        return {k: _finite_or_none(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite_or_none(v) for v in value]
    return value


def encode_json_body(body: Any) -> bytes:
    """Serialize a request body to JSON bytes.

    NaN and infinite floats have no JSON form and are written as ``null``.
    """
    return json.dumps(_finite_or_none(body), separators=(",", ":")).encode("utf-8")
