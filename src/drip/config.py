"""Configuration resolution for the Drip clients."""

from __future__ import annotations

import os

from .errors import DripMissingCredentialError
from .models import DripConfig, KeyType

API_KEY_ENV = "DRIP_API_KEY"
BASE_URL_ENV = "DRIP_BASE_URL"

DEFAULT_BASE_URL = "https://drip-app-hlunj.ondigitalocean.app/v1"
DEFAULT_TIMEOUT_MS = 30_000

_KEY_PREFIXES = {
    "sk_": KeyType.SECRET,
    "pk_": KeyType.PUBLIC,
}


def _env_or(name: str, fallback: str | None) -> str | None:
    value = os.environ.get(name)
    return value if value else fallback


def detect_key_type(api_key: str) -> KeyType:
    """Classify an API key by its 3-character prefix."""
    return _KEY_PREFIXES.get(api_key[:3], KeyType.UNKNOWN)


def resolve_config(
    api_key: str | None = None,
    base_url: str | None = None,
    timeout_ms: int | None = None,
) -> DripConfig:
    """
    Resolve client configuration once.

    Explicit arguments win over the environment (``DRIP_API_KEY``,
    ``DRIP_BASE_URL``); the base URL falls back to production.

    Args:
        api_key: API key. Blank values count as missing.
        base_url: API base URL. Trailing slashes are stripped.
        timeout_ms: Per-request timeout in milliseconds. Non-positive
            values fall back to 30000.

    Returns:
        The immutable DripConfig.

    Raises:
        DripMissingCredentialError: If no usable API key is found.
    """
    key = api_key or _env_or(API_KEY_ENV, None)
    if not key or not key.strip():
        raise DripMissingCredentialError()

    url = (base_url or _env_or(BASE_URL_ENV, DEFAULT_BASE_URL)).rstrip("/")
    if not url:
        url = DEFAULT_BASE_URL

    if timeout_ms is None or timeout_ms <= 0:
        timeout_ms = DEFAULT_TIMEOUT_MS

    return DripConfig(
        api_key=key,
        base_url=url,
        timeout_ms=timeout_ms,
        key_type=detect_key_type(key),
    )
