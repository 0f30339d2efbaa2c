"""Tests for client configuration resolution."""

from __future__ import annotations

import pytest
import respx

from drip import (
    DEFAULT_BASE_URL,
    Drip,
    DripAuthenticationError,
    DripMissingCredentialError,
    ErrorKind,
    KeyType,
    detect_key_type,
    resolve_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DRIP_API_KEY", raising=False)
    monkeypatch.delenv("DRIP_BASE_URL", raising=False)


class TestCredentialResolution:
    @respx.mock
    def test_missing_key_raises(self) -> None:
        with pytest.raises(DripMissingCredentialError) as exc_info:
            Drip()
        assert respx.calls.call_count == 0
        assert exc_info.value.kind is ErrorKind.MISSING_CREDENTIAL
        assert exc_info.value.status_code == 0
        assert exc_info.value.code == "NO_API_KEY"

    def test_missing_key_is_an_authentication_error(self) -> None:
        with pytest.raises(DripAuthenticationError):
            resolve_config()

    def test_empty_env_var_counts_as_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DRIP_API_KEY", "")
        with pytest.raises(DripMissingCredentialError):
            resolve_config()

    def test_whitespace_key_rejected(self) -> None:
        with pytest.raises(DripMissingCredentialError):
            resolve_config(api_key="   ")

    def test_key_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DRIP_API_KEY", "sk_test_env")
        assert resolve_config().api_key == "sk_test_env"

    def test_explicit_key_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DRIP_API_KEY", "sk_test_env")
        assert resolve_config(api_key="pk_test_explicit").api_key == "pk_test_explicit"

    def test_key_not_in_repr(self) -> None:
        config = resolve_config(api_key="sk_test_secret_value")
        assert "sk_test_secret_value" not in repr(config)


class TestBaseUrl:
    def test_default(self) -> None:
        assert resolve_config(api_key="sk_x").base_url == DEFAULT_BASE_URL

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DRIP_BASE_URL", "http://localhost:3001/v1")
        assert resolve_config(api_key="sk_x").base_url == "http://localhost:3001/v1"

    def test_trailing_slashes_stripped(self) -> None:
        config = resolve_config(api_key="sk_x", base_url="http://localhost:3001/v1///")
        assert config.base_url == "http://localhost:3001/v1"

    @pytest.mark.parametrize("value", ["/", "///"])
    def test_slash_only_falls_back_to_default(self, value: str) -> None:
        assert resolve_config(api_key="sk_x", base_url=value).base_url == DEFAULT_BASE_URL

    def test_slash_only_env_falls_back_to_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DRIP_BASE_URL", "/")
        assert resolve_config(api_key="sk_x").base_url == DEFAULT_BASE_URL


class TestTimeout:
    def test_default(self) -> None:
        config = resolve_config(api_key="sk_x")
        assert config.timeout_ms == 30000
        assert config.timeout == 30.0

    @pytest.mark.parametrize("value", [0, -1])
    def test_non_positive_falls_back(self, value: int) -> None:
        assert resolve_config(api_key="sk_x", timeout_ms=value).timeout_ms == 30000

    def test_explicit(self) -> None:
        assert resolve_config(api_key="sk_x", timeout_ms=1500).timeout == 1.5


class TestKeyType:
    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("sk_live_abc", KeyType.SECRET),
            ("sk_test_abc", KeyType.SECRET),
            ("pk_live_abc", KeyType.PUBLIC),
            ("drip_sk_abc", KeyType.UNKNOWN),
            ("sk", KeyType.UNKNOWN),
            ("x", KeyType.UNKNOWN),
        ],
    )
    def test_detect(self, key: str, expected: KeyType) -> None:
        assert detect_key_type(key) is expected

    def test_client_exposes_key_type(self) -> None:
        client = Drip(api_key="pk_live_abc", base_url="http://localhost:3001/v1")
        try:
            assert client.key_type is KeyType.PUBLIC
            assert client.config.key_type is KeyType.PUBLIC
        finally:
            client.close()
