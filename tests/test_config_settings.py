import pytest
from pydantic import ValidationError

from defi_agent.config import Settings


def test_defaults(monkeypatch):
    """Defaults match the documented quote and cache lifetimes."""

    for name in ("QUOTE_TTL_SECONDS", "BALANCE_TOLERANCE_PERCENTAGE", "RPC_URLS", "ENABLED_NETWORKS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.quote_ttl_seconds == 300
    assert settings.token_cache_ttl_seconds == 1800
    assert settings.balance_tolerance_percentage == 0.5
    assert settings.default_slippage == 0.5
    assert settings.configured_networks == []


def test_rpc_urls_from_env(monkeypatch):
    """RPC URLs load from a JSON env var with network names lowercased."""

    monkeypatch.setenv("RPC_URLS", '{"BNB": "https://bsc.test", "Solana": "https://sol.test", "base": ""}')
    monkeypatch.delenv("ENABLED_NETWORKS", raising=False)

    settings = Settings(_env_file=None)

    assert settings.rpc_urls == {"bnb": "https://bsc.test", "solana": "https://sol.test"}
    assert settings.configured_networks == ["bnb", "solana"]


def test_enabled_networks_override(monkeypatch):
    """An explicit network list wins over the RPC URL keys."""

    monkeypatch.setenv("RPC_URLS", '{"bnb": "https://bsc.test", "solana": "https://sol.test"}')
    monkeypatch.setenv("ENABLED_NETWORKS", '["BNB"]')

    settings = Settings(_env_file=None)

    assert settings.configured_networks == ["bnb"]


def test_tolerance_bounds(monkeypatch):
    """Tolerance must stay a percentage below 100."""

    monkeypatch.setenv("BALANCE_TOLERANCE_PERCENTAGE", "150")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
