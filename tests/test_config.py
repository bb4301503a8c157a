"""Tests for environment settings."""

import pytest

from aptos_ai_agent.utils.config import DEFAULT_NODE_URL, load_settings

ENV_VARS = [
    "APTOS_NODE_URL",
    "APTOS_PRIVATE_KEY",
    "PRIVATE_KEY",
    "OPENAI_API_KEY",
    "AGENT_MODEL",
    "DEX_PLUGINS",
    "MARKET_POOLS",
    "MIN_TRADE_INTERVAL_MS",
    "TRADE_POLL_INTERVAL_SECONDS",
    "MAX_PRICE_IMPACT_PCT",
    "TX_HISTORY_LIMIT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_credentials():
    settings = load_settings()

    assert settings.node_url == DEFAULT_NODE_URL
    assert settings.private_key is None
    assert settings.openai_api_key is None
    assert not settings.can_sign
    assert not settings.can_advise
    assert settings.dex_plugins == ["pancake", "liquidswap"]
    assert settings.market_pools == []
    assert settings.min_trade_interval_ms == 300000
    assert settings.max_price_impact_pct == 1.0


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("APTOS_NODE_URL", "https://fullnode.testnet.aptoslabs.com/v1")
    monkeypatch.setenv("PRIVATE_KEY", "0xabc")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("DEX_PLUGINS", " thala , cellana,, ")
    monkeypatch.setenv("MARKET_POOLS", "0xpool1,0xpool2")
    monkeypatch.setenv("MIN_TRADE_INTERVAL_MS", "60000")
    monkeypatch.setenv("TRADE_POLL_INTERVAL_SECONDS", "5.5")

    settings = load_settings()

    assert settings.node_url.endswith("testnet.aptoslabs.com/v1")
    assert settings.private_key == "0xabc"
    assert settings.can_sign and settings.can_advise
    assert settings.dex_plugins == ["thala", "cellana"]
    assert settings.market_pools == ["0xpool1", "0xpool2"]
    assert settings.min_trade_interval_ms == 60000
    assert settings.poll_interval_seconds == 5.5


def test_aptos_private_key_takes_precedence(monkeypatch):
    monkeypatch.setenv("PRIVATE_KEY", "0xold")
    monkeypatch.setenv("APTOS_PRIVATE_KEY", "0xnew")

    assert load_settings().private_key == "0xnew"


def test_bad_number_is_reported(monkeypatch):
    monkeypatch.setenv("MAX_PRICE_IMPACT_PCT", "one percent")

    with pytest.raises(ValueError, match="MAX_PRICE_IMPACT_PCT"):
        load_settings()
