# -*- coding: utf-8 -*-
"""Environment-driven settings shared by the client factory, the advisor and the bot."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(ROOT_DIR / ".env")

DEFAULT_NODE_URL = "https://fullnode.mainnet.aptoslabs.com/v1"
DEFAULT_MODEL = "openai:gpt-4"
DEFAULT_COIN_TYPE = "0x1::aptos_coin::AptosCoin"
DEFAULT_DEX_PLUGINS: Sequence[str] = ("pancake", "liquidswap")

MIN_TRADE_INTERVAL_MS = 5 * 60 * 1000
TRADE_POLL_INTERVAL_SECONDS = 30.0
MAX_PRICE_IMPACT_PCT = 1.0
TX_HISTORY_LIMIT = 100


def _parse_list(raw: str | None, fallback: Sequence[str]) -> List[str]:
    if not raw:
        return list(fallback)
    return [s.strip() for s in raw.split(",") if s.strip()]


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be numeric, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


@dataclass(frozen=True)
class Settings:
    node_url: str = DEFAULT_NODE_URL
    private_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    dex_plugins: List[str] = field(default_factory=lambda: list(DEFAULT_DEX_PLUGINS))
    market_pools: List[str] = field(default_factory=list)
    min_trade_interval_ms: int = MIN_TRADE_INTERVAL_MS
    poll_interval_seconds: float = TRADE_POLL_INTERVAL_SECONDS
    max_price_impact_pct: float = MAX_PRICE_IMPACT_PCT
    tx_history_limit: int = TX_HISTORY_LIMIT

    @property
    def can_sign(self) -> bool:
        return bool(self.private_key)

    @property
    def can_advise(self) -> bool:
        return bool(self.openai_api_key)


def load_settings() -> Settings:
    """Read settings from the environment (and .env). Optional credentials may be absent."""

    return Settings(
        node_url=os.getenv("APTOS_NODE_URL") or DEFAULT_NODE_URL,
        private_key=os.getenv("APTOS_PRIVATE_KEY") or os.getenv("PRIVATE_KEY") or None,
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        model=os.getenv("AGENT_MODEL") or DEFAULT_MODEL,
        dex_plugins=_parse_list(os.getenv("DEX_PLUGINS"), DEFAULT_DEX_PLUGINS),
        market_pools=_parse_list(os.getenv("MARKET_POOLS"), ()),
        min_trade_interval_ms=_env_int("MIN_TRADE_INTERVAL_MS", MIN_TRADE_INTERVAL_MS),
        poll_interval_seconds=_env_float("TRADE_POLL_INTERVAL_SECONDS", TRADE_POLL_INTERVAL_SECONDS),
        max_price_impact_pct=_env_float("MAX_PRICE_IMPACT_PCT", MAX_PRICE_IMPACT_PCT),
        tx_history_limit=_env_int("TX_HISTORY_LIMIT", TX_HISTORY_LIMIT),
    )


__all__ = ["DEFAULT_COIN_TYPE", "DEFAULT_DEX_PLUGINS", "DEFAULT_MODEL", "Settings", "load_settings"]
