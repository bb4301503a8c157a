# -*- coding: utf-8 -*-
"""
Market data gathering for the trading loop.

Three independent reads (prices, volumes, liquidity depth) are fanned out and joined
into one MarketData package that goes into each decision prompt.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Protocol, Sequence

from aptos_ai_agent.utils.aptos_client import AptosClient
from aptos_ai_agent.utils.errors import OperationFailedError
from aptos_ai_agent.utils.plugins import PluginKind, PluginRegistry, pool_reserves
from aptos_ai_agent.utils.portfolio import summarize_transactions


@dataclass(slots=True)
class MarketData:
    prices: Dict[str, Any]
    volumes: Dict[str, Any]
    liquidity_depth: Dict[str, Any]
    timestamp: str

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class MarketDataProvider(Protocol):
    async def fetch_prices(self) -> Dict[str, Any]:
        ...

    async def fetch_volumes(self) -> Dict[str, Any]:
        ...

    async def fetch_liquidity(self) -> Dict[str, Any]:
        ...


class PoolMarketDataProvider:
    """Reads a fixed set of pool accounts: reserves give prices and depth, recent txs give volume."""

    def __init__(
        self,
        client: AptosClient,
        registry: PluginRegistry,
        pools: Sequence[str],
        plugin_name: str = PluginKind.LIQUIDITY_POOL.value,
        history_limit: int = 100,
    ) -> None:
        self.client = client
        self.registry = registry
        self.pools = list(pools)
        self.plugin_name = plugin_name
        self.history_limit = history_limit
        self._inflight: Optional[asyncio.Future] = None

    async def _pool_resources(self) -> Dict[str, Dict[str, Any]]:
        # prices and liquidity are gathered together; both await one read of the pools
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._read_pools())
            self._inflight.add_done_callback(self._clear_inflight)
        return await self._inflight

    def _clear_inflight(self, _future: asyncio.Future) -> None:
        self._inflight = None

    async def _read_pools(self) -> Dict[str, Dict[str, Any]]:
        infos = await asyncio.gather(
            *(self.registry.dispatch(self.plugin_name, "getPoolInfo", {"poolAddress": p}) for p in self.pools)
        )
        return {pool: info[0] for pool, info in zip(self.pools, infos) if info}

    async def fetch_prices(self) -> Dict[str, Any]:
        prices: Dict[str, Any] = {}
        for pool, resource in (await self._pool_resources()).items():
            reserve_x, reserve_y = pool_reserves(resource)
            if reserve_x > 0:
                prices[pool] = {"pair": resource.get("type"), "price": str(Decimal(reserve_y) / Decimal(reserve_x))}
        return prices

    async def fetch_volumes(self) -> Dict[str, Any]:
        histories = await asyncio.gather(
            *(self.client.get_transaction_history(p, limit=self.history_limit) for p in self.pools)
        )
        volumes: Dict[str, Any] = {}
        for pool, history in zip(self.pools, histories):
            summary = summarize_transactions(history)
            volumes[pool] = {"tx_count": summary["count"], "gas_used": summary["gas_used"], "last_seen": summary["last_seen"]}
        return volumes

    async def fetch_liquidity(self) -> Dict[str, Any]:
        depth: Dict[str, Any] = {}
        for pool, resource in (await self._pool_resources()).items():
            reserve_x, reserve_y = pool_reserves(resource)
            depth[pool] = {"reserve_x": str(reserve_x), "reserve_y": str(reserve_y)}
        return depth


async def gather_market_data(provider: MarketDataProvider, now: Optional[datetime] = None) -> MarketData:
    """Fetch the three feeds concurrently; the first failure aborts the whole read."""
    try:
        prices, volumes, liquidity = await asyncio.gather(
            provider.fetch_prices(),
            provider.fetch_volumes(),
            provider.fetch_liquidity(),
        )
    except Exception as exc:
        raise OperationFailedError(f"Failed to fetch market data: {exc}") from exc

    return MarketData(
        prices=prices,
        volumes=volumes,
        liquidity_depth=liquidity,
        timestamp=(now or datetime.now(timezone.utc)).isoformat(),
    )


__all__ = ["MarketData", "MarketDataProvider", "PoolMarketDataProvider", "gather_market_data"]
