# -*- coding: utf-8 -*-
"""
DeFi plugin registry.

A plugin is anything exposing ``async execute(action, params)``. The registry maps
names to plugins (last registration wins) and forwards dispatch calls; plugins keep
no mutable state so concurrent dispatches to the same plugin are independent.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple, runtime_checkable

from aptos_ai_agent.utils.aptos_client import AptosClient
from aptos_ai_agent.utils.errors import PluginNotFoundError, UnknownActionError
from aptos_ai_agent.utils.logger import get_logger
from aptos_ai_agent.utils.model_decision import Quote

LOGGER = get_logger(__name__)

POOL_MARKER = "LiquidityPool"
# 0.3% swap fee, expressed per mille
FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000
PASSTHROUGH_IMPACT = "0.1%"


class PluginKind(str, Enum):
    LIQUIDITY_POOL = "liquidityPool"


@runtime_checkable
class DeFiPlugin(Protocol):
    async def execute(self, action: str, params: Dict[str, Any]) -> Any:
        ...


class PluginRegistry:
    """Name -> plugin table with a single dispatch entry point."""

    def __init__(self) -> None:
        self._plugins: Dict[str, DeFiPlugin] = {}

    def register(self, name: str, plugin: DeFiPlugin) -> None:
        if name in self._plugins:
            LOGGER.info("Replacing plugin %s", name)
        self._plugins[name] = plugin

    def get(self, name: str) -> Optional[DeFiPlugin]:
        return self._plugins.get(name)

    def names(self) -> List[str]:
        return list(self._plugins)

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)

    def __iter__(self) -> Iterator[str]:
        return iter(self._plugins)

    async def dispatch(self, name: str, action: str, params: Optional[Dict[str, Any]] = None) -> Any:
        plugin = self._plugins.get(name)
        if plugin is None:
            raise PluginNotFoundError(name)
        return await plugin.execute(action, params or {})


def _param(params: Dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in params:
        return params[camel]
    return params.get(snake, default)


def _type_args(resource_type: str) -> List[str]:
    """Top-level generic arguments of a Move struct type string."""
    start, end = resource_type.find("<"), resource_type.rfind(">")
    if start == -1 or end <= start:
        return []
    args, depth, current = [], 0, []
    for ch in resource_type[start + 1:end]:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        if ch == "," and depth == 0:
            args.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    if current:
        args.append("".join(current).strip())
    return args


def _reserve(data: Dict[str, Any], key: str) -> int:
    raw = data.get(key)
    if isinstance(raw, dict):
        raw = raw.get("value")
    if raw is None:
        raise ValueError(f"Pool resource has no {key}")
    return int(raw)


def pool_reserves(pool: Dict[str, Any], from_token: Optional[str] = None) -> Tuple[int, int]:
    """(reserve_in, reserve_out) for a swap starting from `from_token`."""
    data = pool.get("data") or {}
    x, y = _reserve(data, "coin_x_reserve"), _reserve(data, "coin_y_reserve")
    args = _type_args(pool.get("type", ""))
    if from_token and len(args) >= 2 and args[1] == from_token:
        return y, x
    return x, y


def constant_product_quote(amount_in: int, reserve_in: int, reserve_out: int, dex: Optional[str] = None) -> Quote:
    if amount_in <= 0:
        raise ValueError("Swap amount must be positive")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError("Pool has no liquidity")
    amount_with_fee = amount_in * FEE_NUMERATOR
    output = amount_with_fee * reserve_out // (reserve_in * FEE_DENOMINATOR + amount_with_fee)
    impact = Decimal(amount_in) / Decimal(reserve_in + amount_in) * 100
    return Quote(output_amount=str(output), price_impact=f"{impact.quantize(Decimal('0.0001'))}%", dex=dex)


class LiquidityPoolPlugin:
    """Pool lookups and swap quotes for one DEX (or a generic pool when dex is None)."""

    kind = PluginKind.LIQUIDITY_POOL

    def __init__(self, client: AptosClient, dex: Optional[str] = None) -> None:
        self.client = client
        self.dex = dex

    async def execute(self, action: str, params: Dict[str, Any]) -> Any:
        if action == "getPoolInfo":
            return await self.get_pool_info(_param(params, "poolAddress", "pool_address"))
        if action == "calculateSwap":
            return await self.calculate_swap(
                amount=_param(params, "amount", "amount"),
                from_token=_param(params, "fromToken", "from_token"),
                pool_address=_param(params, "poolAddress", "pool_address"),
                dex=params.get("dex") or self.dex,
            )
        raise UnknownActionError(action)

    async def get_pool_info(self, pool_address: str) -> List[Dict[str, Any]]:
        if not pool_address:
            raise ValueError("poolAddress is required")
        resources = await self.client.get_resources(pool_address)
        return [r for r in resources if POOL_MARKER in r.get("type", "")]

    async def calculate_swap(
        self,
        amount: Any,
        from_token: Optional[str] = None,
        pool_address: Optional[str] = None,
        dex: Optional[str] = None,
    ) -> Quote:
        if amount is None:
            raise ValueError("amount is required")
        if not pool_address:
            # no pool to price against: echo the input as the estimate
            return Quote(output_amount=str(amount), price_impact=PASSTHROUGH_IMPACT, dex=dex)

        pools = await self.get_pool_info(pool_address)
        if not pools:
            raise ValueError(f"No {POOL_MARKER} resource at {pool_address}")
        reserve_in, reserve_out = pool_reserves(pools[0], from_token)
        quote = constant_product_quote(int(amount), reserve_in, reserve_out, dex=dex)
        LOGGER.info("Quote %s on %s: out=%s impact=%s", amount, dex or pool_address, quote.output_amount, quote.price_impact)
        return quote


__all__ = [
    "DeFiPlugin",
    "LiquidityPoolPlugin",
    "PluginKind",
    "PluginRegistry",
    "constant_product_quote",
    "pool_reserves",
]
