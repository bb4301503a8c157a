"""Tests for the plugin registry and the liquidity pool plugin."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from aptos_ai_agent.utils.errors import PluginNotFoundError, UnknownActionError
from aptos_ai_agent.utils.model_decision import Quote
from aptos_ai_agent.utils.plugins import (
    LiquidityPoolPlugin,
    PluginKind,
    PluginRegistry,
    constant_product_quote,
    pool_reserves,
)
from conftest import APT, USDC, FakeChain

POOL_TYPE = f"0xdex::liquidity_pool::LiquidityPool<{APT}, {USDC}, 0xdex::curves::Uncorrelated>"
POOL = {
    "type": POOL_TYPE,
    "data": {"coin_x_reserve": {"value": "1000000"}, "coin_y_reserve": {"value": "2000000"}},
}


@pytest.fixture
def registry():
    reg = PluginRegistry()
    reg.register(PluginKind.LIQUIDITY_POOL.value, LiquidityPoolPlugin(FakeChain(resources=[POOL])))
    return reg


class TestRegistry:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["calculateSwap", "getPoolInfo", "unknownAction"])
    async def test_unregistered_name_is_not_found(self, registry, action):
        with pytest.raises(PluginNotFoundError, match="Plugin pancake not found"):
            await registry.dispatch("pancake", action, {"amount": "1"})

    @pytest.mark.asyncio
    async def test_unknown_action_on_registered_plugin(self, registry):
        with pytest.raises(UnknownActionError, match="Unknown action: unknownAction"):
            await registry.dispatch("liquidityPool", "unknownAction", {})

    @pytest.mark.asyncio
    async def test_last_registration_wins(self):
        reg = PluginRegistry()
        first, second = MagicMock(), MagicMock()
        first.execute = AsyncMock(return_value="first")
        second.execute = AsyncMock(return_value="second")

        reg.register("dex", first)
        reg.register("dex", second)

        assert await reg.dispatch("dex", "anything", {}) == "second"
        first.execute.assert_not_awaited()
        assert reg.names() == ["dex"]
        assert len(reg) == 1

    @pytest.mark.asyncio
    async def test_forwards_action_and_params(self):
        reg = PluginRegistry()
        plugin = MagicMock()
        plugin.execute = AsyncMock(return_value={"ok": True})
        reg.register("custom", plugin)

        result = await reg.dispatch("custom", "doThing", {"x": 1})

        assert result == {"ok": True}
        plugin.execute.assert_awaited_once_with("doThing", {"x": 1})

    @pytest.mark.asyncio
    async def test_concurrent_dispatch(self, registry):
        quotes = await asyncio.gather(
            registry.dispatch("liquidityPool", "calculateSwap", {"amount": "10"}),
            registry.dispatch("liquidityPool", "calculateSwap", {"amount": "20"}),
        )

        assert [q.output_amount for q in quotes] == ["10", "20"]


class TestLiquidityPoolPlugin:
    @pytest.mark.asyncio
    async def test_pool_info_keeps_pool_resources(self):
        chain = FakeChain(resources=[POOL, {"type": f"0x1::coin::CoinStore<{APT}>", "data": {}}])
        plugin = LiquidityPoolPlugin(chain)

        info = await plugin.execute("getPoolInfo", {"poolAddress": "0xdex"})

        assert info == [POOL]
        chain.get_resources.assert_awaited_once_with("0xdex")

    @pytest.mark.asyncio
    async def test_swap_without_pool_echoes_amount(self):
        plugin = LiquidityPoolPlugin(FakeChain(), dex="pancake")

        quote = await plugin.execute("calculateSwap", {"fromToken": APT, "toToken": USDC, "amount": "1000"})

        assert quote == Quote(output_amount="1000", price_impact="0.1%", dex="pancake")

    @pytest.mark.asyncio
    async def test_swap_against_pool_reserves(self):
        plugin = LiquidityPoolPlugin(FakeChain(resources=[POOL]))

        quote = await plugin.execute(
            "calculateSwap", {"poolAddress": "0xdex", "fromToken": APT, "toToken": USDC, "amount": "1000"}
        )

        assert quote.output_amount == "1992"
        assert quote.price_impact == "0.0999%"

    @pytest.mark.asyncio
    async def test_missing_pool_raises(self):
        plugin = LiquidityPoolPlugin(FakeChain(resources=[]))

        with pytest.raises(ValueError):
            await plugin.execute("calculateSwap", {"poolAddress": "0xdex", "amount": "1"})


def test_reserves_follow_swap_direction():
    assert pool_reserves(POOL, APT) == (1000000, 2000000)
    assert pool_reserves(POOL, USDC) == (2000000, 1000000)


def test_constant_product_rejects_empty_pool():
    with pytest.raises(ValueError):
        constant_product_quote(10, 0, 100)
