"""Tests for DeFiAdvisorAgent: portfolio analysis, swap suggestion and risk assessment."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from aptos_ai_agent.defi_advisor import DeFiAdvisorAgent
from aptos_ai_agent.utils.completion import CompletionClient
from aptos_ai_agent.utils.errors import (
    OperationFailedError,
    PluginNotFoundError,
    UninitializedDependencyError,
)
from aptos_ai_agent.utils.model_decision import Quote
from aptos_ai_agent.utils.plugins import LiquidityPoolPlugin, PluginRegistry
from conftest import APT, USDC, FakeChain

LP = {"type": "0x1::LiquidityPool::LP", "data": {"value": "100"}}
COIN = {"type": "0x1::Coin", "data": {}}
HISTORY = [{"hash": "0x1", "success": True, "gas_used": "5", "payload": {"function": "0x1::coin::transfer"}}]


def _quoting_plugin(amount):
    plugin = MagicMock()
    plugin.execute = AsyncMock(return_value=Quote(outputAmount=amount, priceImpact="0.2%"))
    return plugin


class TestAnalyzePortfolio:
    @pytest.mark.asyncio
    async def test_returns_positions_history_and_advice(self, make_completion):
        chain = FakeChain(resources=[LP, COIN], history=HISTORY)
        completion = make_completion("Diversify into stable pools.")
        advisor = DeFiAdvisorAgent(chain, completion, history_limit=50)

        analysis = await advisor.analyze_portfolio("0xa11ce")

        assert analysis.positions == [LP]
        assert analysis.total_value == 100
        assert analysis.history == HISTORY
        assert analysis.patterns["count"] == 1
        assert analysis.advice == "Diversify into stable pools."
        chain.get_transaction_history.assert_awaited_once_with("0xa11ce", limit=50)

        messages = completion._chat_model.ainvoke.call_args.args[0]
        assert "Total Value: 0.000001" in messages[1].content
        assert "LiquidityPool" in messages[1].content

    @pytest.mark.asyncio
    async def test_any_failure_aborts_with_prefix(self, make_completion):
        chain = FakeChain(resources=[LP])
        chain.get_transaction_history.side_effect = RuntimeError("node timeout")
        completion = make_completion("unused")
        advisor = DeFiAdvisorAgent(chain, completion)

        with pytest.raises(OperationFailedError, match="Portfolio analysis failed: node timeout"):
            await advisor.analyze_portfolio("0xa11ce")

        completion._chat_model.ainvoke.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        advisor = DeFiAdvisorAgent(FakeChain(resources=[LP]), CompletionClient(api_key=None))

        with pytest.raises(OperationFailedError) as exc_info:
            await advisor.analyze_portfolio("0xa11ce")

        assert isinstance(exc_info.value.__cause__, UninitializedDependencyError)


class TestSuggestOptimalSwap:
    @pytest.mark.asyncio
    async def test_picks_first_maximum(self, make_completion):
        registry = PluginRegistry()
        registry.register("a", _quoting_plugin("900"))
        registry.register("b", _quoting_plugin("950"))
        registry.register("c", _quoting_plugin("950"))
        advisor = DeFiAdvisorAgent(
            FakeChain(), make_completion("Use b."), registry=registry, dex_plugins=["a", "b", "c"]
        )

        suggestion = await advisor.suggest_optimal_swap(APT, USDC, "1000")

        assert [q.output_amount for q in suggestion.quotes] == ["900", "950", "950"]
        assert suggestion.best is suggestion.quotes[1]
        assert suggestion.recommendation == "Use b."
        registry.get("a").execute.assert_awaited_once_with(
            "calculateSwap", {"dex": "a", "fromToken": APT, "toToken": USDC, "amount": "1000"}
        )

    @pytest.mark.asyncio
    async def test_default_dex_plugins_registered(self, make_completion):
        advisor = DeFiAdvisorAgent(FakeChain(), make_completion("ok"))

        assert {"liquidityPool", "pancake", "liquidswap"} <= set(advisor.registry.names())
        assert isinstance(advisor.registry.get("pancake"), LiquidityPoolPlugin)

        suggestion = await advisor.suggest_optimal_swap(APT, USDC, "1000")

        assert suggestion.best.dex == "pancake"

    @pytest.mark.asyncio
    async def test_unregistered_dex_fails(self, make_completion):
        registry = PluginRegistry()
        advisor = DeFiAdvisorAgent(FakeChain(), make_completion("x"), registry=registry, dex_plugins=[])
        advisor.dex_plugins = ["ghost"]

        with pytest.raises(OperationFailedError, match="Swap analysis failed") as exc_info:
            await advisor.suggest_optimal_swap(APT, USDC, "1")

        assert isinstance(exc_info.value.__cause__, PluginNotFoundError)


class TestRiskAssessment:
    @pytest.mark.asyncio
    async def test_classifies_model_text(self, make_completion):
        advisor = DeFiAdvisorAgent(FakeChain(), make_completion("Audited, but the pools look unstable."))

        assessment = await advisor.get_risk_assessment("liquidswap")

        assert assessment.risk_level == "HIGH"
        assert "unstable" in assessment.details

    @pytest.mark.asyncio
    async def test_protocol_data_source_is_used(self, make_completion):
        source = AsyncMock(return_value={"tvl": "42", "age": "2 years", "audited": True, "incidents": []})
        completion = make_completion("An established protocol.")
        advisor = DeFiAdvisorAgent(FakeChain(), completion, protocol_data=source)

        assessment = await advisor.get_risk_assessment("thala")

        assert assessment.risk_level == "LOW"
        source.assert_awaited_once_with("thala")
        assert "TVL: 42" in completion._chat_model.ainvoke.call_args.args[0][1].content


@pytest.mark.asyncio
async def test_transaction_history_analysis(make_completion):
    chain = FakeChain(history=HISTORY)
    advisor = DeFiAdvisorAgent(chain, make_completion("Mostly transfers."))

    assert await advisor.analyze_transaction_history("0xa11ce") == "Mostly transfers."
