# -*- coding: utf-8 -*-
"""DeFi advisor: portfolio analysis, cross-DEX swap suggestions and protocol risk notes."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from aptos_ai_agent.utils.aptos_client import AptosClient
from aptos_ai_agent.utils.completion import CompletionClient, dumps
from aptos_ai_agent.utils.config import DEFAULT_DEX_PLUGINS, Settings, load_settings
from aptos_ai_agent.utils.errors import OperationFailedError
from aptos_ai_agent.utils.logger import get_logger
from aptos_ai_agent.utils.model_decision import Quote, RiskLevel, determine_risk_level
from aptos_ai_agent.utils.plugins import LiquidityPoolPlugin, PluginKind, PluginRegistry
from aptos_ai_agent.utils.portfolio import (
    filter_positions,
    format_amount,
    select_best,
    sum_position_value,
    summarize_transactions,
)

log = get_logger(__name__)

RISK_ANALYST_PROMPT = "You are a DeFi risk analyst specializing in Aptos protocols."
TX_PATTERN_PROMPT = "Analyze these blockchain transactions for patterns and insights."
ADVICE_PROMPT = "Generate DeFi investment advice based on portfolio analysis."
SWAP_ADVICE_PROMPT = "Analyze swap quotes and provide trading recommendations."


@dataclass(slots=True)
class PortfolioAnalysis:
    positions: List[Dict[str, Any]]
    history: List[Dict[str, Any]]
    advice: str
    total_value: int = 0
    patterns: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class SwapSuggestion:
    recommendation: str
    quotes: List[Quote]
    best: Quote


@dataclass(slots=True)
class RiskAssessment:
    risk_level: RiskLevel
    details: str


async def static_protocol_data(protocol: str) -> Dict[str, Any]:
    """Placeholder protocol profile; a real source would aggregate TVL, audits and incidents."""
    return {"protocol": protocol, "tvl": "1000000", "age": "6 months", "audited": True, "incidents": []}


class DeFiAdvisorAgent:
    """Aggregates on-chain reads and plugin quotes, then asks the model for advice."""

    def __init__(
        self,
        client: AptosClient,
        completion: CompletionClient,
        registry: Optional[PluginRegistry] = None,
        dex_plugins: Sequence[str] = DEFAULT_DEX_PLUGINS,
        history_limit: int = 100,
        protocol_data=static_protocol_data,
    ) -> None:
        self.client = client
        self.completion = completion
        self.dex_plugins = list(dex_plugins)
        self.history_limit = history_limit
        self.protocol_data = protocol_data
        self.registry = registry if registry is not None else PluginRegistry()
        self._initialize_plugins()

    @classmethod
    def from_settings(cls, client: AptosClient, settings: Optional[Settings] = None) -> "DeFiAdvisorAgent":
        settings = settings or load_settings()
        completion = CompletionClient(api_key=settings.openai_api_key, model=settings.model)
        return cls(client, completion, dex_plugins=settings.dex_plugins, history_limit=settings.tx_history_limit)

    def _initialize_plugins(self) -> None:
        if PluginKind.LIQUIDITY_POOL.value not in self.registry:
            self.registry.register(PluginKind.LIQUIDITY_POOL.value, LiquidityPoolPlugin(self.client))
        for dex in self.dex_plugins:
            if dex not in self.registry:
                self.registry.register(dex, LiquidityPoolPlugin(self.client, dex=dex))

    # ---- portfolio ----
    async def analyze_portfolio(self, address: str) -> PortfolioAnalysis:
        try:
            resources, transactions = await asyncio.gather(
                self.client.get_resources(address),
                self.client.get_transaction_history(address, limit=self.history_limit),
            )
            positions = filter_positions(resources)
            total_value = sum_position_value(positions)
            patterns = summarize_transactions(transactions)
            log.info("Portfolio %s: %d DeFi positions, total value %s", address, len(positions), total_value)

            advice = await self.generate_advice(positions, transactions, patterns, total_value)
        except Exception as exc:
            raise OperationFailedError(f"Portfolio analysis failed: {exc}") from exc

        return PortfolioAnalysis(
            positions=positions,
            history=transactions,
            advice=advice,
            total_value=total_value,
            patterns=patterns,
        )

    async def generate_advice(
        self,
        positions: List[Dict[str, Any]],
        transactions: List[Dict[str, Any]],
        patterns: Dict[str, Any],
        total_value: int,
    ) -> str:
        user = (
            f"Positions: {dumps(positions)}\n"
            f"Transactions: {dumps(transactions)}\n"
            f"Patterns: {dumps(patterns)}\n"
            f"Total Value: {format_amount(total_value)}"
        )
        return await self.completion.ask(ADVICE_PROMPT, user)

    async def analyze_transaction_history(self, address: str) -> str:
        try:
            transactions = await self.client.get_transaction_history(address, limit=self.history_limit)
            return await self.completion.ask(TX_PATTERN_PROMPT, f"Transaction history: {dumps(transactions, indent=2)}")
        except Exception as exc:
            raise OperationFailedError(f"Transaction analysis failed: {exc}") from exc

    # ---- swaps ----
    async def collect_quotes(self, from_token: str, to_token: str, amount: str) -> List[Quote]:
        results = await asyncio.gather(
            *(
                self.registry.dispatch(
                    dex,
                    "calculateSwap",
                    {"dex": dex, "fromToken": from_token, "toToken": to_token, "amount": amount},
                )
                for dex in self.dex_plugins
            )
        )
        return [r if isinstance(r, Quote) else Quote.model_validate(r) for r in results]

    async def suggest_optimal_swap(self, from_token: str, to_token: str, amount: str) -> SwapSuggestion:
        try:
            quotes = await self.collect_quotes(from_token, to_token, amount)
            best = select_best(quotes)
            user = (
                f"Quotes: {dumps([q.model_dump(by_alias=True) for q in quotes])}\n"
                f"Best Quote: {dumps(best.model_dump(by_alias=True))}\n"
                f"From Token: {from_token}\n"
                f"To Token: {to_token}\n"
                f"Amount: {amount}"
            )
            recommendation = await self.completion.ask(SWAP_ADVICE_PROMPT, user)
        except Exception as exc:
            raise OperationFailedError(f"Swap analysis failed: {exc}") from exc
        return SwapSuggestion(recommendation=recommendation, quotes=quotes, best=best)

    # ---- risk ----
    async def get_risk_assessment(self, protocol: str) -> RiskAssessment:
        try:
            data = await self.protocol_data(protocol)
            user = (
                "Analyze the risk level of this protocol:\n"
                f"TVL: {data.get('tvl')}\n"
                f"Age: {data.get('age')}\n"
                f"Audit Status: {data.get('audited')}\n"
                f"Past Incidents: {data.get('incidents')}"
            )
            details = await self.completion.ask(RISK_ANALYST_PROMPT, user)
        except Exception as exc:
            raise OperationFailedError(f"Risk assessment failed: {exc}") from exc
        return RiskAssessment(risk_level=determine_risk_level(details), details=details)


__all__ = ["DeFiAdvisorAgent", "PortfolioAnalysis", "RiskAssessment", "SwapSuggestion", "static_protocol_data"]
