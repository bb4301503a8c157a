# -*- coding: utf-8 -*-
"""
Polling trading bot.

Every cycle gathers market data, asks the model for a trade/no-trade decision,
checks balance and price impact locally, and submits the swap when approved.
Stopping is cooperative: stop() cancels a token that is only looked at between
cycles, so an in-flight node or model call always runs to completion. There is no
timeout on the model call, so one unresponsive request stalls the loop.

Price impact is quoted against `pricing_pool` (the first MARKET_POOLS entry). Without
one the liquidity-pool plugin answers with its flat 0.1% estimate, so the impact
ceiling only bites when a pool is configured.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from aptos_ai_agent.utils.aptos_client import AptosClient
from aptos_ai_agent.utils.completion import CompletionClient, dumps
from aptos_ai_agent.utils.config import Settings, load_settings
from aptos_ai_agent.utils.errors import (
    BotAlreadyRunningError,
    InsufficientBalanceError,
    OperationFailedError,
    PriceImpactTooHighError,
    UninitializedDependencyError,
    UpstreamError,
)
from aptos_ai_agent.utils.logger import get_logger
from aptos_ai_agent.utils.market_data import MarketData, MarketDataProvider, PoolMarketDataProvider, gather_market_data
from aptos_ai_agent.utils.model_decision import DecisionParse, Quote, TradeIntent, parse_trading_decision
from aptos_ai_agent.utils.plugins import LiquidityPoolPlugin, PluginKind, PluginRegistry

log = get_logger(__name__)

EventHandler = Callable[..., Any]


class BotState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class CancellationToken:
    """Set once by stop(); the run loop checks it only at cycle boundaries."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self, timeout: float) -> bool:
        """Sleep up to `timeout` seconds; returns early (True) once cancelled."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True


@dataclass(slots=True)
class TradingStrategy:
    name: str
    description: str
    parameters: Dict[str, Any] = field(default_factory=dict)


def load_strategy(name: str) -> TradingStrategy:
    # only the momentum profile exists; other names reuse its parameters
    return TradingStrategy(
        name=name,
        description="Simple momentum trading strategy",
        parameters={
            "lookbackPeriod": "24h",
            "momentumThreshold": 0.05,
            "maxTradeSize": "1000000000",  # 10 APT
        },
    )


class TradingBot:
    """IDLE/RUNNING polling loop around monitor_and_trade()."""

    def __init__(
        self,
        client: AptosClient,
        completion: CompletionClient,
        strategy: str = "momentum",
        market_data: Optional[MarketDataProvider] = None,
        registry: Optional[PluginRegistry] = None,
        min_trade_interval_ms: int = 5 * 60 * 1000,
        poll_interval: float = 30.0,
        max_price_impact: float = 1.0,
        pricing_plugin: str = PluginKind.LIQUIDITY_POOL.value,
        pricing_pool: Optional[str] = None,
    ) -> None:
        self.client = client
        self.completion = completion
        self.strategy = load_strategy(strategy)
        self.min_trade_interval = timedelta(milliseconds=min_trade_interval_ms)
        self.poll_interval = poll_interval
        self.max_price_impact = max_price_impact
        self.pricing_plugin = pricing_plugin
        self.pricing_pool = pricing_pool
        self.registry = registry if registry is not None else PluginRegistry()
        if pricing_plugin not in self.registry:
            self.registry.register(pricing_plugin, LiquidityPoolPlugin(client))
        self.market_data = market_data or PoolMarketDataProvider(client, self.registry, pools=[], plugin_name=pricing_plugin)

        self.last_trade: Optional[datetime] = None
        self.cnt: int = 0
        self._state = BotState.IDLE
        self._token: Optional[CancellationToken] = None
        # set while no loop is executing; stop() does not wait for the in-flight cycle
        self._loop_idle = asyncio.Event()
        self._loop_idle.set()
        self._listeners: Dict[str, List[EventHandler]] = {}

    @classmethod
    def from_settings(
        cls, client: AptosClient, strategy: str = "momentum", settings: Optional[Settings] = None
    ) -> "TradingBot":
        settings = settings or load_settings()
        completion = CompletionClient(api_key=settings.openai_api_key, model=settings.model)
        registry = PluginRegistry()
        registry.register(PluginKind.LIQUIDITY_POOL.value, LiquidityPoolPlugin(client))
        market = PoolMarketDataProvider(client, registry, settings.market_pools, history_limit=settings.tx_history_limit)
        return cls(
            client,
            completion,
            strategy=strategy,
            market_data=market,
            registry=registry,
            min_trade_interval_ms=settings.min_trade_interval_ms,
            poll_interval=settings.poll_interval_seconds,
            max_price_impact=settings.max_price_impact_pct,
            pricing_pool=settings.market_pools[0] if settings.market_pools else None,
        )

    # ---- events ----
    def on(self, event: str, handler: EventHandler) -> None:
        self._listeners.setdefault(event, []).append(handler)

    def off(self, event: str, handler: EventHandler) -> None:
        handlers = self._listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._listeners.get(event, [])):
            try:
                handler(*args)
            except Exception:
                log.exception("event handler error for %s", event)

    # ---- lifecycle ----
    @property
    def state(self) -> BotState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is BotState.RUNNING

    async def start(self) -> None:
        if self._state is BotState.RUNNING:
            raise BotAlreadyRunningError()
        if not self._loop_idle.is_set():
            log.info("Waiting for the previous cycle to finish before restarting")
            await self._loop_idle.wait()
            if self._state is BotState.RUNNING:
                raise BotAlreadyRunningError()

        token = CancellationToken()
        self._loop_idle.clear()
        self._token = token
        self._state = BotState.RUNNING
        self.emit("started")
        log.info("Trading bot started (strategy=%s, interval=%ss)", self.strategy.name, self.poll_interval)
        try:
            while not token.cancelled:
                self.cnt += 1
                log.info("Cycle %s started", self.cnt)
                try:
                    await self.monitor_and_trade()
                except Exception as exc:
                    log.error("Trading error: %s", exc)
                    self.emit("error", exc)
                if token.cancelled:
                    break
                await token.wait(self.poll_interval)
        finally:
            if self._token is token:
                self._state = BotState.IDLE
            self._loop_idle.set()

    def stop(self) -> None:
        if self._token is not None:
            self._token.cancel()
        self._state = BotState.IDLE
        self.emit("stopped")
        log.info("Trading bot stopped")

    # ---- one cycle ----
    def _debounced(self, now: datetime) -> bool:
        return self.last_trade is not None and now - self.last_trade < self.min_trade_interval

    async def monitor_and_trade(self) -> Optional[str]:
        """Run one cycle; returns the transaction hash when a trade went out."""
        if self._debounced(datetime.now(timezone.utc)):
            log.info("Last trade at %s, inside the minimum interval; skipping", self.last_trade.isoformat())
            return None

        try:
            market = await self.get_market_data()
            parsed = await self.analyze_market(market)
            decision = parsed.decision
            if parsed.ambiguous:
                log.warning("Model output did not map to a decision, not trading: %.200s", decision.reasoning)
                self.emit("ambiguous", parsed)
                return None
            if not decision.should_trade or decision.trade is None:
                log.info("No trade: %.200s", decision.reasoning)
                return None

            tx_hash = await self.execute_trade(decision.trade)
            self.last_trade = datetime.now(timezone.utc)
        except Exception as exc:
            raise OperationFailedError(f"Trading cycle failed: {exc}") from exc

        self.emit("trade", {"tx_hash": tx_hash, "trade": decision.trade, "reasoning": decision.reasoning})
        return tx_hash

    async def get_market_data(self) -> MarketData:
        return await gather_market_data(self.market_data)

    async def analyze_market(self, market: MarketData) -> DecisionParse:
        try:
            text = await self.completion.complete(
                [
                    (
                        "system",
                        f"You are a trading bot using the {self.strategy.name} strategy.\n"
                        f"Strategy parameters: {dumps(self.strategy.parameters)}\n"
                        "Reply with a JSON object: "
                        '{"shouldTrade": bool, "trade": {"protocol", "fromToken", "toToken", "amount", "minOutput"}, '
                        '"reasoning": str}.',
                    ),
                    ("user", f"Analyze market data and suggest trades:\n{dumps(market.as_dict(), indent=2)}"),
                ]
            )
            parsed = parse_trading_decision(text)
            if parsed.decision.should_trade and parsed.decision.trade is not None:
                await self.validate_trade(parsed.decision.trade)
        except Exception as exc:
            raise OperationFailedError(f"Market analysis failed: {exc}") from exc
        return parsed

    async def validate_trade(self, trade: TradeIntent) -> Quote:
        """Balance and price-impact checks; raises before anything is submitted."""
        address = self.client.address
        if address is None:
            raise UninitializedDependencyError("Account not initialized. Please provide private key.")

        lookup = await self.client.lookup_balance(address, trade.from_token)
        if not lookup.ok:
            raise UpstreamError(f"Balance check failed: {lookup.error}") from lookup.error
        balance, required = int(lookup.value), int(trade.amount)
        if balance < required:
            raise InsufficientBalanceError(balance, required)

        params = {"fromToken": trade.from_token, "toToken": trade.to_token, "amount": trade.amount}
        if self.pricing_pool:
            params["poolAddress"] = self.pricing_pool
        result = await self.registry.dispatch(self.pricing_plugin, "calculateSwap", params)
        quote = result if isinstance(result, Quote) else Quote.model_validate(result)
        if quote.price_impact_pct > self.max_price_impact:
            raise PriceImpactTooHighError(quote.price_impact_pct, self.max_price_impact)
        return quote

    async def execute_trade(self, trade: TradeIntent) -> str:
        try:
            return await self.client.submit_transaction(trade.to_payload())
        except Exception as exc:
            raise OperationFailedError(f"Trade execution failed: {exc}") from exc


__all__ = ["BotState", "CancellationToken", "TradingBot", "TradingStrategy", "load_strategy"]
