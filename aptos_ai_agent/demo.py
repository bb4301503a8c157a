# -*- coding: utf-8 -*-
"""Console walkthrough: account read, advisor, one trading cycle, plugin calls."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from aptos_ai_agent.auto_trade import TradingBot
from aptos_ai_agent.defi_advisor import DeFiAdvisorAgent
from aptos_ai_agent.utils.completion import dumps
from aptos_ai_agent.utils.config import DEFAULT_COIN_TYPE, load_settings
from aptos_ai_agent.utils.get_client import get_client
from aptos_ai_agent.utils.logger import get_logger
from aptos_ai_agent.utils.plugins import PluginKind
from aptos_ai_agent.utils.portfolio import format_amount

log = get_logger(__name__)

DEFAULT_SWAP_AMOUNT = "1000000000"  # 10 APT


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Aptos AI agent demo")
    parser.add_argument("address", help="Aptos account address to analyze")
    parser.add_argument("--pool", help="pool account address for the plugin demo")
    parser.add_argument("--to-token", required=True, help="coin type to swap into")
    parser.add_argument("--amount", default=DEFAULT_SWAP_AMOUNT, help="swap amount in octas")
    parser.add_argument("--run-bot", action="store_true", help="keep the trading loop running instead of one cycle")
    return parser.parse_args(argv)


async def run_demo(args: argparse.Namespace) -> None:
    settings = load_settings()
    client = get_client(settings)
    try:
        log.info("== Account analysis ==")
        try:
            resources = await client.get_resources(args.address)
            balance = await client.get_balance(args.address)
            log.info("Account balance: %s APT, resources: %d", format_amount(balance), len(resources))
        except Exception as exc:
            log.error("Account analysis failed: %s", exc)

        advisor = DeFiAdvisorAgent.from_settings(client, settings)
        log.info("== DeFi advisor ==")
        if not settings.can_advise:
            log.info("Skipping advisor (OPENAI_API_KEY not set)")
        else:
            try:
                analysis = await advisor.analyze_portfolio(args.address)
                log.info("Positions: %d\nAdvice:\n%s", len(analysis.positions), analysis.advice)
                swap = await advisor.suggest_optimal_swap(DEFAULT_COIN_TYPE, args.to_token, args.amount)
                log.info("Best quote: %s\nRecommendation:\n%s", swap.best.model_dump(by_alias=True), swap.recommendation)
            except Exception as exc:
                log.error("Advisor demo failed: %s", exc)

        log.info("== Trading bot ==")
        if not settings.can_sign:
            log.info("Skipping trading bot (no private key provided)")
        else:
            bot = TradingBot.from_settings(client, settings=settings)
            bot.on("trade", lambda data: log.info("Trade executed: %s (%s)", data["tx_hash"], data["reasoning"]))
            bot.on("error", lambda exc: log.error("Trading error: %s", exc))
            if args.run_bot:
                await bot.start()
            else:
                try:
                    await bot.monitor_and_trade()
                except Exception as exc:
                    log.error("Trading cycle failed: %s", exc)

        log.info("== Plugin system ==")
        if args.pool:
            try:
                pool_info = await advisor.registry.dispatch(
                    PluginKind.LIQUIDITY_POOL.value, "getPoolInfo", {"poolAddress": args.pool}
                )
                log.info("Pool information:\n%s", dumps(pool_info, indent=2))
                quote = await advisor.registry.dispatch(
                    PluginKind.LIQUIDITY_POOL.value,
                    "calculateSwap",
                    {"poolAddress": args.pool, "fromToken": DEFAULT_COIN_TYPE, "toToken": args.to_token, "amount": args.amount},
                )
                log.info("Swap quote: %s", quote.model_dump(by_alias=True))
            except Exception as exc:
                log.error("Plugin demo failed: %s", exc)
        else:
            log.info("Skipping plugin demo (no --pool given)")
    finally:
        await client.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        asyncio.run(run_demo(args))
    except KeyboardInterrupt:
        log.info("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
