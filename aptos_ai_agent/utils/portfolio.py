# -*- coding: utf-8 -*-
"""
Portfolio helpers used by the advisor before anything is sent to the model.

Everything here is pure: classify resources by type marker, add up position values
with integer arithmetic, pick the best quote, and compress transaction history into
a few statistics the model can read.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Sequence

import pandas as pd

from aptos_ai_agent.utils.model_decision import Quote

DEFI_MARKERS: Sequence[str] = ("LiquidityPool", "Stake", "Farm")
APT_DECIMALS = 8


def filter_positions(resources: Sequence[Dict[str, Any]], markers: Sequence[str] = DEFI_MARKERS) -> List[Dict[str, Any]]:
    """Resources whose type contains any marker, in input order."""
    return [r for r in resources if any(m in str(r.get("type", "")) for m in markers)]


def sum_position_value(positions: Sequence[Dict[str, Any]]) -> int:
    total = 0
    for position in positions:
        data = position.get("data")
        if isinstance(data, dict) and data.get("value") is not None:
            total += int(data["value"])
    return total


def select_best(quotes: Sequence[Quote]) -> Quote:
    """Quote with the strictly greatest output amount; the first one wins a tie."""
    if not quotes:
        raise ValueError("No quotes to compare")
    best = quotes[0]
    for quote in quotes[1:]:
        if quote.output_value > best.output_value:
            best = quote
    return best


def format_amount(amount: Any, decimals: int = APT_DECIMALS) -> str:
    """Render an integer base-unit amount (octas) as a decimal string, e.g. 150000000 -> '1.5'."""
    value = Decimal(int(amount)).scaleb(-decimals).normalize()
    return format(value, "f")


def summarize_transactions(transactions: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """Count, success rate, gas and most called functions over a transaction list."""
    if not transactions:
        return {"count": 0, "success_rate": None, "gas_used": 0, "functions": {}, "first_seen": None, "last_seen": None}

    df = pd.DataFrame(
        [
            {
                "success": bool(tx.get("success", False)),
                "gas_used": tx.get("gas_used"),
                "function": (tx.get("payload") or {}).get("function"),
                "timestamp": tx.get("timestamp"),
            }
            for tx in transactions
        ]
    )
    df["gas_used"] = pd.to_numeric(df["gas_used"], errors="coerce").fillna(0).astype("int64")
    # node timestamps are microseconds since epoch
    ts = pd.to_datetime(pd.to_numeric(df["timestamp"], errors="coerce"), unit="us", utc=True).dropna()

    functions = {str(k): int(v) for k, v in df["function"].dropna().value_counts().items()}
    return {
        "count": int(len(df)),
        "success_rate": round(float(df["success"].mean()), 4),
        "gas_used": int(df["gas_used"].sum()),
        "functions": functions,
        "first_seen": ts.min().isoformat() if not ts.empty else None,
        "last_seen": ts.max().isoformat() if not ts.empty else None,
    }


__all__ = [
    "DEFI_MARKERS",
    "filter_positions",
    "format_amount",
    "select_best",
    "sum_position_value",
    "summarize_transactions",
]
