# -*- coding: utf-8 -*-
"""Decision and quote schemas, plus the best-effort parser for free-text model output."""

from __future__ import annotations

import json
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

RiskLevel = Literal["LOW", "MEDIUM", "HIGH"]
ParseSource = Literal["json", "keywords", "ambiguous"]

LOW_RISK_TERMS = ("safe", "secure", "reliable", "established")
HIGH_RISK_TERMS = ("dangerous", "risky", "unstable", "vulnerable")

NO_TRADE_PATTERNS = (
    r"\bno[\s-]trade\b",
    r"\bdo not trade\b",
    r"\bdon'?t trade\b",
    r"\bshould not trade\b",
    r"\bshouldn'?t trade\b",
    r"\bhold\b",
    r"\bwait\b",
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Quote(_CamelModel):
    """Swap estimate returned by a DEX plugin's calculateSwap action."""

    output_amount: str = Field(alias="outputAmount")
    price_impact: str = Field(default="0%", alias="priceImpact")
    dex: Optional[str] = None

    @field_validator("output_amount", mode="before")
    @classmethod
    def _stringify_amount(cls, v: Any) -> str:
        return str(v)

    @property
    def output_value(self) -> int:
        return int(self.output_amount)

    @property
    def price_impact_pct(self) -> float:
        """Price impact as a float percentage; '0.4%' and '0.4' both give 0.4."""
        raw = str(self.price_impact).strip().rstrip("%").strip()
        try:
            return float(Decimal(raw))
        except InvalidOperation as exc:
            raise ValueError(f"Unparseable price impact: {self.price_impact!r}") from exc


class TradeIntent(_CamelModel):
    protocol: str
    from_token: str = Field(alias="fromToken")
    to_token: str = Field(alias="toToken")
    amount: str
    min_output: str = Field(default="0", alias="minOutput")

    @field_validator("amount", "min_output", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> str:
        return str(v)

    def to_payload(self) -> Dict[str, Any]:
        """Entry-function payload for the protocol router's swap."""
        return {
            "function": f"{self.protocol}::router::swap",
            "type_arguments": [self.from_token, self.to_token],
            "arguments": [self.amount, self.min_output],
        }


class TradingDecision(_CamelModel):
    should_trade: bool = Field(alias="shouldTrade")
    trade: Optional[TradeIntent] = None
    reasoning: str = ""


class DecisionParse(BaseModel):
    """Outcome of parsing model text; `ambiguous` means the text did not map onto a decision."""

    decision: TradingDecision
    ambiguous: bool = False
    source: ParseSource = "json"


def _extract_json(raw: str) -> Optional[Dict[str, Any]]:
    json_text = raw.strip()
    if "```" in raw:
        for part in raw.split("```")[1:]:
            candidate = part.strip()
            if candidate.startswith("json"):
                candidate = candidate[4:].strip()
            if candidate.startswith("{"):
                json_text = candidate
                break
    if not json_text.startswith("{"):
        start, end = raw.find("{"), raw.rfind("}")
        if start == -1 or end <= start:
            return None
        json_text = raw[start:end + 1]
    try:
        data = json.loads(json_text)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _matches(text: str, patterns) -> bool:
    return any(re.search(p, text) for p in patterns)


def _no_trade(reasoning: str) -> TradingDecision:
    return TradingDecision(should_trade=False, trade=None, reasoning=reasoning)


def parse_trading_decision(text: Optional[str]) -> DecisionParse:
    """
    Map unstructured model output onto a TradingDecision.

    A JSON object (bare or fenced) is tried first. Otherwise keywords decide: an explicit
    no-trade phrase yields a plain no-trade decision, anything else is returned as an
    ambiguous no-trade so the caller can see that nothing was understood.
    """
    raw = (text or "").strip()
    if not raw:
        return DecisionParse(decision=_no_trade(""), ambiguous=True, source="ambiguous")

    data = _extract_json(raw)
    if data is not None:
        try:
            decision = TradingDecision.model_validate(data)
        except ValidationError:
            decision = None
        if decision is not None:
            if decision.should_trade and decision.trade is None:
                return DecisionParse(
                    decision=_no_trade(decision.reasoning or raw), ambiguous=True, source="ambiguous"
                )
            return DecisionParse(decision=decision, source="json")

    lowered = raw.lower()
    if _matches(lowered, NO_TRADE_PATTERNS):
        return DecisionParse(decision=_no_trade(raw), source="keywords")
    # trade verbs without a structured trade are not actionable
    return DecisionParse(decision=_no_trade(raw), ambiguous=True, source="ambiguous")


def determine_risk_level(analysis: Optional[str]) -> RiskLevel:
    """Keyword heuristic: any high-risk term wins, then low-risk terms, else MEDIUM."""
    lowered = (analysis or "").lower()
    if any(term in lowered for term in HIGH_RISK_TERMS):
        return "HIGH"
    if any(term in lowered for term in LOW_RISK_TERMS):
        return "LOW"
    return "MEDIUM"


__all__ = [
    "DecisionParse",
    "Quote",
    "RiskLevel",
    "TradeIntent",
    "TradingDecision",
    "determine_risk_level",
    "parse_trading_decision",
]
