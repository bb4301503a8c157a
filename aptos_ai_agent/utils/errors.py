# -*- coding: utf-8 -*-
"""Exception types raised across the agent."""

from __future__ import annotations


class AgentError(Exception):
    """Base class for every error raised by aptos_ai_agent."""


class UninitializedDependencyError(AgentError, RuntimeError):
    """An operation needs a credential (signer key, completion API key) that was not supplied."""


class PluginNotFoundError(AgentError, LookupError):
    def __init__(self, name: str):
        super().__init__(f"Plugin {name} not found")
        self.name = name


class UnknownActionError(AgentError, ValueError):
    def __init__(self, action: str):
        super().__init__(f"Unknown action: {action}")
        self.action = action


class TradeValidationError(AgentError, ValueError):
    """A local pre-submission check rejected the trade."""


class InsufficientBalanceError(TradeValidationError):
    def __init__(self, balance: int, required: int):
        super().__init__("Insufficient balance for trade")
        self.balance = balance
        self.required = required


class PriceImpactTooHighError(TradeValidationError):
    def __init__(self, price_impact: float, ceiling: float):
        super().__init__("Price impact too high")
        self.price_impact = price_impact
        self.ceiling = ceiling


class UpstreamError(AgentError, RuntimeError):
    """The node RPC or the completion service failed underneath a local check."""


class OperationFailedError(AgentError, RuntimeError):
    """Raised at an operation boundary; the message is prefixed with the failed operation."""


class BotAlreadyRunningError(AgentError, RuntimeError):
    def __init__(self) -> None:
        super().__init__("Trading bot is already running")


__all__ = [
    "AgentError",
    "BotAlreadyRunningError",
    "InsufficientBalanceError",
    "OperationFailedError",
    "PluginNotFoundError",
    "PriceImpactTooHighError",
    "TradeValidationError",
    "UninitializedDependencyError",
    "UnknownActionError",
    "UpstreamError",
]
