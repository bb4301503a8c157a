# -*- coding: utf-8 -*-
"""Thin async wrapper over the Aptos REST client: resources, balances, history, submission."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional

from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import ApiError, RestClient
from aptos_sdk.bcs import Serializer
from aptos_sdk.transactions import EntryFunction, TransactionArgument, TransactionPayload
from aptos_sdk.type_tag import StructTag, TypeTag

from aptos_ai_agent.utils.config import DEFAULT_COIN_TYPE
from aptos_ai_agent.utils.errors import UninitializedDependencyError
from aptos_ai_agent.utils.logger import get_logger

LOGGER = get_logger(__name__)

BalanceStatus = Literal["found", "missing", "error"]
_KEY_PREFIX = "ed25519-priv-"


@dataclass(slots=True)
class BalanceLookup:
    """Balance read that keeps 'no such resource' and 'node call failed' apart."""

    status: BalanceStatus
    value: str = "0"
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status != "error"


def _to_address(address: str | AccountAddress) -> AccountAddress:
    if isinstance(address, AccountAddress):
        return address
    return AccountAddress.from_str_relaxed(address)


def _load_account(private_key: str) -> Account:
    key = private_key.strip()
    if key.startswith(_KEY_PREFIX):
        key = key[len(_KEY_PREFIX):]
    return Account.load_key(key)


def _coin_value(resource: Any) -> Any:
    # null or malformed data/coin counts as a missing balance
    data = resource.get("data") if isinstance(resource, dict) else None
    coin = data.get("coin") if isinstance(data, dict) else None
    return coin.get("value") if isinstance(coin, dict) else None


def _encode_argument(value: Any) -> TransactionArgument:
    """u64 for integers and digit strings, bool for bools, string otherwise."""
    if isinstance(value, TransactionArgument):
        return value
    if isinstance(value, bool):
        return TransactionArgument(value, Serializer.bool)
    if isinstance(value, int):
        return TransactionArgument(value, Serializer.u64)
    if isinstance(value, str) and value.isdigit():
        return TransactionArgument(int(value), Serializer.u64)
    return TransactionArgument(str(value), Serializer.str)


def build_entry_function(payload: Dict[str, Any]) -> EntryFunction:
    """Turn {'function', 'type_arguments', 'arguments'} into a BCS entry function."""
    function = payload.get("function") or ""
    module, sep, name = function.rpartition("::")
    if not sep or not module or not name:
        raise ValueError(f"Invalid entry function identifier: {function!r}")
    ty_args = [TypeTag(StructTag.from_str(t)) for t in payload.get("type_arguments", [])]
    args = [_encode_argument(a) for a in payload.get("arguments", [])]
    return EntryFunction.natural(module, name, ty_args, args)


class AptosClient:
    """Typed surface over the node RPC; no logic beyond forwarding."""

    def __init__(
        self,
        node_url: str,
        private_key: Optional[str] = None,
        rest_client: Optional[RestClient] = None,
    ) -> None:
        self.node_url = node_url
        self.rest_client = rest_client if rest_client is not None else RestClient(node_url)
        self._account: Optional[Account] = _load_account(private_key) if private_key else None

    @property
    def address(self) -> Optional[str]:
        if self._account is None:
            return None
        return str(self._account.address())

    # ---- reads ----
    async def get_resources(self, address: str) -> List[Dict[str, Any]]:
        return await self.rest_client.account_resources(_to_address(address))

    async def lookup_balance(self, address: str, coin_type: str = DEFAULT_COIN_TYPE) -> BalanceLookup:
        try:
            resources = await self.get_resources(address)
        except Exception as exc:
            return BalanceLookup(status="error", error=exc)
        resource = next((r for r in resources if r.get("type") == coin_type), None)
        value = _coin_value(resource)
        if value is None:
            return BalanceLookup(status="missing")
        return BalanceLookup(status="found", value=str(value))

    async def get_balance(self, address: str, coin_type: str = DEFAULT_COIN_TYPE) -> str:
        """Balance as a decimal string; '0' when the resource is absent or the read failed."""
        lookup = await self.lookup_balance(address, coin_type)
        if lookup.status == "error":
            LOGGER.warning("Balance read for %s (%s) failed, reporting 0: %s", address, coin_type, lookup.error)
        return lookup.value

    async def get_transaction_history(self, address: str, limit: int = 100) -> List[Dict[str, Any]]:
        addr = _to_address(address)
        response = await self.rest_client.client.get(
            f"{self.rest_client.base_url}/accounts/{addr}/transactions",
            params={"limit": limit},
        )
        if response.status_code >= 400:
            raise ApiError(response.text, response.status_code)
        return response.json()

    # ---- writes ----
    async def submit_transaction(self, payload: Dict[str, Any]) -> str:
        """Build, sign and submit an entry-function transaction; returns its hash."""
        if self._account is None:
            raise UninitializedDependencyError("Account not initialized. Please provide private key.")

        entry = build_entry_function(payload)
        signed = await self.rest_client.create_bcs_signed_transaction(self._account, TransactionPayload(entry))
        tx_hash = await self.rest_client.submit_bcs_transaction(signed)
        LOGGER.info("Submitted %s from %s: %s", payload.get("function"), self.address, tx_hash)
        return tx_hash

    async def close(self) -> None:
        await self.rest_client.close()


__all__ = ["AptosClient", "BalanceLookup", "build_entry_function"]
