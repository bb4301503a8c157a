"""
Shared fixtures: fake node client, fake chat model, fake market feed.

Nothing here talks to a network; every collaborator is an AsyncMock.
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# keep test runs from writing into the repo's ./log
os.environ.setdefault("APTOS_AGENT_LOG_DIR", tempfile.mkdtemp(prefix="aptos_agent_logs_"))

import pytest
from langchain_core.messages import AIMessage

from aptos_ai_agent.utils.aptos_client import AptosClient, BalanceLookup
from aptos_ai_agent.utils.completion import CompletionClient

APT = "0x1::aptos_coin::AptosCoin"
USDC = "0xb::usdc::USDC"
WALLET = "0xa11ce"


class FakeChain:
    """Stands in for AptosClient in advisor and bot tests."""

    def __init__(self, resources=None, history=None, balance="0", address=WALLET):
        self.address = address
        self.get_resources = AsyncMock(return_value=resources if resources is not None else [])
        self.get_transaction_history = AsyncMock(return_value=history if history is not None else [])
        self.lookup_balance = AsyncMock(return_value=BalanceLookup(status="found", value=balance))
        self.get_balance = AsyncMock(return_value=balance)
        self.submit_transaction = AsyncMock(return_value="0xtxhash")


class FakeMarket:
    def __init__(self):
        self.fetch_prices = AsyncMock(return_value={"pool": {"price": "2"}})
        self.fetch_volumes = AsyncMock(return_value={"pool": {"tx_count": 3}})
        self.fetch_liquidity = AsyncMock(return_value={"pool": {"reserve_x": "10", "reserve_y": "20"}})


def fake_chat_model(*replies):
    model = MagicMock()
    model.ainvoke = AsyncMock(side_effect=[AIMessage(content=r) for r in replies])
    return model


@pytest.fixture
def rest_client():
    rest = MagicMock()
    rest.base_url = "https://node.test/v1"
    rest.account_resources = AsyncMock(return_value=[])
    rest.client = MagicMock()
    rest.client.get = AsyncMock()
    rest.create_bcs_signed_transaction = AsyncMock(return_value="signed-txn")
    rest.submit_bcs_transaction = AsyncMock(return_value="0xabc")
    rest.close = AsyncMock()
    return rest


@pytest.fixture
def chain_client(rest_client):
    return AptosClient("https://node.test/v1", rest_client=rest_client)


@pytest.fixture
def fake_chain():
    return FakeChain()


@pytest.fixture
def fake_market():
    return FakeMarket()


@pytest.fixture
def make_completion():
    def _make(*replies):
        return CompletionClient(chat_model=fake_chat_model(*replies))

    return _make
