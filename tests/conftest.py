# tests/conftest.py
"""
pytest configuration and fixtures for apollo tests

Configuration directories are written to tmp_path: a schema.yaml plus the
ABI files it references.
"""

import logging
import textwrap
from decimal import Decimal
from pathlib import Path

import msgspec
import pytest

from apollo.clients import ChainFunctionProvider
from apollo.core import ApolloLogger
from apollo.types import CallResult, Chain, ResultType


USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
OWNER = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
FIXED_NOW = 1700000000

ERC20_ABI = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "balance", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "totalSupply",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "supply", "type": "uint256"}],
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
]

PAIR_ABI = {
    "contractName": "Pair",
    "abi": [
        {
            "type": "event",
            "name": "Sync",
            "anonymous": False,
            "inputs": [
                {"name": "reserve0", "type": "uint112", "indexed": False},
                {"name": "reserve1", "type": "uint112", "indexed": False},
            ],
        },
    ],
}


class FakeProvider(ChainFunctionProvider):
    """Records every lookup and answers with fixed balances"""

    def __init__(self, native: Decimal = Decimal("1.5"), token: Decimal = Decimal("250")):
        self.native = native
        self.token = token
        self.calls = []

    def balance(self, chain, address, block_number):
        self.calls.append(("balance", chain, address, block_number))
        return self.native

    def token_balance(self, chain, account, token, block_number):
        self.calls.append(("token_balance", chain, account, token, block_number))
        return self.token


class FailingProvider(ChainFunctionProvider):
    def balance(self, chain, address, block_number):
        raise ConnectionError("node unavailable")

    def token_balance(self, chain, account, token, block_number):
        raise ConnectionError("node unavailable")


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to streams of a previous test"""
    yield
    logging.getLogger('apollo').handlers.clear()
    ApolloLogger.reset()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW + 0.75


@pytest.fixture
def make_config(tmp_path):
    """Write schema.yaml (dedented) and ABI files; returns the directory"""

    def _make(schema_text: str, abis: dict = None) -> Path:
        (tmp_path / "schema.yaml").write_text(textwrap.dedent(schema_text))
        if abis is None:
            abis = {"erc20.json": ERC20_ABI, "pair.json": PAIR_ABI}
        for name, abi in abis.items():
            (tmp_path / name).write_bytes(msgspec.json.encode(abi))
        return tmp_path

    return _make


@pytest.fixture
def provider():
    return FakeProvider()


def make_result(**overrides) -> CallResult:
    fields = dict(
        query_name="transfers",
        type=ResultType.METHOD,
        identifier=USDC,
        chain=Chain.ETHEREUM,
        block_number=150,
        timestamp=FIXED_NOW,
        block_hash="0x" + "ab" * 32,
        contract_address=USDC,
        inputs={"amount": 42},
        outputs={"owner": OWNER.lower()},
    )
    fields.update(overrides)
    return CallResult(**fields)


def make_event_result(**overrides) -> CallResult:
    fields = dict(
        type=ResultType.EVENT,
        tx_hash="0x" + "cd" * 32,
        tx_index=3,
        event_name="Transfer",
    )
    fields.update(overrides)
    return make_result(**fields)
