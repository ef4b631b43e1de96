# apollo/clients/rpc.py

from decimal import Decimal
from typing import Dict, Tuple

from eth_utils import to_checksum_address
from web3 import Web3

from ..core.logging import LoggingMixin
from ..types import Chain, EvmAddress
from .interfaces import ChainFunctionProvider


ERC20_ABI = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]

WEI_PER_ETHER = Decimal(10) ** 18


class Web3FunctionProvider(ChainFunctionProvider, LoggingMixin):
    """
    Chain state lookups over JSON-RPC, one Web3 HTTP client per configured chain.
    """

    def __init__(self, rpc_urls: Dict[Chain, str]):
        self.rpc_urls = dict(rpc_urls)
        self._clients: Dict[Chain, Web3] = {}
        self._decimals: Dict[Tuple[Chain, str], int] = {}

    def client(self, chain: Chain) -> Web3:
        if chain not in self._clients:
            url = self.rpc_urls.get(chain)
            if not url:
                raise ConnectionError(f"No RPC endpoint configured for chain {chain}")
            self._clients[chain] = Web3(Web3.HTTPProvider(url))
            self.log_debug("RPC client created", chain=str(chain))
        return self._clients[chain]

    def balance(self, chain: Chain, address: EvmAddress, block_number: int) -> Decimal:
        w3 = self.client(chain)
        wei = w3.eth.get_balance(to_checksum_address(address), block_identifier=block_number)
        return Decimal(wei) / WEI_PER_ETHER

    def token_balance(self, chain: Chain, account: EvmAddress, token: EvmAddress,
                      block_number: int) -> Decimal:
        w3 = self.client(chain)
        contract = w3.eth.contract(address=to_checksum_address(token), abi=ERC20_ABI)

        raw = contract.functions.balanceOf(to_checksum_address(account)).call(
            block_identifier=block_number)
        decimals = self._token_decimals(chain, contract)
        return Decimal(raw).scaleb(-decimals)

    def _token_decimals(self, chain: Chain, contract) -> int:
        key = (chain, contract.address)
        if key not in self._decimals:
            self._decimals[key] = contract.functions.decimals().call()
            self.log_debug("Token decimals cached", chain=str(chain),
                           contract_address=contract.address)
        return self._decimals[key]
