"""
Interfaces for chain state lookups used by schema expressions.

Expressions such as ``balance(owner)`` are evaluated against the historical
state at the result's block. The runtime only wires a provider into the
evaluation context; implementations perform the network calls.
"""
from abc import ABC, abstractmethod
from decimal import Decimal

from ..types import Chain, EvmAddress


class ChainFunctionProvider(ABC):
    """Interface for chain state lookups at a given block."""

    @abstractmethod
    def balance(self, chain: Chain, address: EvmAddress, block_number: int) -> Decimal:
        """
        Get the native balance of an address.

        Args:
            chain: Chain to query
            address: Account address
            block_number: Block at which the balance is read

        Returns:
            Balance in whole units (wei / 1e18)
        """
        pass

    @abstractmethod
    def token_balance(self, chain: Chain, account: EvmAddress, token: EvmAddress,
                      block_number: int) -> Decimal:
        """
        Get the ERC20 token balance of an account.

        Args:
            chain: Chain to query
            account: Holder address
            token: Token contract address
            block_number: Block at which the balance is read

        Returns:
            Balance in whole token units (raw / 10**decimals)
        """
        pass
