# apollo/types/result.py

from typing import Any, Dict, Optional

from msgspec import Struct, field

from .base import Chain, ResultType, EvmAddress, EvmHash


class CallResult(Struct):
    """One observed method call or event occurrence, produced by the scheduler.

    ``identifier`` is the contract address for method and contract-event
    results, and the event output name (``<name>_events``) for global events.
    Raw ``inputs``/``outputs`` hold addresses, strings or numbers.
    """
    query_name: str
    type: ResultType
    identifier: str
    chain: Chain
    block_number: int
    timestamp: int
    block_hash: EvmHash
    contract_address: EvmAddress = EvmAddress("")
    tx_hash: Optional[EvmHash] = None
    tx_index: Optional[int] = None
    event_name: Optional[str] = None
    inputs: Dict[str, Any] = field(default_factory=dict)
    outputs: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_method(self) -> bool:
        return self.type == ResultType.METHOD
