# apollo/dsl/schema.py
"""
Decoded schema tree: Schema -> QuerySchema -> {ContractSchema -> {MethodSchema,
EventSchema}, EventSchema (global)}.

Transform, Save and Filter keep their bodies compiled but unevaluated; they
are decoded at runtime once a result has populated the query context.
"""

import threading
from typing import Any, Dict, List, Optional

from eth_utils import to_checksum_address
from msgspec import Struct, field

from ..contracts.descriptor import InterfaceDescriptor
from ..types import Chain, EvmAddress
from .validate import validate as validate_schema


EVENT_OUTPUT_SUFFIX = "_events"


class Transform(Struct):
    body: Any = None


class Save(Struct):
    body: Any = None


class Filter(Struct):
    body: Any = None


class MethodSchema(Struct):
    name: str
    outputs: List[str]
    # Blocks after the triggering event; only used for methods nested in an event
    block_offset: int = 0
    # Argument name -> value, names as in the ABI
    inputs: Dict[str, str] = field(default_factory=dict)


class EventSchema(Struct):
    name: str
    outputs: List[str]
    abi_path: str = field(default="", name="abi")
    methods: List[MethodSchema] = field(default_factory=list, name="method")
    transform: Optional[Transform] = None

    # Injected after decoding
    descriptor: Optional[InterfaceDescriptor] = None

    @property
    def output_name(self) -> str:
        return self.name + EVENT_OUTPUT_SUFFIX


class ContractSchema(Struct):
    address_hex: str = field(name="address")
    abi_path: str = field(name="abi")
    methods: List[MethodSchema] = field(default_factory=list, name="method")
    events: List[EventSchema] = field(default_factory=list, name="event")
    transform: Optional[Transform] = None

    # Injected after decoding
    descriptor: Optional[InterfaceDescriptor] = None

    @property
    def address(self) -> EvmAddress:
        return EvmAddress(to_checksum_address(self.address_hex))


class QuerySchema(Struct):
    name: str
    chain: Chain
    save: Save
    contracts: List[ContractSchema] = field(default_factory=list, name="contract")
    events: List[EventSchema] = field(default_factory=list, name="event")
    filter: Optional[Filter] = None

    # Every query can have its own window and intervals, since it can run on a different chain
    start_time: int = 0
    end_time: int = 0
    time_interval: int = 0
    start_block: int = 0
    end_block: int = 0
    block_interval: int = 0

    # Live evaluation context (EvalContext) and the lock serializing evaluations
    context: Any = None
    lock: Any = None

    def __post_init__(self) -> None:
        if self.lock is None:
            self.lock = threading.Lock()

    def has_global_events(self) -> bool:
        return len(self.events) > 0

    def has_contract_events(self) -> bool:
        return any(len(c.events) > 0 for c in self.contracts)

    def has_contract_methods(self) -> bool:
        return any(len(c.methods) > 0 for c in self.contracts)

    def interval_set(self, schema: 'Schema') -> bool:
        return any((self.block_interval, self.time_interval,
                    schema.block_interval, schema.time_interval))

    def historical_window(self, schema: 'Schema') -> bool:
        start_block = self.start_block or schema.start_block
        end_block = self.end_block or schema.end_block
        start_time = self.start_time or schema.start_time
        end_time = self.end_time or schema.end_time
        return bool((start_block and end_block) or (start_time and end_time))


class LoopSchema(Struct):
    items: List[Any]
    # Compiled, undecoded `query` mapping, decoded once per item
    template: Any = None


class Schema(Struct):
    start_time: int = 0
    end_time: int = 0
    time_interval: int = 0
    start_block: int = 0
    end_block: int = 0
    block_interval: int = 0
    variables: Dict[str, Any] = field(default_factory=dict)

    # To-be-decoded loop / query blocks
    remainder: Dict[str, Any] = field(default_factory=dict)

    queries: List[QuerySchema] = field(default_factory=list)

    # Enriched context: builtins, `now` and the decoded variables
    context: Any = None

    def get_query(self, name: str) -> Optional[QuerySchema]:
        return next((q for q in self.queries if q.name == name), None)

    def validate(self, options) -> None:
        validate_schema(self, options)
