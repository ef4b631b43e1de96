# apollo/contracts/descriptor.py

from typing import List, Optional

import msgspec
from msgspec import Struct, field
from eth_utils import (
    encode_hex,
    event_abi_to_log_topic,
    function_abi_to_4byte_selector,
)


class AbiParam(Struct):
    type: str
    name: str = ""
    indexed: bool = False
    internalType: Optional[str] = None
    components: Optional[List['AbiParam']] = None


class AbiEntry(Struct):
    type: str = "function"
    name: Optional[str] = None
    inputs: List[AbiParam] = field(default_factory=list)
    outputs: List[AbiParam] = field(default_factory=list)
    anonymous: bool = False
    stateMutability: Optional[str] = None

    @property
    def input_names(self) -> List[str]:
        return [p.name for p in self.inputs]

    @property
    def output_names(self) -> List[str]:
        return [p.name for p in self.outputs]

    def to_abi_dict(self) -> dict:
        return msgspec.to_builtins(self)


class InterfaceDescriptor(Struct):
    """Parsed contract interface: callable methods and emitted events"""
    entries: List[AbiEntry] = field(default_factory=list)
    source: Optional[str] = None

    @property
    def functions(self) -> List[AbiEntry]:
        return [e for e in self.entries if e.type == "function"]

    @property
    def events(self) -> List[AbiEntry]:
        return [e for e in self.entries if e.type == "event"]

    def function(self, name: str) -> Optional[AbiEntry]:
        return next((e for e in self.functions if e.name == name), None)

    def event(self, name: str) -> Optional[AbiEntry]:
        return next((e for e in self.events if e.name == name), None)

    def function_selector(self, name: str) -> Optional[str]:
        entry = self.function(name)
        if entry is None:
            return None
        return encode_hex(function_abi_to_4byte_selector(entry.to_abi_dict()))

    def event_topic(self, name: str) -> Optional[str]:
        entry = self.event(name)
        if entry is None:
            return None
        return encode_hex(event_abi_to_log_topic(entry.to_abi_dict()))
