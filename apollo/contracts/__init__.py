from .descriptor import AbiParam, AbiEntry, InterfaceDescriptor
from .abi_loader import ABILoader
