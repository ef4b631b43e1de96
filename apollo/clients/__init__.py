from .interfaces import ChainFunctionProvider
from .rpc import Web3FunctionProvider
