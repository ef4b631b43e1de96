# apollo/types/base.py

from enum import Enum
from typing import NewType


EvmAddress = NewType('EvmAddress', str)
EvmHash = NewType('EvmHash', str)


class Chain(str, Enum):
    ETHEREUM = "ethereum"
    ARBITRUM = "arbitrum"
    OPTIMISM = "optimism"
    POLYGON = "polygon"

    def __str__(self) -> str:
        return self.value


class ResultType(str, Enum):
    METHOD = "method"
    EVENT = "event"
    GLOBAL_EVENT = "global_event"

    def __str__(self) -> str:
        return self.value
