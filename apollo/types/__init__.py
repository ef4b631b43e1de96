# apollo/types/__init__.py

from .base import (
    EvmAddress,
    EvmHash,
    Chain,
    ResultType,
)

from .result import CallResult


__all__ = [
    'EvmAddress',
    'EvmHash',
    'Chain',
    'ResultType',
    'CallResult',
]
