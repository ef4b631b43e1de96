# apollo/__init__.py
"""
apollo - declarative on-chain query schemas.

Load a schema directory, validate it, then evaluate Call/Event Results
against it:

    schema = load_schema(conf_dir)
    schema.validate(RunOptions(realtime=False))
    output = evaluate(schema, provider, result)
"""

from .core import (
    ApolloError,
    ReadError,
    SchemaSyntaxError,
    DecodeError,
    InterfaceLoadError,
    ValidationError,
    ApolloSettings,
    RunOptions,
)
from .types import Chain, ResultType, CallResult
from .dsl import Schema, load_schema, evaluate, RuntimeEvaluator
from .clients import ChainFunctionProvider, Web3FunctionProvider


__version__ = "0.1.0"
