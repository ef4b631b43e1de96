# apollo/dsl/__init__.py

from .schema import (
    Schema,
    QuerySchema,
    ContractSchema,
    MethodSchema,
    EventSchema,
    LoopSchema,
    Transform,
    Save,
    Filter,
)
from .loader import SchemaLoader, load_schema, parse_document
from .loop import LoopExpander
from .hydrator import InterfaceHydrator
from .runtime import RuntimeEvaluator, evaluate, generate_context_vars, build_chain_functions
from .validate import validate


__all__ = [
    'Schema', 'QuerySchema', 'ContractSchema', 'MethodSchema', 'EventSchema',
    'LoopSchema', 'Transform', 'Save', 'Filter',
    'SchemaLoader', 'load_schema', 'parse_document',
    'LoopExpander', 'InterfaceHydrator',
    'RuntimeEvaluator', 'evaluate', 'generate_context_vars', 'build_chain_functions',
    'validate',
]
