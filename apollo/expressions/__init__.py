# apollo/expressions/__init__.py

from .values import (
    Value,
    ValueKind,
    to_value,
    coerce_raw_value,
)
from .context import EvalContext, initial_context, loop_context
from .functions import BUILTIN_FUNCTIONS
from .parser import (
    Expression,
    Literal,
    ParsedExpression,
    Template,
    parse_expression,
    parse_string,
    compile_node,
    evaluate_node,
    decode_body,
)


__all__ = [
    'Value', 'ValueKind', 'to_value', 'coerce_raw_value',
    'EvalContext', 'initial_context', 'loop_context',
    'BUILTIN_FUNCTIONS',
    'Expression', 'Literal', 'ParsedExpression', 'Template',
    'parse_expression', 'parse_string', 'compile_node', 'evaluate_node', 'decode_body',
]
