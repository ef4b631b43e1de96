# apollo/expressions/parser.py
"""
Turns configuration strings into parsed-but-unevaluated expressions.

A string is one of:
- ``"${ expr }"``: a single expression, its value keeps its type
- ``"text ${ expr } text"``: a template, always producing a string
- anything else: a literal string (``$${`` escapes a literal ``${``)

Parsing happens once at load time; evaluation happens later against
whatever context is current.
"""

from datetime import date, datetime
from typing import Any, List, Optional, Union

from lark import Lark
from lark.exceptions import LarkError

from ..core.errors import DecodeError, SchemaSyntaxError
from .context import EvalContext
from .evaluator import evaluate_tree
from .grammar import EXPRESSION_GRAMMAR
from .values import Value, to_value


_parser = Lark(EXPRESSION_GRAMMAR, parser="lalr", maybe_placeholders=True)


class Expression:
    source: str = ""

    def evaluate(self, ctx: EvalContext) -> Value:
        raise NotImplementedError


class Literal(Expression):
    def __init__(self, value: Value, source: Optional[str] = None):
        self.value = value
        self.source = source if source is not None else value.to_display()

    def evaluate(self, ctx: EvalContext) -> Value:
        return self.value

    def __repr__(self) -> str:
        return f"Literal({self.value!r})"


class ParsedExpression(Expression):
    def __init__(self, source: str, tree):
        self.source = source
        self.tree = tree

    def evaluate(self, ctx: EvalContext) -> Value:
        try:
            return evaluate_tree(self.tree, ctx)
        except DecodeError as e:
            if 'expression' in e.context:
                raise
            raise DecodeError(e.message, expression=self.source, **e.context) from e

    def __repr__(self) -> str:
        return f"ParsedExpression({self.source!r})"


class Template(Expression):
    def __init__(self, source: str, parts: List[Union[str, ParsedExpression]]):
        self.source = source
        self.parts = parts

    def evaluate(self, ctx: EvalContext) -> Value:
        pieces = []
        for part in self.parts:
            if isinstance(part, str):
                pieces.append(part)
            else:
                pieces.append(part.evaluate(ctx).to_display())
        return Value.string("".join(pieces))

    def __repr__(self) -> str:
        return f"Template({self.source!r})"


def parse_expression(source: str) -> ParsedExpression:
    """Parse bare expression text (no ``${}`` wrapper)"""
    try:
        tree = _parser.parse(source)
    except LarkError as e:
        raise SchemaSyntaxError(f"invalid expression: {e}", expression=source) from e
    return ParsedExpression(source.strip(), tree)


def parse_string(text: str) -> Expression:
    parts = _split_template(text)

    if len(parts) == 1 and isinstance(parts[0], ParsedExpression):
        return parts[0]
    if all(isinstance(part, str) for part in parts):
        return Literal(Value.string("".join(parts)), source=text)
    return Template(text, parts)


def _split_template(text: str) -> List[Union[str, ParsedExpression]]:
    parts: List[Union[str, ParsedExpression]] = []
    literal: List[str] = []
    i = 0
    while i < len(text):
        if text.startswith("$${", i):
            literal.append("${")
            i += 3
            continue
        if text.startswith("${", i):
            end = _find_closing_brace(text, i + 2)
            if end < 0:
                raise SchemaSyntaxError("unterminated ${ in string", expression=text)
            if literal:
                parts.append("".join(literal))
                literal = []
            parts.append(parse_expression(text[i + 2:end]))
            i = end + 1
            continue
        literal.append(text[i])
        i += 1

    if literal or not parts:
        parts.append("".join(literal))
    return parts


def _find_closing_brace(text: str, start: int) -> int:
    in_string = False
    i = start
    while i < len(text):
        c = text[i]
        if in_string:
            if c == "\\":
                i += 1
            elif c == '"':
                in_string = False
        elif c == '"':
            in_string = True
        elif c == "}":
            return i
        i += 1
    return -1


def compile_node(node: Any) -> Any:
    """Compile a YAML document tree: every scalar leaf becomes an Expression.

    Mappings and lists keep their shape so block structure can still be
    decoded; only leaves are parsed.
    """
    if isinstance(node, dict):
        return {str(key): compile_node(value) for key, value in node.items()}
    if isinstance(node, list):
        return [compile_node(item) for item in node]
    if isinstance(node, str):
        return parse_string(node)
    if isinstance(node, (date, datetime)):
        return Literal(Value.string(node.isoformat()))
    return Literal(to_value(node))


def evaluate_node(node: Any, ctx: EvalContext) -> Value:
    """Evaluate a compiled node; nested mappings and lists become Map/List values"""
    if isinstance(node, Expression):
        return node.evaluate(ctx)
    if isinstance(node, dict):
        return Value.map_of({key: evaluate_node(value, ctx) for key, value in node.items()})
    if isinstance(node, list):
        return Value.list_of([evaluate_node(item, ctx) for item in node])
    return to_value(node)


def decode_body(body: Optional[dict], ctx: EvalContext) -> dict:
    """Evaluate every attribute of a deferred body into a fresh name -> Value map"""
    if not body:
        return {}
    if not isinstance(body, dict):
        raise DecodeError("body must be a mapping of name to expression")
    return {name: evaluate_node(node, ctx) for name, node in body.items()}
