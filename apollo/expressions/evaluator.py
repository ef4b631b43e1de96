# apollo/expressions/evaluator.py

import ast
from decimal import Decimal, DivisionByZero, InvalidOperation, localcontext

from lark import Tree, Token
from lark.visitors import Interpreter

from ..core.errors import DecodeError
from .context import EvalContext
from .values import Value, ValueKind, NUMBER_PRECISION, to_value


class TreeEvaluator(Interpreter):
    """Evaluates one parsed expression tree against a context.

    Children are visited on demand so ``&&``, ``||`` and ``?:`` short-circuit.
    """

    def __init__(self, ctx: EvalContext):
        super().__init__()
        self.ctx = ctx

    def evaluate(self, node) -> Value:
        if isinstance(node, Token):
            raise DecodeError(f"unexpected token {node!r}")
        return self.visit(node)

    # --- literals ---

    def number(self, tree: Tree) -> Value:
        text = str(tree.children[0])
        if text.lower().startswith("0x"):
            return Value.number(int(text, 16))
        if any(c in text for c in ".eE"):
            return Value.number(Decimal(text))
        return Value.number(int(text))

    def string(self, tree: Tree) -> Value:
        return Value.string(ast.literal_eval(str(tree.children[0])))

    def true(self, tree: Tree) -> Value:
        return Value.boolean(True)

    def false(self, tree: Tree) -> Value:
        return Value.boolean(False)

    def null(self, tree: Tree) -> Value:
        return Value.null()

    def list(self, tree: Tree) -> Value:
        return Value.list_of(self._arguments(tree.children[0]))

    # --- names ---

    def var(self, tree: Tree) -> Value:
        name = str(tree.children[0])
        value = self.ctx.lookup_variable(name)
        if value is None:
            raise DecodeError(f"unknown variable '{name}'")
        return value

    def call(self, tree: Tree) -> Value:
        name = str(tree.children[0])
        fn = self.ctx.lookup_function(name)
        if fn is None:
            raise DecodeError(f"call to unknown function '{name}'")
        args = self._arguments(tree.children[1])
        try:
            return to_value(fn(*args))
        except DecodeError:
            raise
        except (TypeError, ValueError, ArithmeticError, KeyError, IndexError) as e:
            raise DecodeError(f"call to {name}() failed: {e}") from e

    def index(self, tree: Tree) -> Value:
        target = self.evaluate(tree.children[0])
        key = self.evaluate(tree.children[1])
        if target.kind == ValueKind.LIST:
            position = self._require(key, ValueKind.NUMBER, "list index")
            if not isinstance(position, int):
                raise DecodeError(f"list index must be a whole number, got {key.to_display()}")
            if not -len(target.raw) <= position < len(target.raw):
                raise DecodeError(f"list index {position} out of range ({len(target.raw)} items)")
            return target.raw[position]
        if target.kind == ValueKind.MAP:
            return self._member(target, key.to_display())
        raise DecodeError(f"cannot index a {target.kind.value} value")

    def attr(self, tree: Tree) -> Value:
        target = self.evaluate(tree.children[0])
        if target.kind != ValueKind.MAP:
            raise DecodeError(f"cannot read attribute '{tree.children[1]}' of a {target.kind.value} value")
        return self._member(target, str(tree.children[1]))

    # --- operators ---

    def neg(self, tree: Tree) -> Value:
        operand = self._require(self.evaluate(tree.children[0]), ValueKind.NUMBER, "operand of '-'")
        return Value.number(-operand)

    def not_(self, tree: Tree) -> Value:
        operand = self._require(self.evaluate(tree.children[0]), ValueKind.BOOL, "operand of '!'")
        return Value.boolean(not operand)

    def and_(self, tree: Tree) -> Value:
        left = self._require(self.evaluate(tree.children[0]), ValueKind.BOOL, "operand of '&&'")
        if not left:
            return Value.boolean(False)
        right = self._require(self.evaluate(tree.children[1]), ValueKind.BOOL, "operand of '&&'")
        return Value.boolean(right)

    def or_(self, tree: Tree) -> Value:
        left = self._require(self.evaluate(tree.children[0]), ValueKind.BOOL, "operand of '||'")
        if left:
            return Value.boolean(True)
        right = self._require(self.evaluate(tree.children[1]), ValueKind.BOOL, "operand of '||'")
        return Value.boolean(right)

    def conditional(self, tree: Tree) -> Value:
        condition = self._require(self.evaluate(tree.children[0]), ValueKind.BOOL, "condition")
        return self.evaluate(tree.children[1] if condition else tree.children[2])

    def eq(self, tree: Tree) -> Value:
        return Value.boolean(self.evaluate(tree.children[0]) == self.evaluate(tree.children[1]))

    def ne(self, tree: Tree) -> Value:
        return Value.boolean(self.evaluate(tree.children[0]) != self.evaluate(tree.children[1]))

    def lt(self, tree: Tree) -> Value:
        left, right = self._numbers(tree, "<")
        return Value.boolean(left < right)

    def le(self, tree: Tree) -> Value:
        left, right = self._numbers(tree, "<=")
        return Value.boolean(left <= right)

    def gt(self, tree: Tree) -> Value:
        left, right = self._numbers(tree, ">")
        return Value.boolean(left > right)

    def ge(self, tree: Tree) -> Value:
        left, right = self._numbers(tree, ">=")
        return Value.boolean(left >= right)

    def add(self, tree: Tree) -> Value:
        left, right = self._numbers(tree, "+")
        return self._arith(lambda: left + right)

    def sub(self, tree: Tree) -> Value:
        left, right = self._numbers(tree, "-")
        return self._arith(lambda: left - right)

    def mul(self, tree: Tree) -> Value:
        left, right = self._numbers(tree, "*")
        return self._arith(lambda: left * right)

    def div(self, tree: Tree) -> Value:
        left, right = self._numbers(tree, "/")
        if right == 0:
            raise DecodeError("division by zero")
        if isinstance(left, int) and isinstance(right, int) and left % right == 0:
            return Value.number(left // right)
        return self._arith(lambda: Decimal(left) / Decimal(right))

    def mod(self, tree: Tree) -> Value:
        left, right = self._numbers(tree, "%")
        if right == 0:
            raise DecodeError("modulo by zero")
        return self._arith(lambda: left % right)

    # --- helpers ---

    def _arguments(self, node) -> list:
        if node is None:
            return []
        return [self.evaluate(child) for child in node.children]

    def _numbers(self, tree: Tree, op: str):
        left = self._require(self.evaluate(tree.children[0]), ValueKind.NUMBER, f"left operand of '{op}'")
        right = self._require(self.evaluate(tree.children[1]), ValueKind.NUMBER, f"right operand of '{op}'")
        return left, right

    @staticmethod
    def _arith(compute) -> Value:
        with localcontext() as ctx:
            ctx.prec = NUMBER_PRECISION
            try:
                return Value.number(compute())
            except (DivisionByZero, InvalidOperation) as e:
                raise DecodeError(f"invalid arithmetic: {e}") from e

    @staticmethod
    def _member(target: Value, key: str) -> Value:
        if key not in target.raw:
            raise DecodeError(f"map has no element '{key}'")
        return target.raw[key]

    @staticmethod
    def _require(value: Value, kind: ValueKind, what: str):
        if value.kind != kind:
            raise DecodeError(f"{what} must be a {kind.value}, got {value.kind.value}")
        return value.raw


def evaluate_tree(tree, ctx: EvalContext) -> Value:
    return TreeEvaluator(ctx).evaluate(tree)
