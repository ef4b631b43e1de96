# apollo/expressions/context.py

import time
from typing import Callable, Dict, Iterator, Mapping, Optional

from .functions import BUILTIN_FUNCTIONS
from .values import Value


Function = Callable[..., Value]
Clock = Callable[[], float]


class EvalContext:
    """Variables and functions visible to an expression.

    Contexts are layered: ``child()`` returns an overlay whose writes stay in
    its own layer until ``commit()`` merges them into the parent. Lookups walk
    from the innermost layer outwards.
    """

    def __init__(self,
                 variables: Optional[Mapping[str, Value]] = None,
                 functions: Optional[Mapping[str, Function]] = None,
                 parent: Optional['EvalContext'] = None):
        self.parent = parent
        self.variables: Dict[str, Value] = dict(variables or {})
        self.functions: Dict[str, Function] = dict(functions or {})

    def child(self,
              variables: Optional[Mapping[str, Value]] = None,
              functions: Optional[Mapping[str, Function]] = None) -> 'EvalContext':
        return EvalContext(variables, functions, parent=self)

    def lookup_variable(self, name: str) -> Optional[Value]:
        ctx = self
        while ctx is not None:
            if name in ctx.variables:
                return ctx.variables[name]
            ctx = ctx.parent
        return None

    def lookup_function(self, name: str) -> Optional[Function]:
        ctx = self
        while ctx is not None:
            if name in ctx.functions:
                return ctx.functions[name]
            ctx = ctx.parent
        return None

    def has_variable(self, name: str) -> bool:
        return self.lookup_variable(name) is not None

    def update(self, variables: Mapping[str, Value]) -> None:
        self.variables.update(variables)

    def register(self, functions: Mapping[str, Function]) -> None:
        self.functions.update(functions)

    def commit(self) -> None:
        """Merge this layer into its parent"""
        if self.parent is None:
            raise ValueError("cannot commit a root context")
        self.parent.update(self.variables)
        self.parent.register(self.functions)

    def all_variables(self) -> Dict[str, Value]:
        merged: Dict[str, Value] = {}
        for layer in reversed(list(self._layers())):
            merged.update(layer.variables)
        return merged

    def all_functions(self) -> Dict[str, Function]:
        merged: Dict[str, Function] = {}
        for layer in reversed(list(self._layers())):
            merged.update(layer.functions)
        return merged

    def _layers(self) -> Iterator['EvalContext']:
        ctx = self
        while ctx is not None:
            yield ctx
            ctx = ctx.parent

    def __repr__(self) -> str:
        return (f"EvalContext(variables={sorted(self.all_variables())}, "
                f"functions={len(self.all_functions())})")


def initial_context(clock: Clock = time.time) -> EvalContext:
    """Builtin functions plus ``now`` (whole seconds)"""
    return EvalContext(
        variables={"now": Value.number(int(clock()))},
        functions=BUILTIN_FUNCTIONS,
    )


def loop_context(item: Value) -> EvalContext:
    """Builtin functions plus the single loop ``item`` variable"""
    return EvalContext(
        variables={"item": item},
        functions=BUILTIN_FUNCTIONS,
    )
