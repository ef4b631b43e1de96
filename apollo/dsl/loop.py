# apollo/dsl/loop.py

from typing import Any, List

from ..core.errors import DecodeError
from ..core.logging import LoggingMixin
from ..expressions import Value, loop_context
from .decoder import decode_queries
from .schema import QuerySchema


class LoopExpander(LoggingMixin):
    """Expands a loop query template into one set of queries per item.

    Every item is decoded against its own fresh context holding only the
    builtin functions and ``item``. Schema variables and ``now`` are not
    visible inside a loop template.
    """

    def expand(self, template: Any, items: List[Value]) -> List[QuerySchema]:
        if template is None:
            self.log_warning("Loop has no query template", item_index=len(items))
            return []

        queries: List[QuerySchema] = []
        for index, item in enumerate(items):
            ctx = loop_context(item)
            try:
                expanded = decode_queries(template, ctx)
            except DecodeError as e:
                self.log_error("Loop template failed to decode", item_index=index, error=e.message)
                raise DecodeError(f"loop item {index}: {e.message}", item_index=index, **e.context) from e

            for query in expanded:
                query.context = ctx.child()
            queries.extend(expanded)

            self.log_debug("Loop item expanded",
                           item_index=index,
                           query_name=",".join(q.name for q in expanded))
        return queries
