# apollo/dsl/validate.py

from typing import TYPE_CHECKING

from ..core.config import RunOptions
from ..core.errors import (
    NoIntervalRealtime,
    NoIntervalHistorical,
    IntervalDefinedForHistoricalEvents,
)
from ..core.logging import ApolloLogger, log_with_context, DEBUG

if TYPE_CHECKING:
    from .schema import Schema


logger = ApolloLogger.get_logger('dsl.validate')


def validate(schema: 'Schema', options: RunOptions) -> None:
    """Check interval consistency of a loaded schema.

    Rules run in order across all queries and the first violation is raised:
    method calls need an interval in realtime mode and over a historical
    window; historical events must not have one.
    """
    method_queries = [q for q in schema.queries if q.has_contract_methods()]
    event_queries = [q for q in schema.queries
                     if q.has_contract_events() or q.has_global_events()]

    if options.realtime:
        for q in method_queries:
            if not q.interval_set(schema):
                raise NoIntervalRealtime(query_name=q.name)

    for q in method_queries:
        if q.historical_window(schema) and not q.interval_set(schema):
            raise NoIntervalHistorical(query_name=q.name)

    if not options.realtime:
        for q in event_queries:
            if q.interval_set(schema):
                raise IntervalDefinedForHistoricalEvents(query_name=q.name)

    log_with_context(logger, DEBUG, "Schema validated",
                     query_name=",".join(q.name for q in schema.queries))
