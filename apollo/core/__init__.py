from .errors import (
    ApolloError,
    ReadError,
    SchemaSyntaxError,
    DecodeError,
    InterfaceLoadError,
    ValidationError,
    NoIntervalRealtime,
    NoIntervalHistorical,
    IntervalDefinedForHistoricalEvents,
)
from .logging import ApolloLogger, LoggingMixin, log_with_context
from .config import ApolloSettings, RunOptions, SCHEMA_FILE
