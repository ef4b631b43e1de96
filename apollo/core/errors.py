# apollo/core/errors.py

from typing import Any, Dict, Optional


class ApolloError(Exception):
    """Base class for every error raised while loading or evaluating a schema"""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = {k: v for k, v in context.items() if v is not None}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({details})"


class ReadError(ApolloError):
    """Schema file is absent or unreadable"""


class SchemaSyntaxError(ApolloError):
    """Configuration document or one of its expressions is malformed"""


class DecodeError(ApolloError):
    """A body failed to decode against its evaluation context"""


class InterfaceLoadError(ApolloError):
    """Interface descriptor file is missing or unparsable"""

    def __init__(self, message: str, path: Optional[str] = None, **context: Any):
        super().__init__(message, path=path, **context)
        self.path = path


class ValidationError(ApolloError):
    """Interval / binding consistency violation found after load"""

    default_message = "schema validation failed"

    def __init__(self, message: Optional[str] = None, **context: Any):
        super().__init__(message or self.default_message, **context)


class NoIntervalRealtime(ValidationError):
    default_message = "no interval defined for realtime method calls"


class NoIntervalHistorical(ValidationError):
    default_message = "no interval defined for historical method calls"


class IntervalDefinedForHistoricalEvents(ValidationError):
    default_message = "interval defined for historical events"
