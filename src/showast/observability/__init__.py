from .context import (
    clear_context,
    get_trace_id,
    new_trace_id,
    operation_name,
    set_operation_context,
    trace_id,
)
from .events import log_event, redact_value
from .settings import SHOWAST_LOG_SAMPLE_RATE, should_sample

__all__ = [
    "clear_context",
    "get_trace_id",
    "log_event",
    "new_trace_id",
    "operation_name",
    "redact_value",
    "set_operation_context",
    "SHOWAST_LOG_SAMPLE_RATE",
    "should_sample",
    "trace_id",
]
