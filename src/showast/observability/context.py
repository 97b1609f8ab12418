import uuid
from contextvars import ContextVar

trace_id: ContextVar[str] = ContextVar("trace_id", default="")
operation_name: ContextVar[str] = ContextVar("operation_name", default="")


def new_trace_id() -> str:
    tid = f"t-{uuid.uuid4().hex[:12]}"
    trace_id.set(tid)
    return tid


def get_trace_id() -> str:
    current = trace_id.get()
    if current:
        return current
    return new_trace_id()


def set_operation_context(name: str, tid: str | None = None) -> str:
    operation_name.set(name)
    if tid:
        trace_id.set(tid)
        return tid
    return new_trace_id()


def clear_context() -> None:
    trace_id.set("")
    operation_name.set("")
