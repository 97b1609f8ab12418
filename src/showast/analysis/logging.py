from showast.observability import log_event


def log_analysis_complete(
    source_id: str | None,
    epoch: int,
    node_count: int,
    error_count: int,
    orphan_count: int,
    latency_ms: float,
) -> None:
    log_event(
        {
            "kind": "analysis_complete",
            "level": "info",
            "source_id": source_id,
            "epoch": epoch,
            "node_count": node_count,
            "parse_error_count": error_count,
            "orphan_count": orphan_count,
            "latency_ms": int(latency_ms),
        }
    )


def log_analysis_error(
    source_id: str | None,
    stage: str,
    error: str,
    latency_ms: float,
) -> None:
    log_event(
        {
            "kind": "analysis_error",
            "level": "error",
            "source_id": source_id,
            "stage": stage,
            "error": error,
            "latency_ms": int(latency_ms),
        }
    )
