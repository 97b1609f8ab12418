import json
import logging
from dataclasses import dataclass, field
from typing import Any

from showast.analysis.errors import STAGE_JSON, STAGE_PARSE, AnalysisError
from showast.observability import redact_value
from showast.tree.types import ParseError, SerializedNode

logger = logging.getLogger(__name__)


@dataclass
class AnalysisPayload:
    """Decoded parser script output."""

    nodes: list[SerializedNode] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)
    skipped: int = 0
    """Node objects that could not be decoded (no identity hash)."""


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    # ConvertTo-Json collapses single-item arrays
    return [value]


def parse_analysis_output(raw: str) -> AnalysisPayload:
    """Decode the JSON document printed by AstParse.ps1.

    Accepts ``{"nodes": [...], "errors": [...]}``, a bare node list, or the
    ``{"error": true, ...}`` failure object.

    Raises:
        AnalysisError: stage ``json`` for undecodable output, stage ``parse``
            when the script reports a total parse failure.
    """
    text = raw.strip()
    if not text:
        raise AnalysisError(STAGE_JSON, "No output returned from the parser script")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug("Undecodable parser output: %s", redact_value(text))
        raise AnalysisError(
            STAGE_JSON, f"Parser output is not valid JSON ({e.msg} at char {e.pos})"
        ) from None

    if isinstance(data, dict) and data.get("error"):
        message = str(data.get("message") or "Unknown parser failure")
        error_type = str(data.get("type") or "").strip()
        if error_type:
            message = f"{error_type}: {message}"
        raise AnalysisError(STAGE_PARSE, message)

    if isinstance(data, list):
        raw_nodes: list[Any] = data
        raw_errors: list[Any] = []
    elif isinstance(data, dict):
        raw_nodes = _as_list(data.get("nodes"))
        raw_errors = _as_list(data.get("errors"))
    else:
        raise AnalysisError(
            STAGE_JSON, f"Unexpected parser output type: {type(data).__name__}"
        )

    payload = AnalysisPayload()
    for item in raw_nodes:
        if not isinstance(item, dict):
            payload.skipped += 1
            continue
        try:
            payload.nodes.append(SerializedNode.from_wire(item))
        except (TypeError, ValueError):
            payload.skipped += 1

    for item in raw_errors:
        error = ParseError.from_wire(item)
        if error is not None:
            payload.errors.append(error)

    if payload.skipped:
        logger.debug("Skipped %d undecodable node object(s)", payload.skipped)
    return payload


__all__ = ["AnalysisPayload", "parse_analysis_output"]
