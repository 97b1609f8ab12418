from showast.analysis.errors import (
    STAGE_INVOKE,
    STAGE_JSON,
    STAGE_PARSE,
    STAGE_START,
    AnalysisError,
    AnalysisInProgressError,
)
from showast.analysis.events import EventEmitter, Subscription
from showast.analysis.payload import AnalysisPayload, parse_analysis_output
from showast.analysis.service import PARSER_SCRIPT_PATH, ParserService, build_parse_command
from showast.analysis.session import AnalysisSession, AnalysisSnapshot, NodeRef

__all__ = [
    # Session
    "AnalysisSession",
    "AnalysisSnapshot",
    "NodeRef",
    # Service
    "PARSER_SCRIPT_PATH",
    "ParserService",
    "build_parse_command",
    # Payload
    "AnalysisPayload",
    "parse_analysis_output",
    # Events
    "EventEmitter",
    "Subscription",
    # Errors
    "AnalysisError",
    "AnalysisInProgressError",
    "STAGE_INVOKE",
    "STAGE_JSON",
    "STAGE_PARSE",
    "STAGE_START",
]
