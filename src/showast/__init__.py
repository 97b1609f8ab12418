__version__ = "0.3.0"

from .analysis import AnalysisError, AnalysisSession, NodeRef, ParserService
from .cli import main
from .config import ShowAstConfig
from .docs import DocStore
from .session import ScriptRunner, SessionError
from .tree import TreeNode, build_forest, locate

__all__ = [
    "__version__",
    "AnalysisError",
    "AnalysisSession",
    "DocStore",
    "NodeRef",
    "ParserService",
    "ScriptRunner",
    "SessionError",
    "ShowAstConfig",
    "TreeNode",
    "build_forest",
    "locate",
    "main",
]
