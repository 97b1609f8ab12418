import json
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from showast.tree import SerializedNode

WireNode = dict[str, Any]


def _wire_node(
    hash_code: int,
    parent: int | None,
    kind: str = "Ast",
    *,
    start: tuple[int, int] = (1, 1),
    end: tuple[int, int] = (1, 10),
    text: str = "",
    text_length: int | None = None,
    properties: list[dict[str, str]] | None = None,
) -> WireNode:
    return {
        "id": f"node_{hash_code}",
        "hashCode": hash_code,
        "parentHashCode": parent,
        "type": kind,
        "text": text,
        "extentString": f"({start[0]},{start[1]})-({end[0]},{end[1]})",
        "StartLineNumber": start[0],
        "StartColumnNumber": start[1],
        "EndLineNumber": end[0],
        "EndColumnNumber": end[1],
        "textLength": len(text) if text_length is None else text_length,
        "properties": properties or [],
    }


@pytest.fixture
def wire_node() -> Callable[..., WireNode]:
    """Factory for one node in AstParse.ps1 output form."""
    return _wire_node


@pytest.fixture
def assignment_wire_nodes() -> list[WireNode]:
    """Flat pre-order output for the script ``$x = 1``."""
    return [
        _wire_node(100, None, "ScriptBlockAst", start=(1, 1), end=(1, 7), text="$x = 1"),
        _wire_node(101, 100, "NamedBlockAst", start=(1, 1), end=(1, 7), text="$x = 1"),
        _wire_node(
            102,
            101,
            "AssignmentStatementAst",
            start=(1, 1),
            end=(1, 7),
            text="$x = 1",
            properties=[{"Name": "Operator", "Value": "Equals", "TypeName": "TokenKind"}],
        ),
        _wire_node(103, 102, "VariableExpressionAst", start=(1, 1), end=(1, 3), text="$x"),
        _wire_node(104, 102, "CommandExpressionAst", start=(1, 6), end=(1, 7), text="1"),
        _wire_node(105, 104, "ConstantExpressionAst", start=(1, 6), end=(1, 7), text="1"),
    ]


@pytest.fixture
def assignment_nodes(assignment_wire_nodes: list[WireNode]) -> list[SerializedNode]:
    return [SerializedNode.from_wire(item) for item in assignment_wire_nodes]


@pytest.fixture
def assignment_output(assignment_wire_nodes: list[WireNode]) -> str:
    """Raw parser script stdout for ``$x = 1``."""
    return json.dumps({"nodes": assignment_wire_nodes, "errors": []})


class FakeParserService:
    """Stands in for ParserService; replays canned outputs or errors in order."""

    def __init__(self, outputs: list[str | Exception] | None = None) -> None:
        self.outputs = list(outputs or [])
        self.calls: list[str] = []
        self.disposed = False

    def analyze_raw(self, source_text: str) -> str:
        self.calls.append(source_text)
        result = self.outputs.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def dispose(self) -> None:
        self.disposed = True


@pytest.fixture
def fake_service_factory() -> Callable[..., FakeParserService]:
    return FakeParserService


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in [
        "SHOWAST_POWERSHELL_FLAVOR",
        "POWERSHELL_AST_FLAVOR",
        "SHOWAST_POWERSHELL_PATH",
        "SHOWAST_INVOKE_TIMEOUT",
        "SHOWAST_AST_DOCS",
    ]:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def mock_log_path(tmp_path: Path) -> Generator[Path, None, None]:
    """Auto-mock LOG_PATH and enable event logging for all tests."""
    log_file = tmp_path / "showast.log"
    with (
        patch("showast.config.settings.SHOWAST_LOGGING", True),
        patch("showast.config.settings.SHOWAST_LOG_REDACT", True),
        patch("showast.config.settings.LOG_PATH", log_file),
    ):
        yield log_file
