import shutil

import pytest

from showast.analysis import (
    STAGE_INVOKE,
    STAGE_JSON,
    AnalysisError,
    AnalysisSession,
    ParserService,
)
from showast.config import ShowAstConfig
from showast.session import ScriptRunner, powershell_config

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(shutil.which("pwsh") is None, reason="pwsh not installed"),
]


@pytest.fixture
def session():
    session = AnalysisSession(ParserService(ShowAstConfig(invoke_timeout=60)))
    yield session
    session.close()


class TestPowerShellRunner:
    def test_echo_round_trip(self) -> None:
        runner = ScriptRunner(powershell_config(shutil.which("pwsh") or "pwsh"))
        try:
            hello = runner.invoke("Write-Output 'hello'")
            world = runner.invoke("Write-Output 'world'")

            assert hello.result(timeout=60) == "hello"
            assert world.result(timeout=60) == "world"
        finally:
            runner.dispose()


class TestPowerShellAnalysis:
    def test_analyzes_assignment(self, session: AnalysisSession) -> None:
        roots = session.analyze("$x = 1\nWrite-Host $x\n")

        assert [root.kind for root in roots] == ["ScriptBlockAst"]
        assert session.parse_errors == []
        node = session.locate(1, 2)
        assert node is not None
        assert node.kind == "VariableExpressionAst"
        command = session.locate(2, 3)
        assert command is not None
        assert command.kind == "StringConstantExpressionAst"

    def test_syntax_errors_come_back_as_data(self, session: AnalysisSession) -> None:
        roots = session.analyze("function Broken {\n  $x = \n")

        assert roots
        assert session.parse_errors

    def test_long_values_are_truncated(self, session: AnalysisSession) -> None:
        session.analyze("$s = '" + "a" * 250 + "'\n")

        texts = [node.text for node in session.index.values()]
        assert all(len(text) <= 103 for text in texts)
        values = [prop.value for node in session.index.values() for prop in node.properties]
        assert all(len(value) <= 203 for value in values)

    def test_reuses_one_process(self, session: AnalysisSession) -> None:
        session.analyze("$a = 1")
        session.analyze("$b = 2")

        assert session.epoch == 2

    def test_missing_script_fails_analysis(self, tmp_path) -> None:
        service = ParserService(ShowAstConfig(invoke_timeout=60), script_path=tmp_path / "missing.ps1")
        with AnalysisSession(service) as session:
            with pytest.raises(AnalysisError) as exc_info:
                session.analyze("$x")

        # stderr may land after the sentinel, leaving an empty response instead
        assert exc_info.value.stage in (STAGE_INVOKE, STAGE_JSON)
        assert not session.has_data
