import msgspec
import pytest
from loguru import logger

from docpilot import main as cli
from docpilot.orchestrator import DocumentAnalysisOrchestrator
from docpilot.task_runner import ResilientTaskRunner

from tests.conftest import LEASE_TEXT


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger.remove()


@pytest.fixture
def offline_orchestrator(monkeypatch, settings, fake_client, sleep_recorder):
    def factory(loaded_settings=None, client=None):
        runner = ResilientTaskRunner(settings, client=fake_client, sleep=sleep_recorder)
        return DocumentAnalysisOrchestrator(runner)

    monkeypatch.setattr(cli, "create_orchestrator", factory)


def test_parse_arguments_defaults():
    args = cli.parse_arguments(["analyze", "lease.txt", "--role", "Tenant"])

    assert args.command == "analyze"
    assert args.file == "lease.txt"
    assert args.language == "en"
    assert args.ask is None


def test_analyze_prints_result_and_chat_reply(tmp_path, capsys, offline_orchestrator):
    document = tmp_path / "lease.txt"
    document.write_text(LEASE_TEXT, encoding="utf-8")

    exit_code = cli.main([
        "analyze", str(document), "--role", "Tenant",
        "--ask", "Can I sublet?", "--log-dir", str(tmp_path / "logs"), "--log-level", "ERROR",
    ])

    assert exit_code == 0
    output = msgspec.json.decode(capsys.readouterr().out)
    assert output["metadata"]["document_type"] == "Residential Lease Agreement"
    assert output["analysis"]["risk"]["status"] == "success"
    assert output["chat"]["response"] == "You can sublet with written consent."


def test_role_is_suggested_when_not_given(tmp_path, capsys, offline_orchestrator):
    document = tmp_path / "lease.txt"
    document.write_text(LEASE_TEXT, encoding="utf-8")

    exit_code = cli.main(["analyze", str(document), "--log-dir", str(tmp_path / "logs"), "--log-level", "ERROR"])

    assert exit_code == 0
    assert msgspec.json.decode(capsys.readouterr().out)["analysis"]["user_role"] == "Tenant"


def test_missing_file_exits_with_error(tmp_path, capsys, offline_orchestrator):
    exit_code = cli.main([
        "analyze", str(tmp_path / "absent.txt"), "--role", "Tenant",
        "--log-dir", str(tmp_path / "logs"), "--log-level", "ERROR",
    ])

    assert exit_code == 1
    assert "File not found" in capsys.readouterr().err
