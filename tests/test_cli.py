import json

import pytest

from conftest import FakeSession, QUERY_URL, TRACES_URL, log_row

from tracebrain.adapters.log_store_client import LogStoreClient
from tracebrain.cli import main as cli


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    for name in ["TRACEBRAIN_CONFIG", "TRACEBRAIN_HOME", "DB_API_URL", "TRACEBRAIN_DB_API_KEY"]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("TRACEBRAIN_TRACES_URL", TRACES_URL)
    monkeypatch.setenv("TRACEBRAIN_QUERY_URL", QUERY_URL)
    monkeypatch.setenv("TRACEBRAIN_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _use_session(monkeypatch, session):
    monkeypatch.setattr(cli, "LogStoreClient", lambda settings: LogStoreClient(settings, session=session))


def _json_tail(out):
    return json.loads(out[out.index("{"):].split("\n}\n", 1)[0] + "\n}")


def test_build_prints_payload_and_dataset(cli_env, monkeypatch, capsys, info_trace_rows):
    session = FakeSession(trace_ids=["a", "b"], logs_by_trace={"a": info_trace_rows})
    _use_session(monkeypatch, session)

    code = cli.main(["build", "--format", "csv", "--sample-size", "2", "--no-warnings", "--print-data"])

    out = capsys.readouterr().out
    assert code == 0
    payload = _json_tail(out)
    assert payload["format"] == "csv"
    assert payload["sampleSize"] == 1
    assert payload["outputPath"].endswith(".csv")
    assert '\ntext\n"Distributed transaction logs with trace ID a:' in out
    assert session.calls[0][1]["includeWarnings"] is False
    assert list((cli_env / "logs").glob("tracebrain_runs_*.log"))


def test_build_error_exit_code(cli_env, monkeypatch, capsys):
    _use_session(monkeypatch, FakeSession(trace_status=500))
    code = cli.main(["build"])
    payload = _json_tail(capsys.readouterr().out)
    assert code == 1
    assert payload["isError"] is True
    assert payload["errorMessage"] == "Failed to retrieve trace IDs: 500"


def test_build_uses_config_defaults(cli_env, monkeypatch, capsys, info_trace_rows):
    cfg = cli_env / "config" / "config.yaml"
    cfg.parent.mkdir()
    cfg.write_text("dataset:\n  sample_size: 1\n  output_path: from-config.jsonl\n", encoding="utf-8")
    _use_session(monkeypatch, FakeSession(trace_ids=["a", "b"], logs_by_trace={"a": info_trace_rows}))

    assert cli.main(["build"]) == 0
    payload = _json_tail(capsys.readouterr().out)
    assert payload["outputPath"] == "from-config.jsonl"
    assert payload["sampleSize"] == 1


def test_trace_command(cli_env, monkeypatch, capsys):
    rows = [log_row("2024-01-15T10:30:00Z", "svcA", "INFO", "hello")]
    _use_session(monkeypatch, FakeSession(logs_by_trace={"t1": rows}))
    assert cli.main(["trace", "t1", "--time-range-minutes", "5"]) == 0
    payload = _json_tail(capsys.readouterr().out)
    assert payload["totalLogs"] == 1
    assert payload["timeRange"] == "5 minutes"


def test_trace_command_upstream_error(cli_env, monkeypatch, capsys):
    _use_session(monkeypatch, FakeSession(failing_traces=["t1"]))
    assert cli.main(["trace", "t1"]) == 1
    assert "[ERROR] Error querying logs" in capsys.readouterr().out


def test_doctor_reports_missing_key(cli_env, capsys):
    assert cli.main(["doctor"]) == 1
    out = capsys.readouterr().out
    assert "[WARN] No config file found" in out
    assert "[FAIL] Log store API key missing" in out


def test_doctor_ok_with_env_key(cli_env, monkeypatch, capsys):
    monkeypatch.setenv("TRACEBRAIN_DB_API_KEY", "k")
    assert cli.main(["doctor"]) == 0
    assert "available via TRACEBRAIN_DB_API_KEY" in capsys.readouterr().out


def test_metrics_json(cli_env, monkeypatch, capsys, info_trace_rows):
    _use_session(monkeypatch, FakeSession(trace_ids=["a"], logs_by_trace={"a": info_trace_rows}))
    cli.main(["build"])
    capsys.readouterr()

    assert cli.main(["metrics", "--format", "json"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["runs"]["total_runs"] == 1
    assert summary["runs"]["examples_produced"] == 1
