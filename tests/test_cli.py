from __future__ import annotations

import pytest

from gita import __version__, cli
from gita.logging_utils import build_uvicorn_log_config


@pytest.fixture
def served(monkeypatch):
    calls = []
    monkeypatch.setattr(cli, "serve", lambda **kwargs: calls.append(kwargs))
    return calls


def test_default_command_serves(served) -> None:
    cli.main([])
    assert served == [{"reload": True, "host": "0.0.0.0", "port": 8000}]


def test_host_port_and_no_reload(served) -> None:
    cli.main(["serve", "--host", "127.0.0.1", "--port=3000", "--no-reload"])
    assert served == [{"reload": False, "host": "127.0.0.1", "port": 3000}]


def test_invalid_port_exits(served, capsys) -> None:
    with pytest.raises(SystemExit):
        cli.main(["--port", "abc"])
    assert "Invalid port number 'abc'" in capsys.readouterr().out
    assert served == []


def test_version_and_help(capsys) -> None:
    cli.main(["--version"])
    assert capsys.readouterr().out.strip() == f"gita {__version__}"
    cli.main(["--help"])
    assert "MURF_API_KEY" in capsys.readouterr().out


def test_unknown_command_exits(capsys) -> None:
    with pytest.raises(SystemExit):
        cli.main(["frobnicate"])
    assert "Unknown command: frobnicate" in capsys.readouterr().out


def test_log_config_uses_utf8_access_formatter() -> None:
    config = build_uvicorn_log_config()
    assert config["formatters"]["access"]["()"] == "gita.logging_utils.Utf8AccessFormatter"
    assert config["loggers"]["gita"]["level"] == "INFO"
