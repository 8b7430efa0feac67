from unittest.mock import AsyncMock, patch

import pytest

from prompt_gateway import __main__ as cli
from prompt_gateway import __version__
from prompt_gateway.services.openrouter import OpenRouterClient
from tests._helpers import make_settings


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch.object(cli, "setup_logging"):
        yield


def test_modes_are_mutually_exclusive():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["--mcp", "--remote-mcp"])


def test_parser_defaults():
    args = cli.build_parser().parse_args([])
    assert not (args.mcp or args.remote_mcp or args.check_key)
    assert args.host is None and args.port is None


def test_version_flag(capsys):
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["--version"])
    assert __version__ in capsys.readouterr().out


@pytest.mark.asyncio
async def test_check_key_without_key():
    assert await cli.check_key(make_settings(OPENROUTER_API_KEY=None)) is False


@pytest.mark.asyncio
async def test_check_key_uses_models_endpoint():
    with patch.object(OpenRouterClient, "validate_api_key", AsyncMock(return_value=True)) as validate:
        assert await cli.check_key(make_settings()) is True
    validate.assert_awaited_once()


def test_main_check_key_exit_code(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-test")
    with patch.object(OpenRouterClient, "validate_api_key", AsyncMock(return_value=False)):
        assert cli.main(["--check-key"]) == 1
    with patch.object(OpenRouterClient, "validate_api_key", AsyncMock(return_value=True)):
        assert cli.main(["--check-key"]) == 0


def test_main_runs_stdio_server():
    with patch("prompt_gateway.mcp.stdio_server.run_stdio_server") as run:
        assert cli.main(["--mcp"]) == 0
    run.assert_called_once()


def test_main_serves_remote_mode_with_overrides():
    with patch("uvicorn.run") as run:
        assert cli.main(["--remote-mcp", "--host", "127.0.0.1", "--port", "8123"]) == 0
    app = run.call_args.args[0]
    assert app.state.mode == "remote-mcp"
    assert run.call_args.kwargs["host"] == "127.0.0.1"
    assert run.call_args.kwargs["port"] == 8123
