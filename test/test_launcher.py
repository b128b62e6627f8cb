from click.testing import CliRunner
from pytest import fixture
from socket import EAI_NONAME
from trio.socket import gaierror

from duochat.launcher import _is_keyboard_interrupt, start
from duochat.version import __version__


@fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for key in ("SETTINGS", "CLIENT_NAME", "HOST", "PORT"):
        monkeypatch.delenv(f"DUOCHAT_{key}", raising=False)
    return CliRunner()


def test_version(runner):
    result = runner.invoke(start, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_roles(runner):
    result = runner.invoke(start, ["--help"])
    assert result.exit_code == 0
    assert "client" in result.output
    assert "server" in result.output


def test_invalid_port(runner):
    result = runner.invoke(start, ["client", "--name", "alice", "--port", "0"])
    assert result.exit_code == 2


def test_invalid_name(runner):
    result = runner.invoke(start, ["client", "--name", "alice, bob"])
    assert result.exit_code == 2


def test_missing_config_file(runner):
    result = runner.invoke(
        start, ["--config", "missing.cfg", "client", "--name", "alice"]
    )
    assert result.exit_code == 1


def test_connection_failure(runner, monkeypatch):
    async def unknown_host(host, port):
        raise gaierror(EAI_NONAME, "Name or service not known")

    monkeypatch.setattr("duochat.connections.tcp.open_tcp_stream", unknown_host)

    result = runner.invoke(
        start,
        [
            "--quiet",
            "client",
            "--name",
            "alice",
            "--host",
            "chat.invalid",
            "-p",
            "6000",
        ],
    )
    assert result.exit_code == 1
    assert "Connecting to chat.invalid:6000..." in result.output
    assert "Server chat.invalid not found" in result.output


def test_name_is_prompted_for(runner, monkeypatch):
    async def unknown_host(host, port):
        raise gaierror(EAI_NONAME, "Name or service not known")

    monkeypatch.setattr("duochat.connections.tcp.open_tcp_stream", unknown_host)

    result = runner.invoke(
        start, ["client", "--host", "chat.invalid"], input="a,b\nalice\n"
    )
    assert result.exit_code == 1
    assert "Your name" in result.output
    assert "Server chat.invalid not found" in result.output


def test_is_keyboard_interrupt():
    assert _is_keyboard_interrupt(KeyboardInterrupt())
    assert _is_keyboard_interrupt(
        BaseExceptionGroup("", [KeyboardInterrupt(), KeyboardInterrupt()])
    )
    assert _is_keyboard_interrupt(
        BaseExceptionGroup("", [BaseExceptionGroup("", [KeyboardInterrupt()])])
    )
    assert not _is_keyboard_interrupt(ValueError())
    assert not _is_keyboard_interrupt(
        BaseExceptionGroup("", [KeyboardInterrupt(), ValueError()])
    )
