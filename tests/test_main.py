"""Tests for the click entry points."""

from click.testing import CliRunner

from aiterm.errors import TransportError
from aiterm.main import cli


class FakeAdapter:
    replies = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.model = kwargs.get("model")

    def chat(self, messages):
        reply = FakeAdapter.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def test_ask_runs_one_turn(monkeypatch, config_yaml_file, tmp_dir):
    FakeAdapter.replies = ["MSG: hi from the model"]
    monkeypatch.setattr("aiterm.main.LLMAdapter", FakeAdapter)

    result = CliRunner().invoke(cli, ["ask", "--cwd", str(tmp_dir), "hello", "there"])

    assert result.exit_code == 0, result.output
    assert "hi from the model" in result.output


def test_ask_runs_confirmed_command(monkeypatch, config_yaml_file, tmp_dir):
    FakeAdapter.replies = ["CMD: echo from-shell"]
    monkeypatch.setattr("aiterm.main.LLMAdapter", FakeAdapter)

    result = CliRunner().invoke(cli, ["ask", "--cwd", str(tmp_dir), "echo"], input="y\n")

    assert result.exit_code == 0, result.output
    assert "from-shell" in result.output


def test_ask_exits_nonzero_on_transport_error(monkeypatch, config_yaml_file, tmp_dir):
    FakeAdapter.replies = [TransportError("no route to host")]
    monkeypatch.setattr("aiterm.main.LLMAdapter", FakeAdapter)

    result = CliRunner().invoke(cli, ["ask", "--cwd", str(tmp_dir), "hi"])

    assert result.exit_code == 1
    assert "no route to host" in result.output


def test_config_command(config_yaml_file, tmp_dir):
    result = CliRunner().invoke(cli, ["config"])
    assert result.exit_code == 0
    assert "Configuration" in result.output
    assert "local" in result.output
