"""Shared fixtures for aiterm tests."""

import os

import pytest
import yaml

from aiterm import config as config_module
from aiterm import session as session_module
from aiterm import theme


class DummyConsole:
    """Records printed output and answers input() from a script."""

    def __init__(self, answers=None, is_terminal=False):
        self.messages = []
        self.prompts = []
        self.answers = list(answers or [])
        self.is_terminal = is_terminal

    def print(self, *args, **kwargs):
        self.messages.append((args, kwargs))

    def input(self, prompt: str = "") -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    @property
    def text(self) -> str:
        return "\n".join(" ".join(str(a) for a in args) for args, _ in self.messages)


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path_factory, monkeypatch):
    """Keep config, sessions and env overrides away from the real home."""
    home = tmp_path_factory.mktemp("aiterm-home")
    monkeypatch.setattr(config_module, "CONFIG_DIR", home)
    monkeypatch.setattr(config_module, "CONFIG_FILE", home / "config.yml")
    monkeypatch.setattr(session_module, "SESSIONS_DIR", home / "sessions")
    for var in ("AITERM_MODEL", "AITERM_VERBOSE", "AITERM_CONTINUE"):
        monkeypatch.delenv(var, raising=False)
    yield home
    theme.set_theme("dark")


@pytest.fixture
def tmp_dir(tmp_path):
    """Provide a temporary directory and cd into it."""
    orig = os.getcwd()
    os.chdir(tmp_path)
    yield tmp_path
    os.chdir(orig)


@pytest.fixture
def sample_config_data():
    """Minimal .aiterm.yml data dict."""
    return {
        "active-model": "local",
        "vision-model": "",
        "max-iterations": 5,
        "continue-after-command": "on-failure",
        "unmarked-lines": "drop",
        "shell": "sh",
        "theme": "dark",
        "verbose": False,
        "log-file": "",
        "models": {
            "local": {
                "provider": "local",
                "model": "openai/model",
                "description": "Local test model",
                "temperature": 0.0,
                "max-tokens": 256,
                "api-base": "http://localhost:8080/v1",
                "api-key": "not-needed",
            }
        },
    }


@pytest.fixture
def config_yaml_file(tmp_dir, sample_config_data):
    """Write a config YAML to tmp_dir and return its Path."""
    path = tmp_dir / ".aiterm.yml"
    with open(path, "w") as f:
        yaml.dump(sample_config_data, f, default_flow_style=False)
    return path


@pytest.fixture
def dummy_console():
    return DummyConsole()


@pytest.fixture
def console_factory():
    """Build DummyConsole instances with scripted answers."""
    return DummyConsole
