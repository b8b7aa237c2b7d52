from io import StringIO
from subprocess import PIPE
from types import SimpleNamespace
import os

import pytest

ACTION_ENV = ("INPUT_", "CONFIG__", "YAML_CONFIG", "GITHUB_OUTPUT", "GITHUB_STEP_SUMMARY")


class FakeProc:
    def __init__(self, returncode: int, stdout: str | None):
        self.returncode = returncode
        self.stdout = None if stdout is None else StringIO(stdout)

    def wait(self):
        return self.returncode

    def poll(self):
        return self.returncode

    def kill(self):
        pass


class FakeTerraform:
    """Stands in for Popen, answering by terraform sub command."""

    def __init__(self):
        self.calls: list[list[str]] = []
        self.responses: dict[str, tuple[int, str]] = {}

    def respond(self, subcommand: str, returncode: int = 0, stdout: str = ""):
        self.responses[subcommand] = (returncode, stdout)

    @property
    def subcommands(self) -> list[str]:
        return [cmd[1] for cmd in self.calls]

    def __call__(self, cmd, shell=False, stdout=None, **_):
        self.calls.append(list(cmd))
        returncode, text = self.responses.get(cmd[1], (0, ""))
        return FakeProc(returncode, text if stdout == PIPE else None)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Tests may themselves run inside an action, drop anything the runner set."""
    for key in list(os.environ):
        if key.upper().startswith(ACTION_ENV):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def runner(monkeypatch, tmp_path):
    """Points GITHUB_OUTPUT and GITHUB_STEP_SUMMARY at temp files."""
    output = tmp_path / "github_output"
    summary = tmp_path / "step_summary"
    output.touch()
    summary.touch()
    monkeypatch.setenv("GITHUB_OUTPUT", str(output))
    monkeypatch.setenv("GITHUB_STEP_SUMMARY", str(summary))

    def outputs() -> dict[str, str]:
        values = {}
        for line in output.read_text().splitlines():
            name, _, value = line.partition("=")
            values[name] = value
        return values

    return SimpleNamespace(output=output, summary=summary, outputs=outputs)


@pytest.fixture
def terraform(monkeypatch):
    fake = FakeTerraform()
    monkeypatch.setattr("terraform_action.terraform.Popen", fake)
    return fake
