import pytest
from pydantic import ValidationError

from terraform_action.config import ActionSettings, Settings, coerce_flag, get_env, to_camel, to_snake


def test_defaults(monkeypatch):
    monkeypatch.setenv("INPUT_COMMAND", "plan")

    settings = Settings().config

    assert settings.command == "plan"
    assert settings.working_directory == "."
    assert settings.workspace == "default"
    assert settings.check_format is False
    assert settings.validate_module is False


def test_action_inputs(monkeypatch):
    monkeypatch.setenv("INPUT_COMMAND", "apply")
    monkeypatch.setenv("INPUT_WORKING-DIRECTORY", "infra/prod")
    monkeypatch.setenv("INPUT_WORKSPACE", "prod")
    monkeypatch.setenv("INPUT_CHECK-FORMAT", "true")
    monkeypatch.setenv("INPUT_VALIDATE-MODULE", "false")

    settings = Settings().config

    assert settings.command == "apply"
    assert settings.working_directory == "infra/prod"
    assert settings.workspace == "prod"
    assert settings.check_format is True
    assert settings.validate_module is False


def test_blank_inputs_use_defaults(monkeypatch):
    monkeypatch.setenv("INPUT_COMMAND", " destroy ")
    monkeypatch.setenv("INPUT_WORKING-DIRECTORY", "")
    monkeypatch.setenv("INPUT_WORKSPACE", "  ")

    settings = Settings().config

    assert settings.command == "destroy"
    assert settings.working_directory == "."
    assert settings.workspace == "default"


def test_env_overrides_inputs(monkeypatch):
    monkeypatch.setenv("INPUT_COMMAND", "plan")
    monkeypatch.setenv("INPUT_WORKSPACE", "staging")
    monkeypatch.setenv("CONFIG__WORKSPACE", "prod")

    settings = Settings().config

    assert settings.command == "plan"
    assert settings.workspace == "prod"


def test_yaml_config(monkeypatch):
    monkeypatch.setenv("YAML_CONFIG", "command: apply\nworkingDirectory: infra\ncheckFormat: true\n")

    settings = Settings().config

    assert settings.command == "apply"
    assert settings.working_directory == "infra"
    assert settings.check_format is True


def test_inputs_override_yaml(monkeypatch):
    monkeypatch.setenv("YAML_CONFIG", "command: apply\nworkspace: from-yaml\n")
    monkeypatch.setenv("INPUT_WORKSPACE", "from-input")

    settings = Settings().config

    assert settings.command == "apply"
    assert settings.workspace == "from-input"


def test_bad_yaml_warns(monkeypatch, capsys):
    monkeypatch.setenv("INPUT_COMMAND", "plan")
    monkeypatch.setenv("YAML_CONFIG", "- just\n- a list\n")

    assert Settings().config.command == "plan"
    assert "::warning title=Experimental Config::Could not load config file" in capsys.readouterr().out


def test_missing_command():
    with pytest.raises(ValidationError):
        Settings()


def test_blank_command(monkeypatch):
    monkeypatch.setenv("INPUT_COMMAND", "")

    with pytest.raises(ValidationError, match="Input required and not supplied: command"):
        Settings()


def test_unsupported_command():
    with pytest.raises(ValidationError, match="only supports 'plan', 'apply' or 'destroy'"):
        ActionSettings(command="import")


@pytest.mark.parametrize(
    "value, expected",
    [("true", True), (" true ", True), ("True", False), ("yes", False), ("", False), (True, True), (None, False)],
)
def test_coerce_flag(value, expected):
    assert coerce_flag(value) is expected


def test_get_env(monkeypatch):
    monkeypatch.setenv("SOME_VALUE", "  ")
    assert get_env("SOME_VALUE") is None
    monkeypatch.setenv("SOME_VALUE", " x ")
    assert get_env("SOME_VALUE") == "x"


def test_key_styles():
    assert to_camel("working_directory") == "workingDirectory"
    assert to_snake("workingDirectory") == "working_directory"
    assert to_snake("working-directory") == "working_directory"
    assert to_snake("check_format") == "check_format"
