from typing import Dict, Literal, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict
from re import sub
import os
import yaml

from . import core

COMMANDS = ["plan", "apply", "destroy"]


def coerce_empty(val: str | None) -> str | None:
    if isinstance(val, str):
        if val.strip() == "":
            return None
        return val.strip()
    return val


def coerce_flag(val: Any) -> bool:
    """Action inputs are always strings, so only the literal `"true"` turns
    a flag on. Real booleans (from yaml) pass through."""
    if isinstance(val, str):
        return val.strip() == "true"
    return bool(val)


def get_env(name: str) -> str | None:
    """Checks the environment variables by name. Since
    the action uses `""` for unset, will return this is
    as None.

    Args:
        name (str): Name of environment variable

    Returns:
        str | None: Value of environment variable if set, else None
    """

    variable = os.environ.get(name, "").strip()
    if variable == "":
        return None
    return variable


def to_camel(s):
    s = sub(r"(_|-)+", " ", s).title().replace(" ", "")
    return ''.join([s[0].lower(), s[1:]])


def to_snake(s):
    s = sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", s)
    return sub(r"[-\s]+", "_", s).lower()


class BaseSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ActionSettings(BaseSchema):
    command: Literal["plan"] | Literal["apply"] | Literal["destroy"]
    working_directory: str = Field(".")
    workspace: str = Field("default")
    check_format: bool = Field(False)
    validate_module: bool = Field(False)

    @field_validator("command", mode="before")
    @classmethod
    def v_command(cls, value: str | None):
        value = coerce_empty(value)
        if value is None:
            raise ValueError("Input required and not supplied: command")
        if value not in COMMANDS:
            raise ValueError("Terraform command only supports 'plan', 'apply' or 'destroy'.")
        return value

    @field_validator("working_directory", mode="before")
    @classmethod
    def v_working_directory(cls, value: str | None):
        return coerce_empty(value) or "."

    @field_validator("workspace", mode="before")
    @classmethod
    def v_workspace(cls, value: str | None):
        return coerce_empty(value) or "default"

    @field_validator("check_format", "validate_module", mode="before")
    @classmethod
    def v_flags(cls, value: Any):
        return coerce_flag(value)


def load_inputs() -> Dict[str, Any]:
    """The runner exposes every action input as `INPUT_<NAME>`, upper cased
    with the dashes kept, e.g. `INPUT_WORKING-DIRECTORY`."""
    inputs = {}
    for key, value in os.environ.items():
        if key.upper().startswith("INPUT_"):
            inputs[to_snake(key[len("INPUT_"):].lower())] = value
    return {"config": inputs}


def load_experimental() -> Dict[str, Any]:

    try:
        if raw := get_env("YAML_CONFIG"):
            config = yaml.safe_load(raw)
            if not isinstance(config, dict):
                raise ValueError("expected a mapping at the top level")
            # same key names as the other sources, so priority holds for camelCase keys too
            return {"config": {to_snake(str(k)): v for k, v in config.items()}}
    except Exception as e:
        core.warning(f"Could not load config file, using defaults. Reason:{e}.", title="Experimental Config")
    return {"config": {}}


class Settings(BaseSettings):
    config: ActionSettings

    model_config = SettingsConfigDict(env_nested_delimiter='__')

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Prioritize ENV settings, then action inputs"""
        return env_settings, load_inputs, load_experimental, init_settings, file_secret_settings
