"""Workflow commands understood by the GitHub Actions runner.

Everything the step reports goes through stdout as `::command::message` lines,
or through the files the runner names in `GITHUB_OUTPUT` and
`GITHUB_STEP_SUMMARY`.
"""
from contextlib import contextmanager
from typing import Iterator
import os
import sys
import uuid


def escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def escape_property(value: str) -> str:
    return escape_data(value).replace(":", "%3A").replace(",", "%2C")


def issue(command: str, message: str = "", **properties: str | None) -> None:
    """Prints a single workflow command, skipping empty properties."""
    props = ",".join(f"{k}={escape_property(str(v))}" for k, v in properties.items() if v)
    head = f"{command} {props}" if props else command
    print(f"::{head}::{escape_data(str(message))}", flush=True)


def debug(message: str) -> None:
    issue("debug", message)


def info(message: str) -> None:
    print(message, flush=True)


def warning(message: str, title: str | None = None) -> None:
    issue("warning", message, title=title)


def error(message: str, title: str | None = None) -> None:
    issue("error", message, title=title)


def set_failed(message: str, title: str | None = None) -> None:
    """Reports the error and exits the step with code 1."""
    error(message, title=title)
    sys.exit(1)


@contextmanager
def group(name: str) -> Iterator[None]:
    """Folds everything printed inside the block under `name` in the job log."""
    issue("group", name)
    try:
        yield
    finally:
        issue("endgroup")


def _file_command(env: str) -> str | None:
    path = os.environ.get(env, "").strip()
    return path or None


def set_output(name: str, value: object) -> None:
    """Sets a step output. Values are always transported as strings."""
    value = str(value)
    path = _file_command("GITHUB_OUTPUT")

    # older runners without file commands
    if path is None:
        issue("set-output", value, name=name)
        return

    if "\n" in value:
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        entry = f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
    else:
        entry = f"{name}={value}\n"

    with open(path, "a", encoding="utf-8") as f:
        f.write(entry)


def append_summary(markdown: str) -> None:
    """Appends markdown to the job summary page."""
    path = _file_command("GITHUB_STEP_SUMMARY")
    if path is None:
        debug("GITHUB_STEP_SUMMARY is not set, skipping job summary.")
        return

    with open(path, "a", encoding="utf-8") as f:
        f.write(markdown)
