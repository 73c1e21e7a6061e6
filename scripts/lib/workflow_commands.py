"""GitHub Actions workflow command helpers.

Reads action inputs from the INPUT_* environment the runner provides, and
writes log lines that the runner turns into annotations and masks.
"""
from __future__ import annotations

import os
import sys
from typing import Literal, Mapping

LogLevel = Literal["info", "warning", "error"]

TRUE_VALUES = ("true", "True", "TRUE")
FALSE_VALUES = ("false", "False", "FALSE")


class InputError(RuntimeError):
    """An action input is missing or invalid."""


def _input_env_name(name: str) -> str:
    return "INPUT_" + name.replace(" ", "_").upper()


def get_input(name: str, env: Mapping[str, str] | None = None) -> str:
    """Return the stripped value of an action input, or "" when unset."""
    source = os.environ if env is None else env
    return (source.get(_input_env_name(name)) or "").strip()


def get_boolean_input(name: str, env: Mapping[str, str] | None = None) -> bool:
    """Parse an action input as a YAML 1.2 core schema boolean."""
    value = get_input(name, env)
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise InputError(
        f'Input does not meet YAML 1.2 "Core Schema" specification: {name}\n'
        "Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )


def set_secret(value: str) -> None:
    """Register a value with the runner so it is redacted from logs."""
    if value:
        print(f"::add-mask::{value}")


def log(header: str, message: str, level: LogLevel = "info") -> None:
    line = f"{header.ljust(3)}{message}"
    if level == "info":
        print(line)
    else:
        print(f"::{level}::{line}", file=sys.stderr)


def info(header: str, message: str) -> None:
    log(header, message, "info")


def warning(header: str, message: str) -> None:
    log(header, message, "warning")


def error(header: str, message: str) -> None:
    log(header, message, "error")
