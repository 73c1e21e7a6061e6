"""Resolve action inputs into a validated WorkflowInput."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from lib.workflow_commands import (
    InputError,
    get_boolean_input,
    get_input,
    set_secret,
    warning,
)

__all__ = ["InputError", "QualifiedRepo", "WorkflowInput", "parse_repo", "resolve_inputs"]


@dataclass(frozen=True)
class QualifiedRepo:
    owner: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class WorkflowInput:
    """Everything one run needs; built once at the process boundary."""
    github_token: str = field(repr=False)
    repo: QualifiedRepo
    tag_name: str
    should_delete_releases: bool


def parse_repo(value: str) -> QualifiedRepo | None:
    """Split "owner/name". Returns None when only one of the parts is present."""
    parts = [part.strip() for part in value.split("/")]
    if len(parts) != 2:
        return None
    owner, name = parts
    if not owner or not name:
        return None
    return QualifiedRepo(owner=owner, name=name)


def _resolve_tag_name(env: Mapping[str, str]) -> str:
    tag_name = get_input("tag_name", env)
    if not tag_name:
        raise InputError("no tag name provided as an input.")
    return tag_name


def _resolve_token(env: Mapping[str, str]) -> str:
    input_token = get_input("github_token", env)
    if input_token:
        return input_token

    env_token = env.get("GITHUB_TOKEN")
    if env_token:
        warning(
            "⚠️",
            "Providing the GitHub token from the environment variable is deprecated. "
            'Provide it as an input with the name "github_token" instead.',
        )
        return env_token

    raise InputError(
        'A valid GitHub token was not provided. Provide it as an input with the name "github_token"'
    )


def _resolve_should_delete_releases(env: Mapping[str, str]) -> bool:
    # Optional input: only parse it when something was actually passed.
    if not get_input("delete_release", env):
        return False
    return get_boolean_input("delete_release", env)


def _resolve_repo(env: Mapping[str, str]) -> QualifiedRepo:
    input_repo = get_input("repo", env)
    if input_repo:
        repo = parse_repo(input_repo)
        if repo is None:
            raise InputError(
                f'a valid repo was not given. Expected "{input_repo}" to be in the form of "owner/repo"'
            )
        return repo

    ambient = (env.get("GITHUB_REPOSITORY") or "").strip()
    if not ambient:
        raise InputError(
            'no repo was given and GITHUB_REPOSITORY is not set. Provide the "repo" input as "owner/repo"'
        )
    repo = parse_repo(ambient)
    if repo is None:
        raise InputError(f'GITHUB_REPOSITORY "{ambient}" is not in the form of "owner/repo"')
    return repo


def resolve_inputs(env: Mapping[str, str] | None = None) -> WorkflowInput:
    """Build the WorkflowInput from action inputs and runner variables.

    Raises:
        InputError: a required value is missing or malformed.
    """
    source = os.environ if env is None else env

    tag_name = _resolve_tag_name(source)
    github_token = _resolve_token(source)
    set_secret(github_token)
    should_delete_releases = _resolve_should_delete_releases(source)
    repo = _resolve_repo(source)

    return WorkflowInput(
        github_token=github_token,
        repo=repo,
        tag_name=tag_name,
        should_delete_releases=should_delete_releases,
    )
