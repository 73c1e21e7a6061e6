#!/usr/bin/env python3
"""Delete a git tag and, optionally, the releases published from it.

Reads the action inputs from the INPUT_* environment. The flags below
override those inputs for local runs; the token is only read from the
environment.
"""
from __future__ import annotations

import argparse
import os
import sys

from lib.github import GhReleaseApi
from lib.inputs import InputError, resolve_inputs
from lib.tag_cleanup import TagCleanupError, run
from lib.workflow_commands import error


def _build_env(args: argparse.Namespace) -> dict[str, str]:
    env = dict(os.environ)
    if args.tag_name is not None:
        env["INPUT_TAG_NAME"] = args.tag_name
    if args.repo is not None:
        env["INPUT_REPO"] = args.repo
    if args.delete_release is not None:
        env["INPUT_DELETE_RELEASE"] = args.delete_release
    return env


def main(argv: list[str]) -> int:
    """Main."""
    parser = argparse.ArgumentParser(
        prog="delete-tag-and-release.py",
        description="Delete a tag and, optionally, its non-draft releases.",
    )
    parser.add_argument("--tag-name", default=None, help="Tag to delete (default: env INPUT_TAG_NAME)")
    parser.add_argument("--repo", default=None, help="owner/repo (default: env INPUT_REPO, then GITHUB_REPOSITORY)")
    parser.add_argument(
        "--delete-release",
        default=None,
        help="true/false: also delete releases for the tag (default: env INPUT_DELETE_RELEASE)",
    )
    args = parser.parse_args(argv)

    try:
        inputs = resolve_inputs(_build_env(args))
        run(inputs, GhReleaseApi(inputs.github_token))
    except (InputError, TagCleanupError) as exc:
        error("🌶", str(exc))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
