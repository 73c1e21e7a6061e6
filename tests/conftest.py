"""Import helpers for scripts that aren't packages, plus a fake GitHub API."""
import importlib.util
import sys
from pathlib import Path

import pytest

SCRIPTS_DIR = Path(__file__).parent.parent / "scripts"

# Add scripts/ to sys.path so tests and delete-tag-and-release.py can import lib.
if str(SCRIPTS_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPTS_DIR))

from lib.github import Release  # noqa: E402


def _import_script(name: str, filename: str):
    """Import a script file as a module using importlib."""
    spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / filename)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


delete_tag_and_release = _import_script("delete_tag_and_release", "delete-tag-and-release.py")


class FakeReleaseApi:
    """In-memory ReleaseApi that records every call in order."""

    def __init__(self, releases=None, *, list_error=None, release_errors=None, ref_error=None):
        self.releases = list(releases or [])
        self.list_error = list_error
        self.release_errors = dict(release_errors or {})
        self.ref_error = ref_error
        self.calls: list[tuple] = []

    def list_releases(self, repo):
        self.calls.append(("list_releases", repo.slug))
        if self.list_error is not None:
            raise self.list_error
        return list(self.releases)

    def delete_release(self, repo, release_id):
        self.calls.append(("delete_release", repo.slug, release_id))
        if release_id in self.release_errors:
            raise self.release_errors[release_id]

    def delete_ref(self, repo, ref):
        self.calls.append(("delete_ref", repo.slug, ref))
        if self.ref_error is not None:
            raise self.ref_error

    def calls_named(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


def release(release_id: int, tag_name: str, *, draft: bool = False) -> Release:
    return Release(id=release_id, tag_name=tag_name, draft=draft)


@pytest.fixture(autouse=True)
def _isolated_action_env(monkeypatch):
    """Keep the runner's own inputs and token out of tests."""
    for key in ("INPUT_GITHUB_TOKEN", "INPUT_REPO", "INPUT_TAG_NAME", "INPUT_DELETE_RELEASE",
                "GITHUB_TOKEN", "GITHUB_REPOSITORY", "GH_TOKEN", "GH_HOST", "GITHUB_SERVER_URL"):
        monkeypatch.delenv(key, raising=False)
