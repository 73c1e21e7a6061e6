"""Delete a tag and, optionally, the non-draft releases pointing at it.

Steps run strictly in order: prune releases (when asked), then delete the
tag reference. Any fatal failure raises; the entrypoint maps that to a
non-zero exit status. Releases deleted before a failure stay deleted.
"""
from __future__ import annotations

from lib.github import GitHubApiError, Release, ReleaseApi
from lib.inputs import InputError, QualifiedRepo, WorkflowInput
from lib.workflow_commands import error, info, warning

TAG_REF_PREFIX = "refs/tags/"
REF_NOT_FOUND_MESSAGE = "Reference does not exist"


class TagCleanupError(RuntimeError):
    """A workflow step failed and the run must end with a failure status."""


class ListingError(TagCleanupError):
    """Releases could not be listed, so none can be pruned safely."""


class ReleaseDeletionError(TagCleanupError):
    """Deleting one release failed; later releases were not attempted."""

    def __init__(self, message: str, *, release_id: int, deleted: tuple[int, ...]) -> None:
        super().__init__(message)
        self.release_id = release_id
        self.deleted = deleted


class TagDeletionError(TagCleanupError):
    """The tag reference could not be deleted for a reason other than absence."""


def create_tag_ref(tag_name: str) -> str:
    """Return the git reference for a tag. The name is not escaped."""
    return f"{TAG_REF_PREFIX}{tag_name}"


def select_releases(releases: list[Release], tag_name: str) -> list[Release]:
    return [r for r in releases if r.tag_name == tag_name and not r.draft]


def prune_releases(api: ReleaseApi, repo: QualifiedRepo, tag_name: str) -> list[int]:
    """Delete every published release for tag_name, one at a time.

    Returns:
        Ids of the deleted releases, in listing order.

    Raises:
        ListingError: the release listing failed.
        ReleaseDeletionError: a deletion failed; nothing after it was attempted.
    """
    try:
        releases = api.list_releases(repo)
    except GitHubApiError as exc:
        raise ListingError(f"failed to get list of releases <- {exc.message}") from exc

    targets = select_releases(releases, tag_name)
    if not targets:
        warning("😕", f'no releases found associated to tag "{tag_name}"')
        return []
    info("🍻", f"found {len(targets)} releases to delete")

    deleted: list[int] = []
    for release in targets:
        try:
            api.delete_release(repo, release.id)
        except GitHubApiError as exc:
            raise ReleaseDeletionError(
                f'failed to delete release with id "{release.id}" <- {exc.message}',
                release_id=release.id,
                deleted=tuple(deleted),
            ) from exc
        deleted.append(release.id)

    info("👍🏼", "all releases deleted successfully!")
    return deleted


def delete_tag(api: ReleaseApi, repo: QualifiedRepo, tag_name: str) -> bool:
    """Delete the tag reference.

    Returns:
        True when the reference was deleted, False when it was already gone.

    Raises:
        TagDeletionError: the deletion failed for any other reason.
    """
    ref = create_tag_ref(tag_name)
    try:
        api.delete_ref(repo, ref)
    except GitHubApiError as exc:
        error("🌶", f'failed to delete ref "{ref}" <- {exc.message}')
        if exc.message == REF_NOT_FOUND_MESSAGE:
            warning("😕", "Proceeding anyway, because tag not existing is the goal")
            return False
        raise TagDeletionError(f'An error occurred while deleting the tag "{tag_name}"') from exc

    info("✅", f'"{tag_name}" deleted successfully!')
    return True


def validate_inputs(inputs: WorkflowInput) -> None:
    """Re-check fields that may have come from untyped sources."""
    if not isinstance(inputs.tag_name, str) or not inputs.tag_name:
        raise InputError("no tag name provided as an input.")
    if not isinstance(inputs.github_token, str) or not inputs.github_token:
        raise InputError("no Github token provided")
    if not isinstance(inputs.should_delete_releases, bool):
        raise InputError(
            f"an invalid value for shouldDeleteReleases was provided: {inputs.should_delete_releases!r}"
        )
    repo = inputs.repo
    if not isinstance(repo, QualifiedRepo) or not repo.owner or not repo.name:
        raise InputError("An invalid repo was provided!")


def run(inputs: WorkflowInput, api: ReleaseApi) -> None:
    """Run the action for validated inputs.

    Raises:
        InputError: inputs failed validation; no API call was made.
        TagCleanupError: a step failed.
    """
    validate_inputs(inputs)

    info("🏷", f'given tag is "{inputs.tag_name}"')
    info("📕", f'given repo is "{inputs.repo.slug}"')
    info("📕", f'delete releases is set to "{str(inputs.should_delete_releases).lower()}"')

    if inputs.should_delete_releases:
        prune_releases(api, inputs.repo, inputs.tag_name)
    delete_tag(api, inputs.repo, inputs.tag_name)
