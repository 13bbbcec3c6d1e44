"""Compute the status of a single repo.

A repo has three findings: a dirty working tree, stashed changes, and a
checked-out branch that is not upstreamed. A branch is upstreamed if its
history is contained in its counterpart on ``origin``, or failing that, in
the ``main``/``master`` branch on ``origin``.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo
from git.refs.head import Head
from git.refs.remote import RemoteReference

from .errors import (
    LocalBranchNotFound,
    NoMainishBranch,
    RemoteRefNotFound,
    RepoOpenFailed,
    UpstreamCheckFailed,
    UpstreamError,
    WorktreeStatusFailed,
)

LOGGER = logging.getLogger(__name__)

REMOTE_NAME = "origin"
MAINISH_BRANCHES = ("main", "master")


@dataclass
class ProjectStatus:
    """The findings for one scanned directory."""

    path: Path
    is_dirty: bool = False
    has_stash: bool = False
    upstreamed: bool = True
    is_dirty_snoozed: bool = False
    has_stash_snoozed: bool = False
    upstreamed_snoozed: bool = False
    status_string: str | None = None

    @property
    def clean(self) -> bool:
        """Return True if there is nothing to report."""
        return not self.is_dirty and not self.has_stash and self.upstreamed

    @property
    def name(self) -> str:
        """Return the display name of the project."""
        return self.path.name


def has_stash(repo: Repo) -> bool:
    """Check if the repo has a stash."""
    return (Path(repo.common_dir) / "refs" / "stash").exists()


def likely_mainish_branch(repo: Repo) -> str:
    """Return the name of the integration branch on origin.

    ``main`` is preferred over ``master`` when both exist.
    """
    remote_refs = {ref.name for ref in repo.refs if isinstance(ref, RemoteReference)}
    for branch in MAINISH_BRANCHES:
        if f"{REMOTE_NAME}/{branch}" in remote_refs:
            return branch
    raise NoMainishBranch("neither main nor master branch exists")


def is_branch_upstreamed(repo: Repo, local_branch: str, remote_branch: str) -> bool:
    """Check if a local branch is contained in a branch on origin.

    Raises RemoteRefNotFound if origin has no such branch.
    """
    local_ref = Head(repo, f"refs/heads/{local_branch}")
    if not local_ref.is_valid():
        raise LocalBranchNotFound(f"could not get local branch '{local_branch}'")
    remote_ref = RemoteReference(repo, f"refs/remotes/{REMOTE_NAME}/{remote_branch}")
    if not remote_ref.is_valid():
        raise RemoteRefNotFound(f"'{REMOTE_NAME}/{remote_branch}' does not exist")
    try:
        return repo.is_ancestor(local_ref.commit.hexsha, remote_ref.commit.hexsha)
    except (GitCommandError, ValueError) as e:
        raise UpstreamCheckFailed(
            f"cannot compare '{local_branch}' with '{REMOTE_NAME}/{remote_branch}'"
        ) from e


def is_upstreamed(repo: Repo, label: str) -> bool:  # noqa: PLR0911
    """Check if the checked-out branch is upstreamed.

    Problems are logged, and count as not upstreamed.
    """
    try:
        head = repo.head
        if head.is_detached:
            LOGGER.warning("%s: local checkout does not have branch name", label)
            return False
        branch = repo.active_branch.name
    except (TypeError, ValueError) as e:
        LOGGER.warning("%s: error getting HEAD: %s", label, e)
        return False

    try:
        if is_branch_upstreamed(repo, branch, branch):
            return True
    except RemoteRefNotFound as e:
        LOGGER.info("%s: %s", label, e)
    except LocalBranchNotFound as e:
        LOGGER.warning("%s: %s", label, e)
        return False
    except UpstreamError as e:
        LOGGER.warning(
            "%s: error checking if branch itself is upstreamed: %s", label, e
        )

    try:
        mainish = likely_mainish_branch(repo)
    except NoMainishBranch as e:
        LOGGER.warning("%s: could not determine upstream branch: %s", label, e)
        return False

    try:
        return is_branch_upstreamed(repo, branch, mainish)
    except RemoteRefNotFound:
        LOGGER.info("%s: origin does not have %s branch", label, mainish)
        return False
    except UpstreamError as e:
        LOGGER.warning(
            "%s: error checking if branch is upstreamed into %s: %s", label, mainish, e
        )
        return False


def project_status(
    repo: Repo, path: Path, *, show_changes: bool = False
) -> ProjectStatus:
    """Return the status of an open repo."""
    if repo.bare:
        raise WorktreeStatusFailed(f"'{path}' is a bare repo, it has no worktree")
    try:
        is_dirty = repo.is_dirty(untracked_files=True)
        status_string = None
        if show_changes and is_dirty:
            status_string = repo.git.status("--short")
    except GitCommandError as e:
        raise WorktreeStatusFailed(f"could not get repo status of '{path}'") from e
    return ProjectStatus(
        path=path,
        is_dirty=is_dirty,
        has_stash=has_stash(repo),
        upstreamed=is_upstreamed(repo, path.name),
        status_string=status_string,
    )


def status_for_one_folder(folder: Path, *, show_changes: bool = False) -> ProjectStatus:
    """Return the status of the repo in a folder."""
    try:
        repo = Repo(folder)
    except (InvalidGitRepositoryError, NoSuchPathError) as e:
        raise RepoOpenFailed(f"'{folder}' is not a git repo") from e
    except PermissionError as e:
        raise RepoOpenFailed(f"'{folder}' is not accessible") from e
    with repo:
        return project_status(repo, folder, show_changes=show_changes)
