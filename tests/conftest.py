"""Fixtures that build real git repos in a temp folder."""

from collections.abc import Callable
from pathlib import Path

import pytest
from git import Actor, Repo

AUTHOR = Actor("Test User", "test@example.com")

RepoFactory = Callable[..., Repo]


def commit_file(repo: Repo, name: str = "file.txt", message: str = "commit") -> str:
    """Write a file, commit it, and return the commit hash."""
    assert repo.working_tree_dir is not None
    path = Path(repo.working_tree_dir) / name
    path.write_text(f"{message}\n")
    repo.index.add([str(path)])
    return repo.index.commit(message, author=AUTHOR, committer=AUTHOR).hexsha


def set_origin_branch(repo: Repo, branch: str, hexsha: str) -> None:
    """Point origin/<branch> at a commit, as if it was fetched."""
    repo.git.update_ref(f"refs/remotes/origin/{branch}", hexsha)


def make_repo(path: Path, branch: str = "main") -> Repo:
    """Create a repo with a configured user."""
    repo = Repo.init(path, initial_branch=branch)
    with repo.config_writer() as config:
        config.set_value("user", "name", AUTHOR.name)
        config.set_value("user", "email", AUTHOR.email)
        config.set_value("commit", "gpgsign", "false")
    return repo


@pytest.fixture
def repo_factory(tmp_path: Path) -> RepoFactory:
    """Return a function that creates repos under tmp_path."""

    def factory(name: str, branch: str = "main") -> Repo:
        return make_repo(tmp_path / name, branch)

    return factory


@pytest.fixture
def up_to_date_repo(repo_factory: RepoFactory) -> Repo:
    """A repo on main, with origin/main at the same commit."""
    repo = repo_factory("up-to-date")
    set_origin_branch(repo, "main", commit_file(repo))
    return repo
