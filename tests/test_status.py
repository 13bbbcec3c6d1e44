"""Tests for status module."""

import logging
from pathlib import Path
from unittest.mock import Mock

import pytest
from git import Repo
from git.refs.remote import RemoteReference

from git_folder_triage.errors import (
    LocalBranchNotFound,
    NoMainishBranch,
    RemoteRefNotFound,
    RepoOpenFailed,
    WorktreeStatusFailed,
)
from git_folder_triage.status import (
    ProjectStatus,
    has_stash,
    is_branch_upstreamed,
    is_upstreamed,
    likely_mainish_branch,
    project_status,
    status_for_one_folder,
)

from .conftest import RepoFactory, commit_file, make_repo, set_origin_branch


def _remote_ref(name: str) -> Mock:
    ref = Mock(spec=RemoteReference)
    ref.name = name
    return ref


class TestProjectStatus:
    """Test ProjectStatus."""

    def test_default_is_clean(self) -> None:
        """Test a status without findings is clean."""
        assert ProjectStatus(Path("repo")).clean

    @pytest.mark.parametrize(
        "findings",
        [
            {"is_dirty": True},
            {"has_stash": True},
            {"upstreamed": False},
        ],
    )
    def test_any_finding_is_not_clean(self, findings: dict[str, bool]) -> None:
        """Test each finding makes the status not clean."""
        assert not ProjectStatus(Path("repo"), **findings).clean

    def test_name(self) -> None:
        """Test name is the folder name."""
        assert ProjectStatus(Path("/some/where/my-repo")).name == "my-repo"


class TestIsBranchUpstreamed:
    """Test is_branch_upstreamed function."""

    def test_up_to_date(self, up_to_date_repo: Repo) -> None:
        """Test a branch at the same commit as origin."""
        assert is_branch_upstreamed(up_to_date_repo, "main", "main") is True

    def test_no_upstream(self, repo_factory: RepoFactory) -> None:
        """Test a branch without a counterpart on origin."""
        repo = repo_factory("no-upstream")
        commit_file(repo)
        with pytest.raises(RemoteRefNotFound):
            is_branch_upstreamed(repo, "main", "main")

    def test_not_upstreamed(self, repo_factory: RepoFactory) -> None:
        """Test a branch with commits that origin lacks."""
        repo = repo_factory("not-upstreamed")
        set_origin_branch(repo, "main", commit_file(repo, message="first"))
        commit_file(repo, message="second")
        assert is_branch_upstreamed(repo, "main", "main") is False

    def test_behind_upstream(self, repo_factory: RepoFactory) -> None:
        """Test a branch that is behind origin."""
        repo = repo_factory("behind-upstream")
        first = commit_file(repo, message="first")
        set_origin_branch(repo, "main", commit_file(repo, message="second"))
        repo.git.reset("--hard", first)
        assert is_branch_upstreamed(repo, "main", "main") is True

    def test_diverged(self, repo_factory: RepoFactory) -> None:
        """Test a branch that diverged from origin."""
        repo = repo_factory("diverged")
        first = commit_file(repo, message="first")
        set_origin_branch(repo, "main", commit_file(repo, message="second"))
        repo.git.reset("--hard", first)
        commit_file(repo, name="other.txt", message="third")
        assert is_branch_upstreamed(repo, "main", "main") is False

    def test_missing_local_branch(self, up_to_date_repo: Repo) -> None:
        """Test a local branch that does not exist."""
        with pytest.raises(LocalBranchNotFound):
            is_branch_upstreamed(up_to_date_repo, "nope", "main")

    def test_remote_ref_not_found_is_distinct(self) -> None:
        """Test the expected error is not a local branch error."""
        assert not issubclass(RemoteRefNotFound, LocalBranchNotFound)


class TestLikelyMainishBranch:
    """Test likely_mainish_branch function."""

    def test_main(self, up_to_date_repo: Repo) -> None:
        """Test origin/main is found."""
        assert likely_mainish_branch(up_to_date_repo) == "main"

    def test_master(self, repo_factory: RepoFactory) -> None:
        """Test origin/master is used when there is no origin/main."""
        repo = repo_factory("old", branch="master")
        set_origin_branch(repo, "master", commit_file(repo))
        assert likely_mainish_branch(repo) == "master"

    def test_main_preferred_over_master(self, repo_factory: RepoFactory) -> None:
        """Test origin/main wins when both exist."""
        repo = repo_factory("both")
        sha = commit_file(repo)
        set_origin_branch(repo, "main", sha)
        set_origin_branch(repo, "master", sha)
        assert likely_mainish_branch(repo) == "main"

    @pytest.mark.parametrize(
        "names",
        [
            ["origin/main", "origin/master"],
            ["origin/master", "origin/main"],
        ],
    )
    def test_preference_ignores_ref_order(self, names: list[str]) -> None:
        """Test the preference does not depend on enumeration order."""
        mock_repo = Mock(spec=Repo)
        mock_repo.refs = [_remote_ref(name) for name in names]
        assert likely_mainish_branch(mock_repo) == "main"

    def test_other_remotes_ignored(self) -> None:
        """Test only origin is considered."""
        mock_repo = Mock(spec=Repo)
        mock_repo.refs = [_remote_ref("upstream/main"), _remote_ref("origin/dev")]
        with pytest.raises(NoMainishBranch):
            likely_mainish_branch(mock_repo)

    def test_local_branches_ignored(self, repo_factory: RepoFactory) -> None:
        """Test a local main branch is not a remote branch."""
        repo = repo_factory("local-only")
        commit_file(repo)
        with pytest.raises(NoMainishBranch):
            likely_mainish_branch(repo)


class TestIsUpstreamed:
    """Test is_upstreamed function."""

    def test_up_to_date(self, up_to_date_repo: Repo) -> None:
        """Test a branch upstreamed to its counterpart."""
        assert is_upstreamed(up_to_date_repo, "repo") is True

    def test_detached_head(
        self, up_to_date_repo: Repo, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a detached HEAD is not upstreamed."""
        up_to_date_repo.git.checkout(up_to_date_repo.head.commit.hexsha)
        with caplog.at_level(logging.INFO, logger="git_folder_triage"):
            assert is_upstreamed(up_to_date_repo, "repo") is False
        assert "local checkout does not have branch name" in caplog.text

    def test_feature_branch_merged_to_main(
        self, repo_factory: RepoFactory, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a feature branch contained in origin/main."""
        repo = repo_factory("feature")
        commit_file(repo, message="first")
        repo.git.checkout("-b", "feat")
        feat = commit_file(repo, message="feature")
        set_origin_branch(repo, "main", feat)
        with caplog.at_level(logging.INFO, logger="git_folder_triage"):
            assert is_upstreamed(repo, "repo") is True
        assert all(r.levelno == logging.INFO for r in caplog.records)

    def test_feature_branch_not_merged(self, repo_factory: RepoFactory) -> None:
        """Test a feature branch with commits not in origin/main."""
        repo = repo_factory("feature")
        set_origin_branch(repo, "main", commit_file(repo, message="first"))
        repo.git.checkout("-b", "feat")
        commit_file(repo, message="feature")
        assert is_upstreamed(repo, "repo") is False

    def test_no_mainish_branch(
        self, repo_factory: RepoFactory, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a repo without origin branches."""
        repo = repo_factory("local")
        commit_file(repo)
        with caplog.at_level(logging.INFO, logger="git_folder_triage"):
            assert is_upstreamed(repo, "repo") is False
        assert "could not determine upstream branch" in caplog.text

    def test_empty_repo(self, repo_factory: RepoFactory) -> None:
        """Test a repo without commits."""
        repo = repo_factory("empty")
        assert is_upstreamed(repo, "repo") is False


class TestHasStash:
    """Test has_stash function."""

    def test_no_stash(self, up_to_date_repo: Repo) -> None:
        """Test a repo without stashes."""
        assert has_stash(up_to_date_repo) is False

    def test_stash(self, up_to_date_repo: Repo) -> None:
        """Test a repo with a stash."""
        assert up_to_date_repo.working_tree_dir is not None
        (Path(up_to_date_repo.working_tree_dir) / "file.txt").write_text("changed\n")
        up_to_date_repo.git.stash()
        assert has_stash(up_to_date_repo) is True


class TestProjectStatusOfRepo:
    """Test project_status and status_for_one_folder functions."""

    def test_clean(self, up_to_date_repo: Repo, tmp_path: Path) -> None:
        """Test a clean, upstreamed repo."""
        status = project_status(up_to_date_repo, tmp_path / "up-to-date")
        assert status.clean
        assert status.status_string is None

    def test_dirty_tracked_file(self, up_to_date_repo: Repo, tmp_path: Path) -> None:
        """Test a modified tracked file."""
        path = tmp_path / "up-to-date"
        (path / "file.txt").write_text("changed\n")
        status = project_status(up_to_date_repo, path, show_changes=True)
        assert status.is_dirty
        assert status.status_string is not None
        assert "file.txt" in status.status_string

    def test_untracked_file(self, up_to_date_repo: Repo, tmp_path: Path) -> None:
        """Test an untracked file makes the repo dirty."""
        path = tmp_path / "up-to-date"
        (path / "new.txt").write_text("new\n")
        status = project_status(up_to_date_repo, path)
        assert status.is_dirty
        assert status.status_string is None

    def test_bare_repo(self, tmp_path: Path) -> None:
        """Test a bare repo has no worktree status."""
        repo = Repo.init(tmp_path / "bare", bare=True)
        with pytest.raises(WorktreeStatusFailed):
            project_status(repo, tmp_path / "bare")

    def test_status_for_one_folder(self, tmp_path: Path) -> None:
        """Test a folder with a repo on a local-only branch."""
        repo = make_repo(tmp_path / "repo")
        commit_file(repo)
        status = status_for_one_folder(tmp_path / "repo")
        assert status.path == tmp_path / "repo"
        assert not status.is_dirty
        assert not status.has_stash
        assert not status.upstreamed

    def test_not_a_repo(self, tmp_path: Path) -> None:
        """Test a folder that is not a repo."""
        (tmp_path / "plain").mkdir()
        with pytest.raises(RepoOpenFailed):
            status_for_one_folder(tmp_path / "plain")

    def test_missing_folder(self, tmp_path: Path) -> None:
        """Test a folder that does not exist."""
        with pytest.raises(RepoOpenFailed):
            status_for_one_folder(tmp_path / "missing")
