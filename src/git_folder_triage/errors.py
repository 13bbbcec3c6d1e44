"""Exceptions raised while triaging a folder of repos."""


class TriageError(Exception):
    """Base exception for git_folder_triage."""


class RepoOpenFailed(TriageError):
    """Raised when a directory can't be opened as a git repo."""


class WorktreeStatusFailed(TriageError):
    """Raised when the working tree state of a repo can't be computed."""


class UpstreamError(TriageError):
    """Base exception for upstream resolution."""


class LocalBranchNotFound(UpstreamError):
    """Raised when a local branch has no resolvable commit."""


class RemoteRefNotFound(UpstreamError):
    """Raised when origin has no branch with the requested name.

    This is expected for new branches, and is not a failure of the check.
    """


class NoMainishBranch(UpstreamError):
    """Raised when origin has neither a main nor a master branch."""


class UpstreamCheckFailed(UpstreamError):
    """Raised when the ancestry check itself fails."""


class SuppressionStoreUnreadable(TriageError):
    """Raised when the snooze file exists but can't be decoded."""


class InvalidDuration(TriageError, ValueError):
    """Raised for a snooze duration that can't be parsed."""


class InvalidSnoozeCheck(TriageError, ValueError):
    """Raised for an unknown snooze check name."""
