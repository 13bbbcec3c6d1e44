"""Generate sample output."""

from pathlib import Path

from git_folder_triage.format import LEGEND, format_report
from git_folder_triage.status import ProjectStatus

report = [
    ProjectStatus(Path("my-repo"), is_dirty=True, status_string=" M README.md"),
    ProjectStatus(Path("my-other-repo"), upstreamed=False),
    ProjectStatus(Path("my-3rd-repo"), is_dirty=True, has_stash=True),
    ProjectStatus(Path("repo-4"), has_stash=True, is_dirty_snoozed=True),
    ProjectStatus(Path("repo-5")),
]
print(LEGEND)
print(format_report(report, include_ok=False, fmt="report"))
