"""Format a report of `git_folder_triage`."""

import json
import pprint
import textwrap
from collections.abc import Iterable
from typing import Literal, get_args

import yaml
from colorama import Fore

from .status import ProjectStatus

REPORT_FORMATS_TYPE = Literal["report", "yaml", "json", "pprint"]
REPORT_FORMATS: list[str] = list(get_args(REPORT_FORMATS_TYPE))

DIRTY_EMOJI = "🚧"
STASH_EMOJI = "🗄️"
NOT_UPSTREAMED_EMOJI = "📤"
CLEAN_EMOJI = "✅"

LEGEND = "\n".join(
    [
        "Emoji Legend:",
        f"  {DIRTY_EMOJI}: Dirty working directory",
        f"  {STASH_EMOJI}: Stashed changes",
        f"  {NOT_UPSTREAMED_EMOJI}: Not upstreamed",
        "",
    ]
)

ProjectReport = dict[str, "bool | str | list[str]"]


def status_to_dict(status: ProjectStatus) -> ProjectReport:
    """Return the findings of a project, without the empty ones."""
    snoozed = [
        name
        for name, value in [
            ("dirty", status.is_dirty_snoozed),
            ("stash", status.has_stash_snoozed),
            ("upstream", status.upstreamed_snoozed),
        ]
        if value
    ]
    report: ProjectReport = {
        "is_dirty": status.is_dirty,
        "has_stash": status.has_stash,
        "not_upstreamed": not status.upstreamed,
        "snoozed": snoozed,
        "changes": (status.status_string or "") if status.is_dirty else "",
    }
    return {k: v for k, v in report.items() if v}


def status_line(status: ProjectStatus) -> str:
    """Return a one-line summary of a project."""
    if status.clean:
        return f"{status.name}: {CLEAN_EMOJI}"
    signals = "".join(
        emoji
        for emoji, value in [
            (DIRTY_EMOJI, status.is_dirty),
            (STASH_EMOJI, status.has_stash),
            (NOT_UPSTREAMED_EMOJI, not status.upstreamed),
        ]
        if value
    )
    line = Fore.LIGHTRED_EX + f"{status.name}: {signals}" + Fore.RESET
    if status.is_dirty and status.status_string:
        line += "\n" + textwrap.indent(status.status_string, "    ")
    return line


def format_report(
    statuses: Iterable[ProjectStatus],
    *,
    include_ok: bool,
    fmt: REPORT_FORMATS_TYPE,
) -> str:
    """Format report to a readable output."""
    if not include_ok:
        statuses = [s for s in statuses if not s.clean]
    try:
        formatter = {
            "yaml": _format_yaml,
            "report": _format_report,
            "json": _format_json,
            "pprint": _format_pprint,
        }[fmt]
    except KeyError as e:
        raise ValueError(f"format_report got an unsupported {fmt=}") from e
    return formatter(list(statuses))


def _as_dict(statuses: list[ProjectStatus]) -> dict[str, ProjectReport]:
    return {s.name: status_to_dict(s) for s in statuses}


def _format_yaml(statuses: list[ProjectStatus]) -> str:
    return yaml.dump(
        _as_dict(statuses),
        allow_unicode=True,
        default_flow_style=False,
        indent=2,
        sort_keys=False,
    )


def _format_report(statuses: list[ProjectStatus]) -> str:
    return "\n".join(status_line(s) for s in statuses)


def _format_json(statuses: list[ProjectStatus]) -> str:
    return json.dumps(_as_dict(statuses), indent=2, ensure_ascii=False)


def _format_pprint(statuses: list[ProjectStatus]) -> str:
    return pprint.pformat(_as_dict(statuses), sort_dicts=False)
