"""git-folder-triage: Find repos in a folder with uncommitted, stashed or unpushed work.

© 2025 Tsvika Shapira. Some rights reserved.
"""

from ._version import version as _version
from .format import (
    REPORT_FORMATS_TYPE,
    format_report,
)
from .scan import (
    scan,
    scan_outcomes,
)
from .snooze import (
    SnoozeConfig,
    SnoozeRecord,
    apply_snooze,
    snooze_project,
)
from .status import (
    ProjectStatus,
    status_for_one_folder,
)

__version__ = _version
__all__: list[str] = [
    "REPORT_FORMATS_TYPE",
    "ProjectStatus",
    "SnoozeConfig",
    "SnoozeRecord",
    "apply_snooze",
    "format_report",
    "scan",
    "scan_outcomes",
    "snooze_project",
    "status_for_one_folder",
]
