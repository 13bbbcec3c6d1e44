"""Scan all repos in a folder concurrently.

Repos are checked in a thread pool, and the results are released in the
sorted order of the folders, no matter in which order the checks finish.
"""

import logging
import threading
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar

from .errors import RepoOpenFailed, SuppressionStoreUnreadable, TriageError
from .snooze import SnoozeConfig, apply_snooze, load_snooze_config
from .status import ProjectStatus, status_for_one_folder

LOGGER = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 8

T = TypeVar("T")


class OrderedCompletionBarrier(Generic[T]):
    """Fixed slots that are each set once, and read in order.

    Reading a slot blocks until it is set.
    """

    def __init__(self, size: int) -> None:
        self._values: list[T | None] = [None] * size
        self._done = [False] * size
        self._condition = threading.Condition()

    def __len__(self) -> int:
        return len(self._values)

    def set(self, index: int, value: T) -> None:
        """Set a slot, and wake up whoever waits for it."""
        with self._condition:
            if self._done[index]:
                raise RuntimeError(f"slot {index} was already set")
            self._values[index] = value
            self._done[index] = True
            self._condition.notify_all()

    def wait(self, index: int) -> T:
        """Return the value of a slot once it is set."""
        with self._condition:
            self._condition.wait_for(lambda: self._done[index])
            return self._values[index]  # type: ignore[return-value]

    def __iter__(self) -> Iterator[T]:
        for index in range(len(self)):
            yield self.wait(index)


@dataclass
class ScanOutcome:
    """The result of checking one folder: a status, or an error."""

    path: Path
    status: ProjectStatus | None = None
    error: Exception | None = None


def candidate_folders(root: Path) -> list[Path]:
    """Return the subfolders of root, sorted by name.

    Symlinks and the ``.git`` folder of root itself are skipped.
    """
    return sorted(
        (
            p
            for p in Path(root).iterdir()
            if p.name != ".git" and not p.is_symlink() and p.is_dir()
        ),
        key=lambda p: p.name,
    )


def _load_config(root: Path) -> SnoozeConfig | None:
    try:
        return load_snooze_config(root)
    except SuppressionStoreUnreadable as e:
        LOGGER.warning("ignoring snoozes: %s", e)
        return None


def _check_folder(
    folder: Path,
    root: Path,
    config: SnoozeConfig | None,
    *,
    show_changes: bool,
) -> ScanOutcome:
    try:
        status = status_for_one_folder(folder, show_changes=show_changes)
        return ScanOutcome(folder, status=apply_snooze(folder, status, config, root))
    except TriageError as e:
        return ScanOutcome(folder, error=e)
    except Exception as e:  # noqa: BLE001
        error = RuntimeError(f"Error while analyzing repo in '{folder}'")
        error.__cause__ = e
        return ScanOutcome(folder, error=error)


def _report_error(outcome: ScanOutcome) -> None:
    error = outcome.error
    if error is None:
        return
    if isinstance(error, RepoOpenFailed):
        LOGGER.debug("skipping %s: %s", outcome.path, error)
    elif isinstance(error, TriageError):
        LOGGER.warning("%s: %s", outcome.path.name, error)
    else:
        LOGGER.error("%s", error, exc_info=error)


def _ordered_outcomes(
    folders: list[Path],
    root: Path,
    concurrency: int,
    config: SnoozeConfig | None,
    *,
    show_changes: bool,
) -> Iterator[ScanOutcome]:
    barrier: OrderedCompletionBarrier[ScanOutcome] = OrderedCompletionBarrier(
        len(folders)
    )

    def check(index: int, folder: Path) -> None:
        barrier.set(
            index, _check_folder(folder, root, config, show_changes=show_changes)
        )

    with ThreadPoolExecutor(max_workers=concurrency) as executor:
        for index, folder in enumerate(folders):
            executor.submit(check, index, folder)
        for outcome in barrier:
            _report_error(outcome)
            yield outcome


def scan_outcomes(
    root: Path,
    concurrency: int = DEFAULT_CONCURRENCY,
    *,
    show_changes: bool = False,
    config: SnoozeConfig | None = None,
) -> Iterator[ScanOutcome]:
    """Check every subfolder of root, and return the outcomes in order.

    Errors in a folder are logged and kept in its outcome. If config is not
    given, the snooze file of root is used.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")
    root = Path(root)
    folders = candidate_folders(root)
    if config is None:
        config = _load_config(root)
    return _ordered_outcomes(
        folders, root, concurrency, config, show_changes=show_changes
    )


def scan(
    root: Path,
    concurrency: int = DEFAULT_CONCURRENCY,
    *,
    show_changes: bool = False,
    config: SnoozeConfig | None = None,
) -> Iterator[ProjectStatus]:
    """Return the status of repos in root that need attention, in order."""
    return (
        outcome.status
        for outcome in scan_outcomes(
            root, concurrency, show_changes=show_changes, config=config
        )
        if outcome.status is not None and not outcome.status.clean
    )
