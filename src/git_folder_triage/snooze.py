"""Snooze findings for a while.

Snoozes are kept in a YAML file at the root of the scanned folder::

    repos:
      - path: my-repo
        snooze:
          dirty_workdir: '2026-10-18 10:00:00'
          not_upstreamed: '2026-11-01 09:30:00'

Paths are relative to the folder holding the file. A snooze hides a finding
until its timestamp passes; stale entries are left in the file.
"""

import logging
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .errors import InvalidDuration, InvalidSnoozeCheck, SuppressionStoreUnreadable
from .status import ProjectStatus

LOGGER = logging.getLogger(__name__)

STORE_FILENAME = ".git-folder-triage.yaml"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class SnoozeKind(str, Enum):
    """A finding that can be snoozed, named as in the snooze file."""

    DIRTY_WORKDIR = "dirty_workdir"
    STASHES = "stashes"
    NOT_UPSTREAMED = "not_upstreamed"


SNOOZE_CHECKS: dict[str, tuple[SnoozeKind, ...]] = {
    "dirty": (SnoozeKind.DIRTY_WORKDIR,),
    "stash": (SnoozeKind.STASHES,),
    "upstream": (SnoozeKind.NOT_UPSTREAMED,),
    "all": tuple(SnoozeKind),
}

# in microseconds
_STANDARD_UNITS = {
    "ns": 1e-3,
    "us": 1.0,
    "µs": 1.0,
    "ms": 1e3,
    "s": 1e6,
    "m": 60e6,
    "h": 3600e6,
}
_CALENDAR_UNITS = {
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
    # a month is 30 days, a year is 365 days
    "m": timedelta(days=30),
    "y": timedelta(days=365),
}
_STANDARD_PART = r"(\d+\.?\d*|\.\d+)(ns|us|µs|ms|s|m|h)"
_STANDARD_DURATION_RE = re.compile(rf"([-+]?)((?:{_STANDARD_PART})+|0)")
_STANDARD_PART_RE = re.compile(_STANDARD_PART)
_CALENDAR_DURATION_RE = re.compile(r"(\d+)([dwmy])")


def _invalid_duration(duration: str) -> InvalidDuration:
    return InvalidDuration(
        f"invalid duration format: {duration!r}. Use formats like 1h, 2d, 3w, 4m, 5y"
    )


def parse_snooze_duration(duration: str) -> timedelta:
    """Parse a duration like ``1h30m``, ``2d``, ``3w``, ``4m`` or ``5y``.

    Time units (h, m, s, ...) are tried first, so ``4m`` is four minutes.
    They accept a sign, and ``0`` is a valid duration. Day, week, month and
    year units take an unsigned integer only.
    """
    duration = duration.strip().lower()
    try:
        standard = _STANDARD_DURATION_RE.fullmatch(duration)
        if standard:
            sign, _ = standard.groups()
            delta = timedelta(
                microseconds=sum(
                    float(value) * _STANDARD_UNITS[unit]
                    for value, unit in _STANDARD_PART_RE.findall(duration)
                )
            )
            return -delta if sign == "-" else delta
        match = _CALENDAR_DURATION_RE.fullmatch(duration)
        if match is None:
            raise _invalid_duration(duration)
        value, unit = match.groups()
        return int(value) * _CALENDAR_UNITS[unit]
    except OverflowError as e:
        raise InvalidDuration(f"duration {duration!r} is too long") from e


def is_snoozed(until: datetime | None, now: datetime | None = None) -> bool:
    """Check if a snooze is still active."""
    if until is None:
        return False
    return until > (now or datetime.now())


@dataclass
class SnoozeRecord:
    """The snoozes of one repo."""

    path: str
    dirty_workdir: datetime | None = None
    stashes: datetime | None = None
    not_upstreamed: datetime | None = None

    def until(self, kind: SnoozeKind) -> datetime | None:
        """Return the end of the snooze for a finding."""
        return getattr(self, kind.value)

    def snooze(self, kinds: Iterable[SnoozeKind], until: datetime) -> None:
        """Snooze findings until a timestamp."""
        for kind in kinds:
            setattr(self, kind.value, until)

    @classmethod
    def from_dict(cls, data: Any) -> "SnoozeRecord":  # noqa: ANN401
        """Decode a record of the snooze file."""
        if not isinstance(data, dict) or not isinstance(data.get("path"), str):
            raise SuppressionStoreUnreadable(f"invalid repo entry: {data!r}")
        snooze = data.get("snooze") or {}
        if not isinstance(snooze, dict):
            raise SuppressionStoreUnreadable(f"invalid snooze for {data['path']!r}")
        record = cls(path=data["path"])
        for key, value in snooze.items():
            try:
                kind = SnoozeKind(key)
            except ValueError as e:
                raise SuppressionStoreUnreadable(
                    f"unknown snooze {key!r} for {data['path']!r}"
                ) from e
            record.snooze([kind], _parse_timestamp(value))
        return record

    def to_dict(self) -> dict[str, Any]:
        """Encode the record for the snooze file."""
        data: dict[str, Any] = {"path": self.path}
        snooze = {
            kind.value: until.strftime(TIMESTAMP_FORMAT)
            for kind in SnoozeKind
            if (until := self.until(kind)) is not None
        }
        if snooze:
            data["snooze"] = snooze
        return data


def _parse_timestamp(value: object) -> datetime:
    # yaml may already have decoded an unquoted timestamp
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        try:
            return datetime.strptime(value, TIMESTAMP_FORMAT)  # noqa: DTZ007
        except ValueError as e:
            raise SuppressionStoreUnreadable(f"invalid timestamp {value!r}") from e
    raise SuppressionStoreUnreadable(f"invalid timestamp {value!r}")


def _same_path(scan_root: Path, record_path: str, path: Path) -> bool:
    # paths that can't be resolved (loops, NUL bytes) match nothing
    try:
        return (scan_root / record_path).resolve() == path.resolve()
    except (OSError, RuntimeError, ValueError) as e:
        LOGGER.debug("cannot compare %r with %s: %s", record_path, path, e)
        return False


def _relative_path(path: Path, scan_root: Path) -> str:
    try:
        return Path(os.path.relpath(path.resolve(), scan_root.resolve())).as_posix()
    except ValueError:
        # different drives on windows
        return path.as_posix()


@dataclass
class SnoozeConfig:
    """The content of a snooze file."""

    repos: list[SnoozeRecord] = field(default_factory=list)

    def find(self, path: Path, scan_root: Path) -> SnoozeRecord | None:
        """Return the first record for a repo, if any."""
        for record in self.repos:
            if _same_path(scan_root, record.path, path):
                return record
        return None

    def upsert(
        self,
        path: Path,
        scan_root: Path,
        kinds: Iterable[SnoozeKind],
        until: datetime,
    ) -> SnoozeRecord:
        """Snooze findings of a repo, adding a record if needed."""
        record = self.find(path, scan_root)
        if record is None:
            record = SnoozeRecord(path=_relative_path(path, scan_root))
            self.repos.append(record)
        record.snooze(kinds, until)
        return record


def load_snooze_config(scan_root: Path) -> SnoozeConfig:
    """Load the snooze file of a folder.

    A missing file is an empty config.
    """
    store = Path(scan_root) / STORE_FILENAME
    try:
        content = store.read_text(encoding="utf-8")
    except FileNotFoundError:
        return SnoozeConfig()
    except OSError as e:
        raise SuppressionStoreUnreadable(f"reading {store}: {e}") from e
    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise SuppressionStoreUnreadable(f"decoding {store}: {e}") from e
    if not isinstance(data, dict):
        raise SuppressionStoreUnreadable(f"decoding {store}: expected a mapping")
    repos = data.get("repos") or []
    if not isinstance(repos, list):
        raise SuppressionStoreUnreadable(f"decoding {store}: 'repos' must be a list")
    try:
        return SnoozeConfig(repos=[SnoozeRecord.from_dict(r) for r in repos])
    except SuppressionStoreUnreadable as e:
        raise SuppressionStoreUnreadable(f"decoding {store}: {e}") from e


def save_snooze_config(config: SnoozeConfig, scan_root: Path) -> Path:
    """Write the snooze file of a folder."""
    store = Path(scan_root) / STORE_FILENAME
    content = yaml.safe_dump(
        {"repos": [record.to_dict() for record in config.repos]},
        allow_unicode=True,
        default_flow_style=False,
        indent=2,
        sort_keys=False,
    )
    store.write_text(content, encoding="utf-8")
    return store


def snooze_project(
    path: Path,
    duration: str,
    check: str,
    scan_root: Path,
    *,
    now: datetime | None = None,
) -> datetime:
    """Snooze a finding of a repo and save it. Return the snooze end."""
    if check not in SNOOZE_CHECKS:
        raise InvalidSnoozeCheck(
            f"invalid check {check!r}, must be one of {list(SNOOZE_CHECKS)}"
        )
    delta = parse_snooze_duration(duration)
    scan_root = Path(scan_root)
    config = load_snooze_config(scan_root)
    try:
        until = ((now or datetime.now()) + delta).replace(microsecond=0)
    except OverflowError as e:
        raise InvalidDuration(f"duration {duration!r} is too long") from e
    config.upsert(Path(path), scan_root, SNOOZE_CHECKS[check], until)
    store = save_snooze_config(config, scan_root)
    LOGGER.debug("snoozed %s of %s until %s in %s", check, path, until, store)
    return until


def apply_snooze(
    path: Path,
    status: ProjectStatus,
    config: SnoozeConfig | None,
    scan_root: Path,
    *,
    now: datetime | None = None,
) -> ProjectStatus:
    """Return the status with its active snoozes applied.

    Only findings that need attention are changed.
    """
    if config is None or status.clean:
        return status
    now = now or datetime.now()
    scan_root = Path(scan_root)
    path = Path(path)
    is_dirty = status.is_dirty
    has_stash = status.has_stash
    upstreamed = status.upstreamed
    changes: dict[str, bool] = {}
    for record in config.repos:
        if not _same_path(scan_root, record.path, path):
            continue
        if is_dirty and is_snoozed(record.dirty_workdir, now):
            is_dirty = False
            changes.update(is_dirty=False, is_dirty_snoozed=True)
        if has_stash and is_snoozed(record.stashes, now):
            has_stash = False
            changes.update(has_stash=False, has_stash_snoozed=True)
        if not upstreamed and is_snoozed(record.not_upstreamed, now):
            upstreamed = True
            changes.update(upstreamed=True, upstreamed_snoozed=True)
    return replace(status, **changes) if changes else status
