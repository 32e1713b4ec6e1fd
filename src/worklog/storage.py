"""Day-partitioned storage of work log entries.

Each calendar day lives in its own ``YYYY-MM-DD.yaml`` file inside the
storage directory. Nothing is cached between calls: every operation reads
from disk, so separate processes always see each other's completed writes.

Writes replace the whole file. Two processes doing a load-modify-write on
the same day at the same time can lose one update; use :meth:`LogStore.update`,
which holds an advisory lock around the sequence, for any mutation.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from datetime import date, timedelta
from pathlib import Path
from typing import Generator, Iterable, Optional

import yaml

from .config import WorklogConfig
from .errors import LogNotFoundError, MalformedFileError, ValidationError
from .locking import atomic_write, file_lock
from .log import get_logger
from .migration import upgrade_file
from .models import Day

FILE_SUFFIX = ".yaml"

# Day files only; people.yaml and projects.yaml share the directory
LOG_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}" + re.escape(FILE_SUFFIX) + r"$")


def dump_yaml(data) -> str:
    """Serialize plain data the way all worklog files are written."""
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


def parse_yaml(text: str, path: Path):
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise MalformedFileError(path, str(e)) from e


class LogStore:
    """Reads and writes the per-day log files."""

    def __init__(self, config: WorklogConfig, log=None):
        self.config = config
        self.log = log or get_logger("storage")

    @property
    def storage_path(self) -> Path:
        return self.config.storage_path

    def folder_exists(self) -> bool:
        return self.storage_path.is_dir()

    def create_folder(self) -> None:
        self.storage_path.mkdir(parents=True, exist_ok=True)

    def filepath(self, day: date) -> Path:
        """Get path to the log file for a given date."""
        return self.storage_path / f"{day.isoformat()}{FILE_SUFFIX}"

    def create_file_skeleton(self, day: date) -> None:
        """Write an empty day document unless the file already exists."""
        self.create_folder()
        path = self.filepath(day)
        if path.exists():
            return
        self.log.debug(f"Creating skeleton {path}")
        with atomic_write(path) as f:
            f.write(dump_yaml(Day(date=day).to_dict()))

    # ========== Loading ==========

    def load(self, path: Path) -> Optional[Day]:
        """Load a day, returning None if the file is missing."""
        try:
            return self.load_strict(path)
        except LogNotFoundError:
            self.log.error(f"No work log found for {path}.")
            return None

    def load_strict(self, path: Path) -> Day:
        """Load a day from ``path``.

        Older files are upgraded on the way: type tags are stripped and
        rewritten, and times stored as strings are parsed.

        Raises:
            LogNotFoundError: If the file does not exist
            MalformedFileError: If the file is not a valid day document
        """
        path = Path(path)
        self.log.debug(f"Loading file {path}")
        try:
            text = upgrade_file(path, self.log)
        except FileNotFoundError:
            raise LogNotFoundError(f"No work log found at {path}") from None

        data = parse_yaml(text, path)
        try:
            return Day.from_dict(data)
        except ValidationError as e:
            raise MalformedFileError(path, str(e)) from e

    # ========== Writing ==========

    def write(self, path: Path, day: Day) -> None:
        """Replace ``path`` with ``day``, entries sorted by time.

        No lock is taken here; see :meth:`update`.
        """
        path = Path(path)
        self.create_folder()
        day.sort_entries()
        self.log.debug(f"Writing to file {path}")
        with atomic_write(path) as f:
            f.write(dump_yaml(day.to_dict()))

    @contextmanager
    def update(self, day: date) -> Generator[Day, None, None]:
        """Load a day under an exclusive lock and write it back on exit.

        The skeleton is created first if needed. Nothing is written if the
        body raises.

        Usage:
            with store.update(date(2024, 3, 1)) as log:
                log.add_entry(entry)
        """
        path = self.filepath(day)
        self.create_folder()
        with file_lock(path, timeout=self.config.lock_timeout):
            self.create_file_skeleton(day)
            daily_log = self.load_strict(path)
            yield daily_log
            self.write(path, daily_log)

    # ========== Queries ==========

    def day_files(self) -> list[Path]:
        """All day files in the storage directory, in date order."""
        if not self.folder_exists():
            return []
        return sorted(
            p for p in self.storage_path.glob(f"*{FILE_SUFFIX}")
            if LOG_PATTERN.match(p.name)
        )

    def all_days(self) -> list[Day]:
        """Return logs for all available days."""
        return [self.load_strict(path) for path in self.day_files()]

    def tags(self) -> set[str]:
        """Return every tag used in any entry."""
        tags: set[str] = set()
        for daily_log in self.all_days():
            for entry in daily_log.entries:
                tags.update(entry.tags)
        return tags

    def days_between(
        self,
        start: date,
        end: Optional[date] = None,
        epics_only: bool = False,
        tags_filter: Optional[Iterable[str]] = None,
    ) -> list[Day]:
        """Return the days in ``[start, end]`` that have matching entries.

        Args:
            start: First date, inclusive
            end: Last date, inclusive. Defaults to today.
            epics_only: Keep only epic entries
            tags_filter: Keep only entries carrying at least one of these tags

        Returns:
            Days in ascending date order. Entries are filtered in place and
            days left without entries are skipped. An inverted range is
            empty, not an error.
        """
        if not self.folder_exists():
            return []

        if end is None:
            end = date.today()
        if start > end:
            return []

        wanted = set(tags_filter or [])
        days = []
        current = start
        while current <= end:
            path = self.filepath(current)
            if path.exists():
                daily_log = self.load_strict(path)
                if epics_only:
                    daily_log.entries = [e for e in daily_log.entries if e.epic]
                if wanted:
                    daily_log.entries = [e for e in daily_log.entries if wanted.intersection(e.tags)]
                if daily_log.entries:
                    days.append(daily_log)
            current += timedelta(days=1)

        return days
