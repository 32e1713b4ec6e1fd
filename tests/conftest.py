"""Shared pytest fixtures for worklog tests."""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from worklog.config import WorklogConfig
from worklog.engine import WorklogEngine
from worklog.models import Day, Entry
from worklog.people import PeopleStore
from worklog.projects import ProjectStore
from worklog.storage import LogStore


class RecordingLog:
    """Stand-in logger that keeps every message for assertions."""

    def __init__(self):
        self.records = []

    def _record(self, level, message):
        self.records.append((level, message))

    def debug(self, message):
        self._record("debug", message)

    def info(self, message):
        self._record("info", message)

    def warning(self, message):
        self._record("warning", message)

    def error(self, message):
        self._record("error", message)

    def messages(self, level):
        return [m for lvl, m in self.records if lvl == level]


def make_entry(message, hour=10, minute=0, day=None, **kwargs):
    """Build an entry at a UTC time on ``day`` (default 2024-03-01)."""
    day = day or datetime(2024, 3, 1).date()
    when = datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)
    return Entry(time=when, message=message, **kwargs)


@pytest.fixture
def temp_root():
    """Create a temporary directory that holds the storage folder."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def storage_path(temp_root):
    """Storage folder path; not created up front."""
    return temp_root / "worklog"


@pytest.fixture
def config(storage_path):
    """Create a test configuration."""
    return WorklogConfig(storage_path=storage_path, lock_timeout=1.0)


@pytest.fixture
def log():
    return RecordingLog()


@pytest.fixture
def store(config, log):
    return LogStore(config, log=log)


@pytest.fixture
def people_store(config, log):
    config.storage_path.mkdir(parents=True, exist_ok=True)
    return PeopleStore(config, log=log)


@pytest.fixture
def project_store(config, log):
    config.storage_path.mkdir(parents=True, exist_ok=True)
    return ProjectStore(config, log=log)


@pytest.fixture
def engine(config, log):
    config.storage_path.mkdir(parents=True, exist_ok=True)
    return WorklogEngine(config, log=log)


@pytest.fixture
def write_day(store):
    """Factory writing a day with the given entries to the store."""

    def _write(day, *entries):
        daily_log = Day(date=day, entries=list(entries))
        store.write(store.filepath(day), daily_log)
        return daily_log

    return _write
