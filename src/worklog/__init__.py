"""Worklog - a personal work log kept as one YAML file per day."""

from .config import WorklogConfig, load_config
from .dates import parse_date, parse_date_strict, parse_time, resolve_range
from .engine import Statistics, WorklogEngine
from .errors import (
    DateExpressionError,
    DuplicateEntryError,
    EmptyLogError,
    LogNotFoundError,
    MalformedFileError,
    ProjectNotFoundError,
    ValidationError,
    WorklogError,
)
from .models import Day, Entry, Person, Project, Repository
from .people import PeopleStore
from .projects import ProjectStore
from .storage import LogStore

__version__ = "0.3.0"

__all__ = [
    "DateExpressionError",
    "Day",
    "DuplicateEntryError",
    "EmptyLogError",
    "Entry",
    "LogNotFoundError",
    "LogStore",
    "MalformedFileError",
    "PeopleStore",
    "Person",
    "Project",
    "ProjectNotFoundError",
    "ProjectStore",
    "Repository",
    "Statistics",
    "ValidationError",
    "WorklogConfig",
    "WorklogEngine",
    "WorklogError",
    "load_config",
    "parse_date",
    "parse_date_strict",
    "parse_time",
    "resolve_range",
]
