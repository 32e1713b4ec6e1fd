"""Worklog engine - the operations the command line and web layers call."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .config import WorklogConfig
from .dates import parse_time, resolve_range
from .errors import LogNotFoundError, ProjectNotFoundError, ValidationError
from .log import get_logger
from .models import Day, Entry, Project, entry_key
from .people import PeopleStore
from .projects import ProjectStore
from .storage import LogStore


@dataclass
class Statistics:
    """Totals over every stored day."""
    total_days: int
    total_entries: int
    total_epics: int
    avg_entries: float
    first_entry: date
    last_entry: date


class WorklogEngine:
    """Ties the day, people and project stores together."""

    def __init__(self, config: WorklogConfig, log=None):
        self.config = config
        self.log = log or get_logger("engine")
        self.storage = LogStore(config, log=log)
        self.people = PeopleStore(config, log=log)
        self.projects = ProjectStore(config, log=log)

    def _today(self) -> date:
        return datetime.now(self.config.tzinfo).date()

    def validate_project(self, key: str) -> None:
        """Raise ProjectNotFoundError unless ``key`` is a defined project."""
        try:
            known = self.projects.load_strict()
        except FileNotFoundError:
            raise ProjectNotFoundError("No projects found. Please create a project first.") from None
        if key not in {p.key for p in known}:
            raise ProjectNotFoundError(f"Project with key '{key}' does not exist.")
        self.log.debug(f"Project with key '{key}' exists.")

    # ========== Writes ==========

    def add_entry(
        self,
        message: str,
        on: Optional[date] = None,
        at: Optional[str] = None,
        tags: Optional[list[str]] = None,
        ticket: Optional[str] = None,
        url: Optional[str] = None,
        epic: bool = False,
        project: Optional[str] = None,
    ) -> Entry:
        """Append a new entry to the log of a day.

        Args:
            message: What was done; mentions like ``~jdoe`` link people
            on: The day, defaults to today in the configured time zone
            at: Wall clock time as HH:MM, HHMM or HH:MM:SS, defaults to now

        Returns:
            The stored entry.

        Raises:
            ValidationError: If the message is empty
            DateExpressionError: If ``at`` is not a time
            ProjectNotFoundError: If ``project`` is not defined
            DuplicateEntryError: If the same message is already logged that day
            MalformedFileError: If people.yaml is not a list of people
        """
        message = (message or "").strip()
        if not message:
            raise ValidationError("Message cannot be empty")

        tz = self.config.tzinfo
        day = on or self._today()
        if at:
            when = datetime.combine(day, parse_time(at), tzinfo=tz)
        else:
            when = datetime.combine(day, datetime.now(tz).time().replace(microsecond=0), tzinfo=tz)

        if project:
            self.validate_project(project)

        entry = Entry(
            key=entry_key(message),
            source="manual",
            time=when,
            tags=list(tags or []),
            ticket=ticket,
            url=url or "",
            epic=epic,
            message=message,
            project=project,
        )

        # Read people first so a broken people.yaml fails before the write
        known = {p.handle for p in self.people.people}

        with self.storage.update(day) as daily_log:
            daily_log.add_entry(entry)

        for handle in entry.people:
            if handle not in known:
                self.log.warning(f"Person with handle {handle} not found. Consider adding them to people.yaml")

        self.log.info(f"Added entry on {day.isoformat()}: {message}")
        return entry

    def remove_last_entry(self, on: date) -> Entry:
        """Remove the latest entry of a day.

        Raises:
            LogNotFoundError: If nothing was ever logged on that day
            EmptyLogError: If the day has no entries left
        """
        if not self.storage.filepath(on).exists():
            raise LogNotFoundError(f"No work log found for {on.isoformat()}")

        with self.storage.update(on) as daily_log:
            removed = daily_log.remove_last_entry()

        self.log.info(f"Removed entry: {removed.message}")
        return removed

    # ========== Queries ==========

    def show(
        self,
        days: Optional[int] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        on: Optional[str] = None,
        epics_only: bool = False,
        tags: Optional[list[str]] = None,
    ) -> list[Day]:
        """Return the days of a range given as expressions.

        See :func:`worklog.dates.resolve_range` for the options.
        """
        start, end = resolve_range(days=days, date_from=date_from, date_to=date_to, on=on, today=self._today())
        return self.storage.days_between(start, end, epics_only=epics_only, tags_filter=tags)

    def statistics(self) -> Statistics:
        """Calculate totals for all days."""
        all_days = self.storage.all_days()
        if not all_days:
            today = self._today()
            return Statistics(0, 0, 0, 0.0, today, today)

        total_entries = sum(len(d.entries) for d in all_days)
        return Statistics(
            total_days=len(all_days),
            total_entries=total_entries,
            total_epics=sum(len(d.epics) for d in all_days),
            avg_entries=total_entries / len(all_days),
            first_entry=min(d.date for d in all_days),
            last_entry=max(d.date for d in all_days),
        )

    def tag_counts(self) -> dict[str, int]:
        """How often each tag was used, sorted by tag."""
        counts = Counter(tag for d in self.storage.all_days() for e in d.entries for tag in e.tags)
        return dict(sorted(counts.items()))

    def people_mentions(self) -> dict[str, int]:
        """How often each handle was mentioned, sorted by handle."""
        counts: Counter = Counter()
        for daily_log in self.storage.all_days():
            counts.update(daily_log.people)
        return dict(sorted(counts.items()))

    def projects_with_activity(self) -> dict[str, Project]:
        """Load projects and attach their entries and latest activity.

        Entries are ordered newest first.
        """
        projects = self.projects.load_map()

        for daily_log in self.storage.all_days():
            for entry in daily_log.entries:
                if not entry.project:
                    continue
                project = projects.get(entry.project)
                if project is None:
                    self.log.debug(f"Project with key '{entry.project}' not found in projects. Skipping.")
                    continue
                project.entries.append(entry)
                if project.last_activity is None or entry.time > project.last_activity:
                    project.last_activity = entry.time

        for project in projects.values():
            project.entries.sort(key=lambda e: e.time, reverse=True)

        return projects
