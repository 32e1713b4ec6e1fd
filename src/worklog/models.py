"""Data models for days, entries, people and projects."""

from __future__ import annotations

import hashlib
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Optional

from .errors import DuplicateEntryError, EmptyLogError, ValidationError

# People are referenced as @handle or ~handle at the start of a word
PERSON_PATTERN = re.compile(r"(?:\s|^)[~@](\w+)")

# Ruby-era timestamps: "2024-03-01 10:00:00.000000000 +01:00"
_LEGACY_TIMESTAMP = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[ T](\d{2}:\d{2}:\d{2})(?:\.(\d+))?\s*(Z|[+-]\d{2}:?\d{2})?$"
)


def format_timestamp(dt: datetime) -> str:
    """Format datetime as ISO 8601 with timezone."""
    return dt.isoformat(timespec="seconds")


def parse_timestamp(s: str) -> datetime:
    """Parse a stored timestamp string into an aware datetime.

    Accepts ISO 8601 as well as the space-separated form with nanosecond
    fractions written by older versions. Naive values are taken as UTC.

    Raises:
        ValueError: If the string is not a timestamp
    """
    text = s.strip()
    match = _LEGACY_TIMESTAMP.match(text)
    if match:
        day, clock, fraction, offset = match.groups()
        text = f"{day}T{clock}"
        if fraction:
            text += "." + fraction[:6].ljust(6, "0")
        if offset:
            if offset == "Z":
                offset = "+00:00"
            elif ":" not in offset:
                offset = f"{offset[:3]}:{offset[3:]}"
            text += offset
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def entry_key(message: str, length: int = 7) -> str:
    """Return the short SHA-256 fingerprint used as an entry key."""
    if not 1 <= length <= 64:
        raise ValueError("Length must be between 1 and 64")
    return hashlib.sha256(message.encode("utf-8")).hexdigest()[:length]


def _coerce_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field_name}: {value!r}") from None


def _require_mapping(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise ValidationError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


@dataclass
class Entry:
    """A single logged unit of work."""
    time: datetime
    message: str
    key: Optional[str] = None
    source: str = "manual"
    tags: list[str] = field(default_factory=list)
    ticket: Optional[str] = None
    url: str = ""
    epic: bool = False
    project: Optional[str] = None

    # Back reference to the owning day, never persisted
    day: Optional["Day"] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if not isinstance(self.message, str) or not self.message.strip():
            raise ValidationError("Entry message cannot be empty")
        if not isinstance(self.time, datetime):
            raise ValidationError(f"Entry time must be a datetime, got {type(self.time).__name__}")
        # Naive times are UTC so every entry of a day sorts together
        if self.time.tzinfo is None:
            self.time = self.time.replace(tzinfo=timezone.utc)
        if self.tags is None:
            self.tags = []
        if self.url is None:
            self.url = ""
        self.epic = bool(self.epic)

    @property
    def people(self) -> list[str]:
        """Handles mentioned in the message, sorted and deduplicated."""
        return sorted(set(PERSON_PATTERN.findall(self.message)))

    def to_dict(self) -> dict[str, Any]:
        """Convert entry to a string-keyed mapping for YAML."""
        data: dict[str, Any] = {}
        # Legacy entries stay keyless
        if self.key is not None:
            data["key"] = self.key
        data.update({
            "source": self.source,
            "time": self.time,
            "tags": list(self.tags),
            "ticket": self.ticket,
            "url": self.url,
            "epic": self.epic,
            "message": self.message,
            "project": self.project,
        })
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Entry":
        """Build an entry from its stored mapping.

        A ``time`` stored as a plain string is parsed into a datetime.

        Raises:
            ValidationError: If the mapping lacks a time or message
        """
        data = _require_mapping(data, "Entry")

        raw_time = data.get("time")
        if raw_time is None:
            raise ValidationError("Entry time is required")
        if isinstance(raw_time, datetime):
            time = raw_time if raw_time.tzinfo else raw_time.replace(tzinfo=timezone.utc)
        else:
            try:
                time = parse_timestamp(str(raw_time))
            except ValueError:
                raise ValidationError(f"Invalid entry time: {raw_time!r}") from None

        return cls(
            time=time,
            message=data.get("message") or "",
            key=data.get("key"),
            source=data.get("source") or "manual",
            tags=list(data.get("tags") or []),
            ticket=data.get("ticket"),
            url=data.get("url") or "",
            epic=data.get("epic") is True,
            project=data.get("project"),
        )


@dataclass
class Day:
    """All entries logged on one calendar date."""
    date: date
    entries: list[Entry] = field(default_factory=list)

    def __post_init__(self):
        for entry in self.entries:
            entry.day = self

    def add_entry(self, entry: Entry) -> Entry:
        """Append an entry, enforcing key uniqueness within the day.

        Raises:
            DuplicateEntryError: If another entry already has the same key
        """
        if entry.key and any(e.key == entry.key for e in self.entries):
            raise DuplicateEntryError(
                f"Entry with key {entry.key} already exists on {self.date.isoformat()}"
            )
        entry.day = self
        self.entries.append(entry)
        return entry

    def sort_entries(self) -> None:
        self.entries.sort(key=lambda e: e.time)

    def remove_last_entry(self) -> Entry:
        """Remove and return the temporally latest entry.

        Raises:
            EmptyLogError: If the day has no entries
        """
        if not self.entries:
            raise EmptyLogError(f"No entries found for {self.date.isoformat()}")
        self.sort_entries()
        entry = self.entries.pop()
        entry.day = None
        return entry

    @property
    def people(self) -> dict[str, int]:
        """Handles mentioned on this day with their mention counts."""
        return dict(Counter(handle for e in self.entries for handle in e.people))

    @property
    def tags(self) -> list[str]:
        return sorted({tag for e in self.entries for tag in e.tags})

    @property
    def epics(self) -> list[Entry]:
        return [e for e in self.entries if e.epic]

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "entries": [e.to_dict() for e in self.entries],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Day":
        """Build a day from its stored document.

        Raises:
            ValidationError: If the document is not a day or holds
                duplicate entry keys
        """
        data = _require_mapping(data, "Day")
        if "date" not in data:
            raise ValidationError("Day document has no date")

        day_date = _coerce_date(data["date"], "date")
        if day_date is None:
            raise ValidationError("Day document has no date")

        raw_entries = data.get("entries") or []
        if not isinstance(raw_entries, list):
            raise ValidationError("Day entries must be a list")

        entries = [Entry.from_dict(item) for item in raw_entries]
        keys = [e.key for e in entries if e.key]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise ValidationError(
                f"Duplicate entry keys on {day_date.isoformat()}: {', '.join(duplicates)}"
            )
        return cls(date=day_date, entries=entries)


@dataclass
class Person:
    """A contact referenced by handle."""
    handle: str
    name: str
    github_username: Optional[str] = None
    email: Optional[str] = None
    team: Optional[str] = None
    role: Optional[str] = None
    notes: list[str] = field(default_factory=list)
    inactive: bool = False

    def __post_init__(self):
        if not self.handle:
            raise ValidationError("Person handle is required")
        if not self.name:
            raise ValidationError("Person name is required")
        if self.notes is None:
            self.notes = []

    @property
    def active(self) -> bool:
        return not self.inactive

    def __str__(self) -> str:
        if self.email is None:
            return f"{self.name} (~{self.handle})"
        return f"{self.name} (~{self.handle}) <{self.email}>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "handle": self.handle,
            "github_username": self.github_username,
            "name": self.name,
            "team": self.team,
            "email": self.email,
            "role": self.role,
            "notes": list(self.notes),
            "inactive": self.inactive,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Person":
        data = _require_mapping(data, "Person")
        return cls(
            handle=data.get("handle"),
            name=data.get("name"),
            github_username=data.get("github_username"),
            email=data.get("email"),
            team=data.get("team"),
            role=data.get("role") or data.get("title"),
            notes=list(data.get("notes") or []),
            inactive=data.get("inactive") is True,
        )


@dataclass(frozen=True)
class Repository:
    """A GitHub repository reference, ``owner/name``."""
    owner: str
    name: str

    _URL = re.compile(r"github\.com[:/](?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$")
    _SHORT = re.compile(r"^(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+)$")

    @classmethod
    def from_url(cls, url: Any) -> Optional["Repository"]:
        """Parse a GitHub URL or ``owner/name`` string; None if neither."""
        if not isinstance(url, str):
            return None
        text = url.strip()
        match = cls._URL.search(text) or cls._SHORT.match(text)
        if match is None:
            return None
        return cls(owner=match.group("owner"), name=match.group("repo"))

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass
class Project:
    """A longer-running initiative that entries can reference."""
    key: str
    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = None
    repositories: list[Repository] = field(default_factory=list)

    # Computed views, filled from the day files at query time
    entries: list[Entry] = field(default_factory=list, repr=False, compare=False)
    last_activity: Optional[datetime] = field(default=None, compare=False)
    # Repository strings that could not be parsed on load
    rejected_repositories: list[str] = field(default_factory=list, repr=False, compare=False)

    def __post_init__(self):
        if not self.key:
            raise ValidationError("Project key is required")

    def started(self, today: Optional[date] = None) -> bool:
        """True if there is no start date or it is not in the future."""
        today = today or date.today()
        return self.start_date is None or self.start_date <= today

    def ended(self, today: Optional[date] = None) -> bool:
        """True if the end date is set and already past."""
        today = today or date.today()
        return self.end_date is not None and self.end_date < today

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "status": self.status,
            "repositories": [str(r) for r in self.repositories],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Project":
        data = _require_mapping(data, "Project")

        repositories = []
        rejected = []
        for value in data.get("repositories") or []:
            repo = Repository.from_url(value)
            if repo is None:
                rejected.append(str(value))
            else:
                repositories.append(repo)

        return cls(
            key=data.get("key"),
            name=data.get("name"),
            description=data.get("description"),
            start_date=_coerce_date(data.get("start_date"), "start_date"),
            end_date=_coerce_date(data.get("end_date"), "end_date"),
            status=data.get("status"),
            repositories=repositories,
            rejected_repositories=rejected,
        )
