"""Tests for the record data model."""

from datetime import date, datetime, timedelta, timezone

import pytest

from worklog.errors import DuplicateEntryError, EmptyLogError, ValidationError
from worklog.models import (
    Day,
    Entry,
    Person,
    Project,
    Repository,
    entry_key,
    parse_timestamp,
)

from conftest import make_entry


class TestEntry:
    """Tests for Entry."""

    def test_defaults(self):
        entry = make_entry("Wrote docs")
        assert entry.key is None
        assert entry.source == "manual"
        assert entry.tags == []
        assert entry.url == ""
        assert entry.epic is False
        assert entry.ticket is None
        assert entry.project is None

    @pytest.mark.parametrize("message", ["", "   ", None])
    def test_message_required(self, message):
        with pytest.raises(ValidationError):
            make_entry(message)

    def test_naive_time_taken_as_utc(self):
        entry = Entry(time=datetime(2024, 3, 1, 9, 0), message="Naive")
        assert entry.time == datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def test_time_must_be_datetime(self):
        with pytest.raises(ValidationError, match="datetime"):
            Entry(time="09:00", message="Not a time")

    def test_people_mentions(self):
        entry = make_entry("Paired with @alice and ~bob, then ~alice again. Mail me@example.com")
        assert entry.people == ["alice", "bob"]

    def test_people_at_start_of_message(self):
        assert make_entry("~zoe reviewed the PR").people == ["zoe"]

    def test_no_people(self):
        assert make_entry("Refactored the parser").people == []

    def test_day_not_part_of_equality(self):
        a = make_entry("Same")
        b = make_entry("Same")
        Day(date=date(2024, 3, 1), entries=[a])
        assert a.day is not None
        assert a == b

    def test_to_dict_omits_missing_key(self):
        assert "key" not in make_entry("No key").to_dict()
        assert make_entry("Keyed", key="abc1234").to_dict()["key"] == "abc1234"

    def test_from_dict_parses_string_time(self):
        entry = Entry.from_dict({
            "time": "2023-10-01 09:30:00.000000000 +02:00",
            "message": "Legacy entry",
        })
        assert entry.time == datetime(2023, 10, 1, 7, 30, tzinfo=timezone.utc)
        assert entry.time.utcoffset() == timedelta(hours=2)

    def test_from_dict_naive_time_is_utc(self):
        entry = Entry.from_dict({"time": datetime(2024, 3, 1, 10, 0), "message": "Naive"})
        assert entry.time.tzinfo is timezone.utc

    def test_from_dict_requires_time(self):
        with pytest.raises(ValidationError, match="time"):
            Entry.from_dict({"message": "No time"})

    def test_from_dict_rejects_bad_time(self):
        with pytest.raises(ValidationError, match="time"):
            Entry.from_dict({"time": "teatime", "message": "Bad time"})

    def test_from_dict_null_tags(self):
        entry = Entry.from_dict({"time": "2024-03-01T10:00:00+00:00", "message": "m", "tags": None})
        assert entry.tags == []


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2024-03-01T10:00:00+00:00", datetime(2024, 3, 1, 10, tzinfo=timezone.utc)),
            ("2024-03-01 10:00:00 +0100", datetime(2024, 3, 1, 9, tzinfo=timezone.utc)),
            ("2024-03-01 10:00:00Z", datetime(2024, 3, 1, 10, tzinfo=timezone.utc)),
            ("2024-03-01 10:00:00.123456789 -05:00", datetime(2024, 3, 1, 15, 0, 0, 123456, tzinfo=timezone.utc)),
            ("2024-03-01 10:00:00", datetime(2024, 3, 1, 10, tzinfo=timezone.utc)),
        ],
    )
    def test_formats(self, text, expected):
        assert parse_timestamp(text) == expected


class TestDay:
    """Tests for Day."""

    def test_back_references(self):
        entry = make_entry("One")
        day = Day(date=date(2024, 3, 1), entries=[entry])
        assert entry.day is day

    def test_add_entry_rejects_duplicate_key(self):
        day = Day(date=date(2024, 3, 1))
        day.add_entry(make_entry("First", key="aaa"))
        with pytest.raises(DuplicateEntryError, match="aaa"):
            day.add_entry(make_entry("Second", key="aaa"))
        assert len(day.entries) == 1

    def test_keyless_entries_may_repeat(self):
        day = Day(date=date(2024, 3, 1))
        day.add_entry(make_entry("Legacy one"))
        day.add_entry(make_entry("Legacy two"))
        assert len(day.entries) == 2

    def test_remove_last_entry_is_latest_in_time(self):
        day = Day(date=date(2024, 3, 1))
        day.add_entry(make_entry("Late", hour=17))
        day.add_entry(make_entry("Early", hour=8))
        removed = day.remove_last_entry()
        assert removed.message == "Late"
        assert removed.day is None
        assert [e.message for e in day.entries] == ["Early"]

    def test_sort_mixes_naive_and_aware_times(self):
        day = Day(date=date(2024, 3, 1))
        day.add_entry(make_entry("Aware", hour=10))
        day.add_entry(Entry(time=datetime(2024, 3, 1, 9, 0), message="Naive"))
        day.sort_entries()
        assert [e.message for e in day.entries] == ["Naive", "Aware"]

    def test_remove_last_entry_empty(self):
        with pytest.raises(EmptyLogError):
            Day(date=date(2024, 3, 1)).remove_last_entry()

    def test_people_tags_epics(self):
        day = Day(date=date(2024, 3, 1), entries=[
            make_entry("Sync with ~ann", tags=["meeting", "team"]),
            make_entry("Shipped it with ~ann and ~ben", hour=11, tags=["release"], epic=True),
        ])
        assert day.people == {"ann": 2, "ben": 1}
        assert day.tags == ["meeting", "release", "team"]
        assert [e.message for e in day.epics] == ["Shipped it with ~ann and ~ben"]

    def test_from_dict_string_date(self):
        day = Day.from_dict({"date": "2024-03-01", "entries": []})
        assert day.date == date(2024, 3, 1)

    @pytest.mark.parametrize(
        "data",
        [
            ["not", "a", "mapping"],
            "2024-03-01",
            {"entries": []},
            {"date": None, "entries": []},
            {"date": "2024-03-01", "entries": {"time": "x"}},
        ],
    )
    def test_from_dict_rejects_bad_shapes(self, data):
        with pytest.raises(ValidationError):
            Day.from_dict(data)

    def test_from_dict_rejects_duplicate_keys(self):
        data = {
            "date": date(2024, 3, 1),
            "entries": [
                {"key": "k1", "time": "2024-03-01T09:00:00+00:00", "message": "a"},
                {"key": "k1", "time": "2024-03-01T10:00:00+00:00", "message": "b"},
            ],
        }
        with pytest.raises(ValidationError, match="k1"):
            Day.from_dict(data)


class TestEntryKey:
    """Tests for entry_key."""

    def test_default_length(self):
        key = entry_key("Worked on feature X")
        assert len(key) == 7
        assert key == entry_key("Worked on feature X")

    def test_different_messages_differ(self):
        assert entry_key("a") != entry_key("b")

    def test_custom_length(self):
        assert len(entry_key("x", 64)) == 64

    @pytest.mark.parametrize("length", [0, 65])
    def test_length_bounds(self, length):
        with pytest.raises(ValueError):
            entry_key("x", length)


class TestPerson:
    """Tests for Person."""

    def test_handle_required(self):
        with pytest.raises(ValidationError, match="handle"):
            Person.from_dict({"name": "No Handle"})

    def test_name_required(self):
        with pytest.raises(ValidationError, match="name"):
            Person.from_dict({"handle": "nobody"})

    def test_structural_equality(self):
        a = Person(handle="alex", name="Alex Test", notes=["likes tea"])
        b = Person(handle="alex", name="Alex Test", notes=["likes tea"])
        assert a == b
        assert a != Person(handle="alex", name="Alex Test")

    def test_active(self):
        assert Person(handle="a", name="A").active
        assert not Person(handle="a", name="A", inactive=True).active

    def test_str(self):
        assert str(Person(handle="jdoe", name="Jane Doe")) == "Jane Doe (~jdoe)"
        assert str(Person(handle="jdoe", name="Jane Doe", email="j@x.org")) == "Jane Doe (~jdoe) <j@x.org>"

    def test_title_is_role(self):
        person = Person.from_dict({"handle": "a", "name": "A", "title": "Manager"})
        assert person.role == "Manager"


class TestRepository:
    """Tests for Repository.from_url."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://github.com/owner/repo", Repository("owner", "repo")),
            ("https://github.com/owner/repo.git", Repository("owner", "repo")),
            ("git@github.com:owner/repo.git", Repository("owner", "repo")),
            ("owner/repo", Repository("owner", "repo")),
            ("not a repository", None),
            ("https://example.com/owner", None),
            (42, None),
        ],
    )
    def test_from_url(self, url, expected):
        assert Repository.from_url(url) == expected

    def test_str(self):
        assert str(Repository("owner", "repo")) == "owner/repo"


class TestProject:
    """Tests for Project."""

    def test_key_required(self):
        with pytest.raises(ValidationError, match="key"):
            Project.from_dict({"name": "Nameless"})

    def test_started(self):
        today = date(2024, 6, 1)
        assert Project(key="P").started(today)
        assert Project(key="P", start_date=date(2024, 5, 1)).started(today)
        assert Project(key="P", start_date=today).started(today)
        assert not Project(key="P", start_date=date(2024, 6, 2)).started(today)

    def test_ended(self):
        today = date(2024, 6, 1)
        assert not Project(key="P").ended(today)
        assert not Project(key="P", end_date=today).ended(today)
        assert Project(key="P", end_date=date(2024, 5, 31)).ended(today)

    def test_from_dict(self):
        project = Project.from_dict({
            "key": "PROJ1",
            "name": "Test Project",
            "description": "A project for testing purposes",
            "start_date": date(2023, 1, 1),
            "end_date": "2023-12-31",
            "status": "active",
            "repositories": ["https://github.com/acme/api", "acme/web", "nonsense"],
        })
        assert project.end_date == date(2023, 12, 31)
        assert project.repositories == [Repository("acme", "api"), Repository("acme", "web")]
        assert project.rejected_repositories == ["nonsense"]

    def test_from_dict_bad_date(self):
        with pytest.raises(ValidationError, match="start_date"):
            Project.from_dict({"key": "P", "start_date": "someday"})

    def test_computed_views_not_serialized(self):
        project = Project(key="P", repositories=[Repository("a", "b")])
        project.last_activity = datetime(2024, 1, 1, tzinfo=timezone.utc)
        data = project.to_dict()
        assert "entries" not in data
        assert "last_activity" not in data
        assert data["repositories"] == ["a/b"]
