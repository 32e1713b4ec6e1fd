"""Finding, reading and writing of people."""

from __future__ import annotations

from typing import Any, Optional

from .config import WorklogConfig
from .log import get_logger
from .models import Person
from .records import RecordStore

PEOPLE_FILE = "people.yaml"

# Written when people.yaml does not exist yet
PERSON_TEMPLATE = """---
# Each person is defined by the following attributes:
# - handle: <unique_handle>
#     Unique handle used to reference this person (e.g., ~jdoe)
#   github_username: <github_username>
#     GitHub username of the person, used to link GitHub events to this person.
#     This can be omitted if the person does not have a GitHub account and can
#     be different from the handle.
#   name: <full_name>
#   team: <team_name>
#   email: <email_address>
#   role: <title_or_role>
#   notes:
#     - <free form note>
#   inactive: <true_or_false>
#   --- Define your people below this line ---
"""


class PeopleStore(RecordStore[Person]):
    """The people.yaml file, keyed by handle.

    Lookups are served from a per-instance cache filled on first use. Writes
    through this instance refresh it; writes by anyone else are not seen
    until :meth:`invalidate` is called or a new instance is created.
    """

    filename = PEOPLE_FILE
    template = PERSON_TEMPLATE
    key_field = "handle"

    def __init__(self, config: WorklogConfig, log=None):
        super().__init__(config, log or get_logger("people"))
        self._people: Optional[list[Person]] = None

    def from_dict(self, data: Any) -> Person:
        return Person.from_dict(data)

    @property
    def people(self) -> list[Person]:
        if self._people is None:
            self._people = self.load()
        return self._people

    def invalidate(self) -> None:
        """Drop the lookup cache."""
        self._people = None

    def write(self, records: list[Person]) -> None:
        super().write(records)
        self._people = list(records)

    def find_by_handle(self, handle: str) -> Optional[Person]:
        """Find a person by their handle, None if unknown."""
        return next((p for p in self.people if p.handle == handle), None)

    def find_by_github_username(self, github_username: str) -> Optional[Person]:
        """Find a person by their GitHub username, None if unknown."""
        return next((p for p in self.people if p.github_username == github_username), None)
