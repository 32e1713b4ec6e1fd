"""Loading of project definitions."""

from __future__ import annotations

from typing import Any

from .config import WorklogConfig
from .log import get_logger
from .models import Project
from .records import RecordStore

PROJECTS_FILE = "projects.yaml"

PROJECT_TEMPLATE = """# Each project is defined by the following attributes:
# - key: <project_key>
#   name: <project_name>
#   description: <project_description>
#   start_date: <start_date>
#   end_date: <end_date>
#   status: <status>
#   repositories:
#     - <owner/name or https://github.com/owner/name>
#   --- Define your projects below this line ---
"""


class ProjectStore(RecordStore[Project]):
    """The projects.yaml file, keyed by project key.

    Every query reads the file again.
    """

    filename = PROJECTS_FILE
    template = PROJECT_TEMPLATE
    key_field = "key"

    def __init__(self, config: WorklogConfig, log=None):
        super().__init__(config, log or get_logger("projects"))

    def from_dict(self, data: Any) -> Project:
        project = Project.from_dict(data)
        for value in project.rejected_repositories:
            self.log.warning(f"Project {project.key}: ignoring unparsable repository {value!r}")
        return project

    def exists(self, key: str) -> bool:
        """Check whether a project with ``key`` is defined."""
        return key in self.load_map()

    __contains__ = exists
