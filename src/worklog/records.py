"""Shared loading and writing for single-file record stores."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Generic, Optional, TypeVar

from .config import WorklogConfig
from .errors import MalformedFileError, ValidationError
from .locking import atomic_write, locked_atomic_write
from .migration import upgrade_file
from .storage import dump_yaml, parse_yaml

R = TypeVar("R")


class RecordStore(Generic[R]):
    """A YAML file holding a sequence of records with a unique key.

    Subclasses set ``filename``, ``template``, ``key_field`` and implement
    :meth:`from_dict`.
    """

    filename: str = ""
    template: str = ""
    key_field: str = ""

    def __init__(self, config: WorklogConfig, log):
        self.config = config
        self.log = log

    @property
    def filepath(self) -> Path:
        """Full path of the backing file."""
        return self.config.storage_path / self.filename

    def from_dict(self, data: Any) -> R:
        raise NotImplementedError

    def key_of(self, record: R) -> str:
        return getattr(record, self.key_field)

    def create_default_file(self) -> bool:
        """Write the commented template if the file does not exist yet.

        Returns:
            True if the file was created
        """
        if self.filepath.exists():
            self.log.info(f"{self.filename} already exists, skipping creation.")
            return False
        self.log.info(f"Creating default {self.filename} file.")
        with atomic_write(self.filepath) as f:
            f.write(self.template)
        return True

    def load(self) -> list[R]:
        """Load all valid records, creating the template file if it is absent.

        A record that fails validation is logged at error level with its
        position and skipped; its siblings are still returned.

        Raises:
            MalformedFileError: If the file is not a sequence of records
        """
        try:
            items = self._read_items()
        except FileNotFoundError:
            self.create_default_file()
            return []

        records = []
        for index, item in enumerate(items):
            try:
                records.append(self.from_dict(item))
            except ValidationError as e:
                self.log.error(f"{self.filename}: skipping record {index}: {e}")
        return records

    def load_strict(self) -> list[R]:
        """Load all records.

        Raises:
            FileNotFoundError: If the file does not exist
            MalformedFileError: If the file is not a sequence of records
            ValidationError: If a record lacks a required field
        """
        return [self.from_dict(item) for item in self._read_items()]

    def _read_items(self) -> list:
        self.log.debug(f"Loading file {self.filepath}")
        text = upgrade_file(self.filepath, self.log)
        data = parse_yaml(text, self.filepath)

        # A file holding only the template comments is empty
        if data is None:
            return []
        if not isinstance(data, list):
            raise MalformedFileError(self.filepath, "expected a list of records")
        return data

    def load_map(self) -> dict[str, R]:
        """Load records keyed by their unique key; later duplicates win."""
        return {self.key_of(record): record for record in self.load()}

    def check_unique(self, records: list[R]) -> None:
        seen = set()
        for record in records:
            key = self.key_of(record)
            if key in seen:
                raise ValidationError(f"Duplicate {self.key_field} in {self.filename}: {key}")
            seen.add(key)

    def write(self, records: list[R]) -> None:
        """Replace the file with ``records``.

        Raises:
            ValidationError: If ``records`` is not a list or keys repeat
        """
        if not isinstance(records, list):
            raise ValidationError(f"{self.filename} records must be a list")
        self.check_unique(records)

        self.config.storage_path.mkdir(parents=True, exist_ok=True)
        self.log.debug(f"Writing to file {self.filepath}")
        with locked_atomic_write(self.filepath, timeout=self.config.lock_timeout) as f:
            f.write(dump_yaml([self.to_dict(r) for r in records]))

    def to_dict(self, record: R) -> dict[str, Any]:
        return record.to_dict()
