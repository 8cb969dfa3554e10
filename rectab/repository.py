"""Client-local store of mapping records.

Each record gets an ``id`` and ``createdAt`` / ``updatedAt`` time stamps.
The store can be kept in memory only or persisted as a YAML file next to
the user's other local data.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

import yaml
from attrs import define, field

from rectab.utils import replace_file, rotate_backups

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
ChangeListener = Callable[[str, Record], None]

ID_FIELD = "id"
CREATED_FIELD = "createdAt"
UPDATED_FIELD = "updatedAt"


def now_stamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@define
class RecordRepository:
    """A simple keyed collection of records.

    Attributes:
        file_path: Where the records are persisted; None keeps them in
            memory only.
        auto_save: Save the file after each change.
        records: The records, in insertion order, indexed by id.
        listeners: Informed with the kind of change ("create", "update",
            "delete") and the record.
    """

    file_path: Optional[str] = field(default=None)
    auto_save: bool = field(default=True)
    records: Dict[str, Record] = field(factory=dict, init=False)
    listeners: List[ChangeListener] = field(factory=list, init=False)

    def on_changed(self, callback: ChangeListener) -> None:
        self.listeners.append(callback)

    def _changed(self, kind: str, record: Record) -> None:
        logger.debug("Record %s: %s", record.get(ID_FIELD), kind)
        for callback in self.listeners:
            callback(kind, record)
        if self.auto_save and self.file_path:
            self.save()

    def create(self, data: Mapping[str, Any]) -> Record:
        """Add a new record.

        An ``id`` present in the data is kept; otherwise a new one is
        generated.
        """
        stamp = now_stamp()
        record = dict(data)
        record[ID_FIELD] = str(record.get(ID_FIELD) or uuid4())
        if record[ID_FIELD] in self.records:
            raise ValueError(f"A record with id {record[ID_FIELD]} exists")
        record.setdefault(CREATED_FIELD, stamp)
        record[UPDATED_FIELD] = stamp
        self.records[record[ID_FIELD]] = record
        self._changed("create", record)
        return dict(record)

    def update(self, record_id: str, changes: Mapping[str, Any]) -> Record:
        """Copy the fields of `changes` into the record.

        The id and the creation time can't be changed.

        Raises:
            KeyError: There is no record with this id.
        """
        record = self.records[record_id]
        for key, value in changes.items():
            if key in (ID_FIELD, CREATED_FIELD):
                continue
            record[key] = value
        record[UPDATED_FIELD] = now_stamp()
        self._changed("update", record)
        return dict(record)

    def delete(self, record_id: str) -> Record:
        """Remove a record and return it.

        Raises:
            KeyError: There is no record with this id.
        """
        record = self.records.pop(record_id)
        self._changed("delete", record)
        return record

    def get(self, record_id: str) -> Optional[Record]:
        record = self.records.get(record_id)
        return None if record is None else dict(record)

    def list(self) -> Tuple[Record, ...]:
        """A snapshot of all records, in insertion order."""
        return tuple(dict(r) for r in self.records.values())

    def query(self, predicate: Callable[[Record], bool]) -> List[Record]:
        return [dict(r) for r in self.records.values() if predicate(r)]

    def __len__(self) -> int:
        return len(self.records)

    def load(self) -> int:
        """Read the records from the file; returns their number."""
        if not self.file_path or not os.path.exists(self.file_path):
            return 0
        with open(self.file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or []
        if not isinstance(data, list):
            raise ValueError(f"{self.file_path} does not hold a list")
        self.records = {}
        for item in data:
            record = dict(item)
            record[ID_FIELD] = str(record.get(ID_FIELD) or uuid4())
            self.records[record[ID_FIELD]] = record
        logger.debug(
            "Loaded %d records from %s", len(self.records), self.file_path
        )
        return len(self.records)

    def save(self) -> None:
        if not self.file_path:
            raise ValueError("The repository has no file")
        directory = os.path.dirname(self.file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        rotate_backups(self.file_path, max_backups=3)
        replace_file(
            self.file_path,
            yaml.safe_dump(
                list(self.records.values()),
                allow_unicode=True,
                sort_keys=False,
            ),
        )
