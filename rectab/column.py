import json
import logging
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Callable, Iterable, List, Literal, Optional

from attrs import Factory, define, field
from attrs.validators import in_
from pydantic import BaseModel

logger = logging.getLogger(__name__)

Accessor = Callable[[Any], Any]
ALIGNMENTS = ("left", "center", "right")


def title_from_key(key: str) -> str:
    """Create a human readable title out of a column key.

    `employee_name` and `employeeName` both become `Employee Name`.
    """
    chars: List[str] = []
    for i, ch in enumerate(key):
        if ch in "_-.":
            chars.append(" ")
        elif ch.isupper() and i > 0 and key[i - 1].islower():
            chars.append(" ")
            chars.append(ch)
        else:
            chars.append(ch)
    return " ".join(
        word[:1].upper() + word[1:] for word in "".join(chars).split()
    )


def field_accessor(name: str) -> Accessor:
    """Create an accessor that reads a (dotted) field from a record.

    Mappings are read by key, everything else by attribute. A missing
    intermediate value ends the lookup with `None`.

    Args:
        name: The name of the field; nested fields are separated by dots.

    Returns:
        A callable that receives a record and returns the value.
    """
    parts = name.split(".")

    def accessor(record: Any) -> Any:
        current = record
        for part in parts:
            if current is None:
                return None
            if isinstance(current, Mapping):
                current = current.get(part)
            else:
                current = getattr(current, part, None)
        return current

    accessor.__name__ = f"get_{parts[-1]}"
    return accessor


def format_value(value: Any) -> str:
    """Convert a cell value to the text used for display and matching."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        return value.isoformat(sep=" ", timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple, set, frozenset)):
        return ", ".join(format_value(v) for v in value)
    if isinstance(value, Mapping):
        return json.dumps(dict(value), default=str, sort_keys=True)
    return str(value)


@define(frozen=True)
class TabColumn:
    """Declarative description of a table column.

    Attributes:
        key: Unique identifier of the column inside a table.
        title: Header text; defaults to a title created from the key.
        accessor: Function that extracts the value of the cell from a record.
            Columns without an accessor only exist on screen (they are
            skipped by the export pipeline and can't be searched).
        searchable: Whether the column gets a search box.
        render: Optional function that converts the value of the cell to
            what is shown on screen. It never affects exports.
        width: Preferred width of the column, in pixels.
        align: Horizontal alignment of the cell content.
        fixed: Optional side ("left" or "right") the column sticks to.
    """

    key: str
    title: str = field(
        default=Factory(lambda self: title_from_key(self.key), takes_self=True)
    )
    accessor: Optional[Accessor] = field(default=None)
    searchable: bool = field(default=False)
    render: Optional[Callable[[Any], Any]] = field(default=None)
    width: Optional[int] = field(default=None)
    align: str = field(default="left", validator=in_(ALIGNMENTS))
    fixed: Optional[str] = field(default=None)

    @classmethod
    def for_field(cls, name: str, **kwargs: Any) -> "TabColumn":
        """Create a column that reads the field with the same name as the key.

        Args:
            name: The key of the column and the (dotted) name of the field.
            **kwargs: Other attributes of the column.
        """
        return cls(key=name, accessor=field_accessor(name), **kwargs)

    @property
    def has_accessor(self) -> bool:
        return self.accessor is not None

    def read_value(self, record: Any) -> Any:
        """Extract the raw value of the cell from the record.

        An accessor that raises is treated as if it returned `None`.
        """
        if self.accessor is None:
            return None
        try:
            return self.accessor(record)
        except Exception:
            logger.debug(
                "Accessor of column %s failed for record %r",
                self.key,
                record,
                exc_info=True,
            )
            return None

    def display_value(self, record: Any) -> str:
        """Get the text shown on screen for this record."""
        value = self.read_value(record)
        if self.render is None:
            return format_value(value)
        try:
            return format_value(self.render(value))
        except Exception:
            logger.debug(
                "Render function of column %s failed for %r",
                self.key,
                value,
                exc_info=True,
            )
            return format_value(value)


class ColumnInfo(BaseModel):
    """Column definition as read from a configuration file.

    Attributes:
        key: The key of the column.
        title: The header text; if missing it is created from the key.
        field: The (dotted) name of the record field to read; defaults to the
            key. Set it to an empty string for a column that has no value.
        searchable: Whether the column gets a search box.
        width: Preferred width of the column, in pixels.
        align: Horizontal alignment of the cell content.
    """

    key: str
    title: Optional[str] = None
    field: Optional[str] = None
    searchable: bool = False
    width: Optional[int] = None
    align: Literal["left", "center", "right"] = "left"

    def to_column(self) -> TabColumn:
        """Create the column described by this definition."""
        name = self.key if self.field is None else self.field
        kwargs: dict = {
            "key": self.key,
            "accessor": field_accessor(name) if name else None,
            "searchable": self.searchable,
            "width": self.width,
            "align": self.align,
        }
        if self.title is not None:
            kwargs["title"] = self.title
        return TabColumn(**kwargs)


def columns_from_config(data: Iterable[Any]) -> List[TabColumn]:
    """Create columns from a list of definitions.

    Each item is either a mapping that validates as a `ColumnInfo` or a
    plain string naming a searchable field.
    """
    result = []
    for item in data:
        if isinstance(item, str):
            result.append(TabColumn.for_field(item, searchable=True))
        else:
            result.append(ColumnInfo.model_validate(item).to_column())
    return result


def infer_columns(records: Iterable[Any]) -> List[TabColumn]:
    """Create one searchable column for each key of the first record."""
    for record in records:
        if not isinstance(record, Mapping):
            raise ValueError(
                "Columns can only be inferred from mapping records, "
                f"got {type(record).__name__}"
            )
        return [
            TabColumn.for_field(str(key), searchable=True)
            for key in record.keys()
        ]
    return []
