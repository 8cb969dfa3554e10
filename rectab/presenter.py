"""Headless state of a data table.

The presenter owns the records, the display columns, the search state and
the pagination of a table. The Qt widgets render what it exposes and
forward user actions to it, which keeps the behaviour testable without a
display.
"""

import logging
import math
import time
from enum import StrEnum
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Hashable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from attrs import define, field

from rectab.actions import (
    ActionsColumn,
    RowAction,
    RowCallbacks,
    inject_actions,
)
from rectab.column import field_accessor, format_value
from rectab.export import ExportArtifact, export_table, resolve_format
from rectab.letterhead import Letterhead
from rectab.print_doc import (
    DEFAULT_PRINT_TITLE,
    Notify,
    OpenSurface,
    print_table,
)
from rectab.projection import ProjectedTable, build_table
from rectab.search import (
    SearchColumn,
    SearchState,
    unwrap,
    wrap_searchable,
)

if TYPE_CHECKING:
    from rectab.settings import LocalSettings

logger = logging.getLogger(__name__)

PAGE_SIZE_OPTIONS = (10, 20, 50, 100)
DEFAULT_PAGE_SIZE = 10
DEFAULT_DEBOUNCE = 0.75

# Rank of `sort_value` for empty values.
EMPTY_RANK = 2


def sort_value(value: Any) -> Tuple[int, float, str]:
    """Sort key that orders numbers numerically and text ignoring case.

    Numbers come first, then text; empty values are always last.
    """
    if value is None:
        return (EMPTY_RANK, 0.0, "")
    if isinstance(value, bool):
        return (0, float(value), "")
    if isinstance(value, (int, float)):
        return (0, float(value), "")
    text = format_value(value).strip()
    if not text:
        return (EMPTY_RANK, 0.0, "")
    try:
        number = float(text)
    except ValueError:
        return (1, 0.0, text.lower())
    if not math.isfinite(number):
        return (1, 0.0, text.lower())
    return (0, number, "")


class TableState(StrEnum):
    """The filtering state of a table.

    Attributes:
        IDLE: No filter is applied.
        FILTERING: The user is typing a search term that is not applied yet.
        FILTERED: At least one column filter is applied.
    """

    IDLE = "idle"
    FILTERING = "filtering"
    FILTERED = "filtered"


def on_state_changed(obj: "TablePresenter", attr, other: TableState) -> Any:
    """Inform the listeners when the state of the table changes."""
    if obj.state != other:
        logger.debug("Table state changed from %s to %s", obj.state, other)
        for callback in obj.on_state_changed:
            callback(obj, other)
    return other


@define(slots=True, kw_only=True)
class Pagination:
    """Client side pagination.

    Attributes:
        page: The current page, 1 based.
        page_size: The number of records on a page.
        options: The page sizes the user can choose from.
        enabled: When false all records are shown on a single page.
    """

    page: int = field(default=1)
    page_size: int = field(default=DEFAULT_PAGE_SIZE)
    options: Tuple[int, ...] = field(default=PAGE_SIZE_OPTIONS, converter=tuple)
    enabled: bool = field(default=True)

    def __attrs_post_init__(self) -> None:
        if self.page_size not in self.options:
            raise ValueError(
                f"Page size {self.page_size} is not one of {self.options}"
            )

    @classmethod
    def from_settings(cls, stg: "LocalSettings", **kwargs: Any) -> "Pagination":
        options = tuple(stg.get_setting("table.page_size_options") or ())
        options = options or PAGE_SIZE_OPTIONS
        page_size = stg.get_setting("table.page_size", DEFAULT_PAGE_SIZE)
        if page_size not in options:
            logger.warning(
                "Configured page size %s is not one of %s", page_size, options
            )
            page_size = options[0]
        return cls(page_size=page_size, options=options, **kwargs)

    def page_count(self, total: int) -> int:
        if not self.enabled:
            return 1
        return max(1, math.ceil(total / self.page_size))

    def set_page(self, page: int, total: int) -> None:
        """Go to a page; out of range values are clamped."""
        self.page = min(max(1, page), self.page_count(total))

    def set_page_size(self, page_size: int) -> None:
        if page_size not in self.options:
            raise ValueError(
                f"Page size {page_size} is not one of {self.options}"
            )
        self.page_size = page_size
        self.page = 1

    def bounds(self, total: int) -> Tuple[int, int]:
        """Zero based [start, end) indices of the current page."""
        if not self.enabled:
            return 0, total
        self.set_page(self.page, total)
        start = (self.page - 1) * self.page_size
        return start, min(total, start + self.page_size)

    def slice(self, records: Sequence[Any]) -> List[Any]:
        start, end = self.bounds(len(records))
        return list(records[start:end])

    def range_label(self, total: int) -> str:
        """The "a-b of total" summary shown next to the pager."""
        if total == 0:
            return "0-0 of 0"
        start, end = self.bounds(total)
        return f"{start + 1}-{end} of {total}"


@define
class ExportDebouncer:
    """Drops an export that repeats the previous one within a short window.

    Attributes:
        window: The window in seconds.
        clock: Provides the current time in seconds.
    """

    window: float = field(default=DEFAULT_DEBOUNCE)
    clock: Callable[[], float] = field(default=time.monotonic)
    _last: Optional[Tuple[Hashable, float]] = field(default=None, init=False)

    def should_run(self, key: Hashable) -> bool:
        now = self.clock()
        if (
            self._last is not None
            and self._last[0] == key
            and now - self._last[1] < self.window
        ):
            return False
        self._last = (key, now)
        return True


@define(kw_only=True)
class TablePresenter:
    """The state of a searchable, paginated table with row actions.

    Attributes:
        columns: The columns as provided by the host, in display order.
        records: All records of the table.
        row_key: The field that identifies a record.
        callbacks: The row action callbacks; the actions column only exists
            if at least one is provided.
        export_file_name: Base name of exported files.
        title: The title of exported and printed documents.
        letterhead: The identity printed on PDF and print documents.
        pagination: The pagination state.
        search: The search state.
        show_export: Whether the export / print menu is offered.
        debouncer: Drops repeated identical exports; None disables it.
        state: The filtering state.
        on_state_changed: Callables informed about state changes.
        on_changed: Callables informed when the visible rows change.
        enhanced_columns: The columns shown on screen: searchable columns
            are wrapped and the actions column is appended.
    """

    columns: List[Any] = field(converter=list)
    records: List[Any] = field(factory=list, converter=list)
    row_key: str = field(default="id")
    callbacks: Optional[RowCallbacks] = field(default=None)
    export_file_name: str = field(default="export")
    title: Optional[str] = field(default=None)
    letterhead: Letterhead = field(factory=Letterhead)
    pagination: Pagination = field(factory=Pagination)
    search: SearchState = field(factory=SearchState)
    show_export: bool = field(default=True)
    debouncer: Optional[ExportDebouncer] = field(factory=ExportDebouncer)

    state: TableState = field(
        default=TableState.IDLE, on_setattr=on_state_changed, init=False
    )
    on_state_changed: List[Callable[[Any, TableState], None]] = field(
        factory=list, init=False, repr=False
    )
    on_changed: List[Callable[[], None]] = field(
        factory=list, init=False, repr=False
    )
    enhanced_columns: List[Any] = field(factory=list, init=False, repr=False)
    sort_key: Optional[str] = field(default=None, init=False)
    sort_descending: bool = field(default=False, init=False)
    _visible: List[Any] = field(factory=list, init=False, repr=False)

    def __attrs_post_init__(self) -> None:
        self.enhanced_columns = self.create_enhanced_columns()
        self.search.on_changed(lambda key: self.refilter())
        self.refilter()

    # ----------------------------
    # Columns and records
    # ----------------------------
    def create_enhanced_columns(self) -> List[Any]:
        wrapped = wrap_searchable(self.columns, self.search)
        return inject_actions(wrapped, self.callbacks)

    def set_columns(self, columns: Sequence[Any]) -> None:
        self.columns = list(columns)
        self.enhanced_columns = self.create_enhanced_columns()
        if self.sort_key not in [c.key for c in self.enhanced_columns]:
            self.sort_key = None
        self.refilter()

    def set_records(self, records: Sequence[Any]) -> None:
        self.records = list(records)
        self.refilter()

    def column(self, key: str) -> Any:
        for column in self.enhanced_columns:
            if column.key == key:
                return column
        raise KeyError(key)

    @property
    def actions_column(self) -> Optional[ActionsColumn]:
        for column in self.enhanced_columns:
            if isinstance(column, ActionsColumn):
                return column
        return None

    def row_id(self, record: Any) -> Any:
        return field_accessor(self.row_key)(record)

    def _notify(self) -> None:
        for callback in self.on_changed:
            callback()

    def refilter(self) -> None:
        """Recompute the visible records from the committed filters."""
        visible = self.search.filter(self.records, self.columns)
        if self.sort_key is not None:
            visible = self.sorted_records(visible)
        self._visible = visible
        self.pagination.set_page(self.pagination.page, len(self._visible))
        self._notify()

    def sorted_records(self, records: List[Any]) -> List[Any]:
        """Order the records by the sort column.

        Empty values stay at the end in both directions.
        """
        column = unwrap(self.column(self.sort_key))
        keyed = [(sort_value(column.read_value(r)), r) for r in records]
        present = [item for item in keyed if item[0][0] != EMPTY_RANK]
        empty = [r for k, r in keyed if k[0] == EMPTY_RANK]
        present.sort(key=lambda item: item[0], reverse=self.sort_descending)
        return [r for _, r in present] + empty

    @property
    def visible_records(self) -> List[Any]:
        """The records that pass the filters.

        They keep their original order unless the table is sorted.
        """
        return list(self._visible)

    @property
    def total(self) -> int:
        return len(self._visible)

    # ----------------------------
    # Search
    # ----------------------------
    def _check_searchable(self, key: str) -> None:
        # Searchable columns without an accessor are left unwrapped.
        if not isinstance(self.column(key), SearchColumn):
            raise KeyError(f"Column {key} is not searchable")

    def edit_search(self, key: str, text: Optional[str]) -> None:
        """The user changed the text of a search box."""
        self._check_searchable(key)
        self.search.edit(key, text)
        self.state = TableState.FILTERING

    def _filter_committed(self) -> None:
        # The search state listener already recomputed the visible rows.
        self.pagination.page = 1
        self._notify()
        self.state = (
            TableState.FILTERED if self.search.any_active else TableState.IDLE
        )

    def apply_search(self, key: str, text: Optional[str] = None) -> bool:
        """The user pressed "Search" on a column.

        Args:
            key: The key of the column.
            text: Replaces the text of the search box before applying it.

        Returns:
            True if the filter changed.
        """
        self._check_searchable(key)
        changed = self.search.search(key, text)
        self._filter_committed()
        return changed

    def reset_search(self, key: str) -> bool:
        """The user pressed "Reset" on a column."""
        self._check_searchable(key)
        changed = self.search.reset(key)
        self._filter_committed()
        return changed

    def reset_all_searches(self) -> bool:
        changed = self.search.reset_all()
        self._filter_committed()
        return changed

    def sort_by(self, key: Optional[str], descending: bool = False) -> None:
        """Sort the visible records by a column; None restores the order."""
        if key is not None and not unwrap(self.column(key)).has_accessor:
            raise KeyError(f"Column {key} can't be sorted")
        self.sort_key = key
        self.sort_descending = descending
        self.refilter()

    # ----------------------------
    # Pagination
    # ----------------------------
    def page_records(self) -> List[Any]:
        """The records on the current page."""
        return self.pagination.slice(self._visible)

    def set_page(self, page: int) -> None:
        self.pagination.set_page(page, self.total)
        self._notify()

    def set_page_size(self, page_size: int) -> None:
        self.pagination.set_page_size(page_size)
        self._notify()

    @property
    def page_count(self) -> int:
        return self.pagination.page_count(self.total)

    @property
    def range_label(self) -> str:
        return self.pagination.range_label(self.total)

    # ----------------------------
    # Row actions
    # ----------------------------
    def trigger(self, action: RowAction, record: Any) -> None:
        """Invoke the callback of a row action."""
        column = self.actions_column
        if column is None:
            raise ValueError("The table has no row actions")
        column.trigger(action, record)

    # ----------------------------
    # Export and print
    # ----------------------------
    def projected(self, title: Optional[str] = None) -> ProjectedTable:
        """Project all records through the original columns.

        Filters and pagination are not applied: exports always contain the
        complete data set.
        """
        return build_table(self.records, self.columns, title or self.title)

    def export(self, fmt: Any) -> Optional[ExportArtifact]:
        """Export the table.

        Returns:
            The artifact, or None if the request repeated the previous one
            too quickly.
        """
        if not self.accept_export(fmt):
            return None
        return self.build_export(fmt)

    def accept_export(self, fmt: Any) -> bool:
        """Tell if an export request should run or is a quick repeat."""
        if self.debouncer is None:
            return True
        resolved = resolve_format(fmt)
        if self.debouncer.should_run((resolved or fmt, self.export_file_name)):
            return True
        logger.debug("Ignoring repeated %s export", fmt)
        return False

    def build_export(self, fmt: Any) -> ExportArtifact:
        """Serialize the table without looking at previous requests."""
        return export_table(
            self.projected(),
            fmt,
            file_name=self.export_file_name,
            letterhead=self.letterhead,
        )

    def print_(self, open_surface: OpenSurface, notify: Notify) -> bool:
        """Print the table; see `rectab.print_doc.print_table`."""
        return print_table(
            self.projected(self.title or DEFAULT_PRINT_TITLE),
            open_surface,
            notify,
            letterhead=self.letterhead,
        )


SummaryCallback = Callable[[List[Any]], Mapping[str, Any]]


@define(kw_only=True)
class ReportPresenter(TablePresenter):
    """A read-only table used in reports.

    It has no row actions and can show a summary row computed from the
    visible records. The summary is never exported.

    Attributes:
        summary: Receives the visible records and returns the values of the
            summary row, indexed by column key.
    """

    callbacks: Optional[RowCallbacks] = field(default=None, init=False)
    export_file_name: str = field(default="report")
    title: Optional[str] = field(default="Report")
    summary: Optional[SummaryCallback] = field(default=None)

    def summary_row(self) -> Optional[Dict[str, str]]:
        """The texts of the summary row, or None if there is no summary."""
        if self.summary is None:
            return None
        values = self.summary(self.visible_records)
        return {
            column.key: format_value(values.get(column.key))
            for column in self.enhanced_columns
        }
