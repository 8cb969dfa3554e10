"""Per-column, case-insensitive substring search.

Each searchable column owns a `ColumnSearch` that follows a two-action
protocol: the user types into a draft and only committing it (the "Search"
action) changes the filter; the "Reset" action clears both. The effective
filter of a table is the conjunction of all committed terms.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from attrs import define, field

from rectab.column import Accessor, TabColumn, format_value

logger = logging.getLogger(__name__)
VERBOSE = 10


def is_empty_term(term: Optional[str]) -> bool:
    """An empty or whitespace-only term filters nothing."""
    return term is None or not term.strip()


def matches(column: TabColumn, term: Optional[str], record: Any) -> bool:
    """Tell if the record passes the filter of the column.

    The value of the cell matches when its text contains the term as typed,
    ignoring case. Only a blank term means "no filter". A column without an
    accessor, an accessor that raises or a `None` value never match a
    non-empty term.

    Args:
        column: The column that provides the value.
        term: The search term.
        record: The record to test.
    """
    if is_empty_term(term):
        return True
    if column.accessor is None:
        return False
    value = column.read_value(record)
    if value is None:
        return False
    return term.lower() in format_value(value).lower()  # type: ignore


@define
class ColumnSearch:
    """Search state of a single column.

    Attributes:
        key: The key of the column.
        draft: The text in the search box, not yet applied.
        term: The committed search term; empty when the filter is off.
    """

    key: str
    draft: str = field(default="")
    term: str = field(default="")

    @property
    def active(self) -> bool:
        """Whether the column is currently filtered."""
        return bool(self.term)

    def edit(self, text: Optional[str]) -> None:
        """Change the draft without touching the committed term."""
        self.draft = text or ""

    def search(self) -> bool:
        """Commit the draft.

        Returns:
            True if the committed term changed.
        """
        new_term = "" if is_empty_term(self.draft) else self.draft
        if new_term == self.term:
            return False
        self.term = new_term
        return True

    def reset(self) -> bool:
        """Clear the draft and the committed term.

        Returns:
            True if the committed term changed.
        """
        self.draft = ""
        if not self.term:
            return False
        self.term = ""
        return True


@define(frozen=True)
class SearchColumn:
    """A searchable column as presented on screen.

    It wraps the original column, leaving it untouched, and adds the filter
    behaviour.

    Attributes:
        column: The wrapped column.
        search: The search state of the column.
    """

    column: TabColumn
    search: ColumnSearch

    @property
    def key(self) -> str:
        return self.column.key

    @property
    def title(self) -> str:
        return self.column.title

    @property
    def accessor(self) -> Optional[Accessor]:
        return self.column.accessor

    @property
    def searchable(self) -> bool:
        return True

    @property
    def render(self) -> Optional[Callable[[Any], Any]]:
        return self.column.render

    @property
    def width(self) -> Optional[int]:
        return self.column.width

    @property
    def align(self) -> str:
        return self.column.align

    @property
    def fixed(self) -> Optional[str]:
        return self.column.fixed

    @property
    def has_accessor(self) -> bool:
        return self.column.has_accessor

    @property
    def filtered(self) -> bool:
        """The active filter indicator."""
        return self.search.active

    def on_filter(self, term: Optional[str], record: Any) -> bool:
        return matches(self.column, term, record)

    def read_value(self, record: Any) -> Any:
        return self.column.read_value(record)

    def display_value(self, record: Any) -> str:
        return self.column.display_value(record)


def unwrap(column: Any) -> Any:
    """Get the original column behind a search wrapper."""
    if isinstance(column, SearchColumn):
        return column.column
    return column


@define
class SearchState:
    """The search state of a table.

    Attributes:
        searches: Per-column search state, indexed by column key.
        listeners: Callables informed with the key of a column (or `None`
            for all columns) each time the committed filter changes.
    """

    searches: Dict[str, ColumnSearch] = field(factory=dict)
    listeners: List[Callable[[Optional[str]], None]] = field(
        factory=list, init=False
    )

    def for_column(self, key: str) -> ColumnSearch:
        """Get (creating if needed) the search state of a column."""
        result = self.searches.get(key)
        if result is None:
            result = ColumnSearch(key=key)
            self.searches[key] = result
        return result

    def on_changed(self, callback: Callable[[Optional[str]], None]) -> None:
        self.listeners.append(callback)

    def _notify(self, key: Optional[str]) -> None:
        for callback in self.listeners:
            callback(key)

    def edit(self, key: str, text: Optional[str]) -> None:
        self.for_column(key).edit(text)

    def search(self, key: str, text: Optional[str] = None) -> bool:
        """Commit the search term of a column.

        Args:
            key: The key of the column.
            text: If provided it replaces the draft before committing.

        Returns:
            True if the filter changed.
        """
        crt = self.for_column(key)
        if text is not None:
            crt.edit(text)
        changed = crt.search()
        logger.log(
            VERBOSE, "search on %s: %r (changed=%s)", key, crt.term, changed
        )
        if changed:
            self._notify(key)
        return changed

    def reset(self, key: str) -> bool:
        """Clear the search of a column; returns True if the filter changed."""
        changed = self.for_column(key).reset()
        if changed:
            self._notify(key)
        return changed

    def reset_all(self) -> bool:
        """Clear the searches of all columns in one step."""
        changed = False
        for crt in self.searches.values():
            changed = crt.reset() or changed
        if changed:
            self._notify(None)
        return changed

    def is_active(self, key: str) -> bool:
        crt = self.searches.get(key)
        return crt is not None and crt.active

    @property
    def any_active(self) -> bool:
        return any(crt.active for crt in self.searches.values())

    def active_terms(self) -> Dict[str, str]:
        """The committed terms of the filtered columns."""
        return {
            key: crt.term for key, crt in self.searches.items() if crt.active
        }

    def predicate(self, columns: Iterable[Any]) -> Callable[[Any], bool]:
        """Create the conjunction of all active column filters.

        Terms for columns that are not part of `columns`, or that have
        no accessor, are ignored.
        """
        terms = self.active_terms()
        checks: List[Tuple[TabColumn, str]] = []
        for column in columns:
            column = unwrap(column)
            term = terms.get(column.key)
            if term and isinstance(column, TabColumn) and column.has_accessor:
                checks.append((column, term))

        def accept(record: Any) -> bool:
            for column, term in checks:
                if not matches(column, term, record):
                    return False
            return True

        return accept

    def filter(self, records: Iterable[Any], columns: Iterable[Any]) -> list:
        """Keep the records that pass all filters, in their original order."""
        accept = self.predicate(columns)
        return [record for record in records if accept(record)]


def wrap_searchable(
    columns: Iterable[Any], state: SearchState
) -> List[Any]:
    """Wrap each searchable column into a `SearchColumn`.

    Columns that are not searchable pass through unmodified; so do
    searchable columns without an accessor, as there is nothing to match.
    """
    result: List[Any] = []
    for column in columns:
        if isinstance(column, TabColumn) and column.searchable:
            if column.has_accessor:
                search = state.for_column(column.key)
                result.append(SearchColumn(column, search))
                continue
            logger.debug(
                "Column %s is searchable but has no accessor", column.key
            )
        result.append(column)
    return result
