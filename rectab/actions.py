import logging
from enum import StrEnum
from typing import Any, Callable, List, Optional, Tuple

from attrs import define, field

logger = logging.getLogger(__name__)

RowCallback = Callable[[Any], None]

ACTIONS_KEY = "actions"
ACTIONS_TITLE = "Actions"
ACTIONS_WIDTH = 100


class RowAction(StrEnum):
    """The actions that can be triggered on a row."""

    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"


@define(frozen=True)
class RowCallbacks:
    """Callbacks the host application provides for row actions.

    Attributes:
        on_view: Called with the record when the user wants to see it.
        on_edit: Called with the record when the user wants to change it.
        on_delete: Called with the record when the user wants to remove it.
    """

    on_view: Optional[RowCallback] = field(default=None)
    on_edit: Optional[RowCallback] = field(default=None)
    on_delete: Optional[RowCallback] = field(default=None)

    def get(self, action: RowAction) -> Optional[RowCallback]:
        return getattr(self, f"on_{action.value}")

    def supplied(self) -> Tuple[RowAction, ...]:
        """The actions that have a callback, in view, edit, delete order."""
        return tuple(a for a in RowAction if self.get(a) is not None)

    def any(self) -> bool:
        return bool(self.supplied())


@define(frozen=True)
class ActionsColumn:
    """The trailing column that hosts the row action triggers.

    It has no accessor, so it never takes part in search or export.

    Attributes:
        callbacks: The callbacks to invoke.
        key: The key of the column.
        title: The header text.
        width: The width of the column, in pixels.
        fixed: The side the column sticks to.
    """

    callbacks: RowCallbacks
    key: str = field(default=ACTIONS_KEY)
    title: str = field(default=ACTIONS_TITLE)
    width: int = field(default=ACTIONS_WIDTH)
    fixed: str = field(default="right")
    align: str = field(default="center")

    accessor = None
    render = None
    searchable = False
    has_accessor = False

    @property
    def triggers(self) -> Tuple[RowAction, ...]:
        """One trigger for each supplied callback."""
        return self.callbacks.supplied()

    def trigger(self, action: RowAction, record: Any) -> None:
        """Invoke the callback of an action with the record.

        Nothing else is done here; confirmation, navigation and removal
        are the job of the host.
        """
        callback = self.callbacks.get(RowAction(action))
        if callback is None:
            raise ValueError(f"No callback was provided for {action}")
        logger.debug("Triggering %s", action)
        callback(record)

    def read_value(self, record: Any) -> Any:
        return None

    def display_value(self, record: Any) -> str:
        return ""


def inject_actions(
    columns: List[Any], callbacks: Optional[RowCallbacks]
) -> List[Any]:
    """Append the actions column if any row callback was supplied.

    Args:
        columns: The columns of the table; the list is not modified.
        callbacks: The row callbacks.

    Returns:
        A new list of columns.
    """
    result = list(columns)
    if callbacks is not None and callbacks.any():
        result.append(ActionsColumn(callbacks=callbacks))
    return result
