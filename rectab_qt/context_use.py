from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from PyQt5.QtGui import QIcon

    from rectab_qt.context import QtTableContext


class QtUseContext:
    """Shortcuts for widgets that hold a `QtTableContext` in `ctx`."""

    ctx: "QtTableContext"

    def get_icon(self, name: str) -> "QIcon":
        """Returns one of the icons known to the context.

        Args:
            name: The name of the icon, like "view" or "print".
        """
        return self.ctx.get_icon(name)

    def t(self, text: str, d: str, **kwargs: Any) -> str:
        """Look up a user-visible string.

        Args:
            text: The translation key.
            d: Used when the key has no translation.
            **kwargs: Values formatted into the result.
        """
        return self.ctx.t(text, d, **kwargs)

    def show_error(self, message: str, title: str = "Error"):
        return self.ctx.show_error(message, title)

    def notify(self, message: str, kind: str = "warning"):
        """Shows a transient notification."""
        self.ctx.notify(message, kind)

    def get_stg(self, key: str, default: Any = None) -> Any:
        """Read a value from the settings file.

        Args:
            key: Dotted path of the value, like `table.page_size`.
            default: The value returned if the setting is missing.
        """
        return self.ctx.get_stg(key, default)

    def set_stg(self, key: str, value: Any):
        """Change a value in the settings file.

        Args:
            key: Dotted path of the value.
            value: The new value.
        """
        self.ctx.set_stg(key, value)
