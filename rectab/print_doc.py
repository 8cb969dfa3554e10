"""Printable HTML rendition of a projected table.

The document is rendered from a Jinja2 template and handed to a print
surface: a browser window when running from the command line or a Qt print
preview inside the viewer.
"""

import atexit
import logging
import os
import shutil
import tempfile
import webbrowser
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Protocol

from attrs import define, field
from jinja2 import Environment, FileSystemLoader, select_autoescape

from rectab.column import format_value
from rectab.letterhead import Letterhead, generated_label
from rectab.projection import ProjectedTable

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "templates")
PRINT_TEMPLATE = "print.html.j2"
DEFAULT_PRINT_TITLE = "Data Export"
UNAVAILABLE_MESSAGE = (
    "The print window could not be opened. "
    "Please allow pop-ups or check your printer setup."
)

_jinja_env: Optional[Environment] = None
_session_dir: Optional[str] = None


class PrintSurface(Protocol):
    """Something that can show an HTML document and print it."""

    def load(self, document: str) -> None:
        """Load the HTML document."""
        ...

    def print_(self) -> None:
        """Start printing the loaded document."""
        ...


OpenSurface = Callable[[], Optional[PrintSurface]]
Notify = Callable[[str], None]


def create_jinja_env() -> Environment:
    """Get the Jinja2 environment used for print documents."""
    global _jinja_env
    if _jinja_env is None:
        _jinja_env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(
                enabled_extensions=("html", "html.j2"),
                default_for_string=True,
            ),
        )
    return _jinja_env


def render_print_document(
    table: ProjectedTable,
    letterhead: Optional[Letterhead] = None,
    generated: Optional[datetime] = None,
    auto_print: bool = False,
) -> str:
    """Render the table as a standalone HTML document.

    Args:
        table: The projected table; its title heads the document.
        letterhead: The corporate identity shown in the header and footer.
        generated: The generation time shown under the title.
        auto_print: Add a script that opens the print dialog on load.
    """
    template = create_jinja_env().get_template(PRINT_TEMPLATE)
    return template.render(
        title=table.title or DEFAULT_PRINT_TITLE,
        letterhead=letterhead or Letterhead(),
        generated=generated_label(generated or datetime.now()),
        headers=list(table.headers),
        rows=[[format_value(v) for v in row.values] for row in table.rows],
        auto_print=auto_print,
    )


def print_table(
    table: ProjectedTable,
    open_surface: OpenSurface,
    notify: Notify,
    letterhead: Optional[Letterhead] = None,
    generated: Optional[datetime] = None,
) -> bool:
    """Render the table and send it to a print surface.

    When no surface can be opened the user is notified once and nothing
    else happens.

    Returns:
        True if the document was handed to the surface for printing.
    """
    try:
        surface = open_surface()
    except Exception:
        logger.exception("Failed to open the print surface")
        surface = None
    if surface is None:
        logger.warning("No print surface is available")
        notify(UNAVAILABLE_MESSAGE)
        return False

    try:
        document = render_print_document(
            table,
            letterhead=letterhead,
            generated=generated,
            auto_print=getattr(surface, "auto_print", False),
        )
        surface.load(document)
        surface.print_()
    except Exception as e:
        logger.exception("Printing %s failed", table.title)
        notify(f"Printing failed: {e}")
        return False
    return True


def session_print_dir() -> str:
    """The directory holding the print documents of this process.

    It is created on first use and removed when the process exits.
    """
    global _session_dir
    if _session_dir is None or not os.path.isdir(_session_dir):
        _session_dir = tempfile.mkdtemp(prefix="rectab-print-")
        atexit.register(cleanup_print_dir)
        logger.debug("Print documents go to %s", _session_dir)
    return _session_dir


def cleanup_print_dir() -> None:
    """Remove the print documents created by this process."""
    global _session_dir
    if _session_dir and os.path.isdir(_session_dir):
        logger.debug("Removing print documents in %s", _session_dir)
        shutil.rmtree(_session_dir, ignore_errors=True)
    _session_dir = None


@define
class BrowserPrintSurface:
    """Prints through the default web browser.

    The document is written to a temporary file that calls `window.print()`
    once loaded.

    Attributes:
        directory: Where the temporary file is created; when not set the
            file goes to the print directory of the session, which is
            removed at exit.
        path: The path of the last loaded document.
    """

    directory: Optional[str] = field(default=None)
    path: Optional[str] = field(default=None, init=False)
    auto_print: bool = field(default=True, init=False)

    @classmethod
    def open(cls, directory: Optional[str] = None):
        """Create a surface, or return None if there is no usable browser."""
        try:
            webbrowser.get()
        except webbrowser.Error:
            logger.debug("No web browser is available")
            return None
        return cls(directory=directory)

    def load(self, document: str) -> None:
        with tempfile.NamedTemporaryFile(
            "w",
            suffix=".html",
            prefix="rectab-print-",
            dir=self.directory or session_print_dir(),
            delete=False,
            encoding="utf-8",
        ) as f:
            f.write(document)
            self.path = f.name

    def print_(self) -> None:
        if self.path is None:
            raise RuntimeError("No document was loaded")
        if not webbrowser.open(Path(self.path).as_uri()):
            raise RuntimeError("The browser refused to open the document")
