import logging
import os
import time
from typing import Any, List, Optional

import click
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from rectab.__version__ import __version__
from rectab.column import TabColumn, columns_from_config, infer_columns
from rectab.export import ExportFormat, export_records
from rectab.letterhead import Letterhead
from rectab.logging_setup import setup_logging
from rectab.print_doc import (
    BrowserPrintSurface,
    print_table,
    render_print_document,
)
from rectab.projection import build_table
from rectab.settings import LocalSettings

logger = logging.getLogger(__name__)

FORMAT_CHOICES = [f.value for f in ExportFormat] + ["excel"]

# The print document is removed at exit, so give the browser time to load it.
BROWSER_HANDOFF_SECONDS = 3.0


@click.group()
@click.option("--debug/--no-debug", default=False)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Also write a detailed log to this file.",
)
@click.version_option(__version__, prog_name="rectab")
def cli(debug: bool, log_file: Optional[str]):
    load_dotenv()
    setup_logging(debug=debug, log_file=log_file)
    logger.debug("Debug mode is on")


def load_records(path: str) -> List[Any]:
    """Read a YAML (or JSON) file holding a list of records."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return []
    if isinstance(data, dict) and isinstance(data.get("records"), list):
        data = data["records"]
    if not isinstance(data, list):
        raise click.ClickException(f"{path} does not contain a list of records")
    return data


def load_columns(path: Optional[str], records: List[Any]) -> List[TabColumn]:
    """Read the column definitions or infer them from the records."""
    if not path:
        try:
            return infer_columns(records)
        except ValueError as e:
            raise click.ClickException(str(e))

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if not isinstance(data, list):
        raise click.ClickException(f"{path} does not contain a list of columns")
    try:
        return columns_from_config(data)
    except ValidationError as e:
        raise click.ClickException(f"Invalid column definition in {path}:\n{e}")


def load_letterhead() -> Letterhead:
    """The default letterhead, updated from the user settings."""
    stg = LocalSettings(read_only=True)
    try:
        return Letterhead.from_settings(stg.get_setting("letterhead"))
    except ValidationError as e:
        raise click.ClickException(f"Invalid letterhead settings:\n{e}")


@cli.command()
@click.argument("data", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--columns",
    "columns_file",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with the column definitions.",
)
@click.option(
    "--format",
    "formats",
    type=click.Choice(FORMAT_CHOICES, case_sensitive=False),
    multiple=True,
    default=["csv"],
    show_default=True,
)
@click.option("--name", default="export", show_default=True)
@click.option("--title", default=None, help="Title of the PDF document.")
@click.option(
    "--out",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
)
def export(
    data: str,
    columns_file: Optional[str],
    formats: List[str],
    name: str,
    title: Optional[str],
    out: str,
):
    """Export the records in DATA to CSV, Excel or PDF files."""
    records = load_records(data)
    columns = load_columns(columns_file, records)
    letterhead = load_letterhead()
    for fmt in formats:
        artifact = export_records(
            records,
            columns,
            fmt,
            file_name=name,
            title=title,
            letterhead=letterhead,
        )
        click.echo(artifact.save(out))


@cli.command(name="print")
@click.argument("data", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--columns",
    "columns_file",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with the column definitions.",
)
@click.option("--title", default="Data Export", show_default=True)
@click.option(
    "--html",
    "html_file",
    type=click.Path(dir_okay=False),
    help="Write the print document to this file instead of printing.",
)
def print_command(
    data: str,
    columns_file: Optional[str],
    title: str,
    html_file: Optional[str],
):
    """Print the records in DATA through the web browser."""
    records = load_records(data)
    columns = load_columns(columns_file, records)
    table = build_table(records, columns, title)
    letterhead = load_letterhead()

    if html_file:
        directory = os.path.dirname(html_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(html_file, "w", encoding="utf-8") as f:
            f.write(render_print_document(table, letterhead))
        click.echo(html_file)
        return

    printed = print_table(
        table,
        BrowserPrintSurface.open,
        lambda message: click.echo(message, err=True),
        letterhead=letterhead,
    )
    if not printed:
        raise SystemExit(1)
    time.sleep(BROWSER_HANDOFF_SECONDS)


@cli.command()
@click.argument("data", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--columns",
    "columns_file",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with the column definitions.",
)
@click.option("--title", default=None)
def show(data: str, columns_file: Optional[str], title: Optional[str]):
    """Browse the records in DATA in a window."""
    from rectab_qt.app import run_viewer

    records = load_records(data)
    columns = load_columns(columns_file, records)
    raise SystemExit(run_viewer(records, columns, title=title))


if __name__ == "__main__":
    cli()
